"""Orchestrator module for extstage.

Runs the production and development flows:
- Production assembly of the distribution bundle
- Development linking with a watch/restart session
- Relinking when extension sources change
"""

from .coordinator import WatchCoordinator
from .runner import PipelineRunner
from .session import WatchSession

__all__ = [
    "PipelineRunner",
    "WatchCoordinator",
    "WatchSession",
]
