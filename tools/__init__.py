"""Tools module for build and process operations.

Provides deterministic tool abstractions for:
- Shell commands (extension and host builds)
- Process supervision (watch, debounce, restart)
"""

from .base import BaseTool, ToolResult, ToolStatus
from .shell_tool import ShellTool
from .supervisor import ProcessSupervisor, SupervisorEvent

__all__ = [
    "BaseTool",
    "ProcessSupervisor",
    "ShellTool",
    "SupervisorEvent",
    "ToolResult",
    "ToolStatus",
]
