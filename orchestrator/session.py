"""Watch/restart session.

A single session object owns the process supervisor for the lifetime of a
development run. The coordinator subscribes to its lifecycle events; nothing
about the live process is kept in module state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

from extensions.errors import FatalSetupError
from tools.supervisor import ProcessSupervisor, SupervisorEvent


class WatchSession:
    """Long-lived watch session over a fixed set of paths."""

    def __init__(self, supervisor: ProcessSupervisor):
        self.supervisor = supervisor
        self._started = False

    def subscribe(self, event: SupervisorEvent | str, callback: Callable[..., Any]) -> None:
        """Register a callback for a lifecycle event (start, restart, crash, quit)."""
        self.supervisor.on(event, callback)

    def request_restart(self, files: Iterable[Path | str] = ()) -> None:
        """Restart the supervised process as if ``files`` had changed."""
        self.supervisor.request_restart(files)

    def start(self) -> None:
        """Run the session; blocks until the supervisor quits.

        Raises:
            FatalSetupError: If the session was already started.
        """
        if self._started:
            raise FatalSetupError("Watch session already started")
        self._started = True
        self.supervisor.run()

    def stop(self) -> None:
        """Ask the session to shut down."""
        self.supervisor.stop()
