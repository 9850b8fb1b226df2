"""Coordination between the watch session and runtime linking.

When a restart is triggered by a change under the extensions source tree, the
runtime extensions directory is relinked before the host process comes back
up, so an added, renamed or removed extension is never served from a stale
link.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Iterable

from extensions.errors import FatalSetupError
from tools.supervisor import SupervisorEvent

from .session import WatchSession

logger = logging.getLogger(__name__)


def _is_under(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


class WatchCoordinator:
    """Drive a watch session and relink extensions on relevant changes.

    Example:
        >>> coordinator = WatchCoordinator(session, relink=runner.link_dev, extensions_source=src)
        >>> coordinator.run()  # blocks; exits the process on quit
    """

    def __init__(
        self,
        session: WatchSession,
        relink: Callable[[], Any],
        extensions_source: Path | str,
        production: bool = False,
        exit_func: Callable[[int], Any] = sys.exit,
    ):
        """Initialize the coordinator.

        Args:
            session: Watch session to drive.
            relink: Runs one linking pass.
            extensions_source: Extensions source directory.
            production: Whether the process runs in production mode.
            exit_func: Called with the exit status on clean quit.
        """
        self.session = session
        self.relink = relink
        self.extensions_source = Path(extensions_source)
        self.production = production
        self.exit_func = exit_func
        self._attached = False

    @property
    def mode(self) -> str:
        return "production" if self.production else "development"

    def attach(self) -> None:
        """Subscribe to the session lifecycle events."""
        if self._attached:
            return
        self.session.subscribe(SupervisorEvent.START, self.on_start)
        self.session.subscribe(SupervisorEvent.RESTART, self.on_restart)
        self.session.subscribe(SupervisorEvent.CRASH, self.on_crash)
        self.session.subscribe(SupervisorEvent.QUIT, self.on_quit)
        self._attached = True

    def run(self) -> None:
        """Attach and start the session.

        Raises:
            FatalSetupError: If the session cannot be started.
        """
        self.attach()
        try:
            self.session.start()
        except OSError as e:
            raise FatalSetupError(f"Cannot start watch session: {e}") from e

    def affects_extensions(self, files: Iterable[Path | str]) -> bool:
        """Check whether any changed file lies under the extensions source tree."""
        root = self.extensions_source.absolute()
        resolved_root = root.resolve()
        for file in files:
            path = Path(file).absolute()
            if _is_under(path, root) or _is_under(path.resolve(), resolved_root):
                return True
        return False

    def on_start(self) -> None:
        logger.info("Process started in %s mode", self.mode)

    def on_restart(self, files: list[Path]) -> None:
        logger.info("Detected changes, restarting...")
        logger.info("Restart triggered by files: %s", ", ".join(str(f) for f in files) or "(manual)")
        if self.affects_extensions(files):
            logger.info("Changes detected in %s, re-linking...", self.extensions_source)
            self.relink()

    def on_crash(self, returncode: int) -> None:
        logger.error("Process crashed with status %s", returncode)

    def on_quit(self) -> None:
        logger.info("Process exited cleanly.")
        self.exit_func(0)
