"""Watch-and-restart process supervisor.

Runs a child process, watches a set of paths with watchdog, and restarts the
child when matching files change. Rapid changes are debounced into a single
restart carrying every changed file.

Events (subscribe with ``on``):
    start           child process launched
    restart(files)  fired after the old child stopped, before the new launch
    crash(code)     child exited on its own; waits for changes to relaunch
    quit            supervisor shut down cleanly

Usage:
    supervisor = ProcessSupervisor(["node", "server.js"], watch=["src"])
    supervisor.on("restart", lambda files: print(files))
    supervisor.run()  # blocks until Ctrl+C or stop()
"""

from __future__ import annotations

import logging
import os
import queue
import signal
import subprocess
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.2  # Seconds between child liveness checks
KILL_TIMEOUT = 5.0  # Seconds to wait after SIGTERM before SIGKILL

_QUIT = object()


class SupervisorEvent(str, Enum):
    """Lifecycle events emitted by the supervisor."""

    START = "start"
    RESTART = "restart"
    CRASH = "crash"
    QUIT = "quit"


class ChangeHandler(FileSystemEventHandler):
    """Watchdog handler forwarding file events to the supervisor."""

    def __init__(self, supervisor: ProcessSupervisor):
        self.supervisor = supervisor

    # Open and close events are reads; only these four mean a change.
    def on_created(self, event):
        self._forward(event, event.src_path)

    def on_modified(self, event):
        self._forward(event, event.src_path)

    def on_deleted(self, event):
        self._forward(event, event.src_path)

    def on_moved(self, event):
        self._forward(event, event.src_path, event.dest_path)

    def _forward(self, event, *raw_paths):
        if event.is_directory:
            return

        for raw_path in raw_paths:
            if raw_path:
                self.supervisor.notify_change(Path(os.fsdecode(raw_path)))


class ProcessSupervisor:
    """Supervise a child process and restart it on file changes."""

    def __init__(
        self,
        command: Sequence[str],
        watch: Iterable[Path | str],
        extensions: Iterable[str] = (),
        delay: float = 0.5,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
    ):
        """Initialize the supervisor.

        Args:
            command: Child process command line.
            watch: Directories (watched recursively) and files to watch.
            extensions: File extensions that trigger a restart (empty = all).
                Explicitly watched files always trigger.
            delay: Debounce delay in seconds.
            cwd: Working directory of the child process.
            env: Environment of the child process.
        """
        self.command = list(command)
        self.cwd = Path(cwd) if cwd else Path.cwd()
        self.watch = [self._absolute(p) for p in watch]
        self.extensions = {ext.lstrip(".") for ext in extensions}
        self.delay = delay
        self.env = env

        self.process: subprocess.Popen | None = None
        self.observer: Observer | None = None
        self._listeners: dict[SupervisorEvent, list[Callable[..., Any]]] = {}
        self._requests: queue.Queue = queue.Queue()
        self._pending: set[Path] = set()
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _absolute(self, path: Path | str) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.cwd / path

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: SupervisorEvent | str, callback: Callable[..., Any]) -> ProcessSupervisor:
        """Register a listener for a lifecycle event."""
        self._listeners.setdefault(SupervisorEvent(event), []).append(callback)
        return self

    def _emit(self, event: SupervisorEvent, *args: Any) -> None:
        for callback in self._listeners.get(event, []):
            callback(*args)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def matches(self, path: Path) -> bool:
        """Check whether a changed file should trigger a restart."""
        if path in self.watch:
            return True
        if not any(path == root or root in path.parents for root in self.watch):
            return False
        return not self.extensions or path.suffix.lstrip(".") in self.extensions

    def notify_change(self, path: Path) -> None:
        """Record a changed file and (re)start the debounce timer.

        Called from the watchdog thread.
        """
        if not self.matches(path):
            return

        with self._lock:
            self._pending.add(path)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._flush)
            self._timer.daemon = True
            self._timer.start()

    def _flush(self) -> None:
        with self._lock:
            files = sorted(self._pending)
            self._pending.clear()
            self._timer = None
        if files:
            self._requests.put(files)

    def request_restart(self, files: Iterable[Path | str] = ()) -> None:
        """Ask the main loop to restart the child."""
        self._requests.put(sorted(self._absolute(f) for f in files))

    def stop(self) -> None:
        """Ask the main loop to shut down."""
        self._requests.put(_QUIT)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Start watching and supervising; block until stopped.

        Raises:
            OSError: If the watcher or the first child process cannot start.
        """
        self._start_observer()
        self._install_signal_handler()

        try:
            self._launch()
            while True:
                try:
                    request = self._requests.get(timeout=POLL_INTERVAL)
                except queue.Empty:
                    self._check_child()
                    continue

                if request is _QUIT:
                    break
                self._restart(request)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self._terminate_child()
            self._stop_observer()

        self._emit(SupervisorEvent.QUIT)

    def _start_observer(self) -> None:
        observer = Observer()
        handler = ChangeHandler(self)
        scheduled: set[tuple[Path, bool]] = set()

        for path in self.watch:
            if path.is_dir():
                key = (path, True)
            elif path.exists():
                key = (path.parent, False)
            else:
                logger.debug("Not watching missing path %s", path)
                continue
            if key not in scheduled:
                observer.schedule(handler, str(key[0]), recursive=key[1])
                scheduled.add(key)

        observer.start()
        self.observer = observer
        logger.info("Watching: %s", ", ".join(str(p) for p in self.watch))

    def _stop_observer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def _install_signal_handler(self) -> None:
        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGTERM, lambda signum, frame: self.stop())

    def _launch(self) -> None:
        logger.info("Starting: %s", " ".join(self.command))
        self.process = subprocess.Popen(self.command, cwd=self.cwd, env=self.env)
        self._emit(SupervisorEvent.START)

    def _restart(self, files: list[Path]) -> None:
        self._terminate_child()
        self._emit(SupervisorEvent.RESTART, files)
        try:
            self._launch()
        except OSError as e:
            logger.error("Failed to restart process: %s", e)

    def _check_child(self) -> None:
        if self.process is None or self.process.poll() is None:
            return

        returncode = self.process.returncode
        self.process = None
        logger.warning("Process exited with status %s - waiting for file changes", returncode)
        self._emit(SupervisorEvent.CRASH, returncode)

    def _terminate_child(self) -> None:
        process, self.process = self.process, None
        if process is None or process.poll() is not None:
            return

        process.terminate()
        try:
            process.wait(timeout=KILL_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("Process did not exit after SIGTERM, killing it")
            process.kill()
            process.wait()
