"""Per-extension build step.

Each extension owns its build procedure (its package.json ``build`` script).
The builder runs it inside the extension directory and reports the outcome.
A failing build never raises: it becomes a failed ``BuildResult`` so the
caller can carry on with the remaining extensions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

from extensions.locator import ExtensionTarget
from tools.base import ToolResult
from tools.shell_tool import ShellTool

logger = logging.getLogger(__name__)

DEFAULT_BUILD_COMMAND = "npm run build"

# Runs a command in a working directory
CommandRunner = Callable[[str, Path], ToolResult]


class BuildStatus(str, Enum):
    """Outcome of an extension build."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class BuildResult:
    """Result of building one extension."""

    target: ExtensionTarget
    status: BuildStatus
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status == BuildStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.success


def run_in_shell(command: str, working_dir: Path) -> ToolResult:
    """Run a build command, streaming its output to the terminal."""
    return ShellTool(working_dir=working_dir).execute("run", command=command, capture=False)


class ExtensionBuilder:
    """Run each extension's own build command in its directory.

    Example:
        >>> builder = ExtensionBuilder()
        >>> result = builder.build(target)
        >>> result.success
        True
    """

    def __init__(
        self,
        command: str = DEFAULT_BUILD_COMMAND,
        runner: CommandRunner | None = None,
    ):
        """Initialize the builder.

        Args:
            command: Build command run inside each extension directory.
            runner: Command runner (defaults to the shell tool).
        """
        self.command = command
        self.runner = runner or run_in_shell

    def build(self, target: ExtensionTarget) -> BuildResult:
        """Build a single extension.

        Args:
            target: Extension to build.

        Returns:
            BuildResult; failures are logged and returned, never raised.
        """
        logger.info("Building extension at %s: $ %s", target.absolute_path, self.command)
        result = self.runner(self.command, target.absolute_path)

        if not result.success:
            logger.error("Failed to build extension at %s: %s", target.absolute_path, result.error)
            return BuildResult(target=target, status=BuildStatus.FAILURE, error=result.error)

        return BuildResult(target=target, status=BuildStatus.SUCCESS)

    def build_all(self, targets: Iterable[ExtensionTarget]) -> list[BuildResult]:
        """Build extensions one after another.

        Returns:
            One result per target, in order.
        """
        return [self.build(target) for target in targets]
