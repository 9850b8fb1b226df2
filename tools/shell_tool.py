"""Shell command execution tool."""

import os
import shlex
import subprocess
from pathlib import Path
from typing import Any

from .base import BaseTool, ToolResult, ToolStatus


class ShellTool(BaseTool):
    """Run build commands inside an extension or the host project.

    Only Node.js toolchain programs are allowed:
    - package managers (npm run build, yarn build, pnpm build)
    - node, tsc and the extension SDK CLI
    """

    name = "shell"

    ALLOWED_COMMANDS = frozenset(
        {
            "npm",
            "npx",
            "yarn",
            "pnpm",
            "bun",
            "node",
            "tsc",
            "directus-extension",
            "make",
            "sh",
            "true",
            "false",
        }
    )

    def __init__(
        self,
        working_dir: Path | str | None = None,
        timeout: float | None = None,
        allowed_commands: set[str] | None = None,
    ) -> None:
        """Initialize shell tool.

        Args:
            working_dir: Directory commands run in
            timeout: Seconds before a command is killed (None waits forever)
            allowed_commands: Override the allowed program names
        """
        super().__init__(working_dir)
        self.timeout = timeout
        self.allowed_commands = frozenset(allowed_commands or self.ALLOWED_COMMANDS)

    def execute(self, operation: str, **kwargs: Any) -> ToolResult:
        """Execute a shell operation.

        Args:
            operation: Operation name (only ``run``)
            **kwargs: Parameters of ``run``

        Returns:
            ToolResult of the command
        """
        if operation != "run":
            return ToolResult.failed(f"Unknown operation: {operation}. Available: ['run']")

        try:
            return self.run(**kwargs)
        except OSError as e:
            return ToolResult.failed(str(e))

    def run(
        self,
        command: str | list[str],
        capture: bool = True,
        env: dict[str, str] | None = None,
    ) -> ToolResult:
        """Run ``command`` in the working directory.

        Args:
            command: Command line, split with shell rules when a string
            capture: Capture stdout/stderr instead of streaming to the terminal
            env: Extra environment variables
        """
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not argv:
            return ToolResult.failed("Empty command")

        program = Path(argv[0]).name
        if program not in self.allowed_commands:
            return ToolResult.failed(
                f"Command not allowed: {program}. Allowed: {sorted(self.allowed_commands)}"
            )

        try:
            completed = subprocess.run(
                argv,
                cwd=self.working_dir,
                capture_output=capture,
                text=True,
                timeout=self.timeout,
                env={**os.environ, **env} if env else None,
            )
        except subprocess.TimeoutExpired:
            return ToolResult.failed(
                f"{shlex.join(argv)} timed out after {self.timeout}s", status=ToolStatus.TIMEOUT
            )
        except FileNotFoundError:
            if not self.working_dir.is_dir():
                return ToolResult.failed(f"Working directory not found: {self.working_dir}")
            return ToolResult.failed(f"Command not found: {argv[0]}")

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip() if capture else ""
            return ToolResult.failed(
                stderr or f"{shlex.join(argv)} exited with status {completed.returncode}",
                returncode=completed.returncode,
            )

        return ToolResult.ok(completed.stdout if capture else None)
