"""Result type and base interface for tools wrapping external programs."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class ToolStatus(Enum):
    """Status of an external program run."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


@dataclass
class ToolResult:
    """Outcome of running an external program.

    ``output`` holds captured stdout (None when output was streamed to the
    terminal); ``returncode`` is None when the program never started.
    """

    status: ToolStatus
    output: str | None = None
    error: str | None = None
    returncode: int | None = None

    @classmethod
    def ok(cls, output: str | None = None, returncode: int = 0) -> "ToolResult":
        return cls(status=ToolStatus.SUCCESS, output=output, returncode=returncode)

    @classmethod
    def failed(
        cls,
        error: str,
        returncode: int | None = None,
        status: ToolStatus = ToolStatus.FAILURE,
    ) -> "ToolResult":
        return cls(status=status, error=error, returncode=returncode)

    @property
    def success(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.success


class BaseTool(ABC):
    """Abstract base class for tools.

    A tool runs an external program (a package manager, a compiler) from a
    fixed working directory. Failures are reported through ``ToolResult``
    rather than raised, so the caller decides whether one is fatal.
    """

    name: str = "base_tool"

    def __init__(self, working_dir: Path | str | None = None) -> None:
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()

    @abstractmethod
    def execute(self, operation: str, **kwargs: Any) -> ToolResult:
        """Run one tool operation.

        Args:
            operation: Operation name
            **kwargs: Operation-specific parameters

        Returns:
            ToolResult with status and output
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(working_dir={str(self.working_dir)!r})"
