"""Pipeline pass reports.

Summaries of a linking pass and of a distribution assembly, used by the CLI
to print results and by callers to inspect partial failures.
"""

from typing import Any

from pydantic import BaseModel, Field


class SkippedTarget(BaseModel):
    """An extension left out of a pass, with the reason."""

    name: str = Field(..., description="Relative name of the extension")
    reason: str = Field(..., description="Why the extension was skipped")


class LinkReport(BaseModel):
    """Outcome of one linking pass over the runtime extensions directory."""

    runtime_root: str = Field(..., description="Runtime extensions directory")
    strategy: str = Field(..., description="Link strategy used (source or compiled)")
    linked: list[str] = Field(default_factory=list, description="Linked extensions")
    skipped: list[SkippedTarget] = Field(default_factory=list, description="Skipped extensions")

    @property
    def ok(self) -> bool:
        return not self.skipped


class DistributionBundle(BaseModel):
    """Outcome of a production assembly."""

    dist_root: str = Field(..., description="Distribution directory")
    staged: list[str] = Field(default_factory=list, description="Extensions staged into the bundle")
    failed: list[SkippedTarget] = Field(default_factory=list, description="Extensions that failed")
    deploy_files: list[str] = Field(
        default_factory=list,
        description="Deployment files staged from the project root",
    )
    root_descriptor: dict[str, Any] = Field(
        default_factory=dict,
        description="Synthesized root package descriptor",
    )

    @property
    def ok(self) -> bool:
        return not self.failed
