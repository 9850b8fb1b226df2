"""Package descriptor schemas.

Models for the descriptors the pipeline writes: the sanitized per-extension
descriptor shipped in the distribution bundle, and the aggregate root
descriptor synthesized for the bundle as a whole.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Key holding the extension-kind sub-object in a package descriptor
EXTENSION_KEY = "directus:extension"

# Defaults applied to missing (or empty) descriptor fields
DESCRIPTOR_DEFAULTS: dict[str, Any] = {
    "version": "1.0.0",
    "description": "",
    "type": "module",
}

DEFAULT_ENTRY_POINT = "dist/index.js"  # Compiled entry point
DEV_ENTRY_POINT = "src/index.ts"  # Editable entry point
DEFAULT_EXTENSION_TYPE = "endpoint"
DISTRIBUTED_FILES = ["dist"]


class SanitizedDescriptor(BaseModel):
    """Minimal descriptor the host needs to load a built extension.

    Build-only fields (scripts, dependencies, devDependencies, ...) have no
    slot here, so they can never leak into a distributed descriptor.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Any = Field(None, description="Extension package name")
    version: Any = Field(DESCRIPTOR_DEFAULTS["version"], description="Package version")
    description: Any = Field(DESCRIPTOR_DEFAULTS["description"], description="Short description")
    icon: Any = Field(None, description="Icon shown by the host")
    keywords: Any = Field(None, description="Package keywords")
    type: Any = Field(DESCRIPTOR_DEFAULTS["type"], description="Module type")
    files: list[str] = Field(
        default_factory=lambda: list(DISTRIBUTED_FILES),
        description="Files shipped with the package",
    )
    extension: dict[str, Any] = Field(
        default_factory=lambda: {"path": DEFAULT_ENTRY_POINT},
        alias=EXTENSION_KEY,
        description="Extension kind and entry point",
    )

    def to_descriptor(self) -> dict[str, Any]:
        """Render as a package descriptor, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DistributionDescriptor(BaseModel):
    """Root descriptor of a distribution bundle."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Bundle name (<host name>-dist)")
    private: bool = Field(True, description="Never publishable")
    type: Any = Field(DESCRIPTOR_DEFAULTS["type"], description="Module type of the host project")
    version: Any = Field(DESCRIPTOR_DEFAULTS["version"], description="Host project version")
    scripts: dict[str, str] = Field(default_factory=dict, description="Bundle scripts")
    dependencies: dict[str, Any] = Field(
        default_factory=dict,
        description="Runtime dependencies copied from the host project",
    )
    dev_dependencies: dict[str, Any] = Field(
        default_factory=dict,
        alias="devDependencies",
        description="Development dependencies copied from the host project",
    )

    def to_descriptor(self) -> dict[str, Any]:
        """Render as a package descriptor."""
        return self.model_dump(by_alias=True)
