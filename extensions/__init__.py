"""Extension pipeline for extstage.

This package discovers extensions under the extensions source directory,
builds them, links them into the runtime extensions directory for
development, and assembles them into a distribution bundle for production.

Extensions are directories holding a package.json, either directly under the
source directory or one level deeper (grouped by kind).
"""

from extensions.assembler import ArtifactAssembler, assemble
from extensions.builder import BuildResult, BuildStatus, ExtensionBuilder
from extensions.errors import ExtstageError, FatalSetupError
from extensions.linker import (
    CompiledLinkStrategy,
    DevLinker,
    LinkSkipped,
    LinkStrategy,
    SourceLinkStrategy,
    link,
    strategy_for,
)
from extensions.locator import ExtensionLocator, ExtensionTarget, locate
from extensions.manifest import (
    ManifestError,
    dev_descriptor,
    load_descriptor,
    sanitize,
    write_descriptor,
)

__all__ = [
    "ArtifactAssembler",
    "BuildResult",
    "BuildStatus",
    "CompiledLinkStrategy",
    "DevLinker",
    "ExtensionBuilder",
    "ExtensionLocator",
    "ExtensionTarget",
    "ExtstageError",
    "FatalSetupError",
    "LinkSkipped",
    "LinkStrategy",
    "ManifestError",
    "SourceLinkStrategy",
    "assemble",
    "dev_descriptor",
    "link",
    "load_descriptor",
    "locate",
    "sanitize",
    "strategy_for",
    "write_descriptor",
]
