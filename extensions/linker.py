"""Runtime linking of extensions.

Makes every discovered extension visible to the host server under the
runtime extensions directory:

    extensions/
    └── <relative name>/
        ├── src -> <source>/src      (development)
        ├── dist -> <source>/dist    (compiled)
        └── package.json             (rewritten copy, never a link)

The runtime directory is rebuilt from scratch on every pass so removed or
renamed extensions never leave stale entries behind.
"""

from __future__ import annotations

import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from extensions.builder import ExtensionBuilder
from extensions.errors import ExtstageError
from extensions.locator import ExtensionLocator, ExtensionTarget
from extensions.manifest import (
    DESCRIPTOR_FILENAME,
    ManifestError,
    dev_descriptor,
    load_descriptor,
    sanitize,
    write_descriptor,
)
from extensions.staging import reset_directory
from schemas.reports import LinkReport, SkippedTarget

logger = logging.getLogger(__name__)


class LinkSkipped(ExtstageError):
    """Raised by a strategy when a target cannot be linked."""

    pass


def make_link(source: Path, link_path: Path) -> None:
    """Create a directory symlink at ``link_path`` pointing to ``source``."""
    link_path.parent.mkdir(parents=True, exist_ok=True)
    if link_path.is_symlink() or link_path.is_file():
        link_path.unlink()
    os.symlink(source, link_path, target_is_directory=True)


class LinkStrategy(ABC):
    """How an extension is exposed to the host server."""

    name: str = "base"

    @abstractmethod
    def link(self, target: ExtensionTarget, dest: Path, descriptor: dict[str, Any]) -> None:
        """Link one extension into ``dest``.

        Raises:
            LinkSkipped: If the target cannot be linked with this strategy.
            OSError: If the link or descriptor cannot be written.
        """
        ...


class SourceLinkStrategy(LinkStrategy):
    """Link editable sources and point the host at the TypeScript entry."""

    name = "source"

    def link(self, target: ExtensionTarget, dest: Path, descriptor: dict[str, Any]) -> None:
        if not target.src_dir.is_dir():
            raise LinkSkipped(f"Src path does not exist: {target.src_dir}")
        rewritten = dev_descriptor(descriptor)

        link_path = dest / "src"
        make_link(target.src_dir, link_path)
        logger.info("Linked TypeScript extension from %s to %s", target.src_dir, link_path)

        descriptor_path = dest / DESCRIPTOR_FILENAME
        if descriptor_path.exists():
            descriptor_path.unlink()
            logger.debug("Removed existing %s", descriptor_path)
        write_descriptor(descriptor_path, rewritten)
        logger.info("Updated %s for TypeScript loading", descriptor_path)


class CompiledLinkStrategy(LinkStrategy):
    """Link compiled output, building the extension first when needed."""

    name = "compiled"

    def __init__(self, builder: ExtensionBuilder | None = None):
        self.builder = builder or ExtensionBuilder()

    def link(self, target: ExtensionTarget, dest: Path, descriptor: dict[str, Any]) -> None:
        sanitized = sanitize(descriptor).to_descriptor()

        if not target.dist_dir.is_dir():
            logger.info("Dist path does not exist, building extension at %s", target.absolute_path)
            result = self.builder.build(target)
            if not result.success:
                raise LinkSkipped(f"Build failed: {result.error}")
            if not target.dist_dir.is_dir():
                raise LinkSkipped(f"Build produced no dist directory at {target.dist_dir}")

        link_path = dest / "dist"
        make_link(target.dist_dir, link_path)
        logger.info("Linked compiled extension from %s to %s", target.dist_dir, link_path)

        write_descriptor(dest / DESCRIPTOR_FILENAME, sanitized)


def strategy_for(production: bool, builder: ExtensionBuilder | None = None) -> LinkStrategy:
    """Pick the link strategy for a run mode."""
    if production:
        return CompiledLinkStrategy(builder)
    return SourceLinkStrategy()


class DevLinker:
    """Rebuild the runtime extensions directory from the extensions source.

    Example:
        >>> linker = DevLinker(Path("src/extensions"), Path("extensions"), SourceLinkStrategy())
        >>> report = linker.link()
        >>> report.linked
        ['alpha', 'endpoints/beta']
    """

    def __init__(self, source_root: Path | str, runtime_root: Path | str, strategy: LinkStrategy):
        self.source_root = Path(source_root)
        self.runtime_root = Path(runtime_root)
        self.strategy = strategy

    def link(self) -> LinkReport:
        """Run one linking pass.

        Returns:
            LinkReport listing linked and skipped extensions.

        Raises:
            FatalSetupError: If the runtime directory cannot be reset.
        """
        reset_directory(self.runtime_root)
        report = LinkReport(runtime_root=str(self.runtime_root), strategy=self.strategy.name)

        targets = ExtensionLocator(self.source_root).locate()
        if targets:
            logger.info("Found extension targets: %s", ", ".join(t.relative_name for t in targets))

        for target in targets:
            reason = self._link_target(target)
            if reason is None:
                report.linked.append(target.relative_name)
            else:
                report.skipped.append(SkippedTarget(name=target.relative_name, reason=reason))

        return report

    def _link_target(self, target: ExtensionTarget) -> str | None:
        """Link one target; return the skip reason, or None when linked."""
        dest = self.runtime_root / target.relative_name

        try:
            if self._crosses_link(dest):
                raise LinkSkipped(f"{dest} lies inside a linked directory of another extension")
            descriptor = load_descriptor(target.descriptor_path)
            self.strategy.link(target, dest, descriptor)
        except (ManifestError, LinkSkipped) as e:
            logger.warning("Skipping extension %s: %s", target.relative_name, e)
            return str(e)
        except OSError as e:
            logger.error("Failed to link extension at %s to %s: %s", target.absolute_path, dest, e)
            shutil.rmtree(dest, ignore_errors=True)
            return f"Link failed: {e}"

        return None

    def _crosses_link(self, dest: Path) -> bool:
        """Check whether ``dest`` sits under a symlink already created in this pass."""
        path = dest
        while path != self.runtime_root:
            if path.is_symlink():
                return True
            path = path.parent
        return False


def link(
    source_root: Path | str,
    runtime_root: Path | str,
    strategy: LinkStrategy,
) -> LinkReport:
    """Run one linking pass from ``source_root`` into ``runtime_root``."""
    return DevLinker(source_root, runtime_root, strategy).link()
