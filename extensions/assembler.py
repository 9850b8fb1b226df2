"""Production assembly of the distribution bundle.

Builds every extension and stages its compiled output into a self-contained
distribution directory:

    dist/
    ├── package.json                 (aggregate root descriptor)
    ├── ecosystem.config.json        (optional)
    ├── config/                      (optional)
    └── extensions/
        └── <relative name>/
            ├── dist/
            ├── package.json         (sanitized)
            └── README.md, LICENSE   (optional)
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from extensions.builder import CommandRunner, ExtensionBuilder, run_in_shell
from extensions.errors import FatalSetupError
from extensions.locator import ExtensionTarget
from extensions.manifest import (
    DESCRIPTOR_FILENAME,
    ManifestError,
    load_descriptor,
    sanitize,
    write_descriptor,
)
from extensions.staging import copy_file_or_dir, reset_directory
from schemas.descriptor import DESCRIPTOR_DEFAULTS, DistributionDescriptor
from schemas.reports import DistributionBundle, SkippedTarget

logger = logging.getLogger(__name__)

DEFAULT_AUX_FILES = ("README.md", "README", "LICENSE")
DEFAULT_DEPLOY_FILES = ("ecosystem.config.json", "config")
DEFAULT_START_COMMAND = "directus start"
DEFAULT_PROJECT_NAME = "app"


class ArtifactAssembler:
    """Assemble built extensions into a distribution directory.

    Example:
        >>> assembler = ArtifactAssembler(project_root=Path.cwd())
        >>> bundle = assembler.assemble(locate("src/extensions"), Path("dist"))
        >>> bundle.staged
        ['alpha', 'endpoints/beta']
    """

    def __init__(
        self,
        project_root: Path | str,
        builder: ExtensionBuilder | None = None,
        host_build_command: str | None = None,
        host_runner: CommandRunner | None = None,
        start_command: str = DEFAULT_START_COMMAND,
        aux_files: Sequence[str] = DEFAULT_AUX_FILES,
        deploy_files: Sequence[str] = DEFAULT_DEPLOY_FILES,
    ):
        """Initialize the assembler.

        Args:
            project_root: Host project root (holds the root package.json).
            builder: Per-extension builder.
            host_build_command: Command compiling the host project first
                (None or empty to skip).
            host_runner: Runner for the host build command.
            start_command: Start script of the synthesized root descriptor.
            aux_files: Extension files copied next to the compiled output.
            deploy_files: Project files and directories staged verbatim.
        """
        self.project_root = Path(project_root)
        self.builder = builder or ExtensionBuilder()
        self.host_build_command = host_build_command
        self.host_runner = host_runner or run_in_shell
        self.start_command = start_command
        self.aux_files = tuple(aux_files)
        self.deploy_files = tuple(deploy_files)

    def assemble(self, targets: Iterable[ExtensionTarget], dist_root: Path | str) -> DistributionBundle:
        """Build and stage every target into ``dist_root``.

        Args:
            targets: Extensions, in discovery order.
            dist_root: Distribution directory, deleted and recreated first.

        Returns:
            DistributionBundle summarizing staged and failed extensions.

        Raises:
            FatalSetupError: If the distribution directory cannot be reset,
                the host build fails, a deployment file cannot be staged, or
                the host descriptor is invalid.
        """
        dist_root = Path(dist_root)
        reset_directory(dist_root)
        bundle = DistributionBundle(dist_root=str(dist_root))

        self._build_host()

        for target in targets:
            reason = self._stage_extension(target, dist_root / "extensions" / target.relative_name)
            if reason is None:
                bundle.staged.append(target.relative_name)
            else:
                bundle.failed.append(SkippedTarget(name=target.relative_name, reason=reason))

        if not bundle.staged and not bundle.failed:
            logger.info("No extensions found to assemble")

        bundle.deploy_files = self._stage_deploy_files(dist_root)
        bundle.root_descriptor = self._write_root_descriptor(dist_root)

        logger.info("Build completed. Dist ready at %s", dist_root)
        return bundle

    def _build_host(self) -> None:
        if not self.host_build_command:
            return

        logger.info("Compiling host project: $ %s", self.host_build_command)
        result = self.host_runner(self.host_build_command, self.project_root)
        if not result.success:
            raise FatalSetupError(f"Host build failed: {result.error}")

    def _stage_extension(self, target: ExtensionTarget, dest_root: Path) -> str | None:
        """Build and stage one extension; return the failure reason, or None."""
        result = self.builder.build(target)
        if not result.success:
            return f"Build failed: {result.error}"

        try:
            sanitized = sanitize(load_descriptor(target.descriptor_path))
        except ManifestError as e:
            logger.error("Invalid descriptor for extension %s: %s", target.relative_name, e)
            return str(e)

        try:
            if not copy_file_or_dir(target.dist_dir, dest_root / "dist"):
                logger.warning("Extension %s has no dist directory after build", target.relative_name)

            write_descriptor(dest_root / DESCRIPTOR_FILENAME, sanitized.to_descriptor())

            for extra in self.aux_files:
                copy_file_or_dir(target.absolute_path / extra, dest_root / extra)
        except OSError as e:
            logger.error("Failed to stage extension at %s into %s: %s", target.absolute_path, dest_root, e)
            shutil.rmtree(dest_root, ignore_errors=True)
            return f"Staging failed: {e}"

        logger.info("Assembled extension into %s", dest_root)
        return None

    def _stage_deploy_files(self, dist_root: Path) -> list[str]:
        staged: list[str] = []
        for name in self.deploy_files:
            try:
                copied = copy_file_or_dir(self.project_root / name, dist_root / name)
            except OSError as e:
                raise FatalSetupError(f"Cannot stage {name}: {e}") from e
            if copied:
                logger.info("Staged %s", name)
                staged.append(name)
        return staged

    def _write_root_descriptor(self, dist_root: Path) -> dict[str, Any]:
        host: dict[str, Any] = {}
        host_path = self.project_root / DESCRIPTOR_FILENAME
        if host_path.exists():
            try:
                host = load_descriptor(host_path)
            except ManifestError as e:
                raise FatalSetupError(f"Cannot read host descriptor: {e}") from e

        try:
            descriptor = DistributionDescriptor(
                name=f"{host.get('name') or DEFAULT_PROJECT_NAME}-dist",
                type=host.get("type") or DESCRIPTOR_DEFAULTS["type"],
                version=host.get("version") or DESCRIPTOR_DEFAULTS["version"],
                scripts={"start": self.start_command},
                dependencies=host.get("dependencies") or {},
                dev_dependencies=host.get("devDependencies") or {},
            ).to_descriptor()
        except ValidationError as e:
            raise FatalSetupError(f"Invalid host descriptor {host_path}: {e}") from e

        write_descriptor(dist_root / DESCRIPTOR_FILENAME, descriptor)
        return descriptor


def assemble(
    targets: Iterable[ExtensionTarget],
    dist_root: Path | str,
    project_root: Path | str,
    builder: ExtensionBuilder | None = None,
) -> DistributionBundle:
    """Assemble ``targets`` into ``dist_root`` without a host build step."""
    return ArtifactAssembler(project_root, builder=builder).assemble(targets, dist_root)
