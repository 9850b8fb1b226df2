"""Pipeline runner for the build and development flows.

Production:  locate -> build -> assemble -> root descriptor
Development: locate -> (build, production-like only) -> link -> launch -> watch
"""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path

from dotenv import dotenv_values

from extensions import (
    ArtifactAssembler,
    DevLinker,
    ExtensionBuilder,
    ExtensionTarget,
    FatalSetupError,
    locate,
    strategy_for,
)
from extensions.builder import CommandRunner
from pipeline.config import Config
from schemas.reports import DistributionBundle, LinkReport
from tools.supervisor import ProcessSupervisor

from .coordinator import WatchCoordinator
from .session import WatchSession

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Run the extension pipeline for one project.

    Example:
        >>> runner = PipelineRunner(load_config(), project_root=Path.cwd())
        >>> bundle = runner.build()
        >>> runner.dev(environment="portal", production=False)
    """

    def __init__(
        self,
        config: Config,
        project_root: Path | str | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize pipeline runner.

        Args:
            config: Application configuration
            project_root: Host project root (default: current directory)
            runner: Command runner for builds (default: shell tool)
        """
        self.config = config
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.runner = runner
        self.builder = ExtensionBuilder(config.build.extension_command, runner=runner)

    @property
    def extensions_source(self) -> Path:
        return self.project_root / self.config.paths.extensions_source

    @property
    def runtime_extensions(self) -> Path:
        return self.project_root / self.config.paths.runtime_extensions

    @property
    def dist_dir(self) -> Path:
        return self.project_root / self.config.paths.dist_dir

    def discover(self) -> list[ExtensionTarget]:
        """Discover extensions under the extensions source directory."""
        return locate(self.extensions_source)

    # ------------------------------------------------------------------
    # Production
    # ------------------------------------------------------------------

    def build(self, skip_host_build: bool = False) -> DistributionBundle:
        """Assemble the production distribution bundle.

        Raises:
            FatalSetupError: If the bundle directory or host build fails.
        """
        logger.info("Starting build...")
        targets = self.discover()
        if targets:
            logger.info("Found extensions: %s", ", ".join(t.relative_name for t in targets))
        else:
            logger.info("No extensions found under %s", self.extensions_source)

        assembler = ArtifactAssembler(
            self.project_root,
            builder=self.builder,
            host_build_command=None if skip_host_build else self.config.build.host_command,
            host_runner=self.runner,
            start_command=self.config.build.start_command,
            aux_files=self.config.build.aux_files,
            deploy_files=self.config.build.deploy_files,
        )
        return assembler.assemble(targets, self.dist_dir)

    # ------------------------------------------------------------------
    # Development
    # ------------------------------------------------------------------

    def link(self, production: bool = False) -> LinkReport:
        """Run one linking pass into the runtime extensions directory."""
        strategy = strategy_for(production, self.builder)
        return DevLinker(self.extensions_source, self.runtime_extensions, strategy).link()

    def child_env(self, environment: str, production: bool = False) -> dict[str, str]:
        """Environment for the host server process.

        Raises:
            ConfigError: If the environment is unknown.
            FatalSetupError: If the environment file is missing.
        """
        self.config.environments.validate(environment)
        env_file = self.project_root / self.config.paths.env_dir / f"{environment}.env"
        if not env_file.is_file():
            raise FatalSetupError(f"Environment file not found: {env_file}")

        values = {key: value for key, value in dotenv_values(env_file).items() if value is not None}
        return {
            **os.environ,
            **values,
            "NODE_ENV": "production" if production else "development",
            "SERVE_APP": "true",
        }

    def server_command(self) -> list[str]:
        """Command line launching the host server."""
        watch = self.config.watch
        command = watch.exec_command.format(
            script=watch.script,
            tsconfig=(self.project_root / "tsconfig.json").as_posix(),
        )
        return shlex.split(command)

    def create_session(self, environment: str, production: bool = False) -> WatchSession:
        """Create the watch session supervising the host server."""
        supervisor = ProcessSupervisor(
            self.server_command(),
            watch=[self.project_root / p for p in self.config.watch.paths],
            extensions=self.config.watch.extensions,
            delay=self.config.watch.delay,
            cwd=self.project_root,
            env=self.child_env(environment, production),
        )
        return WatchSession(supervisor)

    def dev(self, environment: str, production: bool = False) -> None:
        """Link extensions, launch the host server and watch for changes.

        Blocks until the session quits.

        Raises:
            FatalSetupError: If linking or the watch session cannot be set up.
        """
        if production:
            targets = self.discover()
            logger.info("Building extensions at: %s", ", ".join(t.relative_name for t in targets))
            self.builder.build_all(targets)

        session = self.create_session(environment, production)
        self.link(production)

        coordinator = WatchCoordinator(
            session,
            relink=lambda: self.link(production),
            extensions_source=self.extensions_source,
            production=production,
        )
        coordinator.run()
