"""extstage CLI.

Main command-line interface for building and serving extensions.
"""

from pathlib import Path
from typing import Optional

import typer

from cli.extstage.output import (
    configure_logging,
    console,
    print_bundle,
    print_error,
    print_info,
    print_link_report,
    print_success,
    print_warning,
)
from extensions.errors import ExtstageError

app = typer.Typer(
    name="extstage",
    help="extstage - build, link and serve host server extensions",
    no_args_is_help=True,
)

# Register extension sub-app
from cli.commands.extensions import extensions_app

app.add_typer(extensions_app, name="extensions")


@app.callback()
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Build, link and serve extensions."""
    ctx.obj = {"verbose": verbose}
    configure_logging("DEBUG" if verbose else "INFO")


def get_runner(ctx: typer.Context, root: Optional[Path]):
    """Create a pipeline runner for the project root."""
    from orchestrator import PipelineRunner
    from pipeline.config import load_config

    project_root = (root or Path.cwd()).resolve()
    if not project_root.is_dir():
        print_error(f"Project root does not exist: {project_root}")
        raise typer.Exit(1)

    try:
        config = load_config(root=project_root)
    except ExtstageError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    if not (ctx.obj or {}).get("verbose"):
        configure_logging(config.pipeline.log_level)

    return PipelineRunner(config, project_root=project_root)


@app.command()
def build(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Project root (default: current directory)",
    ),
    skip_host_build: bool = typer.Option(
        False,
        "--skip-host-build",
        help="Do not compile the host project before assembling",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with an error if any extension fails",
    ),
) -> None:
    """Build all extensions and assemble the distribution bundle.

    Examples:
        extstage build
        extstage build --skip-host-build --strict
    """
    runner = get_runner(ctx, root)

    try:
        bundle = runner.build(skip_host_build=skip_host_build)
    except ExtstageError as e:
        print_error(f"Build failed: {e}")
        raise typer.Exit(1)

    print_bundle(bundle)
    if bundle.failed:
        print_warning(f"{len(bundle.failed)} extension(s) failed")
        if strict:
            raise typer.Exit(1)
    print_success(f"Dist ready at {bundle.dist_root}")


@app.command()
def link(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Project root (default: current directory)",
    ),
    prod: bool = typer.Option(
        False,
        "--prod",
        help="Link compiled output instead of editable sources",
    ),
) -> None:
    """Relink extensions into the runtime extensions directory once.

    Examples:
        extstage link
        extstage link --prod
    """
    runner = get_runner(ctx, root)

    try:
        report = runner.link(production=prod)
    except ExtstageError as e:
        print_error(f"Linking failed: {e}")
        raise typer.Exit(1)

    print_link_report(report)


@app.command()
def dev(
    ctx: typer.Context,
    env: Optional[str] = typer.Option(
        None,
        "--env",
        "-e",
        help="Environment (loads .config/<env>.env)",
    ),
    prod: bool = typer.Option(
        False,
        "--prod",
        help="Run in production mode (build extensions)",
    ),
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Project root (default: current directory)",
    ),
) -> None:
    """Link extensions, start the server and restart it on changes.

    Examples:
        extstage dev
        extstage dev --env staging --prod
    """
    runner = get_runner(ctx, root)
    environment = env or runner.config.environments.default
    print_info(f"Project root: {runner.project_root}")
    print_info(f"Environment: {environment} ({'production' if prod else 'development'})")

    try:
        runner.dev(environment, production=prod)
    except ExtstageError as e:
        print_error(f"Cannot start development session: {e}")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show extstage version."""
    from cli.extstage import __version__

    console.print(f"extstage v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
