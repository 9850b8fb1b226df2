"""Rich console output utilities for the extstage CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from schemas.reports import DistributionBundle, LinkReport

console = Console()
error_console = Console(stderr=True)


def configure_logging(level: str = "INFO") -> None:
    """Route log records through a rich handler on the root logger."""
    handler = RichHandler(
        console=console,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level.upper())

    # Keep watchdog internals quiet
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_link_report(report: LinkReport) -> None:
    """Print the outcome of a linking pass."""
    if not report.linked and not report.skipped:
        print_info(f"No extensions linked into {report.runtime_root}")
        return

    for name in report.linked:
        print_success(f"Linked {name} ({report.strategy})")
    for skipped in report.skipped:
        print_warning(f"Skipped {skipped.name}: {skipped.reason}")


def print_bundle(bundle: DistributionBundle) -> None:
    """Print the outcome of a production assembly."""
    table = Table(show_header=True, header_style="bold", title="Distribution Bundle")
    table.add_column("Extension", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")

    for name in bundle.staged:
        table.add_row(name, "[green]staged[/green]", "")
    for failed in bundle.failed:
        detail = failed.reason[:60] + "..." if len(failed.reason) > 63 else failed.reason
        table.add_row(failed.name, "[red]failed[/red]", detail)

    if bundle.staged or bundle.failed:
        console.print(table)

    if bundle.deploy_files:
        print_info(f"Deployment files: {', '.join(bundle.deploy_files)}")
    print_info(f"Root descriptor: {bundle.root_descriptor.get('name')} v{bundle.root_descriptor.get('version')}")
