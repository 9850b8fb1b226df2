"""Extensions CLI commands for extstage.

Inspect the extensions found in the project.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()

extensions_app = typer.Typer(
    name="extensions",
    help="Inspect project extensions.",
)


@extensions_app.command("list")
def list_extensions(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Project root (default: current directory)",
    ),
) -> None:
    """List extensions discovered under the extensions source directory.

    Examples:
        extstage extensions list
        extstage extensions list --root ../portal
    """
    from cli.extstage.cli import get_runner
    from extensions.manifest import ManifestError, load_descriptor
    from schemas.descriptor import EXTENSION_KEY

    runner = get_runner(ctx, root)
    targets = runner.discover()

    if not targets:
        console.print(f"[yellow]No extensions found under {runner.extensions_source}[/yellow]")
        return

    table = Table(title="Extensions")
    table.add_column("Path", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Kind", style="green")
    table.add_column("src/", justify="center")
    table.add_column("dist/", justify="center")

    for target in targets:
        try:
            descriptor = load_descriptor(target.descriptor_path)
        except ManifestError:
            table.add_row(target.relative_name, "[red]invalid package.json[/red]", "-", "-", "-", "-")
            continue

        section = descriptor.get(EXTENSION_KEY)
        kind = section.get("type") if isinstance(section, dict) else None
        table.add_row(
            target.relative_name,
            str(descriptor.get("name") or "-"),
            str(descriptor.get("version") or "-"),
            str(kind or "-"),
            "✓" if target.src_dir.is_dir() else "[dim]-[/dim]",
            "✓" if target.dist_dir.is_dir() else "[dim]-[/dim]",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(targets)} extensions[/dim]")
