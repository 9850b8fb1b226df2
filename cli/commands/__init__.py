"""CLI command modules for extstage."""

from cli.commands.extensions import extensions_app

__all__ = ["extensions_app"]
