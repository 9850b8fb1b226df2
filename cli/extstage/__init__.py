"""extstage CLI.

Command-line interface for building, linking and serving extensions.
"""

__version__ = "0.1.0"

from cli.extstage.cli import app, main

__all__ = ["__version__", "app", "main"]
