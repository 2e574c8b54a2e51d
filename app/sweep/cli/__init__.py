"""CLI package for sweep.

This package contains the Typer application and all subcommands.
"""

from sweep.cli.main import app

__all__ = ["app"]
