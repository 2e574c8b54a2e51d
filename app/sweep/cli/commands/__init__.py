"""CLI commands for sweep.

This package contains all subcommand implementations.
"""

from sweep.cli.commands import clean, config, scan

__all__ = ["clean", "config", "scan"]
