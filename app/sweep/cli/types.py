"""Shared types and utilities for CLI commands.

This module provides common enums and option parsers used across
multiple CLI command modules.
"""

from enum import Enum
from pathlib import Path
from typing import Any

import typer

from sweep.core.config import SweepConfig, load_settings
from sweep.errors import ConfigurationError
from sweep.utils.formatting import parse_size, print_error


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def size_option(value: str | None) -> int | None:
    """Convert a human-readable size option to bytes.

    Args:
        value: Raw option value such as "100MB", or None if unset.

    Returns:
        Size in bytes, or None if the option was not given.

    Raises:
        typer.BadParameter: If the value is not a valid size.
    """
    if value is None:
        return None
    try:
        return parse_size(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def resolve_config(settings_path: Path | None = None, **overrides: Any) -> SweepConfig:
    """Load the settings file and apply command line overrides.

    Options left unset (None) keep the file value.

    Args:
        settings_path: Settings file. Defaults to the XDG settings path.
        **overrides: SweepConfig fields given on the command line.

    Returns:
        Validated configuration.

    Raises:
        typer.Exit: With code 2 if the configuration is invalid.
    """
    try:
        return load_settings(settings_path).with_overrides(**overrides)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from e
