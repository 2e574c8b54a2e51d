"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich, plus the
human-readable size and age helpers shared by the selection view and
the CLI.
"""

import re
import sys

from rich.console import Console
from rich.markup import escape

from sweep.core.theme import get_theme
from sweep.models.record import RiskLevel

SIZE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")

_SIZE_MULTIPLIERS: dict[str, int] = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "M": 1024**2,
    "MB": 1024**2,
    "G": 1024**3,
    "GB": 1024**3,
    "T": 1024**4,
    "TB": 1024**4,
}

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGT]?B?)$")


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def parse_size(text: str) -> int:
    """Parse a human-readable size into bytes.

    Accepts an integer or decimal number followed by an optional binary
    unit (``B``, ``K``/``KB``, ``M``/``MB``, ``G``/``GB``, ``T``/``TB``),
    case-insensitively. ``"1.5GB"`` is 1.5 * 1024**3 bytes.

    Args:
        text: Size string such as "100MB" or "512".

    Returns:
        Size in bytes, truncated to an integer.

    Raises:
        ValueError: If the string is not a valid size.
    """
    match = _SIZE_PATTERN.match(text.strip().upper())
    if match is None:
        msg = f"Invalid size format: {text!r}"
        raise ValueError(msg)
    number, unit = match.groups()
    return int(float(number) * _SIZE_MULTIPLIERS[unit])


def format_size(size: int) -> str:
    """Format a byte count for display.

    Args:
        size: Size in bytes.

    Returns:
        String such as "512 B", "1.50 MB", "15.0 GB" or "150 GB".
    """
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    unit = SIZE_UNITS[unit_index]
    if unit_index == 0:
        return f"{size} {unit}"
    if value >= 100:
        return f"{value:.0f} {unit}"
    if value >= 10:
        return f"{value:.1f} {unit}"
    return f"{value:.2f} {unit}"


def format_age(seconds: float) -> str:
    """Format an elapsed time as a compact age.

    Args:
        seconds: Elapsed seconds; negative values (clock skew) count as zero.

    Returns:
        String such as "now", "5m", "3h", "12d", "4mo" or "2y".
    """
    seconds = max(seconds, 0)
    minutes = int(seconds // 60)
    if minutes < 1:
        return "now"
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    days = hours // 24
    if days < 60:
        return f"{days}d"
    if days < 730:
        return f"{days // 30}mo"
    return f"{days // 365}y"


def risk_style(risk: RiskLevel | None) -> str:
    """Theme style name for a risk tier."""
    if risk is None:
        return "muted"
    return f"risk.{risk.name.lower()}"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{escape(message)}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{escape(message)}[/]")
