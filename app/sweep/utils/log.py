"""Logging configuration for the sweep CLI.

Library modules only create loggers; the CLI installs a single Rich
handler on the ``sweep`` logger at startup.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "sweep"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """Install a Rich handler on the package logger.

    Args:
        verbose: Log at DEBUG level.
        quiet: Log errors only. Ignored if ``verbose`` is set.
        console: Console to write to. Defaults to stderr.

    Returns:
        The configured package logger.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        log_time_format="[%H:%M:%S]",
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    return logger
