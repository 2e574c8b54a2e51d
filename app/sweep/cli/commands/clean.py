"""Clean command implementation.

Scans the given paths, lets the user pick files in the interactive
selector, and deletes the confirmed selection.
"""

from pathlib import Path
from typing import Annotated

import typer

from sweep.cli.display import create_records_table, print_cleanup_report, print_scan_warnings
from sweep.cli.tui import run_selector
from sweep.cli.types import resolve_config, size_option
from sweep.core.session import ScanSession
from sweep.errors import ConfigurationError
from sweep.plugins.registry import create_default_registry
from sweep.selection.models import SelectionMode
from sweep.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_warning,
)
from sweep.utils.shell import command_exists


def clean(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(help="Directories to scan (default: current directory)."),
    ] = None,
    size_threshold: Annotated[
        str | None,
        typer.Option(
            "--size-threshold",
            "-t",
            help="Minimum file size, e.g. 100MB or 1.5GB.",
        ),
    ] = None,
    older_than: Annotated[
        int | None,
        typer.Option(
            "--older-than",
            help="Only list files not accessed for this many days.",
            min=0,
        ),
    ] = None,
    include_git_tracked: Annotated[
        bool,
        typer.Option(
            "--include-git-tracked",
            help="Do not treat git-tracked files as Critical.",
        ),
    ] = False,
    include_protected: Annotated[
        bool,
        typer.Option(
            "--include-protected",
            help="Allow selecting and deleting Critical files.",
        ),
    ] = False,
    plugins: Annotated[
        list[str] | None,
        typer.Option(
            "--plugin",
            "-p",
            help="Plugin to run (repeatable): large-files, rust, java, javascript, python.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be deleted without deleting.",
        ),
    ] = False,
) -> None:
    """Select files interactively and delete them.

    Critical files (secrets, git-tracked files, unverifiable repositories)
    are listed but cannot be selected unless --include-protected is given.

    Examples:
        sweep clean                          # Large files under the current directory
        sweep clean ~/src --plugin rust      # Rust build directories
        sweep clean /data -t 1GB --dry-run   # Preview, files of 1 GB and more
    """
    config = resolve_config(
        paths=[str(p) for p in paths] if paths else None,
        size_threshold=size_option(size_threshold),
        older_than_days=older_than,
        include_git_tracked=include_git_tracked or None,
        include_protected=include_protected or None,
        plugins=plugins or None,
    )

    if not command_exists("git"):
        print_warning("git not found; files inside repositories are treated as Critical.")

    registry = create_default_registry()
    try:
        try:
            with console.status("Scanning..."):
                session = ScanSession.start(config, registry)
        except ConfigurationError as e:
            print_error(str(e))
            raise typer.Exit(code=2) from e

        print_scan_warnings(session.warnings)

        if not session.records:
            print_info("No files matched the current filters.")
            return

        mode = run_selector(session.controller, console)
        if mode is not SelectionMode.CONFIRMED:
            print_info("Cancelled. Nothing was deleted.")
            return

        selected = session.controller.selected_records()
        total = sum(r.size for r in selected)
        console.print(create_records_table(selected, title="Selected"))
        if not dry_run and not typer.confirm(
            f"Delete {len(selected)} item(s), {format_size(total)}?", default=False
        ):
            print_info("Aborted. Nothing was deleted.")
            return

        report = session.finish(dry_run=dry_run)
        if report is not None:
            print_cleanup_report(report)
            if report.failed_count:
                raise typer.Exit(code=1)
    finally:
        registry.close()

