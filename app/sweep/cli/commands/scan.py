"""Scan command implementation.

Lists cleanup candidates with their risk tier without deleting
anything.
"""

import json
from contextlib import nullcontext
from pathlib import Path
from typing import Annotated, Any

import typer

from sweep.cli.display import create_records_table, print_scan_warnings
from sweep.cli.types import OutputFormat, resolve_config, size_option
from sweep.core.session import ScanSession
from sweep.errors import ConfigurationError
from sweep.models.record import FileRecord
from sweep.plugins.registry import create_default_registry
from sweep.utils.formatting import console, format_size, print_error, print_info


def scan(
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
    plugins: Annotated[
        list[str] | None,
        typer.Option(
            "--plugin",
            "-p",
            help="Plugin to run (repeatable): large-files, rust, java, javascript, python.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-l",
            help="Limit number of results.",
            min=1,
        ),
    ] = None,
) -> None:
    """List cleanup candidates and their risk without deleting anything.

    Examples:
        sweep scan                           # Large files under the current directory
        sweep scan ~/src -p python -p rust   # Python and Rust build directories
        sweep scan /data --format json       # Machine-readable output
    """
    config = resolve_config(
        paths=[str(p) for p in paths] if paths else None,
        size_threshold=size_option(size_threshold),
        older_than_days=older_than,
        include_git_tracked=include_git_tracked or None,
        plugins=plugins or None,
    )

    registry = create_default_registry()
    try:
        interactive = output_format == OutputFormat.TABLE
        try:
            with console.status("Scanning...") if interactive else nullcontext():
                session = ScanSession.start(config, registry)
        except ConfigurationError as e:
            print_error(str(e))
            raise typer.Exit(code=2) from e

        records = session.records
        shown = records[:limit] if limit is not None else records

        if output_format == OutputFormat.JSON:
            payload = {
                "records": [record_to_dict(r) for r in shown],
                "total": len(records),
                "total_bytes": sum(r.size for r in records),
                "warnings": [str(w) for w in session.warnings],
            }
            typer.echo(json.dumps(payload, indent=2))
            return

        print_scan_warnings(session.warnings)
        if not records:
            print_info("No files matched the current filters.")
            return

        console.print(create_records_table(shown, now=session.started_at))
        total = format_size(sum(r.size for r in records))
        if len(shown) < len(records):
            print_info(f"Showing {len(shown)} of {len(records)} candidates ({total} total).")
        else:
            print_info(f"{len(records)} candidates, {total} total.")
    finally:
        registry.close()


def record_to_dict(record: FileRecord) -> dict[str, Any]:
    """Convert a record to a JSON-serializable dictionary."""
    return {
        "path": record.path,
        "size": record.size,
        "modified": record.modified,
        "accessed": record.accessed,
        "risk": record.risk.label if record.risk is not None else None,
        "file_type": record.file_type.value,
        "git_status": record.git_status.value,
        "git_tracked": record.git_tracked,
        "source": record.source,
        "is_dir": record.is_dir,
    }

