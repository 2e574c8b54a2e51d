"""Shared Rich display functions for records and reports.

Provides the record table and the warning and report printers used by
the scan and clean commands.
"""

import time
from collections.abc import Sequence

from rich.table import Table
from rich.text import Text

from sweep.errors import SweepError
from sweep.models.record import FileRecord
from sweep.models.report import CleanupReport, OutcomeStatus
from sweep.utils.formatting import (
    format_age,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
    risk_style,
)

# Warnings listed individually before the rest are summarized
MAX_LISTED_WARNINGS = 5


def create_records_table(
    records: Sequence[FileRecord],
    title: str = "Cleanup Candidates",
    now: float | None = None,
) -> Table:
    """Create a Rich table displaying file records.

    Args:
        records: Records to display, in display order.
        title: Table title.
        now: Reference time for ages. Defaults to the current time.

    Returns:
        Rich Table with one row per record.
    """
    now = time.time() if now is None else now
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Risk", no_wrap=True)
    table.add_column("Size", style="info", justify="right", no_wrap=True)
    table.add_column("Age", style="muted", justify="right", no_wrap=True)
    table.add_column("Type", style="muted")
    table.add_column("Git", style="muted")
    table.add_column("Source", style="muted")
    table.add_column("Path", style="text", overflow="fold")

    for record in records:
        label = record.risk.label if record.risk is not None else "Unscored"
        table.add_row(
            Text(label, style=risk_style(record.risk)),
            format_size(record.size),
            format_age(now - record.modified),
            record.file_type.value,
            record.git_status.value,
            record.source,
            Text(record.path),
        )
    return table


def print_scan_warnings(warnings: Sequence[SweepError]) -> None:
    """Summarize recovered scan errors."""
    for warning in warnings[:MAX_LISTED_WARNINGS]:
        print_warning(str(warning))
    if len(warnings) > MAX_LISTED_WARNINGS:
        print_warning(f"... and {len(warnings) - MAX_LISTED_WARNINGS} more (use --verbose)")


def print_cleanup_report(report: CleanupReport) -> None:
    """Print per-path problems and the summary line."""
    for outcome in report.outcomes:
        if outcome.status == OutcomeStatus.FAILED:
            print_error(f"{outcome.path}: {outcome.reason}")
        elif outcome.status == OutcomeStatus.SKIPPED:
            print_warning(f"Skipped {outcome.path}: {outcome.reason}")

    freed = format_size(report.total_bytes_freed)
    if report.dry_run:
        print_info(f"Dry-run: would delete {report.deleted_count} item(s), freeing {freed}.")
    else:
        print_success(f"Deleted {report.deleted_count} item(s), freed {freed}.")
    if report.failed_count or report.skipped_count:
        print_warning(f"{report.failed_count} failed, {report.skipped_count} skipped.")
