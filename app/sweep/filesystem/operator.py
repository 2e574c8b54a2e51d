"""Cleanup executor.

Deletes a confirmed selection one path at a time. Every path is locked and
re-scored immediately before it is touched; a path whose risk has
grown since the scan, or that is now Critical, is skipped rather than
deleted. Failures are isolated per path so one bad entry never aborts
the batch.
"""

import logging
import os
import shutil
from collections.abc import Callable, Iterable
from contextlib import nullcontext
from pathlib import Path

from sweep.errors import DeletionError, SweepError
from sweep.filesystem.locking import TreeLock
from sweep.models.record import FileRecord, RiskLevel
from sweep.models.report import CleanupReport, DeletionOutcome, OutcomeStatus

logger = logging.getLogger(__name__)

SKIP_RISK_ESCALATED = "risk escalated"
SKIP_CRITICAL = "critical risk"
MISSING_PATH = "path does not exist"

Rescore = Callable[[FileRecord], RiskLevel]


class CleanupExecutor:
    """Deletes selected records with per-path re-validation.

    Args:
        rescore: Computes a fresh risk tier for a record. Any exception it
            raises is treated as an escalation.
        dry_run: If True, report what would be deleted without deleting.
        allow_critical: If True, records re-scored as Critical may be
            deleted (the session's include-protected override).
        guard: Optional TreeLock held around every mutation.
    """

    def __init__(
        self,
        rescore: Rescore,
        dry_run: bool = False,
        allow_critical: bool = False,
        guard: TreeLock | None = None,
    ) -> None:
        self._rescore = rescore
        self._dry_run = dry_run
        self._allow_critical = allow_critical
        self._guard = guard

    @property
    def dry_run(self) -> bool:
        """Whether deletions are simulated."""
        return self._dry_run

    def clean(self, selection: Iterable[FileRecord]) -> CleanupReport:
        """Process every record of a confirmed selection.

        Args:
            selection: Records the user confirmed for deletion.

        Returns:
            CleanupReport with exactly one outcome per record, in order.
        """
        report = CleanupReport(dry_run=self._dry_run)
        for record in selection:
            report.add(self._clean_single(record))

        logger.info(
            "Cleanup finished: %d removed, %d failed, %d skipped (dry_run=%s)",
            report.deleted_count,
            report.failed_count,
            report.skipped_count,
            self._dry_run,
        )
        return report

    def _clean_single(self, record: FileRecord) -> DeletionOutcome:
        """Re-validate and delete a single record under the tree lock."""
        guard = self._guard.hold(record.path) if self._guard is not None else nullcontext()
        with guard:
            return self._clean_held(record)

    def _clean_held(self, record: FileRecord) -> DeletionOutcome:
        path = record.path
        if not os.path.lexists(path):
            logger.warning("Cannot delete %s: %s", path, MISSING_PATH)
            return DeletionOutcome(path, OutcomeStatus.FAILED, record.size, MISSING_PATH)

        refusal = self._revalidate(record)
        if refusal is not None:
            logger.warning("Skipping %s: %s", path, refusal)
            return DeletionOutcome(path, OutcomeStatus.SKIPPED, record.size, refusal)

        if self._dry_run:
            logger.info("Dry-run: would delete %s", path)
            return DeletionOutcome(path, OutcomeStatus.WOULD_DELETE, record.size)

        try:
            _remove(path)
        except DeletionError as e:
            logger.warning("%s", e)
            return DeletionOutcome(path, OutcomeStatus.FAILED, record.size, e.reason)

        logger.info("Deleted %s", path)
        return DeletionOutcome(path, OutcomeStatus.DELETED, record.size)

    def _revalidate(self, record: FileRecord) -> str | None:
        """Return a skip reason, or None if the record may be deleted."""
        # An unscored record may only proceed if it is fresh-scored Safe
        recorded = record.risk if record.risk is not None else RiskLevel.SAFE
        try:
            fresh = self._rescore(record)
        except (SweepError, OSError) as e:
            logger.debug("Re-validation of %s failed: %s", record.path, e)
            return SKIP_RISK_ESCALATED

        if fresh > recorded:
            return SKIP_RISK_ESCALATED
        if fresh == RiskLevel.CRITICAL and not self._allow_critical:
            return SKIP_CRITICAL
        return None


def _remove(path: str) -> None:
    """Remove a file, symbolic link or directory tree.

    Raises:
        DeletionError: If the filesystem refuses the operation.
    """
    target = Path(path)
    try:
        # Directories (but not symlinks to directories)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(path)
        else:
            target.unlink()
    except FileNotFoundError as e:
        raise DeletionError(path, MISSING_PATH) from e
    except OSError as e:
        raise DeletionError(path, e.strerror or str(e)) from e
