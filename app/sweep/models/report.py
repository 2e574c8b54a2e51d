"""Cleanup report models.

Describes the per-path outcome of a cleanup batch and the aggregate
report handed to summary renderers.
"""

from dataclasses import dataclass, field
from enum import Enum


class OutcomeStatus(str, Enum):
    """Result of processing a single selected path.

    Attributes:
        DELETED: The path was removed.
        WOULD_DELETE: Dry-run; the path would have been removed.
        FAILED: A filesystem error prevented removal.
        SKIPPED: Re-validation refused the deletion.
    """

    DELETED = "deleted"
    WOULD_DELETE = "would_delete"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    """Outcome of a single cleanup attempt.

    Attributes:
        path: Absolute path that was processed.
        status: What happened to the path.
        size: Bytes accounted to the path at scan time.
        reason: Error or skip reason, None on success.
    """

    path: str
    status: OutcomeStatus
    size: int = 0
    reason: str | None = None

    @property
    def freed(self) -> bool:
        """Whether this outcome counts toward freed bytes."""
        return self.status in (OutcomeStatus.DELETED, OutcomeStatus.WOULD_DELETE)


@dataclass(slots=True)
class CleanupReport:
    """Aggregate result of a cleanup batch.

    Attributes:
        outcomes: One outcome per processed path, in processing order.
        dry_run: Whether the batch was simulated.
    """

    outcomes: list[DeletionOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def total_bytes_freed(self) -> int:
        """Bytes freed (or that would be freed in a dry-run)."""
        return sum(o.size for o in self.outcomes if o.freed)

    @property
    def deleted_count(self) -> int:
        """Number of paths deleted or that would be deleted."""
        return sum(1 for o in self.outcomes if o.freed)

    @property
    def failed_count(self) -> int:
        """Number of paths whose deletion failed."""
        return sum(1 for o in self.outcomes if o.status == OutcomeStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        """Number of paths refused by re-validation."""
        return sum(1 for o in self.outcomes if o.status == OutcomeStatus.SKIPPED)

    @property
    def outcome_per_path(self) -> dict[str, DeletionOutcome]:
        """Outcomes keyed by path."""
        return {o.path: o for o in self.outcomes}

    def outcome_for(self, path: str) -> DeletionOutcome | None:
        """Look up the outcome for a path, None if it was not processed."""
        return self.outcome_per_path.get(path)

    def add(self, outcome: DeletionOutcome) -> None:
        """Append an outcome."""
        self.outcomes.append(outcome)

    def merge(self, other: "CleanupReport") -> "CleanupReport":
        """Combine two reports, keeping this report's outcomes first."""
        return CleanupReport(
            outcomes=[*self.outcomes, *other.outcomes],
            dry_run=self.dry_run or other.dry_run,
        )
