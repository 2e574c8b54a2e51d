"""Unit tests for cleanup report models."""

from sweep.models.report import CleanupReport, DeletionOutcome, OutcomeStatus


class TestDeletionOutcome:
    """Tests for DeletionOutcome dataclass."""

    def test_deleted_counts_as_freed(self) -> None:
        """Deleted paths count toward freed bytes."""
        assert DeletionOutcome("/a", OutcomeStatus.DELETED, 10).freed is True

    def test_would_delete_counts_as_freed(self) -> None:
        """Dry-run outcomes count toward would-be freed bytes."""
        assert DeletionOutcome("/a", OutcomeStatus.WOULD_DELETE, 10).freed is True

    def test_failed_and_skipped_not_freed(self) -> None:
        """Failures and skips free nothing."""
        assert DeletionOutcome("/a", OutcomeStatus.FAILED, 10, "denied").freed is False
        assert DeletionOutcome("/a", OutcomeStatus.SKIPPED, 10, "risk escalated").freed is False


class TestCleanupReport:
    """Tests for CleanupReport aggregation."""

    def _report(self) -> CleanupReport:
        return CleanupReport(
            outcomes=[
                DeletionOutcome("/a", OutcomeStatus.FAILED, 100, "Permission denied"),
                DeletionOutcome("/b", OutcomeStatus.DELETED, 200),
                DeletionOutcome("/c", OutcomeStatus.DELETED, 300),
                DeletionOutcome("/d", OutcomeStatus.SKIPPED, 400, "risk escalated"),
            ]
        )

    def test_empty_report(self) -> None:
        """An empty report has zero totals."""
        report = CleanupReport()

        assert report.total_bytes_freed == 0
        assert report.deleted_count == 0
        assert report.outcome_per_path == {}

    def test_totals(self) -> None:
        """Totals only count freed outcomes."""
        report = self._report()

        assert report.total_bytes_freed == 500
        assert report.deleted_count == 2
        assert report.failed_count == 1
        assert report.skipped_count == 1

    def test_outcome_per_path(self) -> None:
        """Outcomes are addressable by path."""
        report = self._report()

        assert set(report.outcome_per_path) == {"/a", "/b", "/c", "/d"}
        outcome = report.outcome_for("/a")
        assert outcome is not None
        assert outcome.reason == "Permission denied"
        assert report.outcome_for("/missing") is None

    def test_add(self) -> None:
        """add appends in order."""
        report = CleanupReport()
        report.add(DeletionOutcome("/x", OutcomeStatus.DELETED, 1))
        report.add(DeletionOutcome("/y", OutcomeStatus.DELETED, 2))

        assert [o.path for o in report.outcomes] == ["/x", "/y"]

    def test_merge_keeps_order_and_dry_run(self) -> None:
        """merge concatenates outcomes and keeps the dry-run flag."""
        first = CleanupReport([DeletionOutcome("/a", OutcomeStatus.WOULD_DELETE, 1)], dry_run=True)
        second = CleanupReport([DeletionOutcome("/b", OutcomeStatus.WOULD_DELETE, 2)], dry_run=True)

        merged = first.merge(second)

        assert [o.path for o in merged.outcomes] == ["/a", "/b"]
        assert merged.dry_run is True
        assert merged.total_bytes_freed == 3
        assert len(first.outcomes) == 1
