"""Unit tests for file record models."""

import pytest
from sweep.models.record import FileRecord, FileType, GitStatus, RiskLevel, ScanEntry


class TestRiskLevel:
    """Tests for RiskLevel ordering."""

    def test_tiers_are_strictly_ordered(self) -> None:
        """Tiers compare by protectiveness."""
        assert RiskLevel.SAFE < RiskLevel.LOW < RiskLevel.MEDIUM < RiskLevel.HIGH
        assert RiskLevel.HIGH < RiskLevel.CRITICAL

    def test_max_picks_more_protective(self) -> None:
        """max() resolves to the more protective tier."""
        assert max(RiskLevel.LOW, RiskLevel.HIGH) is RiskLevel.HIGH

    @pytest.mark.parametrize(
        ("level", "label"),
        [
            (RiskLevel.SAFE, "Safe"),
            (RiskLevel.MEDIUM, "Medium"),
            (RiskLevel.CRITICAL, "Critical"),
        ],
    )
    def test_label(self, level: RiskLevel, label: str) -> None:
        """Labels are capitalized tier names."""
        assert level.label == label


class TestFileType:
    """Tests for FileType enum."""

    def test_values(self) -> None:
        """File types serialize to lowercase strings."""
        assert FileType.DATABASE.value == "database"
        assert FileType.UNKNOWN.value == "unknown"
        assert FileType.ARTIFACT.value == "artifact"


class TestGitStatus:
    """Tests for GitStatus enum."""

    def test_unverified_is_distinct_from_untracked(self) -> None:
        """An unreadable repository is never reported as untracked."""
        assert GitStatus.UNVERIFIED != GitStatus.UNTRACKED
        assert GitStatus.UNVERIFIED.value == "unverified"


class TestScanEntry:
    """Tests for ScanEntry dataclass."""

    def test_is_frozen(self) -> None:
        """Scan entries are immutable."""
        entry = ScanEntry(path="/data/a.bin", size=10, modified=1.0, accessed=2.0)
        with pytest.raises(AttributeError):
            entry.size = 20  # type: ignore[misc]


class TestFileRecord:
    """Tests for FileRecord dataclass."""

    def test_defaults(self) -> None:
        """A fresh record is unscored and unselected."""
        record = FileRecord(path="/data/a.bin", size=1, modified=0.0, accessed=0.0)

        assert record.risk is None
        assert record.selected is False
        assert record.git_tracked is False
        assert record.git_status == GitStatus.NOT_IN_REPO
        assert record.file_type == FileType.UNKNOWN
        assert record.is_dir is False

    def test_empty_path_rejected(self) -> None:
        """Empty path raises ValueError."""
        with pytest.raises(ValueError, match="Path cannot be empty"):
            FileRecord(path="", size=1, modified=0.0, accessed=0.0)

    def test_negative_size_rejected(self) -> None:
        """Negative size raises ValueError."""
        with pytest.raises(ValueError, match="Size cannot be negative"):
            FileRecord(path="/a", size=-1, modified=0.0, accessed=0.0)

    def test_is_frozen(self) -> None:
        """Records cannot be mutated in place."""
        record = FileRecord(path="/a", size=1, modified=0.0, accessed=0.0)
        with pytest.raises(AttributeError):
            record.risk = RiskLevel.SAFE  # type: ignore[misc]

    def test_key_is_path(self) -> None:
        """Records are identified by path."""
        record = FileRecord(path="/data/a.bin", size=1, modified=0.0, accessed=0.0)
        assert record.key == "/data/a.bin"

    def test_with_risk_sets_tier(self) -> None:
        """with_risk returns a scored copy and leaves the original alone."""
        record = FileRecord(path="/a", size=1, modified=0.0, accessed=0.0)

        scored = record.with_risk(RiskLevel.MEDIUM)

        assert scored.risk is RiskLevel.MEDIUM
        assert record.risk is None

    def test_with_risk_allows_escalation(self) -> None:
        """A tier may be raised."""
        record = FileRecord(path="/a", size=1, modified=0.0, accessed=0.0, risk=RiskLevel.LOW)
        assert record.with_risk(RiskLevel.CRITICAL).risk is RiskLevel.CRITICAL

    def test_with_risk_refuses_decrease(self) -> None:
        """A tier never moves toward a safer value."""
        record = FileRecord(path="/a", size=1, modified=0.0, accessed=0.0, risk=RiskLevel.HIGH)
        with pytest.raises(ValueError, match="cannot decrease"):
            record.with_risk(RiskLevel.SAFE)

    def test_with_source(self) -> None:
        """with_source tags the originating plugin."""
        record = FileRecord(path="/a", size=1, modified=0.0, accessed=0.0)
        assert record.with_source("rust").source == "rust"

    def test_with_selected(self) -> None:
        """with_selected flips only the selected flag."""
        record = FileRecord(path="/a", size=1, modified=0.0, accessed=0.0, risk=RiskLevel.LOW)

        selected = record.with_selected(True)

        assert selected.selected is True
        assert selected.risk is RiskLevel.LOW
        assert record.selected is False
