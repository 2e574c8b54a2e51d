"""Risk scoring for cleanup candidates.

Risk is a pure function of a record, its git evidence and its name.
Tiers are checked top-down and the first match wins:

1. Critical: protected name, git-tracked without the tracked override,
   or a repository whose state could not be verified.
2. High: modified within the recency window, or a database or binary.
3. Medium: test-data naming, or an unknown file type.
4. Low: any other recognized type that is not ignore-style.
5. Safe: ignore-style content (logs, archives, build artifacts,
   git-ignored paths).
"""

import logging
import os
import time
from dataclasses import replace
from datetime import timedelta
from typing import Protocol

from sweep.filesystem.classifier import PathClassifier
from sweep.git.index import NOT_IN_REPO, GitLookup
from sweep.models.record import FileRecord, FileType, GitStatus, RiskLevel

logger = logging.getLogger(__name__)

DEFAULT_RECENCY_WINDOW = timedelta(days=7)

SECONDS_PER_DAY = 86400

# Types scored High regardless of age
HIGH_RISK_TYPES: frozenset[FileType] = frozenset({FileType.DATABASE, FileType.BINARY})


class GitEvidence(Protocol):
    """Anything that can resolve a path to its git state."""

    def lookup(self, path: str) -> GitLookup: ...


class FreshLookupIndex(Protocol):
    """Git evidence source that also answers uncached lookups."""

    def lookup(self, path: str) -> GitLookup: ...

    def fresh_lookup(self, path: str) -> GitLookup: ...


class _FreshEvidence:
    """Routes lookups through uncached queries."""

    def __init__(self, index: FreshLookupIndex) -> None:
        self._index = index

    def lookup(self, path: str) -> GitLookup:
        return self._index.fresh_lookup(path)


def score(
    record: FileRecord,
    git_index: GitEvidence | None,
    classifier: PathClassifier,
    recency_window: timedelta = DEFAULT_RECENCY_WINDOW,
    *,
    include_tracked: bool = False,
    now: float | None = None,
) -> RiskLevel:
    """Compute the risk tier of a record.

    Args:
        record: Candidate to score. Its ``file_type`` is used as given
            unless it is UNKNOWN for a regular file, in which case the
            classifier is consulted.
        git_index: Source of git evidence. None uses the record's own
            ``git_tracked`` and ``git_status`` fields.
        classifier: Pattern and type classifier.
        recency_window: Files modified more recently than this are High.
        include_tracked: Session override that lets tracked files fall
            through to the lower tiers.
        now: Reference time (epoch seconds). Defaults to the current time.

    Returns:
        The first matching tier of the ordered tier table.
    """
    now = time.time() if now is None else now
    if git_index is not None:
        git = git_index.lookup(record.path)
    else:
        git = GitLookup(tracked=record.git_tracked, status=record.git_status)

    file_type = record.file_type
    if file_type is FileType.UNKNOWN and not record.is_dir:
        file_type = classifier.classify(record.path)

    tracked = git.tracked or git.status in (GitStatus.TRACKED, GitStatus.MODIFIED)

    # Critical
    if classifier.matches_protected(record.path):
        return RiskLevel.CRITICAL
    if git.status is GitStatus.UNVERIFIED:
        return RiskLevel.CRITICAL
    if tracked and not include_tracked:
        return RiskLevel.CRITICAL

    # High
    if now - record.modified <= recency_window.total_seconds():
        return RiskLevel.HIGH
    if file_type in HIGH_RISK_TYPES:
        return RiskLevel.HIGH

    # Medium
    if classifier.matches_test_data_pattern(record.path) or file_type is FileType.UNKNOWN:
        return RiskLevel.MEDIUM

    ignorable = classifier.is_ignorable(file_type) or git.status is GitStatus.IGNORED

    # Low
    if not ignorable:
        return RiskLevel.LOW

    # Safe
    return RiskLevel.SAFE


def should_include(
    record: FileRecord,
    older_than_days: int | None,
    now: float | None = None,
) -> bool:
    """Check if a record passes the age filter.

    Args:
        record: Candidate to check.
        older_than_days: Minimum days since last access. None disables
            the filter.
        now: Reference time (epoch seconds). Defaults to the current time.

    Returns:
        False if the record was accessed within the last
        ``older_than_days`` days, True otherwise.
    """
    if older_than_days is None:
        return True
    now = time.time() if now is None else now
    return now - record.accessed > older_than_days * SECONDS_PER_DAY


class RiskEngine:
    """Scores records against a shared git index and classifier.

    The engine holds no mutable state and may be called from any
    thread.

    Args:
        git_index: Session git index. None treats every path as outside
            any repository.
        classifier: Pattern and type classifier.
        recency_window: Files modified more recently than this are High.
        include_tracked: Session override for git-tracked files.
    """

    def __init__(
        self,
        git_index: FreshLookupIndex | None,
        classifier: PathClassifier,
        recency_window: timedelta = DEFAULT_RECENCY_WINDOW,
        *,
        include_tracked: bool = False,
    ) -> None:
        self._git = git_index
        self._classifier = classifier
        self._window = recency_window
        self._include_tracked = include_tracked

    @property
    def classifier(self) -> PathClassifier:
        """Classifier used for type and name checks."""
        return self._classifier

    def evaluate(self, record: FileRecord, now: float | None = None) -> FileRecord:
        """Attach git evidence, file type and risk tier to a record.

        Args:
            record: Unscored (or previously scored) candidate.
            now: Reference time (epoch seconds).

        Returns:
            A new record with ``git_tracked``, ``git_status``,
            ``file_type`` and ``risk`` set. A tier already present on
            the input is never lowered.
        """
        git = self._git.lookup(record.path) if self._git is not None else NOT_IN_REPO
        file_type = record.file_type
        if file_type is FileType.UNKNOWN and not record.is_dir:
            file_type = self._classifier.classify(record.path)

        enriched = replace(
            record,
            git_tracked=git.tracked,
            git_status=git.status,
            file_type=file_type,
        )
        risk = score(
            enriched,
            None,
            self._classifier,
            self._window,
            include_tracked=self._include_tracked,
            now=now,
        )
        if record.risk is not None:
            risk = max(risk, record.risk)
        return enriched.with_risk(risk)

    def rescore(self, record: FileRecord) -> RiskLevel:
        """Score a record again from fresh evidence.

        Stats the path and queries git without any cache, so changes made
        since the scan (a new commit, a fresh write) are seen.

        Args:
            record: Previously scored record.

        Returns:
            The fresh risk tier.

        A directory is Critical if any entry beneath it is protected.

        Raises:
            OSError: If the path can no longer be stat'ed or a directory
                tree cannot be fully listed.
        """
        st = os.lstat(record.path)
        fresh = replace(
            record,
            modified=st.st_mtime,
            accessed=st.st_atime,
            risk=None,
            file_type=record.file_type if record.is_dir else FileType.UNKNOWN,
        )
        evidence = _FreshEvidence(self._git) if self._git is not None else None
        risk = score(
            fresh,
            evidence,
            self._classifier,
            self._window,
            include_tracked=self._include_tracked,
        )
        if record.is_dir and risk < RiskLevel.CRITICAL:
            protected = self._classifier.find_protected(record.path)
            if protected is not None:
                logger.debug("%s contains protected %s", record.path, protected)
                risk = RiskLevel.CRITICAL
        logger.debug("Re-scored %s: %s", record.path, risk.label)
        return risk
