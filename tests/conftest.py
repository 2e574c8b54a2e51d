"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
import os
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from sweep.models.record import FileRecord, FileType, GitStatus, RiskLevel

MB = 1024 * 1024
DAY = 86400.0

# Fixed reference time for deterministic age calculations
NOW = 1_760_000_000.0

MakeFile = Callable[..., Path]
MakeRecord = Callable[..., FileRecord]


@pytest.fixture(autouse=True)
def reset_sweep_logger() -> Iterator[None]:
    """Undo handler and level changes made by CLI invocations."""
    logger = logging.getLogger("sweep")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def now() -> float:
    """Reference time used by scoring and filtering tests."""
    return NOW


@pytest.fixture
def make_file(tmp_path: Path) -> MakeFile:
    """Factory creating sparse files of a given size and age.

    Sizes are allocated with truncate, so large files cost no disk space.
    """

    def _make(
        relative: str,
        size: int = 0,
        age_days: float | None = 60,
        accessed_days: float | None = None,
        content: bytes | None = None,
    ) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            if content is not None:
                f.write(content)
            f.truncate(max(size, len(content or b"")))
        if age_days is not None:
            current = time.time()
            modified = current - age_days * DAY
            accessed_age = accessed_days if accessed_days is not None else age_days
            accessed = current - accessed_age * DAY
            os.utime(path, (accessed, modified))
        return path

    return _make


@pytest.fixture
def make_record() -> MakeRecord:
    """Factory creating records relative to the NOW reference time."""

    def _make(
        path: str,
        size: int = 150 * MB,
        age_days: float = 60,
        accessed_days: float | None = None,
        risk: RiskLevel | None = RiskLevel.LOW,
        file_type: FileType = FileType.UNKNOWN,
        git_status: GitStatus = GitStatus.NOT_IN_REPO,
        git_tracked: bool = False,
        source: str = "large-files",
        is_dir: bool = False,
    ) -> FileRecord:
        return FileRecord(
            path=path,
            size=size,
            modified=NOW - age_days * DAY,
            accessed=NOW - (accessed_days if accessed_days is not None else age_days) * DAY,
            git_tracked=git_tracked,
            git_status=git_status,
            file_type=file_type,
            risk=risk,
            source=source,
            is_dir=is_dir,
        )

    return _make
