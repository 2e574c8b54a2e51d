"""Data models for sweep.

This module exports the record and report types shared by the
scanner, risk engine, plugins, selection layer and executor.
"""

from sweep.models.record import FileRecord, FileType, GitStatus, RiskLevel, ScanEntry
from sweep.models.report import CleanupReport, DeletionOutcome, OutcomeStatus

__all__ = [
    "CleanupReport",
    "DeletionOutcome",
    "FileRecord",
    "FileType",
    "GitStatus",
    "OutcomeStatus",
    "RiskLevel",
    "ScanEntry",
]
