"""Filesystem scanning, classification and cleanup.

This module provides the parallel large-file scanner, the path
classifier with its built-in pattern tables, and the cleanup executor
that deletes a confirmed selection.
"""

from sweep.filesystem.classifier import IGNORABLE_TYPES, PathClassifier
from sweep.filesystem.locking import TreeLock
from sweep.filesystem.operator import CleanupExecutor
from sweep.filesystem.protected import (
    PROTECTED_NAME_PATTERNS,
    TEST_DATA_PATTERNS,
)
from sweep.filesystem.scanner import ParallelScanner

__all__ = [
    "IGNORABLE_TYPES",
    "PROTECTED_NAME_PATTERNS",
    "TEST_DATA_PATTERNS",
    "CleanupExecutor",
    "ParallelScanner",
    "PathClassifier",
    "TreeLock",
]
