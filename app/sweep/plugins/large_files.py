"""Large file detection plugin.

Finds regular files at or above the session size threshold anywhere
beneath a root, with git evidence, type and risk attached.
"""

import logging
import threading
from typing import Any

from sweep.filesystem.scanner import ParallelScanner
from sweep.models.record import FileRecord
from sweep.plugins.base import Plugin

logger = logging.getLogger(__name__)

PLUGIN_NAME = "large-files"
PLUGIN_VERSION = "1.0.0"


class LargeFilePlugin(Plugin):
    """Reports large files of any type.

    Critical records stay in the result so the user can see why a large
    file is untouchable; the selection layer refuses to select them.
    """

    def __init__(self) -> None:
        super().__init__()
        self._cancel = threading.Event()

    @property
    def name(self) -> str:
        return PLUGIN_NAME

    @property
    def version(self) -> str:
        return PLUGIN_VERSION

    def options(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        config = self._context.config
        return {
            "size_threshold": config.size_threshold,
            "include_git_tracked": config.include_git_tracked,
            "recency_days": config.recency_days,
        }

    def cancel(self) -> None:
        """Stop any scan in progress."""
        self._cancel.set()

    def scan(self, path: str) -> list[FileRecord]:
        """Scan a root for files at or above the size threshold.

        Repository discovery for the root starts before the walk and
        runs alongside it. Paths matching the ignore expression are
        dropped before they are scored.

        Args:
            path: Root directory to scan.

        Returns:
            Scored records, largest first, ties broken by path.
        """
        context = self.context
        context.git_index.start_discovery(path)

        scanner = ParallelScanner(max_workers=context.config.max_workers)
        records: list[FileRecord] = []
        for entry in scanner.scan([path], context.config.size_threshold, cancel=self._cancel):
            if context.config.is_ignored(entry.path):
                continue
            record = FileRecord(
                path=entry.path,
                size=entry.size,
                modified=entry.modified,
                accessed=entry.accessed,
                source=self.name,
            )
            records.append(context.engine.evaluate(record))

        self._record_warnings(scanner.warnings)
        records.sort(key=lambda r: (-r.size, r.path))
        logger.info("Found %d large files under %s", len(records), path)
        return records
