"""Parallel directory scanner for large files.

Walks one or more directory trees with a bounded pool of worker
threads and streams every regular file at or above a size threshold
through a bounded queue. The consumer receives results while workers
are still walking, so memory stays flat regardless of tree size.

Symbolic links are never followed and ``.git`` metadata directories
are never entered. Unreadable or vanished paths are logged, recorded
as warnings and skipped.
"""

import logging
import os
import queue
import stat
import threading
from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor

from sweep.errors import ScanIOError
from sweep.models.record import ScanEntry

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1024

# Seconds between cancellation checks while blocked on the queue
_POLL_INTERVAL = 0.05

_GIT_DIR = ".git"


class _WalkState:
    """Shared directory work list for one scan invocation."""

    def __init__(self, roots: Iterable[str]) -> None:
        self.pending: deque[str] = deque(roots)
        self.active = 0
        self.condition = threading.Condition()


class ParallelScanner:
    """Concurrent directory walker producing large-file candidates.

    Each call to :meth:`scan` starts an independent walk. The returned
    iterator is lazy, finite, and cannot be restarted.

    Args:
        max_workers: Worker threads per scan. Defaults to the CPU count.
        queue_size: Capacity of the result queue between workers and consumer.

    Example:
        >>> scanner = ParallelScanner()
        >>> for entry in scanner.scan(["/data"], 100 * 1024 * 1024):
        ...     print(entry.path, entry.size)
    """

    def __init__(
        self,
        *,
        max_workers: int | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        if queue_size <= 0:
            msg = "Queue size must be positive"
            raise ValueError(msg)
        self._max_workers = max_workers or os.cpu_count() or 1
        self._queue_size = queue_size
        self._warnings: list[ScanIOError] = []
        self._warnings_lock = threading.Lock()

    @property
    def warnings(self) -> list[ScanIOError]:
        """Per-path failures recorded during scans."""
        with self._warnings_lock:
            return list(self._warnings)

    def scan(
        self,
        roots: Iterable[str],
        threshold_bytes: int,
        follow_symlinks: bool = False,
        cancel: threading.Event | None = None,
    ) -> Iterator[ScanEntry]:
        """Walk the roots and yield files with ``size >= threshold_bytes``.

        Args:
            roots: Directories (or single files) to scan.
            threshold_bytes: Minimum file size in bytes.
            follow_symlinks: Accepted for interface compatibility. Links are
                never followed, to rule out traversal cycles.
            cancel: Optional event; once set, workers stop walking. Results
                already queued are still delivered.

        Yields:
            ScanEntry for each qualifying file, in no particular order.

        Raises:
            ValueError: If the threshold is negative.
        """
        if threshold_bytes < 0:
            msg = f"Size threshold cannot be negative, got {threshold_bytes}"
            raise ValueError(msg)
        if follow_symlinks:
            logger.debug("Symbolic links are never followed; ignoring follow_symlinks")

        cancel = cancel if cancel is not None else threading.Event()
        results: queue.Queue[ScanEntry] = queue.Queue(maxsize=self._queue_size)
        state = _WalkState(_unique_roots(roots))

        with ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="sweep-scan",
        ) as executor:
            futures = [
                executor.submit(self._worker, state, threshold_bytes, results, cancel)
                for _ in range(self._max_workers)
            ]
            completed = False
            try:
                yield from self._drain(results, futures)
                completed = True
            finally:
                if not completed:
                    cancel.set()
                with state.condition:
                    state.condition.notify_all()

        if completed:
            # Propagate unexpected worker failures
            for future in futures:
                future.result()

    def _drain(
        self,
        results: "queue.Queue[ScanEntry]",
        futures: list[Future[None]],
    ) -> Iterator[ScanEntry]:
        """Yield queued results until every worker has finished."""
        while True:
            try:
                yield results.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if all(f.done() for f in futures) and results.empty():
                    return

    def _worker(
        self,
        state: _WalkState,
        threshold_bytes: int,
        results: "queue.Queue[ScanEntry]",
        cancel: threading.Event,
    ) -> None:
        """Take directories from the shared work list until it is exhausted."""
        while True:
            with state.condition:
                while not state.pending and state.active > 0 and not cancel.is_set():
                    state.condition.wait(timeout=_POLL_INTERVAL)
                if cancel.is_set() or not state.pending:
                    state.condition.notify_all()
                    return
                path = state.pending.popleft()
                state.active += 1

            subdirectories: list[str] = []
            try:
                subdirectories = self._scan_path(path, threshold_bytes, results, cancel)
            finally:
                with state.condition:
                    state.pending.extend(subdirectories)
                    state.active -= 1
                    state.condition.notify_all()

    def _scan_path(
        self,
        path: str,
        threshold_bytes: int,
        results: "queue.Queue[ScanEntry]",
        cancel: threading.Event,
    ) -> list[str]:
        """Dispatch a work item: walk directories, emit large regular files."""
        try:
            st = os.lstat(path)
        except OSError as e:
            self._record(path, e)
            return []

        if stat.S_ISLNK(st.st_mode):
            logger.debug("Not following symbolic link: %s", path)
            return []
        if stat.S_ISDIR(st.st_mode):
            return self._scan_directory(path, threshold_bytes, results, cancel)
        if stat.S_ISREG(st.st_mode) and st.st_size >= threshold_bytes:
            self._emit(results, _to_entry(path, st), cancel)
        return []

    def _scan_directory(
        self,
        directory: str,
        threshold_bytes: int,
        results: "queue.Queue[ScanEntry]",
        cancel: threading.Event,
    ) -> list[str]:
        """List one directory, emitting large files.

        Returns:
            Subdirectories still to be walked.
        """
        subdirectories: list[str] = []
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            self._record(directory, e)
            return subdirectories

        for entry in entries:
            if cancel.is_set():
                break
            try:
                if entry.is_symlink():
                    continue
                if entry.is_dir(follow_symlinks=False):
                    if entry.name != _GIT_DIR:
                        subdirectories.append(entry.path)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                st = entry.stat(follow_symlinks=False)
            except OSError as e:
                self._record(entry.path, e)
                continue

            if st.st_size >= threshold_bytes:
                self._emit(results, _to_entry(entry.path, st), cancel)

        return subdirectories

    @staticmethod
    def _emit(
        results: "queue.Queue[ScanEntry]",
        entry: ScanEntry,
        cancel: threading.Event,
    ) -> None:
        """Put an entry on the result queue, giving up once cancelled."""
        while not cancel.is_set():
            try:
                results.put(entry, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def _record(self, path: str, error: OSError) -> None:
        """Log and keep a per-path scan failure."""
        reason = error.strerror or str(error)
        warning = ScanIOError(path, reason)
        logger.warning("%s", warning)
        with self._warnings_lock:
            self._warnings.append(warning)


def _to_entry(path: str, st: os.stat_result) -> ScanEntry:
    """Build a ScanEntry from stat data."""
    return ScanEntry(
        path=os.path.abspath(path),
        size=st.st_size,
        modified=st.st_mtime,
        accessed=st.st_atime,
    )


def _unique_roots(roots: Iterable[str]) -> list[str]:
    """Absolute roots, deduplicated in input order."""
    unique: list[str] = []
    for root in roots:
        path = os.path.abspath(root)
        if path not in unique:
            unique.append(path)
    return unique
