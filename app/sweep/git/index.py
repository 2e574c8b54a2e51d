"""Git repository discovery and tracked-path lookup.

GitStatusIndex finds every repository that encloses or lies beneath a
scan root and builds, for each one, the set of tracked paths and a map
of working-tree states. Builds run on a small thread pool so they
overlap with directory scanning; each repository's build is serialized
by its handle's lock.

A repository whose metadata cannot be read is never treated as clean:
every path beneath it reports ``GitStatus.UNVERIFIED``, which the risk
engine scores at the most protective tier.
"""

import logging
import os
import subprocess
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from sweep.errors import RepositoryError
from sweep.models.record import GitStatus
from sweep.utils.shell import run_command, split_nul

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"
DEFAULT_GIT_TIMEOUT = 120.0

_LS_FILES = ["ls-files", "-z", "--cached"]
_STATUS = ["status", "--porcelain=v1", "-z", "--ignored=matching", "--untracked-files=all"]


@dataclass(frozen=True, slots=True)
class GitLookup:
    """Result of resolving a path against the git index.

    Attributes:
        tracked: True only if the path is verifiably in a repository index.
        status: Version-control state of the path.
        repo_root: Owning repository root, None outside any repository.
    """

    tracked: bool
    status: GitStatus
    repo_root: str | None = None


NOT_IN_REPO = GitLookup(tracked=False, status=GitStatus.NOT_IN_REPO)


class GitRepoHandle:
    """Tracked-path set and status cache for one repository.

    The handle is populated once by :meth:`build` and read-only after
    that. Readers call :meth:`wait` before looking anything up.

    Attributes:
        root: Absolute repository work tree root.
        error: Failure message if the metadata could not be read.
    """

    def __init__(self, root: str, timeout: float | None = DEFAULT_GIT_TIMEOUT) -> None:
        self.root = root
        self.error: str | None = None
        self._timeout = timeout
        self._tracked: frozenset[str] = frozenset()
        self._tracked_dirs: frozenset[str] = frozenset()
        self._status: dict[str, GitStatus] = {}
        self._ignored_dirs: tuple[str, ...] = ()
        self._lock = threading.Lock()
        self._ready = threading.Event()

    def __repr__(self) -> str:
        return (
            f"GitRepoHandle(root={self.root!r}, tracked={len(self._tracked)}, "
            f"error={self.error!r})"
        )

    @property
    def is_built(self) -> bool:
        """Whether the build has finished (successfully or not)."""
        return self._ready.is_set()

    @property
    def broken(self) -> bool:
        """Whether the repository metadata could not be read."""
        return self.error is not None

    @property
    def tracked_paths(self) -> frozenset[str]:
        """Tracked paths relative to the root, with ``/`` separators."""
        return self._tracked

    def build(self) -> None:
        """Query git for tracked paths and working-tree status.

        Runs at most once; concurrent callers block on the handle lock.
        Failures are stored in :attr:`error` rather than raised.
        """
        with self._lock:
            if self._ready.is_set():
                return
            try:
                tracked = split_nul(self._git(_LS_FILES))
                status, ignored_dirs = parse_porcelain(self._git(_STATUS))
            except (OSError, subprocess.SubprocessError, RepositoryError) as e:
                self.error = e.reason if isinstance(e, RepositoryError) else str(e)
            else:
                self._tracked = frozenset(tracked)
                self._tracked_dirs = frozenset(_parent_dirs(tracked))
                self._status = status
                self._ignored_dirs = tuple(ignored_dirs)
                logger.debug("Indexed %d tracked paths in %s", len(tracked), self.root)
            finally:
                self._ready.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the build has finished."""
        return self._ready.wait(timeout)

    def lookup(self, path: str) -> GitLookup:
        """Resolve a path beneath this repository.

        Args:
            path: Absolute path inside the work tree.

        Returns:
            GitLookup for the path. UNVERIFIED if the repository is broken.
        """
        self.wait()
        if self.broken:
            return GitLookup(tracked=False, status=GitStatus.UNVERIFIED, repo_root=self.root)

        rel = _relative(path, self.root)
        status = self._status.get(rel)
        if status is GitStatus.MODIFIED:
            return GitLookup(tracked=True, status=status, repo_root=self.root)
        if rel == "." and self._tracked:
            # The work tree root holds tracked content
            return GitLookup(tracked=True, status=GitStatus.TRACKED, repo_root=self.root)
        if rel in self._tracked or rel in self._tracked_dirs:
            return GitLookup(tracked=True, status=GitStatus.TRACKED, repo_root=self.root)
        if status is not None:
            return GitLookup(tracked=False, status=status, repo_root=self.root)

        candidate = rel + "/"
        if any(candidate.startswith(prefix) for prefix in self._ignored_dirs):
            return GitLookup(tracked=False, status=GitStatus.IGNORED, repo_root=self.root)
        return GitLookup(tracked=False, status=GitStatus.UNTRACKED, repo_root=self.root)

    def _git(self, args: list[str]) -> str:
        return _run_git(self.root, args, self._timeout)


class GitStatusIndex:
    """Session-scoped index of every repository touched by a scan.

    Discovery and builds run in the background. :meth:`lookup` waits
    for pending discoveries and for the owning repository's build, so
    a lookup never answers before the evidence is in.

    Args:
        max_workers: Threads used for discovery and repository builds.
        timeout: Per git command timeout in seconds.

    Example:
        >>> with GitStatusIndex() as index:
        ...     index.start_discovery("/src")
        ...     index.lookup("/src/project/data.bin").tracked
    """

    def __init__(
        self,
        *,
        max_workers: int | None = None,
        timeout: float | None = DEFAULT_GIT_TIMEOUT,
    ) -> None:
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or min(4, os.cpu_count() or 1),
            thread_name_prefix="sweep-git",
        )
        self._handles: dict[str, GitRepoHandle] = {}
        self._discoveries: list[Future[list[GitRepoHandle]]] = []
        self._lock = threading.Lock()

    def __enter__(self) -> "GitStatusIndex":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    @property
    def handles(self) -> list[GitRepoHandle]:
        """Repository handles discovered so far."""
        with self._lock:
            return list(self._handles.values())

    @property
    def warnings(self) -> list[RepositoryError]:
        """Repositories whose metadata could not be read."""
        return [
            RepositoryError(handle.root, handle.error or "unknown error")
            for handle in self.handles
            if handle.broken
        ]

    def start_discovery(self, root: str) -> Future[list[GitRepoHandle]]:
        """Discover repositories under ``root`` in the background."""
        future = self._executor.submit(self.discover, root)
        with self._lock:
            self._discoveries.append(future)
        return future

    def discover(self, root: str) -> list[GitRepoHandle]:
        """Locate repository roots for ``root`` and schedule their builds.

        If ``root`` lies inside a repository, that repository is the only
        one returned. Otherwise the tree is walked and every directory
        holding a ``.git`` entry becomes a repository root. The walk does
        not descend below a root; nested repositories are registered
        lazily by :meth:`lookup`.

        Args:
            root: Directory to search.

        Returns:
            Handles for the repositories found.
        """
        root = os.path.abspath(root)
        enclosing = find_enclosing_repo(root)
        if enclosing is not None:
            return [self._register(enclosing)]

        found: list[GitRepoHandle] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
            if GIT_DIR_NAME in dirnames or GIT_DIR_NAME in filenames:
                found.append(self._register(dirpath))
                dirnames.clear()
                continue
            dirnames[:] = [d for d in dirnames if not os.path.islink(os.path.join(dirpath, d))]
        return found

    def lookup(self, path: str) -> GitLookup:
        """Resolve a path to its tracked flag and status.

        A repository nested inside a discovered one gets its own handle
        the first time a path beneath it is looked up.

        Args:
            path: Absolute path to resolve.

        Returns:
            GitLookup from the owning repository, or NOT_IN_REPO.
        """
        self._wait_for_discovery()
        path = os.path.abspath(path)
        handle = self._owner(path)
        if handle is None:
            return NOT_IN_REPO
        nested = _nested_repo(path, handle.root)
        if nested is not None:
            handle = self._register(nested)
        return handle.lookup(path)

    def fresh_lookup(self, path: str) -> GitLookup:
        """Resolve a single path from scratch, bypassing every cache.

        Used to re-validate a file immediately before it is deleted, so a
        repository created or a file added since the scan is noticed.

        Args:
            path: Absolute path to resolve.

        Returns:
            Fresh GitLookup; UNVERIFIED if git cannot answer.
        """
        path = os.path.abspath(path)
        root = find_enclosing_repo(os.path.dirname(path))
        if root is None:
            return NOT_IN_REPO

        rel = _relative(path, root)
        try:
            tracked_out = self._run(root, [*_LS_FILES, "--", rel])
            status_out = self._run(root, [*_STATUS, "--", rel])
        except (OSError, subprocess.SubprocessError, RepositoryError) as e:
            logger.warning("Cannot re-validate %s: %s", path, e)
            return GitLookup(tracked=False, status=GitStatus.UNVERIFIED, repo_root=root)

        tracked = bool(split_nul(tracked_out))
        status_map, ignored_dirs = parse_porcelain(status_out)
        if GitStatus.MODIFIED in status_map.values():
            return GitLookup(tracked=True, status=GitStatus.MODIFIED, repo_root=root)
        if tracked:
            return GitLookup(tracked=True, status=GitStatus.TRACKED, repo_root=root)
        if ignored_dirs or GitStatus.IGNORED in status_map.values():
            return GitLookup(tracked=False, status=GitStatus.IGNORED, repo_root=root)
        return GitLookup(tracked=False, status=GitStatus.UNTRACKED, repo_root=root)

    def close(self) -> None:
        """Stop background work and release the thread pool."""
        self._executor.shutdown(wait=True, cancel_futures=True)

    def _register(self, root: str) -> GitRepoHandle:
        """Create a handle for a repository root and schedule its build."""
        with self._lock:
            handle = self._handles.get(root)
            if handle is not None:
                return handle
            handle = GitRepoHandle(root, timeout=self._timeout)
            self._handles[root] = handle
        logger.debug("Discovered git repository: %s", root)
        self._executor.submit(self._build, handle)
        return handle

    def _build(self, handle: GitRepoHandle) -> None:
        """Build a handle and log a warning if it is unreadable."""
        handle.build()
        if handle.broken:
            warning = RepositoryError(handle.root, handle.error or "unknown error")
            logger.warning("%s; files beneath it are treated as protected", warning)

    def _owner(self, path: str) -> GitRepoHandle | None:
        """Find the deepest discovered repository containing ``path``."""
        with self._lock:
            handles = dict(self._handles)
        if not handles:
            return None
        current = Path(path)
        for candidate in (current, *current.parents):
            handle = handles.get(str(candidate))
            if handle is not None:
                return handle
        return None

    def _wait_for_discovery(self) -> None:
        """Block until every scheduled discovery has finished."""
        with self._lock:
            pending = list(self._discoveries)
        for future in pending:
            future.result()

    def _run(self, root: str, args: list[str]) -> str:
        return _run_git(root, args, self._timeout)


def find_enclosing_repo(path: str) -> str | None:
    """Walk from ``path`` up to the filesystem root looking for ``.git``.

    Args:
        path: Absolute directory to start from.

    Returns:
        The nearest repository root at or above ``path``, or None.
    """
    current = Path(path)
    for candidate in (current, *current.parents):
        if os.path.lexists(candidate / GIT_DIR_NAME):
            return str(candidate)
    return None


def parse_porcelain(output: str) -> tuple[dict[str, GitStatus], list[str]]:
    """Parse ``git status --porcelain=v1 -z`` output.

    Args:
        output: Raw NUL-separated status output.

    Returns:
        Tuple of (status by relative path, ignored directory prefixes).
        Directory prefixes keep their trailing ``/``.
    """
    status: dict[str, GitStatus] = {}
    ignored_dirs: list[str] = []
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        entry = fields[i]
        i += 1
        if len(entry) < 4:
            continue
        code, rel = entry[:2], entry[3:]
        if code == "??":
            status[rel.rstrip("/")] = GitStatus.UNTRACKED
        elif code == "!!":
            if rel.endswith("/"):
                ignored_dirs.append(rel)
            status[rel.rstrip("/")] = GitStatus.IGNORED
        else:
            status[rel] = GitStatus.MODIFIED
            if "R" in code or "C" in code:
                # Renames and copies carry the original path as the next field
                i += 1
    return status, ignored_dirs


def _nested_repo(path: str, root: str) -> str | None:
    """Deepest repository root strictly beneath ``root`` that holds ``path``."""
    current = Path(path)
    for candidate in (current, *current.parents):
        if str(candidate) == root:
            return None
        if os.path.lexists(candidate / GIT_DIR_NAME):
            return str(candidate)
    return None


def _run_git(root: str, args: list[str], timeout: float | None) -> str:
    """Run a git subcommand against a work tree and return its stdout.

    Raises:
        RepositoryError: If git exits with a non-zero status.
    """
    result = run_command(["git", "-C", root, *args], timeout=timeout)
    if not result.success:
        raise RepositoryError(root, result.stderr.strip() or f"git {args[0]} failed")
    return result.stdout


def _parent_dirs(paths: list[str]) -> set[str]:
    """Every ancestor directory of the given relative paths."""
    parents: set[str] = set()
    for rel in paths:
        parts = rel.split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            parents.add("/".join(parts[:depth]))
    return parents


def _relative(path: str, root: str) -> str:
    """Path relative to a repository root, using ``/`` separators."""
    return os.path.relpath(path, root).replace(os.sep, "/")


def _log_walk_error(error: OSError) -> None:
    logger.warning("Cannot search %s for repositories: %s", error.filename, error.strerror)
