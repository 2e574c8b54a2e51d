"""Language project plugins.

Each plugin recognizes one kind of project by its marker files and
reports the project's regenerable build and dependency directories as
directory records of type ARTIFACT.

Projects may also list extra cleanable directories, one relative path
per line, in a ``.swpfile`` at the project root.
"""

import fnmatch
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sweep.errors import ScanIOError
from sweep.models.record import FileRecord, FileType, RiskLevel
from sweep.plugins.base import Plugin

logger = logging.getLogger(__name__)

PLUGIN_VERSION = "1.0.0"

SWPFILE_NAME = ".swpfile"

# Directories never descended while searching for projects
_SKIP_DIRS: frozenset[str] = frozenset({".git", "node_modules", "target"})


@dataclass(frozen=True, slots=True)
class ProjectProfile:
    """Static description of a project kind.

    Attributes:
        name: Plugin name (e.g. "rust").
        markers: File names whose presence marks a project root.
        directories: Cleanable directory names directly below the root.
        globs: Glob patterns matched against direct children of the root.
        recursive: Directory names searched for below the root.
        max_depth: Depth limit for the recursive search.
        protected: File name patterns that must survive any cleanup.
    """

    name: str
    markers: tuple[str, ...]
    directories: tuple[str, ...] = ()
    globs: tuple[str, ...] = ()
    recursive: tuple[str, ...] = ()
    max_depth: int = 5
    protected: tuple[str, ...] = ()


PROFILES: tuple[ProjectProfile, ...] = (
    ProjectProfile(
        name="rust",
        markers=("Cargo.toml",),
        directories=("target",),
        protected=("Cargo.lock",),
    ),
    ProjectProfile(
        name="java",
        markers=("pom.xml", "build.gradle", "build.gradle.kts"),
        directories=("target", "build", ".gradle", "out"),
        protected=("gradle-wrapper.properties",),
    ),
    ProjectProfile(
        name="javascript",
        markers=("package.json",),
        directories=("node_modules", ".next", ".nuxt", ".parcel-cache", ".cache", ".turbo"),
        protected=("package-lock.json",),
    ),
    ProjectProfile(
        name="python",
        markers=("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt"),
        directories=(".pytest_cache", ".mypy_cache", ".ruff_cache", ".tox", "build", "dist"),
        globs=("*.egg-info",),
        recursive=("__pycache__",),
        protected=("poetry.lock", "uv.lock", "Pipfile.lock"),
    ),
)


@dataclass(frozen=True, slots=True)
class _TreeStats:
    size: int
    modified: float
    accessed: float
    # Holds a protected entry or could not be fully read
    guarded: bool = False


class ProjectPlugin(Plugin):
    """Reports cleanable directories of one project kind.

    Args:
        profile: The project kind this plugin handles.
    """

    def __init__(self, profile: ProjectProfile) -> None:
        super().__init__()
        self._profile = profile

    @property
    def name(self) -> str:
        return self._profile.name

    @property
    def version(self) -> str:
        return PLUGIN_VERSION

    @property
    def profile(self) -> ProjectProfile:
        """Static project description."""
        return self._profile

    def options(self) -> dict[str, Any]:
        return {
            "markers": list(self._profile.markers),
            "directories": list(self._profile.directories),
        }

    def detect_project(self, path: str) -> bool:
        """Check if any marker file exists directly in ``path``."""
        return any(os.path.isfile(os.path.join(path, marker)) for marker in self._profile.markers)

    def cleanable_patterns(self) -> list[str]:
        return [*self._profile.directories, *self._profile.globs, *self._profile.recursive]

    def protected_patterns(self) -> list[str]:
        return [*self._profile.protected, SWPFILE_NAME]

    def scan(self, path: str) -> list[FileRecord]:
        """Find projects beneath a root and report their cleanable directories.

        Directories nested inside another reported directory are dropped,
        so deleting the parent never leaves a dangling child entry. A
        directory holding a protected entry, or one that could not be
        fully read, is Critical.

        Args:
            path: Root directory to search.

        Returns:
            Scored directory records, largest first.
        """
        context = self.context
        root = os.path.abspath(path)
        context.git_index.start_discovery(root)

        candidates: list[str] = []
        for project in self.find_projects(root):
            candidates.extend(self.cleanable_dirs(project))

        records: list[FileRecord] = []
        for directory in remove_nested(candidates):
            if context.config.is_ignored(directory):
                continue
            stats = self._tree_stats(directory)
            record = FileRecord(
                path=directory,
                size=stats.size,
                modified=stats.modified,
                accessed=stats.accessed,
                file_type=FileType.ARTIFACT,
                source=self.name,
                is_dir=True,
            )
            if stats.guarded:
                record = record.with_risk(RiskLevel.CRITICAL)
            records.append(context.engine.evaluate(record))

        records.sort(key=lambda r: (-r.size, r.path))
        logger.info("Found %d %s directories under %s", len(records), self.name, root)
        return records

    def find_projects(self, root: str) -> list[str]:
        """Walk ``root`` and return every project root of this kind."""
        projects: list[str] = []
        cleanable = set(self._profile.directories)
        for dirpath, dirnames, _filenames in os.walk(root, onerror=self._on_walk_error):
            if self.detect_project(dirpath):
                projects.append(dirpath)
            dirnames[:] = [
                d
                for d in dirnames
                if d not in _SKIP_DIRS
                and d not in cleanable
                and not os.path.islink(os.path.join(dirpath, d))
            ]
        return projects

    def cleanable_dirs(self, project: str) -> list[str]:
        """Cleanable directories of a single project root."""
        found: list[str] = []

        def add(candidate: str) -> None:
            if _is_real_dir(candidate) and candidate not in found:
                found.append(candidate)

        for name in self._profile.directories:
            add(os.path.join(project, name))

        if self._profile.globs:
            try:
                children = sorted(os.listdir(project))
            except OSError as e:
                self._on_walk_error(e)
                children = []
            for child in children:
                if any(fnmatch.fnmatch(child, pattern) for pattern in self._profile.globs):
                    add(os.path.join(project, child))

        for name in self._profile.recursive:
            for match in self._find_recursive(project, name):
                add(match)

        for relative in read_swpfile(project):
            add(os.path.join(project, relative))

        return found

    def _find_recursive(self, project: str, target: str) -> list[str]:
        matches: list[str] = []
        base_depth = project.rstrip(os.sep).count(os.sep)
        for dirpath, dirnames, _filenames in os.walk(project, onerror=self._on_walk_error):
            if target in dirnames:
                matches.append(os.path.join(dirpath, target))
            if dirpath.count(os.sep) - base_depth >= self._profile.max_depth:
                dirnames.clear()
                continue
            dirnames[:] = [
                d
                for d in dirnames
                if d != target and not d.startswith(".") and d not in _SKIP_DIRS
                and not os.path.islink(os.path.join(dirpath, d))
            ]
        return matches

    def _tree_stats(self, directory: str) -> _TreeStats:
        """Recursive size, newest timestamps and protection within a tree."""
        classifier = self.context.classifier
        size = 0
        guarded = False
        try:
            st = os.lstat(directory)
        except OSError as e:
            self._on_walk_error(e)
            return _TreeStats(0, 0.0, 0.0, guarded=True)
        modified, accessed = st.st_mtime, st.st_atime

        def on_error(error: OSError) -> None:
            nonlocal guarded
            guarded = True
            self._on_walk_error(error)

        for dirpath, dirnames, filenames in os.walk(directory, onerror=on_error):
            for name in (*dirnames, *filenames):
                if classifier.matches_protected(name):
                    logger.info("%s contains protected %s", directory, name)
                    guarded = True
                try:
                    st = os.lstat(os.path.join(dirpath, name))
                except OSError as e:
                    on_error(e)
                    continue
                if stat.S_ISREG(st.st_mode):
                    size += st.st_size
                modified = max(modified, st.st_mtime)
                accessed = max(accessed, st.st_atime)
        return _TreeStats(size, modified, accessed, guarded)

    def _on_walk_error(self, error: OSError) -> None:
        warning = ScanIOError(str(error.filename), error.strerror or str(error))
        logger.warning("%s", warning)
        self._record_warnings([warning])


def read_swpfile(project: str) -> list[str]:
    """Read extra cleanable directories from a project's ``.swpfile``.

    Blank lines and ``#`` comments are skipped. Absolute paths and paths
    leaving the project are ignored.

    Args:
        project: Project root directory.

    Returns:
        Relative directory paths.
    """
    swpfile = Path(project) / SWPFILE_NAME
    try:
        lines = swpfile.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", swpfile, e)
        return []

    entries: list[str] = []
    for line in lines:
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        if os.path.isabs(entry) or ".." in Path(entry).parts:
            logger.warning("Ignoring %s entry outside the project: %s", swpfile, entry)
            continue
        entries.append(entry)
    return entries


def remove_nested(directories: list[str]) -> list[str]:
    """Drop directories that lie inside another listed directory.

    Args:
        directories: Absolute directory paths, possibly overlapping.

    Returns:
        Sorted, de-duplicated paths with no entry beneath another.
    """
    kept: list[str] = []
    for directory in sorted(set(directories)):
        if any(Path(directory).is_relative_to(parent) for parent in kept):
            continue
        kept.append(directory)
    return kept


def _is_real_dir(path: str) -> bool:
    """True for an existing directory that is not a symbolic link."""
    try:
        return stat.S_ISDIR(os.lstat(path).st_mode)
    except OSError:
        return False


def create_project_plugins() -> list[ProjectPlugin]:
    """One plugin instance per built-in project profile."""
    return [ProjectPlugin(profile) for profile in PROFILES]
