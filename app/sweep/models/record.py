"""File record models for scanning and risk classification.

This module defines the core data structures for representing
cleanup candidates discovered during scanning, including their
file type, git state, and computed risk tier.
"""

from dataclasses import dataclass, replace
from enum import Enum, IntEnum


class RiskLevel(IntEnum):
    """Safety tier of a cleanup candidate, strictly ordered.

    Higher values are more protective. Comparisons between tiers use
    the integer ordering, so ``RiskLevel.HIGH > RiskLevel.LOW``.

    Attributes:
        SAFE: Regenerable or ignore-style content that is old.
        LOW: Recognized, non-critical file that is old.
        MEDIUM: Test data or a file of unknown type.
        HIGH: Recently modified, a database, or a binary.
        CRITICAL: Protected, git-tracked, or of unverifiable state.
    """

    SAFE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        """Human-readable tier name (e.g. "Critical")."""
        return self.name.capitalize()


class FileType(str, Enum):
    """Content category of a file.

    Attributes:
        SOURCE: Program source code.
        DATABASE: Database files and dumps.
        ARCHIVE: Compressed archives.
        MEDIA: Images, audio and video.
        LOG: Log and console output files.
        CONFIG: Structured configuration files.
        BINARY: Executables, shared libraries and object files.
        DOCUMENT: Office documents, PDFs and plain text.
        ARTIFACT: Regenerable build output (assigned by project plugins).
        UNKNOWN: Nothing matched.
    """

    SOURCE = "source"
    DATABASE = "database"
    ARCHIVE = "archive"
    MEDIA = "media"
    LOG = "log"
    CONFIG = "config"
    BINARY = "binary"
    DOCUMENT = "document"
    ARTIFACT = "artifact"
    UNKNOWN = "unknown"


class GitStatus(str, Enum):
    """Version-control state of a path.

    Attributes:
        TRACKED: Present in the repository index, unchanged.
        MODIFIED: Present in the index with working tree or staged changes.
        UNTRACKED: Inside a repository but not in the index.
        IGNORED: Matched by the repository's ignore rules.
        NOT_IN_REPO: No enclosing repository was found.
        UNVERIFIED: Enclosing repository metadata could not be read.
    """

    TRACKED = "tracked"
    MODIFIED = "modified"
    UNTRACKED = "untracked"
    IGNORED = "ignored"
    NOT_IN_REPO = "not_in_repo"
    UNVERIFIED = "unverified"


@dataclass(frozen=True, slots=True)
class ScanEntry:
    """A file found by the parallel scanner, before classification.

    Attributes:
        path: Absolute file path.
        size: Size in bytes.
        modified: Last modification time (epoch seconds).
        accessed: Last access time (epoch seconds).
    """

    path: str
    size: int
    modified: float
    accessed: float


@dataclass(frozen=True, slots=True)
class FileRecord:
    """A cleanup candidate with its metadata and computed risk tier.

    Records are immutable. The risk tier is set exactly once through
    :meth:`with_risk`, and the selected flag is only ever changed by the
    selection layer through :meth:`with_selected`.

    Attributes:
        path: Absolute path of the file or directory.
        size: Size in bytes (recursive for directories).
        modified: Last modification time (epoch seconds).
        accessed: Last access time (epoch seconds).
        git_tracked: Whether the path is in a repository index.
        git_status: Version-control state.
        file_type: Content category.
        risk: Computed risk tier, None until scored.
        selected: Whether the record is part of a confirmed selection.
        source: Name of the plugin that reported this record.
        is_dir: True for directory records (build artifacts).
    """

    path: str
    size: int
    modified: float
    accessed: float
    git_tracked: bool = False
    git_status: GitStatus = GitStatus.NOT_IN_REPO
    file_type: FileType = FileType.UNKNOWN
    risk: RiskLevel | None = None
    selected: bool = False
    source: str = ""
    is_dir: bool = False

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)
        if self.size < 0:
            msg = f"Size cannot be negative, got {self.size}"
            raise ValueError(msg)

    @property
    def key(self) -> str:
        """Identity of the record across re-orderings."""
        return self.path

    def with_risk(self, risk: RiskLevel) -> "FileRecord":
        """Return a copy with the risk tier set.

        Raises:
            ValueError: If a tier is already set and ``risk`` is lower.
        """
        if self.risk is not None and risk < self.risk:
            msg = f"Risk of {self.path} cannot decrease from {self.risk.label} to {risk.label}"
            raise ValueError(msg)
        return replace(self, risk=risk)

    def with_source(self, source: str) -> "FileRecord":
        """Return a copy tagged with the originating plugin name."""
        return replace(self, source=source)

    def with_selected(self, selected: bool) -> "FileRecord":
        """Return a copy with the selected flag set."""
        return replace(self, selected=selected)
