"""Error taxonomy for sweep.

Only ConfigurationError is fatal. Every other error is recovered where
it occurs, logged, and collected as a warning so a session can report
it after the fact. Recovery always biases toward the more protective
risk tier.
"""


class SweepError(Exception):
    """Base exception for all sweep errors."""


class ScanIOError(SweepError):
    """A path could not be read during traversal (permission denied, vanished).

    Attributes:
        path: Path that failed.
        reason: Underlying error message.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot scan {path}: {reason}")


class RepositoryError(SweepError):
    """Git metadata of a repository could not be read.

    Files beneath an affected repository are treated as unverified and
    scored at the most protective tier.

    Attributes:
        root: Repository root directory.
        reason: Underlying error message.
    """

    def __init__(self, root: str, reason: str) -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot read git repository {root}: {reason}")


class ClassificationError(SweepError):
    """File content could not be read for signature sniffing."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot classify {path}: {reason}")


class DeletionError(SweepError):
    """A filesystem operation failed while cleaning a single path."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot delete {path}: {reason}")


class PluginError(SweepError):
    """A plugin failed while scanning a root."""

    def __init__(self, plugin: str, reason: str) -> None:
        self.plugin = plugin
        self.reason = reason
        super().__init__(f"Plugin {plugin} failed: {reason}")


class ConfigurationError(SweepError):
    """Invalid session configuration. Raised before any scanning begins."""
