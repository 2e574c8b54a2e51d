"""Abstract base class for cleanup plugins.

This module defines the Plugin interface that every candidate source
implements, the descriptor the registry keeps for each plugin, and the
scan context that plugins of one session share.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import Any

from sweep.core.config import SweepConfig
from sweep.core.risk import RiskEngine
from sweep.errors import ConfigurationError, SweepError
from sweep.filesystem.classifier import PathClassifier
from sweep.filesystem.locking import TreeLock
from sweep.filesystem.operator import CleanupExecutor
from sweep.git.index import GitStatusIndex
from sweep.models.record import FileRecord
from sweep.models.report import CleanupReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PluginDescriptor:
    """Registry entry describing a plugin.

    Attributes:
        name: Unique plugin name.
        version: Plugin version string.
        enabled: Whether the plugin is active for the current session.
        options: Effective plugin options (read-only).
    """

    name: str
    version: str
    enabled: bool = False
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(slots=True)
class ScanContext:
    """Collaborators shared by every plugin of one session.

    Attributes:
        config: Validated session configuration.
        git_index: Session git index.
        classifier: Path classifier with the configured patterns.
        engine: Risk engine bound to the index and classifier.
    """

    config: SweepConfig
    git_index: GitStatusIndex
    classifier: PathClassifier
    engine: RiskEngine

    @classmethod
    def from_config(
        cls, config: SweepConfig, plugin_patterns: Iterable[str] = ()
    ) -> "ScanContext":
        """Build the shared collaborators for a configuration.

        Args:
            config: Validated session configuration.
            plugin_patterns: Protected name patterns contributed by the
                active plugins, added to the configured ones.
        """
        git_index = GitStatusIndex()
        protected = dict.fromkeys([*config.protected_patterns, *plugin_patterns])
        classifier = PathClassifier(
            protected_extensions=tuple(config.protected_extensions),
            protected_patterns=tuple(protected),
            test_data_patterns=tuple(config.test_data_patterns),
        )
        engine = RiskEngine(
            git_index,
            classifier,
            timedelta(days=config.recency_days),
            include_tracked=config.include_git_tracked,
        )
        return cls(config=config, git_index=git_index, classifier=classifier, engine=engine)

    def close(self) -> None:
        """Release the git index thread pool."""
        self.git_index.close()


class Plugin(ABC):
    """Abstract base class for all cleanup plugins.

    A plugin finds candidates beneath a root and cleans a selection of
    the records it produced. Plugins are configured once per session
    and may then be scanned concurrently for several roots.

    Example:
        >>> plugin = LargeFilePlugin()
        >>> if plugin.is_enabled(config):
        ...     plugin.configure(config)
        ...     records = plugin.scan("/data")
    """

    def __init__(self) -> None:
        self._context: ScanContext | None = None
        self._warnings: list[SweepError] = []
        self._warnings_lock = threading.Lock()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique plugin name used in configuration and record sources."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Plugin version string."""

    @abstractmethod
    def scan(self, path: str) -> list[FileRecord]:
        """Find cleanup candidates beneath a root.

        Args:
            path: Root directory to scan.

        Returns:
            Scored records, each tagged with this plugin's name.
        """

    def is_enabled(self, config: SweepConfig) -> bool:
        """Check if the configuration activates this plugin."""
        return self.name in config.plugins

    def configure(self, config: SweepConfig, context: ScanContext | None = None) -> None:
        """Bind the plugin to a session.

        Args:
            config: Validated session configuration.
            context: Shared collaborators. A private context is created
                when none is given.
        """
        if context is None:
            context = ScanContext.from_config(config, self.protected_patterns())
        self._context = context
        logger.debug("Configured plugin %s %s", self.name, self.version)

    def detect_project(self, path: str) -> bool:
        """Check if ``path`` is a project root this plugin understands."""
        return False

    def cleanable_patterns(self) -> list[str]:
        """Name patterns of directories or files this plugin may remove."""
        return []

    def protected_patterns(self) -> list[str]:
        """Name patterns this plugin protects for the whole session."""
        return []

    def options(self) -> dict[str, Any]:
        """Effective options shown in the plugin descriptor."""
        return {}

    def describe(self, enabled: bool) -> PluginDescriptor:
        """Build the registry descriptor for this plugin."""
        return PluginDescriptor(
            name=self.name,
            version=self.version,
            enabled=enabled,
            options=MappingProxyType(self.options()),
        )

    @property
    def context(self) -> ScanContext:
        """Session collaborators.

        Raises:
            ConfigurationError: If the plugin has not been configured.
        """
        if self._context is None:
            msg = f"Plugin {self.name} used before configure()"
            raise ConfigurationError(msg)
        return self._context

    @property
    def warnings(self) -> list[SweepError]:
        """Recovered errors recorded while scanning."""
        with self._warnings_lock:
            return list(self._warnings)

    def clean(
        self,
        selection: Iterable[FileRecord],
        dry_run: bool,
        guard: TreeLock | None = None,
    ) -> CleanupReport:
        """Delete a confirmed selection of this plugin's records.

        Args:
            selection: Records to delete.
            dry_run: If True, report without deleting.
            guard: Optional tree lock shared with other plugins.

        Returns:
            CleanupReport with one outcome per record.
        """
        context = self.context
        executor = CleanupExecutor(
            context.engine.rescore,
            dry_run=dry_run,
            allow_critical=context.config.include_protected,
            guard=guard,
        )
        return executor.clean(selection)

    def _record_warnings(self, warnings: Iterable[SweepError]) -> None:
        with self._warnings_lock:
            self._warnings.extend(warnings)
