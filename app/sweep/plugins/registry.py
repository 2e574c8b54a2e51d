"""Plugin registry.

The registry owns every known plugin, activates the ones a session
configuration asks for, fans scans out over plugins and roots, and
routes a confirmed selection back to the plugins that produced it.
"""

import logging
import os
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor

from sweep.core.config import SweepConfig
from sweep.errors import ConfigurationError, PluginError, SweepError
from sweep.filesystem.locking import TreeLock
from sweep.models.record import FileRecord
from sweep.models.report import CleanupReport, DeletionOutcome, OutcomeStatus
from sweep.plugins.base import Plugin, PluginDescriptor, ScanContext
from sweep.plugins.large_files import LargeFilePlugin
from sweep.plugins.projects import create_project_plugins

logger = logging.getLogger(__name__)

NO_PLUGIN = "no active plugin for this record"


class PluginRegistry:
    """Registry of cleanup plugins for one session.

    Args:
        max_workers: Threads used to run plugin scans and cleanups.

    Example:
        >>> registry = create_default_registry()
        >>> registry.activate(config)
        >>> records = registry.scan(config.paths)
    """

    def __init__(self, max_workers: int | None = None) -> None:
        self._plugins: dict[str, Plugin] = {}
        self._enabled: set[str] = set()
        self._context: ScanContext | None = None
        self._max_workers = max_workers or min(8, (os.cpu_count() or 1) + 2)
        self._warnings: list[SweepError] = []
        self._lock = threading.Lock()
        self._tree_lock = TreeLock()

    def __enter__(self) -> "PluginRegistry":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def register(self, plugin: Plugin) -> None:
        """Add a plugin.

        Raises:
            ValueError: If a plugin with the same name is registered.
        """
        if plugin.name in self._plugins:
            msg = f"Plugin already registered: {plugin.name}"
            raise ValueError(msg)
        self._plugins[plugin.name] = plugin
        logger.debug("Registered plugin %s %s", plugin.name, plugin.version)

    def get(self, name: str) -> Plugin | None:
        """Look up a registered plugin by name."""
        return self._plugins.get(name)

    def activate(self, config: SweepConfig) -> list[PluginDescriptor]:
        """Enable and configure the plugins a configuration names.

        Protected patterns of the enabled plugins join the session
        classifier, so every plugin respects them.

        Args:
            config: Validated session configuration.

        Returns:
            Descriptors of every registered plugin.

        Raises:
            ConfigurationError: If the configuration names an unknown plugin.
        """
        unknown = [name for name in config.plugins if name not in self._plugins]
        if unknown:
            available = ", ".join(sorted(self._plugins))
            msg = f"Unknown plugin(s): {', '.join(unknown)} (available: {available})"
            raise ConfigurationError(msg)

        self._enabled = {
            name for name, plugin in self._plugins.items() if plugin.is_enabled(config)
        }
        plugin_patterns = [
            pattern for plugin in self.active_plugins for pattern in plugin.protected_patterns()
        ]
        if self._context is not None:
            self._context.close()
        self._context = ScanContext.from_config(config, plugin_patterns)
        for name in self._enabled:
            self._plugins[name].configure(config, self._context)

        logger.info("Activated plugins: %s", ", ".join(sorted(self._enabled)))
        return self.descriptors

    @property
    def descriptors(self) -> list[PluginDescriptor]:
        """Descriptors of every registered plugin, in registration order."""
        return [plugin.describe(name in self._enabled) for name, plugin in self._plugins.items()]

    @property
    def active_plugins(self) -> list[Plugin]:
        """Enabled plugins, in registration order."""
        return [plugin for name, plugin in self._plugins.items() if name in self._enabled]

    @property
    def context(self) -> ScanContext | None:
        """Shared collaborators of the active session."""
        return self._context

    @property
    def warnings(self) -> list[SweepError]:
        """Recovered errors from plugins, scans and repositories."""
        with self._lock:
            warnings = list(self._warnings)
        for plugin in self.active_plugins:
            warnings.extend(plugin.warnings)
        if self._context is not None:
            warnings.extend(self._context.git_index.warnings)
        return warnings

    def scan(self, roots: Iterable[str]) -> list[FileRecord]:
        """Run every active plugin over every root concurrently.

        Records are tagged with the plugin that produced them. When two
        plugins report the same path, the more protective risk wins.
        A failing plugin is recorded as a warning and does not affect
        the others.

        Args:
            roots: Directories to scan.

        Returns:
            Merged records, largest first, ties broken by path.
        """
        jobs = [(plugin, os.path.abspath(root)) for plugin in self.active_plugins for root in roots]
        if not jobs:
            return []

        with ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(jobs)),
            thread_name_prefix="sweep-plugin",
        ) as executor:
            futures: list[tuple[Plugin, str, Future[list[FileRecord]]]] = [
                (plugin, root, executor.submit(plugin.scan, root)) for plugin, root in jobs
            ]

            merged: dict[str, FileRecord] = {}
            for plugin, root, future in futures:
                try:
                    records = future.result()
                except (SweepError, OSError) as e:
                    self._warn(PluginError(plugin.name, f"{root}: {e}"))
                    continue
                for record in records:
                    if record.source != plugin.name:
                        record = record.with_source(plugin.name)
                    _merge_record(merged, record)

        return sorted(merged.values(), key=lambda r: (-r.size, r.path))

    def clean(self, selection: Iterable[FileRecord], dry_run: bool) -> CleanupReport:
        """Route a confirmed selection to the plugins that produced it.

        Plugins clean their groups concurrently; every mutation holds the
        shared tree lock so no two plugins touch overlapping trees at once.

        Args:
            selection: Confirmed records.
            dry_run: If True, report without deleting.

        Returns:
            Combined report, grouped by plugin in registration order.
        """
        groups: dict[str, list[FileRecord]] = {}
        orphans: list[FileRecord] = []
        for record in selection:
            if record.source in self._enabled:
                groups.setdefault(record.source, []).append(record)
            else:
                orphans.append(record)

        report = CleanupReport(dry_run=dry_run)
        if groups:
            ordered = [name for name in self._plugins if name in groups]
            with ThreadPoolExecutor(
                max_workers=min(self._max_workers, len(ordered)),
                thread_name_prefix="sweep-clean",
            ) as executor:
                futures = {
                    name: executor.submit(
                        self._plugins[name].clean, groups[name], dry_run, self._tree_lock
                    )
                    for name in ordered
                }
                for name in ordered:
                    report = report.merge(futures[name].result())

        for record in orphans:
            logger.warning("Skipping %s: %s", record.path, NO_PLUGIN)
            report.add(DeletionOutcome(record.path, OutcomeStatus.SKIPPED, record.size, NO_PLUGIN))
        return report

    def close(self) -> None:
        """Release the shared session collaborators."""
        if self._context is not None:
            self._context.close()
            self._context = None

    def _warn(self, warning: SweepError) -> None:
        logger.warning("%s", warning)
        with self._lock:
            self._warnings.append(warning)


def _merge_record(merged: dict[str, FileRecord], record: FileRecord) -> None:
    """Insert a record, keeping the more protective of two duplicates."""
    existing = merged.get(record.key)
    if existing is None:
        merged[record.key] = record
        return
    existing_risk = existing.risk if existing.risk is not None else -1
    record_risk = record.risk if record.risk is not None else -1
    if record_risk > existing_risk:
        merged[record.key] = record


def create_default_registry(max_workers: int | None = None) -> PluginRegistry:
    """Registry with the large-file plugin and every project plugin."""
    registry = PluginRegistry(max_workers=max_workers)
    registry.register(LargeFilePlugin())
    for plugin in create_project_plugins():
        registry.register(plugin)
    return registry
