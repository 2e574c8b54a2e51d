"""Scan session orchestration.

A ScanSession ties one configuration to one plugin registry: it
validates the configuration, scans, filters the result view, drives
the selection controller, and finally hands a confirmed selection to
the registry for cleanup.
"""

import logging
import os
import time
from collections.abc import Iterable

from sweep.core.config import SweepConfig
from sweep.core.risk import should_include
from sweep.errors import ConfigurationError, SweepError
from sweep.models.record import FileRecord
from sweep.models.report import CleanupReport
from sweep.plugins.registry import PluginRegistry
from sweep.selection.controller import SelectionController
from sweep.selection.models import Effect, Event, SelectionMode, SelectionState

logger = logging.getLogger(__name__)


class ScanSession:
    """One scan, select and clean cycle.

    Use :meth:`start` to create a session; the constructor only wires
    already-computed parts together.

    Args:
        config: Validated session configuration.
        registry: Activated plugin registry.
        records: Filtered view records.
        started_at: Reference time of the scan (epoch seconds).
    """

    def __init__(
        self,
        config: SweepConfig,
        registry: PluginRegistry,
        records: list[FileRecord],
        started_at: float,
    ) -> None:
        self._config = config
        self._registry = registry
        self._records = records
        self._started_at = started_at
        self._controller = SelectionController(records, allow_critical=config.include_protected)
        self._report: CleanupReport | None = None
        self._finished = False

    @classmethod
    def start(
        cls,
        config: SweepConfig,
        registry: PluginRegistry,
        now: float | None = None,
    ) -> "ScanSession":
        """Validate, scan and build the selection view.

        Args:
            config: Session configuration.
            registry: Registry holding the available plugins.
            now: Reference time for the age filter (epoch seconds).

        Returns:
            A session ready for selection events.

        Raises:
            ConfigurationError: If a root does not exist or a plugin is
                unknown. Raised before any scanning begins.
        """
        now = time.time() if now is None else now
        roots = validate_roots(config.paths)
        registry.activate(config)

        logger.info("Scanning %s", ", ".join(roots))
        scanned = registry.scan(roots)
        records = [
            r
            for r in scanned
            if r.size >= config.size_threshold
            and should_include(r, config.older_than_days, now=now)
        ]
        logger.info("%d of %d candidates pass the size and age filters", len(records), len(scanned))
        return cls(config, registry, records, started_at=now)

    @property
    def config(self) -> SweepConfig:
        """Session configuration."""
        return self._config

    @property
    def records(self) -> list[FileRecord]:
        """Records in the active view, in scan order."""
        return list(self._records)

    @property
    def started_at(self) -> float:
        """Reference time of the scan (epoch seconds)."""
        return self._started_at

    @property
    def controller(self) -> SelectionController:
        """Selection controller for this session."""
        return self._controller

    @property
    def state(self) -> SelectionState:
        """Current selection state."""
        return self._controller.state

    @property
    def warnings(self) -> list[SweepError]:
        """Every recovered error of the scan."""
        return self._registry.warnings

    @property
    def report(self) -> CleanupReport | None:
        """Cleanup report, once :meth:`finish` has run."""
        return self._report

    def feed(self, events: Iterable[Event]) -> list[Effect]:
        """Dispatch events to the selection controller.

        Returns:
            Effects of every event, in order.
        """
        effects: list[Effect] = []
        for event in events:
            effects.extend(self._controller.dispatch(event))
        return effects

    def finish(self, dry_run: bool = False) -> CleanupReport | None:
        """Clean the confirmed selection.

        Args:
            dry_run: If True, report without deleting.

        Returns:
            The cleanup report if the selection was confirmed, None if it
            was cancelled or is still open. A session cleans at most once.
        """
        if self._finished:
            return self._report

        mode = self._controller.state.mode
        if mode is not SelectionMode.CONFIRMED:
            logger.info("Session ended without confirmation (%s); nothing deleted", mode.value)
            self._finished = mode.is_terminal
            return None

        self._finished = True
        self._report = self._registry.clean(self._controller.selected_records(), dry_run)
        return self._report

    def close(self) -> None:
        """Release the registry's session resources."""
        self._registry.close()


def validate_roots(paths: Iterable[str]) -> list[str]:
    """Resolve scan roots to absolute, de-duplicated paths.

    Raises:
        ConfigurationError: If a root does not exist or is not a directory.
    """
    roots: list[str] = []
    for path in paths:
        root = os.path.abspath(os.path.expanduser(path))
        if not os.path.exists(root):
            msg = f"Path does not exist: {path}"
            raise ConfigurationError(msg)
        if not os.path.isdir(root):
            msg = f"Not a directory: {path}"
            raise ConfigurationError(msg)
        if root not in roots:
            roots.append(root)
    return roots
