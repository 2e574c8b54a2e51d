"""Session configuration and settings file I/O.

This module provides the validated configuration model for a cleanup
session and functions to read and write it as TOML.

Configuration is stored in ~/.config/sweep/config.toml. Values given
on the command line override values from the file.
"""

import logging
import os
import re
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sweep.core.paths import get_settings_path
from sweep.errors import ConfigurationError
from sweep.utils.formatting import parse_size

logger = logging.getLogger(__name__)

DEFAULT_SIZE_THRESHOLD = 100 * 1024 * 1024
DEFAULT_RECENCY_DAYS = 7
DEFAULT_PLUGINS: tuple[str, ...] = ("large-files",)


class SweepConfig(BaseModel):
    """Configuration for one cleanup session.

    Attributes:
        paths: Directories to scan. Defaults to the current directory.
        size_threshold: Minimum size in bytes for a file to be listed.
            Accepts a human-readable string such as "1.5GB".
        older_than_days: Hide files accessed within this many days.
        include_git_tracked: Let git-tracked files fall through to the
            lower risk tiers instead of being Critical.
        include_protected: Allow Critical records to be selected and deleted.
        plugins: Names of the plugins to activate.
        protected_extensions: Extra extensions that are never deleted.
        protected_patterns: Extra glob name patterns that are never deleted.
        test_data_patterns: Extra glob name patterns treated as test data.
        ignore: Regular expression; records whose path matches are hidden.
        recency_days: Files modified within this many days are High risk.
        max_workers: Scanner worker threads. None uses the CPU count.
    """

    model_config = ConfigDict(extra="forbid")

    paths: Annotated[
        list[str],
        Field(min_length=1, description="Directories to scan"),
    ] = ["."]
    size_threshold: Annotated[
        int,
        Field(ge=0, description="Minimum file size in bytes"),
    ] = DEFAULT_SIZE_THRESHOLD
    older_than_days: Annotated[
        int | None,
        Field(ge=0, description="Only list files not accessed for this many days"),
    ] = None
    include_git_tracked: Annotated[
        bool,
        Field(description="Do not treat git-tracked files as Critical"),
    ] = False
    include_protected: Annotated[
        bool,
        Field(description="Allow selecting and deleting Critical files"),
    ] = False
    plugins: Annotated[
        list[str],
        Field(min_length=1, description="Plugins to activate"),
    ] = list(DEFAULT_PLUGINS)
    protected_extensions: Annotated[
        list[str],
        Field(description="Additional protected extensions"),
    ] = []
    protected_patterns: Annotated[
        list[str],
        Field(description="Additional protected glob name patterns"),
    ] = []
    test_data_patterns: Annotated[
        list[str],
        Field(description="Additional test-data glob name patterns"),
    ] = []
    ignore: Annotated[
        str | None,
        Field(description="Regular expression of paths to hide"),
    ] = None
    recency_days: Annotated[
        int,
        Field(ge=0, le=3650, description="Recency window for High risk (days)"),
    ] = DEFAULT_RECENCY_DAYS
    max_workers: Annotated[
        int | None,
        Field(ge=1, le=256, description="Scanner worker threads"),
    ] = None

    @field_validator("size_threshold", mode="before")
    @classmethod
    def parse_size_threshold(cls, v: object) -> object:
        """Accept human-readable sizes such as "100MB"."""
        if isinstance(v, str):
            return parse_size(v)
        return v

    @field_validator("protected_patterns", "test_data_patterns")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        """Glob patterns must be non-empty file name patterns."""
        for pattern in v:
            if not pattern.strip():
                msg = "Patterns cannot be empty"
                raise ValueError(msg)
            if "/" in pattern or os.sep in pattern:
                msg = f"Pattern {pattern!r} must match file names, not paths"
                raise ValueError(msg)
        return v

    @field_validator("protected_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Strip leading dots and lowercase extensions."""
        normalized = [ext.strip().lstrip(".").lower() for ext in v]
        if any(not ext for ext in normalized):
            msg = "Extensions cannot be empty"
            raise ValueError(msg)
        return normalized

    @field_validator("plugins")
    @classmethod
    def dedupe_plugins(cls, v: list[str]) -> list[str]:
        """Remove duplicate plugin names, keeping the first occurrence."""
        return list(dict.fromkeys(name.strip() for name in v))

    @field_validator("ignore")
    @classmethod
    def validate_ignore(cls, v: str | None) -> str | None:
        """The ignore expression must compile."""
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                msg = f"Invalid ignore expression {v!r}: {e}"
                raise ValueError(msg) from None
        return v

    def with_overrides(self, **overrides: Any) -> "SweepConfig":
        """Return a validated copy with the given fields replaced.

        ``None`` values are ignored so unset CLI options keep the file value.

        Raises:
            ConfigurationError: If the result is invalid.
        """
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return build_config(data)

    def is_ignored(self, path: str) -> bool:
        """Check if a path matches the ignore expression."""
        return self.ignore is not None and re.search(self.ignore, path) is not None


def build_config(data: dict[str, Any] | None = None, **fields: Any) -> SweepConfig:
    """Validate configuration data.

    Args:
        data: Raw configuration mapping.
        **fields: Additional fields, applied over ``data``.

    Returns:
        Validated SweepConfig.

    Raises:
        ConfigurationError: If validation fails.
    """
    try:
        return SweepConfig.model_validate({**(data or {}), **fields})
    except (ValueError, ValidationError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_settings(path: Path | None = None) -> SweepConfig:
    """Load configuration from a TOML settings file.

    A missing file yields the defaults.

    Args:
        path: Settings file. If None, uses the default settings path.

    Returns:
        Validated SweepConfig.

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        logger.debug("No settings file at %s, using defaults", settings_path)
        return SweepConfig()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read settings {settings_path}: {e}") from e

    return build_config(data)


def save_settings(config: SweepConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML settings file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The configuration to save.
        path: Destination. If None, uses the default settings path.

    Returns:
        Path where the settings were saved.

    Raises:
        ConfigurationError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()
    data = config.model_dump(exclude_none=True)

    tmp_path: Path | None = None
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigurationError(f"Failed to write settings {settings_path}: {e}") from e

    return settings_path
