"""Stateless file type and name pattern classification.

PathClassifier answers three questions about a path: what kind of
content it holds, whether it must never be deleted, and whether it
looks like test data. It holds only immutable pattern configuration,
so one instance can be shared by every scanning worker.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import PurePath

from sweep.errors import ClassificationError
from sweep.filesystem.protected import (
    EXTENSION_TYPES,
    HEADER_SIGNATURES,
    PROTECTED_NAME_PATTERNS,
    SIGNATURE_READ_SIZE,
    TEST_DATA_PATTERNS,
    name_matches,
)
from sweep.models.record import FileType

logger = logging.getLogger(__name__)

# File types whose old files are treated like ignore-style content.
IGNORABLE_TYPES: frozenset[FileType] = frozenset(
    {FileType.LOG, FileType.ARCHIVE, FileType.ARTIFACT}
)


@dataclass(frozen=True, slots=True)
class PathClassifier:
    """Classifies paths by type, protection and test-data naming.

    Caller-supplied patterns are merged with the built-in tables; they
    can only add protection, never remove it.

    Attributes:
        protected_extensions: Extra extensions (without dot) that are protected.
        protected_patterns: Extra glob name patterns that are protected.
        test_data_patterns: Extra glob name patterns treated as test data.
    """

    protected_extensions: tuple[str, ...] = ()
    protected_patterns: tuple[str, ...] = ()
    test_data_patterns: tuple[str, ...] = ()

    def classify(self, path: str) -> FileType:
        """Determine the content category of a file.

        The extension table is consulted first. Files with an unknown
        extension have their first bytes compared against known header
        signatures, so a database without a ``.db`` suffix is still
        recognized. Unreadable files fall back to the extension result.

        Args:
            path: Path of the file to classify.

        Returns:
            The detected FileType, UNKNOWN if nothing matched.
        """
        by_extension = self.classify_by_extension(path)
        if by_extension is not FileType.UNKNOWN:
            return by_extension

        try:
            return self._sniff(path)
        except ClassificationError as e:
            logger.debug("%s; using extension-only classification", e)
            return by_extension

    @staticmethod
    def classify_by_extension(path: str) -> FileType:
        """Classify by file extension alone."""
        suffix = PurePath(path).suffix.lower().lstrip(".")
        return EXTENSION_TYPES.get(suffix, FileType.UNKNOWN)

    def matches_protected(self, path: str) -> bool:
        """Check if a path must never be deleted.

        Matches the built-in secret, key and certificate patterns, the
        caller-supplied extension list and caller-supplied patterns.

        Args:
            path: Path to check.

        Returns:
            True if the path is protected.
        """
        if name_matches(path, PROTECTED_NAME_PATTERNS):
            return True

        suffix = PurePath(path).suffix.lower().lstrip(".")
        if suffix and suffix in {ext.lower().lstrip(".") for ext in self.protected_extensions}:
            return True

        return name_matches(path, self.protected_patterns)

    def find_protected(self, directory: str) -> str | None:
        """Find the first protected entry anywhere beneath a directory.

        Symbolic links are matched by name but never followed.

        Args:
            directory: Directory tree to search.

        Returns:
            Path of a protected entry, or None if the tree holds none.

        Raises:
            OSError: If part of the tree cannot be listed.
        """

        def fail(error: OSError) -> None:
            raise error

        for dirpath, dirnames, filenames in os.walk(directory, onerror=fail):
            for name in (*dirnames, *filenames):
                if self.matches_protected(name):
                    return os.path.join(dirpath, name)
        return None

    def matches_test_data_pattern(self, path: str) -> bool:
        """Check if a path is named like a test fixture or sample data."""
        return name_matches(path, TEST_DATA_PATTERNS) or name_matches(
            path, self.test_data_patterns
        )

    @staticmethod
    def is_ignorable(file_type: FileType) -> bool:
        """Check if a file type is regenerable, ignore-style content."""
        return file_type in IGNORABLE_TYPES

    @staticmethod
    def _sniff(path: str) -> FileType:
        """Match the file header against known signatures.

        Raises:
            ClassificationError: If the file cannot be read.
        """
        try:
            with open(path, "rb") as f:
                header = f.read(SIGNATURE_READ_SIZE)
        except OSError as e:
            raise ClassificationError(path, str(e)) from e

        for signature, file_type in HEADER_SIGNATURES:
            if header.startswith(signature):
                return file_type
        return FileType.UNKNOWN
