"""Built-in name patterns used to classify cleanup candidates.

This module defines the fixed pattern tables for files that must never
be deleted (secrets, keys, certificates), for test data, and the
extension and header-signature tables used for file type detection.

All name patterns are glob-style and are matched case-insensitively
against the file name only, never against the directory part.
"""

import fnmatch
from pathlib import PurePath

from sweep.models.record import FileType

# Files that must never be deleted by sweep.
PROTECTED_NAME_PATTERNS: tuple[str, ...] = (
    # Environment files
    ".env",
    ".env.*",
    "*.env",
    # Private keys
    "*.key",
    "*.pem",
    "id_rsa*",
    "id_dsa*",
    "id_ecdsa*",
    "id_ed25519*",
    # Certificates and keystores
    "*.crt",
    "*.cer",
    "*.p12",
    "*.pfx",
    "*.jks",
    "*.keystore",
    # Credentials and secrets
    "credentials*",
    "secrets*",
    "*secret*",
    "*.kdbx",
    ".netrc",
    ".npmrc",
    ".pypirc",
    ".htpasswd",
)

# Naming heuristics for test fixtures and sample data.
TEST_DATA_PATTERNS: tuple[str, ...] = (
    "fixture*",
    "test-data*",
    "test_data*",
    "testdata*",
    "mock*",
    "sample*",
    "*.spec.*",
    "*.test.*",
    "*_test.*",
    "*_spec.*",
)

# Extension table (lowercase, without the dot).
EXTENSION_TYPES: dict[str, FileType] = {
    # Database
    **dict.fromkeys(("db", "sqlite", "sqlite3", "sql", "dump", "mdb", "accdb"), FileType.DATABASE),
    # Archive
    **dict.fromkeys(
        ("zip", "tar", "gz", "tgz", "bz2", "xz", "rar", "7z", "zst", "iso", "dmg"),
        FileType.ARCHIVE,
    ),
    # Media
    **dict.fromkeys(
        (
            "jpg", "jpeg", "png", "gif", "bmp", "svg", "ico", "webp", "heic", "tif", "tiff",
            "mp4", "avi", "mkv", "mov", "wmv", "webm", "mp3", "wav", "flac", "ogg", "m4a",
        ),
        FileType.MEDIA,
    ),
    # Log
    **dict.fromkeys(("log", "out", "err", "trace"), FileType.LOG),
    # Document
    **dict.fromkeys(
        ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "odt", "ods", "odp", "txt", "md",
         "rst", "csv"),
        FileType.DOCUMENT,
    ),
    # Source
    **dict.fromkeys(
        ("rs", "py", "js", "ts", "java", "c", "cpp", "h", "hpp", "go", "rb", "php", "cs", "swift",
         "kt", "scala", "sh"),
        FileType.SOURCE,
    ),
    # Configuration
    **dict.fromkeys(("json", "yaml", "yml", "toml", "ini", "cfg", "conf", "xml"), FileType.CONFIG),
    # Binary
    **dict.fromkeys(
        ("exe", "dll", "so", "dylib", "o", "a", "lib", "class", "jar", "wasm", "pyc"),
        FileType.BINARY,
    ),
}  # fmt: skip

# Leading header bytes for content sniffing, checked in order.
HEADER_SIGNATURES: tuple[tuple[bytes, FileType], ...] = (
    (b"SQLite format 3\x00", FileType.DATABASE),
    (b"\x7fELF", FileType.BINARY),
    (b"\xfe\xed\xfa\xce", FileType.BINARY),
    (b"\xfe\xed\xfa\xcf", FileType.BINARY),
    (b"\xce\xfa\xed\xfe", FileType.BINARY),
    (b"\xcf\xfa\xed\xfe", FileType.BINARY),
    (b"MZ", FileType.BINARY),
    (b"PK\x03\x04", FileType.ARCHIVE),
    (b"\x1f\x8b", FileType.ARCHIVE),
    (b"BZh", FileType.ARCHIVE),
    (b"\xfd7zXZ\x00", FileType.ARCHIVE),
    (b"7z\xbc\xaf\x27\x1c", FileType.ARCHIVE),
    (b"\x89PNG\r\n\x1a\n", FileType.MEDIA),
    (b"\xff\xd8\xff", FileType.MEDIA),
    (b"GIF8", FileType.MEDIA),
    (b"%PDF", FileType.DOCUMENT),
)

SIGNATURE_READ_SIZE = 16


def name_matches(path: str, patterns: tuple[str, ...] | list[str]) -> bool:
    """Check if the file name of ``path`` matches any glob pattern.

    Args:
        path: File path (only the final component is compared).
        patterns: Glob-style name patterns.

    Returns:
        True if any pattern matches, case-insensitively.
    """
    name = PurePath(path).name.lower()
    return any(fnmatch.fnmatchcase(name, pattern.lower()) for pattern in patterns)
