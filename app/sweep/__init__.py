"""sweep - risk-aware cleanup of large files and build artifacts."""

__version__ = "0.4.0"
