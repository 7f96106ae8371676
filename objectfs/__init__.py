"""Local-disk object storage."""

__version__ = "0.1.0"
