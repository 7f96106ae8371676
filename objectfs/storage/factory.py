"""
Storage factory for creating storage adapter instances.

Provides cached access to the configured storage backend.
"""

from functools import lru_cache

from objectfs.common.logging_config import configure_logging
from objectfs.config.settings import get_settings
from objectfs.storage.adapter import StorageAdapter
from objectfs.storage.filesystem import FilesystemStorage


@lru_cache()
def get_storage_adapter() -> StorageAdapter:
    """
    Get the configured storage adapter instance.

    The first call also applies the logging settings to the root logger.

    Returns:
        FilesystemStorage rooted at settings.storage_path

    Raises:
        StorageError: If the configured storage path cannot be resolved
        ValueError: If the configured log level is unknown
    """
    settings = get_settings()
    configure_logging(settings)
    return FilesystemStorage(
        base_path=settings.storage_path,
        strict_paths=settings.strict_paths,
        chunk_size=settings.copy_chunk_size,
        dir_mode=settings.dir_mode,
    )


def reset_storage_adapter() -> None:
    """Reset the cached storage adapter (useful for testing)."""
    get_storage_adapter.cache_clear()
