"""
Object storage on top of a local directory tree.

Provides the StorageAdapter contract and its filesystem implementation.
"""

from objectfs.storage.adapter import StorageAdapter
from objectfs.storage.errors import (
    NotFoundError,
    PathError,
    PathTraversalError,
    StorageError,
    StorageIOError,
)
from objectfs.storage.factory import get_storage_adapter, reset_storage_adapter
from objectfs.storage.filesystem import FilesystemStorage
from objectfs.storage.object import StoredObject
from objectfs.storage.paths import PathResolver

__all__ = [
    "StorageAdapter",
    "StoredObject",
    "FilesystemStorage",
    "PathResolver",
    "StorageError",
    "NotFoundError",
    "StorageIOError",
    "PathError",
    "PathTraversalError",
    "get_storage_adapter",
    "reset_storage_adapter",
]
