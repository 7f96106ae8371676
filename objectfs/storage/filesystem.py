"""
Filesystem storage backend implementation.

Exposes a directory tree as a flat object namespace: every object key is a
file path relative to the base directory, and directories exist only to
hold files.

No locking is done. Concurrent writers to the same key race at the
filesystem level and the last writer wins.
"""

import io
import logging
import os
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, List, Union

from objectfs.common.logging_config import PerformanceTracker, operation_scope
from objectfs.common.metrics import (
    record_bytes_written,
    record_list_skip,
    track_storage_operation,
)
from objectfs.storage import fileops
from objectfs.storage.adapter import StorageAdapter
from objectfs.storage.errors import StorageError, StorageIOError
from objectfs.storage.object import StoredObject
from objectfs.storage.paths import PathResolver

logger = logging.getLogger(__name__)


def _rewind(reader: BinaryIO) -> None:
    seekable = getattr(reader, "seekable", None)
    if callable(seekable) and seekable():
        reader.seek(0)


class FilesystemStorage(StorageAdapter):
    """
    Filesystem-based storage implementation.

    The base directory is resolved once, at construction, and never
    changes. It is created on the first write, not here.
    """

    def __init__(
        self,
        base_path: str = "./storage",
        strict_paths: bool = False,
        chunk_size: int = fileops.COPY_CHUNK_SIZE,
        dir_mode: int = fileops.DEFAULT_DIR_MODE,
    ):
        """
        Initialize filesystem storage.

        Args:
            base_path: Root directory for all objects
            strict_paths: Reject keys that resolve outside base_path
            chunk_size: Buffer size for streaming copies
            dir_mode: Mode for directories created by writes

        Raises:
            StorageError: If base_path cannot be resolved to an absolute path
        """
        if not base_path or "\x00" in base_path:
            raise StorageError("Invalid storage base path", path=repr(base_path))
        try:
            base = os.path.abspath(base_path)
        except OSError as e:
            raise StorageError(
                f"Cannot resolve storage base path: {e}", path=base_path) from e

        self._resolver = PathResolver(base, strict=strict_paths)
        self._chunk_size = chunk_size
        self._dir_mode = dir_mode
        logger.debug("FilesystemStorage initialized with base=%s", self.base)

    def __repr__(self) -> str:
        return f"FilesystemStorage(base={self.base!r})"

    @property
    def base(self) -> str:
        """Absolute base directory."""
        return self._resolver.base

    @property
    def base_path(self) -> Path:
        return Path(self._resolver.base)

    def get_full_path(self, path: str) -> str:
        """Resolve an object key (or an already-absolute path) under base."""
        return self._resolver.resolve(path)

    @track_storage_operation("put")
    def put(self, path: str, data: Union[BinaryIO, bytes]) -> StoredObject:
        """
        Store data at path, replacing any existing content.

        A seekable reader is rewound before copying. If the copy fails the
        destination may be left truncated or partially written.
        """
        full_path = self.get_full_path(path)
        reader = io.BytesIO(data) if isinstance(data, (bytes, bytearray)) else data

        fileops.ensure_file(full_path, self._dir_mode)
        _rewind(reader)

        try:
            with fileops.write_stream(full_path, self._chunk_size) as dst:
                shutil.copyfileobj(reader, dst, self._chunk_size)
                written = dst.tell()
        except OSError as e:
            # Includes flush errors raised when the stream closes
            raise StorageIOError(
                f"Failed to write object: {e}", path=path, cause=e) from e

        record_bytes_written(written)
        logger.debug("Stored object %s (%d bytes)", path, written)

        key = self._resolver.relative(full_path)
        return StoredObject.for_storage(self, key, os.path.basename(full_path))

    @track_storage_operation("get")
    def get(self, path: str) -> BinaryIO:
        """Open the object at path for reading."""
        return fileops.open_file(self.get_full_path(path))

    @track_storage_operation("get_stream")
    def get_stream(self, path: str) -> BinaryIO:
        """Open the object at path as a buffered reader owned by the caller."""
        return fileops.read_stream(self.get_full_path(path), self._chunk_size)

    @track_storage_operation("delete")
    def delete(self, path: str) -> None:
        """Remove the object, or the whole subtree, at path."""
        fileops.remove(self.get_full_path(path))
        logger.debug("Deleted %s", path)

    @track_storage_operation("list")
    def list(self, path: str = "") -> List[StoredObject]:
        """
        List every object under path.

        Results are in directory traversal order. Entries that cannot be
        read during the scan are skipped, so the result may be incomplete.
        """
        root = self.get_full_path(path)
        objects: List[StoredObject] = []

        def on_error(error: OSError) -> None:
            if error.filename == root and isinstance(
                    error, (FileNotFoundError, NotADirectoryError)):
                return
            logger.debug("Skipping unreadable entry %s: %s", error.filename, error)
            record_list_skip()

        for dirpath, _dirnames, filenames in os.walk(root, onerror=on_error):
            for filename in filenames:
                file_path = os.path.join(dirpath, filename)
                try:
                    info = os.stat(file_path)
                except OSError as e:
                    logger.debug("Skipping unreadable entry %s: %s", file_path, e)
                    record_list_skip()
                    continue

                if not stat.S_ISREG(info.st_mode):
                    continue

                objects.append(StoredObject.for_storage(
                    self,
                    self._resolver.relative(file_path),
                    filename,
                    datetime.fromtimestamp(info.st_mtime, tz=timezone.utc),
                ))

        return objects

    def exists(self, path: str) -> bool:
        """Check if an object exists."""
        return os.path.isfile(self.get_full_path(path))

    @track_storage_operation("copy")
    def copy(self, src: str, dst: str) -> None:
        """Copy an object or subtree. File modes are not preserved."""
        with operation_scope(), PerformanceTracker(
                "storage.copy", logger, logging.DEBUG, src=src, dst=dst):
            fileops.copy(
                self.get_full_path(src), self.get_full_path(dst), self._chunk_size)

    @track_storage_operation("move")
    def move(self, src: str, dst: str) -> None:
        """Move an object or subtree. Not rolled back if it fails partway."""
        with operation_scope(), PerformanceTracker(
                "storage.move", logger, logging.DEBUG, src=src, dst=dst):
            fileops.move(
                self.get_full_path(src), self.get_full_path(dst), self._chunk_size)
