"""
Value type describing one stored object.
"""

import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, BinaryIO, Optional

from objectfs.storage.errors import StorageError

if TYPE_CHECKING:
    from objectfs.storage.adapter import StorageAdapter


@dataclass
class StoredObject:
    """
    An object key plus what the backend knows about it.

    Attributes:
        path: Object key, relative to the storage base
        name: Final path component of the key
        last_modified: Modification time (only set by list operations)

    The owning adapter is held through a weak reference so that objects
    never keep a storage instance alive.
    """

    path: str
    name: str
    last_modified: Optional[datetime] = None
    _storage_ref: Optional["weakref.ReferenceType[StorageAdapter]"] = field(
        default=None, repr=False, compare=False
    )

    @classmethod
    def for_storage(
        cls,
        storage: "StorageAdapter",
        path: str,
        name: str,
        last_modified: Optional[datetime] = None,
    ) -> "StoredObject":
        return cls(
            path=path,
            name=name,
            last_modified=last_modified,
            _storage_ref=weakref.ref(storage),
        )

    @property
    def storage(self) -> Optional["StorageAdapter"]:
        """The owning adapter, or None if it has been garbage collected."""
        if self._storage_ref is None:
            return None
        return self._storage_ref()

    def _require_storage(self) -> "StorageAdapter":
        storage = self.storage
        if storage is None:
            raise StorageError("Storage adapter is no longer available", path=self.path)
        return storage

    @property
    def full_path(self) -> str:
        """Absolute location of this object in its backend."""
        return self._require_storage().get_full_path(self.path)

    def open(self) -> BinaryIO:
        return self._require_storage().get(self.path)

    def read(self) -> bytes:
        with self.open() as f:
            return f.read()

    def delete(self) -> None:
        self._require_storage().delete(self.path)
