"""
Abstract base class for storage backends.

Defines the interface that all storage implementations must follow.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, List, Union

from objectfs.storage.object import StoredObject


class StorageAdapter(ABC):
    """
    Abstract base class for storage backends.

    All storage implementations must implement these methods so that
    callers can swap one backend for another without code changes.
    Keys are slash-separated paths relative to the backend root.
    """

    @abstractmethod
    def get_full_path(self, path: str) -> str:
        """
        Resolve a key to the backend's absolute location.

        Args:
            path: Object key

        Returns:
            Absolute location string
        """
        pass

    @abstractmethod
    def put(self, path: str, data: Union[BinaryIO, bytes]) -> StoredObject:
        """
        Store an object, replacing any existing content.

        Args:
            path: Object key
            data: File-like object (read to EOF) or raw bytes

        Returns:
            StoredObject describing the written key

        Raises:
            StorageError: If storage operation fails
        """
        pass

    @abstractmethod
    def get(self, path: str) -> BinaryIO:
        """
        Open an object for reading.

        Args:
            path: Object key

        Returns:
            Readable binary file object; the caller must close it

        Raises:
            NotFoundError: If the object does not exist
        """
        pass

    @abstractmethod
    def get_stream(self, path: str) -> BinaryIO:
        """
        Open an object as a buffered stream.

        The stream stays readable after this call returns and is owned by
        the caller.

        Raises:
            NotFoundError: If the object does not exist
        """
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        """
        Delete an object, or every object under a key prefix.

        Deleting a missing key is not an error.
        """
        pass

    @abstractmethod
    def list(self, path: str = "") -> List[StoredObject]:
        """
        List all objects under a key prefix.

        Args:
            path: Key prefix; empty string lists everything

        Returns:
            StoredObjects with last_modified populated, in backend order
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """
        Check if an object exists.

        Args:
            path: Object key

        Returns:
            True if the object exists, False otherwise
        """
        pass
