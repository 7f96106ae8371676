"""
Exception types raised by storage backends.

Every filesystem failure is translated into one of these before it leaves
the storage package; callers never see a raw OSError.
"""

from typing import Optional


class StorageError(Exception):
    """
    Base exception for storage operations.

    Attributes:
        message: Human-readable error message
        path: Object key or filesystem path involved (if any)
    """

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} path={self.path}"
        return self.message


class NotFoundError(StorageError):
    """Raised when a path required by an operation does not exist."""

    def __init__(self, message: str = "Path not found", *, path: Optional[str] = None):
        super().__init__(message, path=path)


class StorageIOError(StorageError):
    """
    Raised when the filesystem cannot complete an open, read, write,
    or permission-sensitive operation.

    The originating OSError is kept on ``cause``.
    """

    def __init__(
        self,
        message: str = "Storage I/O error",
        *,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, path=path)
        self.cause = cause


class PathError(StorageIOError):
    """Raised when a path component exists but has the wrong type."""


class PathTraversalError(StorageError):
    """Raised by strict resolution when a key escapes the base directory."""

    def __init__(
        self,
        message: str = "Invalid key: path escapes base directory",
        *,
        path: Optional[str] = None,
    ):
        super().__init__(message, path=path)
