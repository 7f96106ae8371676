"""
Key resolution for filesystem storage.

Maps object keys onto absolute paths under a base directory.
"""

import os

from objectfs.storage.errors import PathTraversalError


class PathResolver:
    """
    Resolves object keys against a fixed base directory.

    Resolution is permissive unless ``strict`` is set: a key such as
    ``../outside`` normalises to a path outside ``base`` and is returned
    as-is. This is not a sandbox.
    """

    def __init__(self, base: str, strict: bool = False):
        self._base = os.path.normpath(base)
        self._strict = strict

    @property
    def base(self) -> str:
        return self._base

    @property
    def strict(self) -> bool:
        return self._strict

    def resolve(self, path: str) -> str:
        """
        Convert a key (relative, or already prefixed with base) into an
        absolute, normalised path.

        Raises:
            PathTraversalError: In strict mode, if the result is outside base
        """
        if path.startswith(self._base):
            full_path = os.path.normpath(path)
        else:
            # Leading separators would make os.path.join discard base
            full_path = os.path.normpath(
                os.path.join(self._base, path.lstrip(os.sep)))

        if self._strict and not self.contains(full_path):
            raise PathTraversalError(path=path)
        return full_path

    def contains(self, full_path: str) -> bool:
        """True if full_path is base itself or lies beneath it."""
        if full_path == self._base:
            return True
        return full_path.startswith(self._base.rstrip(os.sep) + os.sep)

    def relative(self, full_path: str) -> str:
        """
        Express an absolute path as the key that resolves back to it.

        Paths under base lose the base prefix. Paths outside it become
        ``..``-relative keys, which only resolve when strict is off.
        """
        if self.contains(full_path):
            return full_path[len(self._base):].lstrip(os.sep)
        return os.path.relpath(full_path, self._base)
