"""
Filesystem primitives used by the storage backends.

Directory/file bootstrap, recursive copy/move/remove, and thin wrappers
around os calls that translate OSError into the storage exception types.

Tree operations are not transactional: a failure partway through copy or
move leaves whatever was already copied or relocated in place.
"""

import errno
import logging
import os
import shutil
import stat as stat_module
import tempfile
from contextlib import contextmanager
from io import BufferedReader, BufferedWriter
from typing import BinaryIO, Iterator, List, Tuple

from objectfs.storage.errors import (
    NotFoundError,
    PathError,
    StorageError,
    StorageIOError,
)

logger = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o777
COPY_CHUNK_SIZE = 64 * 1024


def _storage_error(error: OSError, path: str, action: str) -> StorageError:
    """Map an OSError onto the matching storage exception."""
    if isinstance(error, FileNotFoundError):
        return NotFoundError(f"Failed to {action}: {error.strerror}", path=path)
    if isinstance(error, (NotADirectoryError, IsADirectoryError, FileExistsError)):
        return PathError(f"Failed to {action}: {error.strerror}", path=path, cause=error)
    return StorageIOError(f"Failed to {action}: {error}", path=path, cause=error)


@contextmanager
def _translate_os_errors(path: str, action: str) -> Iterator[None]:
    """Re-raise OSError from the wrapped block as a StorageError subclass."""
    try:
        yield
    except OSError as e:
        raise _storage_error(e, path, action) from e


def _child_paths(src: str, dst: str, name: str) -> Tuple[str, str]:
    """Source and destination paths for one directory entry."""
    return os.path.join(src, name), os.path.join(dst, name)


def _is_same_path(src: str, dst: str) -> bool:
    """True if src and dst name the same file, including via links."""
    if os.path.abspath(src) == os.path.abspath(dst):
        return True
    try:
        return os.path.samefile(src, dst)
    except OSError:
        return False


def _check_not_nested(src: str, dst: str) -> None:
    src_abs = os.path.abspath(src)
    dst_abs = os.path.abspath(dst)
    if dst_abs.startswith(src_abs.rstrip(os.sep) + os.sep):
        raise PathError("Destination is inside source directory", path=dst)


def path_exists(path: str) -> bool:
    return os.path.exists(path)


def stat(path: str) -> os.stat_result:
    with _translate_os_errors(path, "stat"):
        return os.stat(path)


def lstat(path: str) -> os.stat_result:
    with _translate_os_errors(path, "lstat"):
        return os.lstat(path)


def mkdir(path: str, mode: int = DEFAULT_DIR_MODE) -> None:
    """Create a single directory; the parent must already exist."""
    with _translate_os_errors(path, "create directory"):
        os.mkdir(path, mode)


def ensure_dir(path: str, mode: int = DEFAULT_DIR_MODE) -> None:
    """
    Make sure path exists as a directory, creating missing ancestors.

    Idempotent: succeeds if the directory is already there.

    Raises:
        PathError: If path or one of its ancestors exists but is not a directory
        StorageIOError: If a directory cannot be created
    """
    parent = os.path.dirname(path)
    if parent and parent != path and not os.path.exists(parent):
        ensure_dir(parent, mode)

    if os.path.isdir(path):
        return

    with _translate_os_errors(path, "create directory"):
        try:
            os.mkdir(path, mode)
        except FileExistsError:
            # Lost a race against another creator
            if not os.path.isdir(path):
                raise


def ensure_file(path: str, mode: int = DEFAULT_DIR_MODE) -> None:
    """Create an empty file at path unless one already exists."""
    parent = os.path.dirname(path)
    if parent:
        ensure_dir(parent, mode)

    with _translate_os_errors(path, "create file"):
        # Append mode creates without truncating an existing file
        with open(path, "ab"):
            pass


def read_dir(path: str) -> List[str]:
    """Names of the direct children of a directory, in OS order."""
    with _translate_os_errors(path, "read directory"):
        return os.listdir(path)


def temp_dir(dir: str, prefix: str) -> str:
    """Create a uniquely-named temporary directory inside dir."""
    with _translate_os_errors(dir, "create temporary directory"):
        return tempfile.mkdtemp(prefix=prefix, dir=dir)


def read_file(path: str) -> bytes:
    with _translate_os_errors(path, "read file"):
        with open(path, "rb") as f:
            return f.read()


def write_file(path: str, data: bytes) -> None:
    """Write data to path, replacing any existing content."""
    with _translate_os_errors(path, "write file"):
        with open(path, "wb") as f:
            f.write(data)


def output_file(path: str, data: bytes, mode: int = DEFAULT_DIR_MODE) -> None:
    """Same as write_file, but creates missing parent directories first."""
    parent = os.path.dirname(path)
    if parent:
        ensure_dir(parent, mode)
    write_file(path, data)


def append_file(path: str, data: bytes) -> None:
    with _translate_os_errors(path, "append to file"):
        with open(path, "ab") as f:
            f.write(data)


def truncate(path: str, length: int) -> None:
    with _translate_os_errors(path, "truncate file"):
        os.truncate(path, length)


def open_file(path: str) -> BinaryIO:
    """Open path for binary reading. The caller closes the handle."""
    with _translate_os_errors(path, "open for reading"):
        return open(path, "rb")


def read_stream(path: str, buffer_size: int = COPY_CHUNK_SIZE) -> BufferedReader:
    """
    Open path as a buffered binary reader.

    The caller owns the returned stream and must close it.
    """
    with _translate_os_errors(path, "open for reading"):
        return open(path, "rb", buffering=buffer_size)


def write_stream(path: str, buffer_size: int = COPY_CHUNK_SIZE) -> BufferedWriter:
    """
    Open path as a buffered binary writer, truncating it.

    The caller owns the returned stream and must close it.
    """
    with _translate_os_errors(path, "open for writing"):
        return open(path, "wb", buffering=buffer_size)


def chmod(path: str, mode: int) -> None:
    with _translate_os_errors(path, "change mode"):
        os.chmod(path, mode)


def lchown(path: str, uid: int, gid: int) -> None:
    """Change ownership without following symlinks."""
    with _translate_os_errors(path, "change owner"):
        os.lchown(path, uid, gid)


def rename(old_path: str, new_path: str) -> None:
    with _translate_os_errors(old_path, "rename"):
        os.replace(old_path, new_path)


def remove(path: str) -> None:
    """
    Remove a file or a whole directory tree.

    A path that does not exist is not an error.
    """
    if not os.path.lexists(path):
        return

    with _translate_os_errors(path, "remove"):
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        except FileNotFoundError:
            pass


def _copy_file(src: str, dst: str, chunk_size: int) -> None:
    parent = os.path.dirname(dst)
    if parent:
        ensure_dir(parent)

    with _translate_os_errors(src, "copy file"):
        with open(src, "rb") as reader, open(dst, "wb") as writer:
            shutil.copyfileobj(reader, writer, chunk_size)


def copy(src: str, dst: str, chunk_size: int = COPY_CHUNK_SIZE) -> None:
    """
    Copy a file or a directory tree from src to dst.

    Only content is copied; mode, owner and timestamps are not preserved.
    Existing destination files are overwritten. Copying a path onto
    itself leaves it untouched.

    Raises:
        NotFoundError: If src does not exist
        PathError: If dst lies inside the src tree
        StorageIOError: If any read or write fails
    """
    info = stat(src)

    if _is_same_path(src, dst):
        return

    if not stat_module.S_ISDIR(info.st_mode):
        _copy_file(src, dst, chunk_size)
        return

    _check_not_nested(src, dst)
    ensure_dir(dst)
    for name in read_dir(src):
        child_src, child_dst = _child_paths(src, dst, name)
        copy(child_src, child_dst, chunk_size)


def move(src: str, dst: str, chunk_size: int = COPY_CHUNK_SIZE) -> None:
    """
    Move a file or a directory tree from src to dst.

    Files are renamed in place when src and dst share a filesystem, which
    keeps mode and timestamps. Across filesystems the file is copied, its
    mode reapplied, and the source removed.

    Raises:
        NotFoundError: If src does not exist
        PathError: If dst lies inside the src tree
        StorageIOError: If any step fails
    """
    info = stat(src)

    if _is_same_path(src, dst):
        return

    if stat_module.S_ISDIR(info.st_mode):
        _check_not_nested(src, dst)
        ensure_dir(dst)
        for name in read_dir(src):
            child_src, child_dst = _child_paths(src, dst, name)
            move(child_src, child_dst, chunk_size)
        remove(src)
        return

    parent = os.path.dirname(dst)
    if parent:
        ensure_dir(parent)

    try:
        os.replace(src, dst)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise _storage_error(e, src, "move") from e

    logger.debug("Cross-device move, copying %s to %s", src, dst)
    _copy_file(src, dst, chunk_size)
    chmod(dst, stat_module.S_IMODE(info.st_mode))
    remove(src)
