"""Filesystem helpers: permissioned writes, file copies and the bootstrap lock."""

import os
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .errors import StorageError
from .policy import PUBLIC_FILE_MODE


def write_file(path: Path, data: bytes, mode: int = PUBLIC_FILE_MODE) -> Path:
    """Write bytes to path, overwriting any existing file.

    The file is created with ``mode`` so private keys are never readable by
    others, even briefly. An existing file is re-chmodded to ``mode``.

    Raises:
        StorageError: If the file cannot be written
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as handle:
            os.chmod(path, mode)
            handle.write(data)
    except OSError as e:
        raise StorageError(f"failed to write {path}: {e}") from e
    return path


def read_file(path: Path) -> bytes:
    """Read bytes from path.

    Raises:
        StorageError: If the file is missing or unreadable
    """
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise StorageError(f"file not found: {path}") from e
    except OSError as e:
        raise StorageError(f"failed to read {path}: {e}") from e


def copy_file(src: Path, dst: Path, mode: int | None = None) -> Path:
    """Copy file contents from src to dst, optionally applying a mode to dst."""
    try:
        shutil.copyfile(src, dst)
        if mode is not None:
            os.chmod(dst, mode)
    except OSError as e:
        raise StorageError(f"failed to copy {src} to {dst}: {e}") from e
    return dst


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"failed to create directory {path}: {e}") from e
    return path


@contextmanager
def exclusive_lock(
    lock_path: Path, timeout: float = 30.0, poll_interval: float = 0.1
) -> Iterator[Path]:
    """Hold an exclusive lock file for the duration of the block.

    The lock is an O_EXCL-created file holding the owner's PID. A lock left
    behind by a crashed process must be removed by hand.

    Raises:
        StorageError: If the lock is not acquired within ``timeout`` seconds
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            fd = os.open(lock_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            break
        except FileExistsError as e:
            if time.monotonic() >= deadline:
                raise StorageError(f"timed out waiting for lock: {lock_path}") from e
            time.sleep(poll_interval)
        except OSError as e:
            raise StorageError(f"failed to create lock {lock_path}: {e}") from e

    try:
        with os.fdopen(fd, "w") as handle:
            handle.write(str(os.getpid()))
        yield lock_path
    finally:
        lock_path.unlink(missing_ok=True)
