"""
Safe file operations for sloc-guard.

Provides lock-protected and atomic file operations for the state files
(cache, baseline, trend history) that concurrent runs may share.
"""

import enum
import errno
import fcntl
import os
import tempfile
import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from .exceptions import FileAccessError, LockTimeoutError

DEFAULT_LOCK_TIMEOUT_MS = 500
_POLL_INTERVAL_S = 0.05


class SaveOutcome(enum.Enum):
    """Result of a best-effort state file save."""

    SAVED = "saved"
    SKIPPED = "skipped"


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextmanager
def file_lock(
    path: Path, exclusive: bool = True, timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS
) -> Generator[None, None, None]:
    """
    Hold an advisory lock on ``<path>.lock`` for the duration of the block.

    Args:
        path: The state file being protected
        exclusive: Writer lock when True, shared reader lock otherwise
        timeout_ms: How long to poll before giving up

    Raises:
        LockTimeoutError: If the lock is not acquired within timeout_ms
        FileAccessError: If the lock file cannot be created
    """
    lock_file = lock_path_for(path)
    try:
        lock_file.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(lock_file, os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        raise FileAccessError(lock_file, f"Cannot open lock file: {e}")

    mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    deadline = time.monotonic() + timeout_ms / 1000.0
    try:
        while True:
            try:
                fcntl.flock(fd, mode | fcntl.LOCK_NB)
                break
            except OSError as e:
                if e.errno not in (errno.EAGAIN, errno.EACCES, errno.EWOULDBLOCK):
                    raise FileAccessError(lock_file, f"Lock failed: {e}")
                if time.monotonic() >= deadline:
                    raise LockTimeoutError(path, timeout_ms)
                time.sleep(_POLL_INTERVAL_S)
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


def safe_read_text(filepath: Path, encoding: str = "utf-8") -> str:
    """
    Read a text file, mapping OS errors to FileAccessError.

    Raises:
        FileNotFoundError: If the file does not exist (callers treat it as empty state)
        FileAccessError: For any other read failure
    """
    try:
        with open(filepath, encoding=encoding, errors="replace") as f:
            return f.read()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise FileAccessError(filepath, f"OS error: {e}")


def atomic_write_text(filepath: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write via a temp file in the same directory and rename over the target.

    Readers never observe a partially written file.

    Raises:
        FileAccessError: If the file cannot be written
    """
    filepath = Path(filepath)
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(filepath.parent), prefix=f".{filepath.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise FileAccessError(filepath, f"Write failed: {e}")

    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, filepath)
    except OSError as e:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise FileAccessError(filepath, f"Write failed: {e}")
