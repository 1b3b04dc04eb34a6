"""I/O exceptions: scan roots, unreadable files, file locks, git queries."""

from pathlib import Path

from .base import SlocGuardError


class ScanError(SlocGuardError):
    """Raised when a scan root cannot be walked at all."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot scan: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class FileAccessError(SlocGuardError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class LockTimeoutError(SlocGuardError):
    """Raised when a file lock is not acquired within its deadline."""

    def __init__(self, path: Path, timeout_ms: int):
        super().__init__(
            f"Timed out waiting for lock on {path}",
            details={"timeout_ms": str(timeout_ms)},
        )
        self.path = path
        self.timeout_ms = timeout_ms


class GitError(SlocGuardError):
    """Raised when git cannot answer a changed-files query."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"git {command} failed", details={"reason": reason})
        self.command = command
        self.reason = reason
