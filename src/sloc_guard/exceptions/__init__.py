"""Exception hierarchy for sloc-guard."""

from .base import SlocGuardError
from .config import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
    InvalidPatternError,
    UnknownPresetError,
    UnsupportedVersionError,
)
from .io import FileAccessError, GitError, LockTimeoutError, ScanError

__all__ = [
    "SlocGuardError",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
    "InvalidPatternError",
    "UnknownPresetError",
    "UnsupportedVersionError",
    "ScanError",
    "FileAccessError",
    "LockTimeoutError",
    "GitError",
]
