"""Configuration exceptions: files, values, patterns, presets, versions."""

from pathlib import Path
from typing import Any, List

from .base import SlocGuardError


class ConfigurationError(SlocGuardError):
    """Base class for configuration-related errors.

    Raised before any scanning starts; the CLI maps it to exit code 2.
    """

    pass


class ConfigFileError(ConfigurationError):
    """Raised when a config file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid config file: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class InvalidPatternError(ConfigurationError):
    """Raised when a glob or regex pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern: {pattern!r}", details={"reason": reason})
        self.pattern = pattern
        self.reason = reason


class UnknownPresetError(ConfigurationError):
    """Raised when `extends` names a preset that does not exist."""

    def __init__(self, name: str, available: List[str]):
        super().__init__(
            f"Unknown preset: {name!r}",
            details={"available": ", ".join(available)},
        )
        self.name = name
        self.available = available


class UnsupportedVersionError(ConfigurationError):
    """Raised for config or baseline files with an unknown version."""

    def __init__(self, kind: str, found: Any, supported: Any):
        super().__init__(
            f"Unsupported {kind} version: {found}",
            details={"supported": str(supported)},
        )
        self.kind = kind
        self.found = found
        self.supported = supported
