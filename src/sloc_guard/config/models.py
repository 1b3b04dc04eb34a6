"""Configuration model.

Every section is a frozen dataclass validated in ``__post_init__``. Glob and
regex fields are compiled eagerly so that a bad pattern fails config load,
before any scanning starts.

Structure limits use ``UNLIMITED`` (-1) to switch a check off for one rule,
which is different from leaving the field unset (inherit the global value).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from ..counting import LanguageDefinition
from ..matching import compile_glob, compile_regex, normalize_extension

CONFIG_VERSION = "2"
UNLIMITED = -1

DEFAULT_EXTENSIONS = [
    "rs", "go", "py", "pyi", "js", "jsx", "mjs", "cjs", "ts", "tsx",
    "c", "h", "cpp", "hpp", "cc", "cxx", "java", "rb", "lua",
]

SEVERITY_ERROR = "error"
SEVERITY_WARN = "warn"
RATCHET_MODES = ("warn", "auto", "strict")


def _check_fraction(name: str, value: Optional[float]) -> None:
    if value is not None and not 0.0 < value <= 1.0:
        raise ValueError(f"{name} must be in (0.0, 1.0], got {value}")


def _check_limit(name: str, value: Optional[int]) -> None:
    if value is not None and value < UNLIMITED:
        raise ValueError(f"{name} must be -1 (unlimited) or non-negative, got {value}")


def _check_warn_at(name: str, warn_at: Optional[int], limit: Optional[int]) -> None:
    if warn_at is None:
        return
    if warn_at < 0:
        raise ValueError(f"{name} must be non-negative, got {warn_at}")
    if limit is not None and limit != UNLIMITED and warn_at >= limit:
        raise ValueError(f"{name} ({warn_at}) must be below the limit ({limit})")


def _check_expires(value: Optional[str]) -> None:
    if value is None:
        return
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"expires must be a YYYY-MM-DD date, got {value!r}") from None


def _compile_globs(patterns: List[str]) -> None:
    for pattern in patterns:
        compile_glob(pattern)


@dataclass(frozen=True)
class ScannerConfig:
    """Traversal settings shared by every check."""

    gitignore: bool = True
    exclude: List[str] = field(default_factory=lambda: [".git/**"])

    def __post_init__(self) -> None:
        _compile_globs(self.exclude)


@dataclass(frozen=True)
class ContentRule:
    """Line budget for files matching ``pattern``. Last matching rule wins."""

    pattern: str
    max_lines: Optional[int] = None
    warn_threshold: Optional[float] = None
    warn_at: Optional[int] = None
    skip_comments: Optional[bool] = None
    skip_blank: Optional[bool] = None
    reason: Optional[str] = None
    expires: Optional[str] = None

    def __post_init__(self) -> None:
        compile_glob(self.pattern)
        if self.max_lines is not None and self.max_lines < 1:
            raise ValueError(f"max_lines must be at least 1, got {self.max_lines}")
        _check_fraction("warn_threshold", self.warn_threshold)
        _check_warn_at("warn_at", self.warn_at, self.max_lines)
        _check_expires(self.expires)


@dataclass(frozen=True)
class ContentOverride:
    """Exact budget for one file, matched by component-aligned path suffix."""

    path: str
    max_lines: int
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.path.strip():
            raise ValueError("override path must not be empty")
        if self.max_lines < 1:
            raise ValueError(f"max_lines must be at least 1, got {self.max_lines}")


@dataclass(frozen=True)
class ContentConfig:
    """Global line budget plus per-pattern rules and per-file overrides."""

    max_lines: int = 500
    warn_threshold: Optional[float] = 0.9
    warn_at: Optional[int] = None
    skip_comments: bool = True
    skip_blank: bool = True
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude: List[str] = field(default_factory=list)
    rules: List[ContentRule] = field(default_factory=list)
    overrides: List[ContentOverride] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.max_lines < 1:
            raise ValueError(f"max_lines must be at least 1, got {self.max_lines}")
        _check_fraction("warn_threshold", self.warn_threshold)
        _check_warn_at("warn_at", self.warn_at, self.max_lines)
        _compile_globs(self.exclude)

    @property
    def extension_set(self) -> frozenset:
        return frozenset(ext.lower().lstrip(".") for ext in self.extensions)


@dataclass(frozen=True)
class SiblingRule:
    """Co-location requirement inside a structure rule's scope.

    ``directed``: a file matching ``match`` needs every ``require`` template.
    ``group``: if any member of ``group`` exists, all must exist.
    Templates use ``{stem}`` for the triggering file's stem.
    """

    kind: str
    match: Optional[str] = None
    require: Tuple[str, ...] = ()
    group: Tuple[str, ...] = ()
    severity: str = SEVERITY_ERROR

    def __post_init__(self) -> None:
        if self.severity not in (SEVERITY_ERROR, SEVERITY_WARN):
            raise ValueError(f"severity must be 'error' or 'warn', got {self.severity!r}")
        if self.kind == "directed":
            if not self.match:
                raise ValueError("directed sibling rule needs 'match'")
            if not self.require:
                raise ValueError("directed sibling rule needs 'require'")
            compile_glob(self.match)
        elif self.kind == "group":
            if len(self.group) < 2:
                raise ValueError("sibling group needs at least two members")
            for template in self.group:
                if "{stem}" not in template:
                    raise ValueError(f"group member {template!r} must contain '{{stem}}'")
        else:
            raise ValueError(f"unknown sibling rule kind {self.kind!r}")

    @property
    def is_warning(self) -> bool:
        return self.severity == SEVERITY_WARN


@dataclass(frozen=True)
class StructureRule:
    """Directory budget and allow/deny lists for directories matching ``scope``."""

    scope: str
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    relative_depth: bool = False
    warn_threshold: Optional[float] = None
    warn_files_at: Optional[int] = None
    warn_dirs_at: Optional[int] = None
    warn_files_threshold: Optional[float] = None
    warn_dirs_threshold: Optional[float] = None
    allow_extensions: List[str] = field(default_factory=list)
    allow_patterns: List[str] = field(default_factory=list)
    allow_files: List[str] = field(default_factory=list)
    allow_dirs: List[str] = field(default_factory=list)
    deny_extensions: List[str] = field(default_factory=list)
    deny_patterns: List[str] = field(default_factory=list)
    deny_files: List[str] = field(default_factory=list)
    deny_dirs: List[str] = field(default_factory=list)
    file_naming_pattern: Optional[str] = None
    siblings: List[SiblingRule] = field(default_factory=list)
    reason: Optional[str] = None
    expires: Optional[str] = None

    def __post_init__(self) -> None:
        compile_glob(self.scope)
        for name in ("max_files", "max_dirs", "max_depth"):
            _check_limit(name, getattr(self, name))
        _check_fraction("warn_threshold", self.warn_threshold)
        _check_fraction("warn_files_threshold", self.warn_files_threshold)
        _check_fraction("warn_dirs_threshold", self.warn_dirs_threshold)
        _check_warn_at("warn_files_at", self.warn_files_at, self.max_files)
        _check_warn_at("warn_dirs_at", self.warn_dirs_at, self.max_dirs)
        _compile_globs(self.allow_patterns)
        _compile_globs(self.deny_patterns)
        _compile_globs(self.allow_files)
        _compile_globs(self.deny_files)
        _compile_globs(self.allow_dirs)
        _compile_globs(self.deny_dirs)
        if self.file_naming_pattern is not None:
            compile_regex(self.file_naming_pattern)
        _check_expires(self.expires)
        object.__setattr__(
            self, "allow_extensions", [normalize_extension(e) for e in self.allow_extensions]
        )
        object.__setattr__(
            self, "deny_extensions", [normalize_extension(e) for e in self.deny_extensions]
        )


@dataclass(frozen=True)
class StructureOverride:
    """Exact directory budget, matched by component-aligned path suffix."""

    path: str
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.path.strip():
            raise ValueError("override path must not be empty")
        if self.max_files is None and self.max_dirs is None and self.max_depth is None:
            raise ValueError(
                f"override for {self.path!r} must set max_files, max_dirs or max_depth"
            )
        for name in ("max_files", "max_dirs", "max_depth"):
            _check_limit(name, getattr(self, name))


@dataclass(frozen=True)
class StructureConfig:
    """Global directory budget, global allow/deny lists, rules and overrides."""

    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    warn_threshold: Optional[float] = None
    warn_files_at: Optional[int] = None
    warn_dirs_at: Optional[int] = None
    count_exclude: List[str] = field(default_factory=list)
    allow_extensions: List[str] = field(default_factory=list)
    allow_patterns: List[str] = field(default_factory=list)
    allow_files: List[str] = field(default_factory=list)
    allow_dirs: List[str] = field(default_factory=list)
    deny_extensions: List[str] = field(default_factory=list)
    deny_patterns: List[str] = field(default_factory=list)
    deny_files: List[str] = field(default_factory=list)
    deny_dirs: List[str] = field(default_factory=list)
    rules: List[StructureRule] = field(default_factory=list)
    overrides: List[StructureOverride] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in ("max_files", "max_dirs", "max_depth"):
            _check_limit(name, getattr(self, name))
        _check_fraction("warn_threshold", self.warn_threshold)
        _check_warn_at("warn_files_at", self.warn_files_at, self.max_files)
        _check_warn_at("warn_dirs_at", self.warn_dirs_at, self.max_dirs)
        for patterns in (
            self.count_exclude,
            self.allow_patterns,
            self.allow_files,
            self.allow_dirs,
            self.deny_patterns,
            self.deny_files,
            self.deny_dirs,
        ):
            _compile_globs(patterns)
        object.__setattr__(
            self, "allow_extensions", [normalize_extension(e) for e in self.allow_extensions]
        )
        object.__setattr__(
            self, "deny_extensions", [normalize_extension(e) for e in self.deny_extensions]
        )


@dataclass(frozen=True)
class CheckConfig:
    warnings_as_errors: bool = False
    fail_fast: bool = False


@dataclass(frozen=True)
class BaselineConfig:
    ratchet: Optional[str] = None

    def __post_init__(self) -> None:
        if self.ratchet is not None and self.ratchet not in RATCHET_MODES:
            raise ValueError(f"ratchet must be one of {', '.join(RATCHET_MODES)}")


@dataclass(frozen=True)
class TrendConfig:
    """Retention policy for the trend history file."""

    max_entries: Optional[int] = None
    max_age_days: Optional[int] = None
    min_interval_secs: Optional[int] = None
    auto_snapshot_on_check: bool = False

    def __post_init__(self) -> None:
        for name in ("max_entries", "max_age_days", "min_interval_secs"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass(frozen=True)
class SlocGuardConfig:
    """Root of the loaded configuration. Immutable for the process lifetime."""

    version: str = CONFIG_VERSION
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    structure: StructureConfig = field(default_factory=StructureConfig)
    check: CheckConfig = field(default_factory=CheckConfig)
    baseline: BaselineConfig = field(default_factory=BaselineConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)
    languages: List[LanguageDefinition] = field(default_factory=list)
