"""Data models for sloc-guard check results"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .counting import LineStats


class CheckStatus(str, Enum):
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    GRANDFATHERED = "grandfathered"


class ViolationCategory(str, Enum):
    CONTENT = "content"
    STRUCTURE = "structure"


class ViolationKind(str, Enum):
    """Closed set of structure violation kinds, in report order."""

    FILE_COUNT = "file_count"
    DIR_COUNT = "dir_count"
    MAX_DEPTH = "max_depth"
    DISALLOWED_FILE = "disallowed_file"
    DISALLOWED_DIRECTORY = "disallowed_directory"
    DENIED_FILE = "denied_file"
    DENIED_DIRECTORY = "denied_directory"
    NAMING_CONVENTION = "naming_convention"
    MISSING_SIBLING = "missing_sibling"
    GROUP_INCOMPLETE = "group_incomplete"

    @property
    def rank(self) -> int:
        return list(ViolationKind).index(self)

    @property
    def is_limit(self) -> bool:
        return self in (ViolationKind.FILE_COUNT, ViolationKind.DIR_COUNT, ViolationKind.MAX_DEPTH)


@dataclass(frozen=True)
class ViolationType:
    """A violation kind plus the payload that kind carries.

    DENIED_FILE / DENIED_DIRECTORY carry ``matched_pattern``,
    NAMING_CONVENTION carries the regex in ``expected``,
    MISSING_SIBLING carries the sibling path in ``expected``,
    GROUP_INCOMPLETE carries ``patterns`` and ``missing``.
    """

    kind: ViolationKind
    matched_pattern: Optional[str] = None
    expected: Optional[str] = None
    patterns: Tuple[str, ...] = ()
    missing: Tuple[str, ...] = ()

    def describe(self) -> str:
        kind = self.kind
        if kind == ViolationKind.FILE_COUNT:
            return "too many files"
        if kind == ViolationKind.DIR_COUNT:
            return "too many subdirectories"
        if kind == ViolationKind.MAX_DEPTH:
            return "directory nested too deeply"
        if kind == ViolationKind.DISALLOWED_FILE:
            return "file not in allowlist"
        if kind == ViolationKind.DISALLOWED_DIRECTORY:
            return "directory not in allowlist"
        if kind == ViolationKind.DENIED_FILE:
            return f"file denied by '{self.matched_pattern}'"
        if kind == ViolationKind.DENIED_DIRECTORY:
            return f"directory denied by '{self.matched_pattern}'"
        if kind == ViolationKind.NAMING_CONVENTION:
            return f"file name does not match /{self.expected}/"
        if kind == ViolationKind.MISSING_SIBLING:
            return f"missing sibling {self.expected}"
        return f"incomplete group, missing {', '.join(self.missing)}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value}
        if self.matched_pattern is not None:
            data["matched_pattern"] = self.matched_pattern
        if self.expected is not None:
            data["expected"] = self.expected
        if self.patterns:
            data["patterns"] = list(self.patterns)
        if self.missing:
            data["missing"] = list(self.missing)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViolationType":
        return cls(
            kind=ViolationKind(data["kind"]),
            matched_pattern=data.get("matched_pattern"),
            expected=data.get("expected"),
            patterns=tuple(data.get("patterns", ())),
            missing=tuple(data.get("missing", ())),
        )


@dataclass(frozen=True)
class StructureViolation:
    """One structure finding for a directory or file."""

    path: str
    violation_type: ViolationType
    actual: int = 0
    limit: int = 0
    is_warning: bool = False
    override_reason: Optional[str] = None
    triggering_rule_pattern: Optional[str] = None

    @property
    def kind(self) -> ViolationKind:
        return self.violation_type.kind

    def dedup_key(self) -> Tuple[str, ViolationType]:
        return (self.path, self.violation_type)

    def sort_key(self) -> Tuple[str, int]:
        return (self.path, self.kind.rank)

    @classmethod
    def limit_exceeded(
        cls,
        kind: ViolationKind,
        path: str,
        actual: int,
        limit: int,
        is_warning: bool = False,
        override_reason: Optional[str] = None,
        rule: Optional[str] = None,
    ) -> "StructureViolation":
        return cls(path, ViolationType(kind), actual, limit, is_warning, override_reason, rule)

    @classmethod
    def disallowed_file(cls, path: str, rule: str) -> "StructureViolation":
        return cls(path, ViolationType(ViolationKind.DISALLOWED_FILE), triggering_rule_pattern=rule)

    @classmethod
    def disallowed_directory(cls, path: str, rule: str) -> "StructureViolation":
        return cls(
            path, ViolationType(ViolationKind.DISALLOWED_DIRECTORY), triggering_rule_pattern=rule
        )

    @classmethod
    def denied_file(cls, path: str, rule: str, matched: str) -> "StructureViolation":
        return cls(
            path,
            ViolationType(ViolationKind.DENIED_FILE, matched_pattern=matched),
            triggering_rule_pattern=rule,
        )

    @classmethod
    def denied_directory(cls, path: str, rule: str, matched: str) -> "StructureViolation":
        return cls(
            path,
            ViolationType(ViolationKind.DENIED_DIRECTORY, matched_pattern=matched),
            triggering_rule_pattern=rule,
        )

    @classmethod
    def naming_convention(cls, path: str, rule: str, regex: str) -> "StructureViolation":
        return cls(
            path,
            ViolationType(ViolationKind.NAMING_CONVENTION, expected=regex),
            triggering_rule_pattern=rule,
        )


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one content check or one structure violation.

    ``stats`` are the effective counts after skip_comments/skip_blank;
    ``raw_stats`` keeps the unadjusted counts. Structure results carry the
    measured value in ``actual`` and their kind in ``violation``.
    """

    path: str
    status: CheckStatus
    limit: int
    stats: LineStats = field(default_factory=LineStats)
    raw_stats: Optional[LineStats] = None
    override_reason: Optional[str] = None
    violation_category: ViolationCategory = ViolationCategory.CONTENT
    violation: Optional[ViolationType] = None
    actual: Optional[int] = None
    triggering_rule_pattern: Optional[str] = None
    suggestions: Tuple[str, ...] = ()

    @property
    def is_passed(self) -> bool:
        return self.status == CheckStatus.PASSED

    @property
    def is_warning(self) -> bool:
        return self.status == CheckStatus.WARNING

    @property
    def is_failed(self) -> bool:
        return self.status == CheckStatus.FAILED

    @property
    def is_grandfathered(self) -> bool:
        return self.status == CheckStatus.GRANDFATHERED

    @property
    def is_structure(self) -> bool:
        return self.violation_category == ViolationCategory.STRUCTURE

    @property
    def sloc(self) -> int:
        """Counted value: SLOC for content, the measured count for structure."""
        if self.actual is not None:
            return self.actual
        return self.stats.sloc

    @property
    def usage_percent(self) -> Optional[float]:
        if self.limit <= 0:
            return None
        return self.sloc / self.limit * 100.0

    def into_grandfathered(self) -> "CheckResult":
        return replace(self, status=CheckStatus.GRANDFATHERED)

    def sort_key(self) -> Tuple[str, int]:
        rank = -1 if self.violation is None else self.violation.kind.rank
        return (self.path, rank)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "status": self.status.value,
            "category": self.violation_category.value,
            "sloc": self.sloc,
            "limit": self.limit,
            "stats": self.stats.to_dict(),
        }
        if self.raw_stats is not None:
            data["raw_stats"] = self.raw_stats.to_dict()
        if self.violation is not None:
            data["violation"] = self.violation.to_dict()
        if self.override_reason is not None:
            data["override_reason"] = self.override_reason
        if self.triggering_rule_pattern is not None:
            data["rule"] = self.triggering_rule_pattern
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckResult":
        violation = data.get("violation")
        category = ViolationCategory(data.get("category", "content"))
        return cls(
            path=data["path"],
            status=CheckStatus(data["status"]),
            limit=int(data["limit"]),
            stats=LineStats.from_dict(data.get("stats", {})),
            raw_stats=LineStats.from_dict(data["raw_stats"]) if "raw_stats" in data else None,
            override_reason=data.get("override_reason"),
            violation_category=category,
            violation=ViolationType.from_dict(violation) if violation else None,
            actual=int(data["sloc"]) if category == ViolationCategory.STRUCTURE else None,
            triggering_rule_pattern=data.get("rule"),
            suggestions=tuple(data.get("suggestions", ())),
        )


def structure_violation_to_result(violation: StructureViolation) -> CheckResult:
    """Fold a structure violation into the common result stream."""
    kind = violation.kind
    suggestions: Tuple[str, ...] = ()
    if kind == ViolationKind.FILE_COUNT:
        suggestions = ("Group related files into subdirectories",)
    elif kind == ViolationKind.DIR_COUNT:
        suggestions = ("Merge or nest related subdirectories",)
    elif kind == ViolationKind.MAX_DEPTH:
        suggestions = ("Flatten the directory hierarchy",)
    elif kind == ViolationKind.MISSING_SIBLING:
        suggestions = (f"Add {violation.violation_type.expected}",)
    elif kind == ViolationKind.GROUP_INCOMPLETE:
        suggestions = tuple(f"Add {m}" for m in violation.violation_type.missing)

    return CheckResult(
        path=violation.path,
        status=CheckStatus.WARNING if violation.is_warning else CheckStatus.FAILED,
        limit=violation.limit,
        override_reason=violation.override_reason,
        violation_category=ViolationCategory.STRUCTURE,
        violation=violation.violation_type,
        actual=violation.actual,
        triggering_rule_pattern=violation.triggering_rule_pattern,
        suggestions=suggestions,
    )


def sort_results(results: List[CheckResult]) -> List[CheckResult]:
    return sorted(results, key=lambda r: r.sort_key())


@dataclass
class CheckSummary:
    """Counts over a result list, plus ratchet state."""

    total: int = 0
    passed: int = 0
    warnings: int = 0
    failed: int = 0
    grandfathered: int = 0
    stale_baseline_entries: List[str] = field(default_factory=list)

    @classmethod
    def from_results(
        cls, results: List[CheckResult], stale: Optional[List[str]] = None
    ) -> "CheckSummary":
        summary = cls(total=len(results), stale_baseline_entries=list(stale or []))
        for result in results:
            if result.is_passed:
                summary.passed += 1
            elif result.is_warning:
                summary.warnings += 1
            elif result.is_failed:
                summary.failed += 1
            else:
                summary.grandfathered += 1
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "warnings": self.warnings,
            "failed": self.failed,
            "grandfathered": self.grandfathered,
            "stale_baseline_entries": list(self.stale_baseline_entries),
        }


@dataclass
class CheckContext:
    """Context passed to formatters alongside results."""

    summary: CheckSummary
    files_scanned: int = 0
    directories_scanned: int = 0
    structure_enabled: bool = True
    expired_rules: List[str] = field(default_factory=list)
