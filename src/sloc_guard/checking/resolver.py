"""Rule resolution with an evidence trace.

Content: the first override whose path is a component-aligned suffix of
the file path wins outright. Otherwise the *last* matching content rule
wins and its fields override the ``[content]`` defaults one by one.
Otherwise the defaults apply.

Structure resolution has the same shape, keyed on the directory path.

Every resolution records each candidate it considered, so ``explain`` and
the checkers read from the same data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config.models import UNLIMITED, ContentConfig, StructureConfig
from ..matching import GlobSet, compile_glob, file_extension, matches_suffix, path_depth


class MatchStatus(str, Enum):
    MATCHED = "matched"
    SUPERSEDED = "superseded"
    NO_MATCH = "no_match"
    NOT_APPLICABLE = "not_applicable"


class WarnSource(str, Enum):
    RULE_ABSOLUTE = "rule_absolute"
    RULE_FRACTION = "rule_fraction"
    GLOBAL_ABSOLUTE = "global_absolute"
    GLOBAL_FRACTION = "global_fraction"
    NONE = "none"


class RuleKind(str, Enum):
    OVERRIDE = "override"
    RULE = "rule"
    DEFAULT = "default"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class RuleCandidate:
    """One rule considered during resolution."""

    source: str
    kind: RuleKind
    status: MatchStatus
    pattern: Optional[str] = None
    index: Optional[int] = None
    limits: Dict[str, Any] = field(default_factory=dict)
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "kind": self.kind.value,
            "status": self.status.value,
            "pattern": self.pattern,
            "limits": dict(self.limits),
            "reason": self.reason,
        }


def _statuses(matches: List[bool], winner: Optional[int]) -> List[MatchStatus]:
    statuses = []
    for i, matched in enumerate(matches):
        if i == winner:
            statuses.append(MatchStatus.MATCHED)
        elif matched:
            statuses.append(MatchStatus.SUPERSEDED)
        else:
            statuses.append(MatchStatus.NO_MATCH)
    return statuses


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContentResolution:
    """Effective content limits for one file plus the trace that produced them."""

    path: str
    kind: RuleKind
    limit: int
    warn_at: Optional[int]
    warn_threshold: Optional[float]
    warn_source: WarnSource
    skip_comments: bool
    skip_blank: bool
    candidates: Tuple[RuleCandidate, ...]
    index: Optional[int] = None
    pattern: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_excluded(self) -> bool:
        return self.kind == RuleKind.EXCLUDED

    @property
    def chosen(self) -> Optional[RuleCandidate]:
        for candidate in self.candidates:
            if candidate.status == MatchStatus.MATCHED:
                return candidate
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "matched": {"kind": self.kind.value, "index": self.index, "pattern": self.pattern},
            "effective": {
                "max_lines": self.limit,
                "warn_at": self.warn_at,
                "warn_threshold": self.warn_threshold,
                "warn_source": self.warn_source.value,
                "skip_comments": self.skip_comments,
                "skip_blank": self.skip_blank,
            },
            "reason": self.reason,
            "candidates": [c.to_dict() for c in self.candidates],
        }


class ContentResolver:
    """Resolves the effective content rule for file paths."""

    def __init__(self, config: ContentConfig):
        self.config = config
        self.exclude = GlobSet(config.exclude)
        self._rule_globs = [compile_glob(rule.pattern) for rule in config.rules]

    def _warn(
        self, warn_at: Optional[int], warn_threshold: Optional[float], from_rule: bool
    ) -> Tuple[Optional[int], Optional[float], WarnSource]:
        if from_rule and warn_at is not None:
            return warn_at, None, WarnSource.RULE_ABSOLUTE
        if from_rule and warn_threshold is not None:
            return None, warn_threshold, WarnSource.RULE_FRACTION
        if self.config.warn_at is not None:
            return self.config.warn_at, None, WarnSource.GLOBAL_ABSOLUTE
        if self.config.warn_threshold is not None:
            return None, self.config.warn_threshold, WarnSource.GLOBAL_FRACTION
        return None, None, WarnSource.NONE

    def is_excluded(self, path: str) -> Optional[str]:
        """The ``content.exclude`` pattern matching *path*, or None."""
        pattern = self.exclude.first_match(path, is_dir=False)
        return pattern.source if pattern else None

    def resolve(self, path: str) -> ContentResolution:
        cfg = self.config
        excluded_by = self.is_excluded(path)
        wrong_extension = file_extension(path)[1:].lower() not in cfg.extension_set

        override_matches = [matches_suffix(o.path, path) for o in cfg.overrides]
        override_winner = next((i for i, m in enumerate(override_matches) if m), None)

        rule_matches = [g.matches(path, is_dir=False) for g in self._rule_globs]
        rule_winner = None
        if override_winner is None:
            for i, matched in enumerate(rule_matches):
                if matched:
                    rule_winner = i

        not_applicable = excluded_by is not None or wrong_extension
        candidates: List[RuleCandidate] = []

        for i, (override, status) in enumerate(
            zip(cfg.overrides, _statuses(override_matches, override_winner))
        ):
            candidates.append(
                RuleCandidate(
                    source=f"content.overrides[{i}]",
                    kind=RuleKind.OVERRIDE,
                    status=MatchStatus.NOT_APPLICABLE if not_applicable else status,
                    pattern=override.path,
                    index=i,
                    limits={"max_lines": override.max_lines},
                    reason=override.reason,
                )
            )

        rule_statuses = _statuses(rule_matches, rule_winner)
        for i, (rule, status) in enumerate(zip(cfg.rules, rule_statuses)):
            if override_winner is not None and rule_matches[i]:
                status = MatchStatus.SUPERSEDED
            candidates.append(
                RuleCandidate(
                    source=f"content.rules[{i}]",
                    kind=RuleKind.RULE,
                    status=MatchStatus.NOT_APPLICABLE if not_applicable else status,
                    pattern=rule.pattern,
                    index=i,
                    limits={
                        "max_lines": rule.max_lines if rule.max_lines is not None else cfg.max_lines
                    },
                    reason=rule.reason,
                )
            )

        default_matched = override_winner is None and rule_winner is None
        if not_applicable:
            default_status = MatchStatus.NOT_APPLICABLE
        elif default_matched:
            default_status = MatchStatus.MATCHED
        else:
            default_status = MatchStatus.SUPERSEDED
        candidates.append(
            RuleCandidate(
                source="content (default)",
                kind=RuleKind.DEFAULT,
                status=default_status,
                limits={"max_lines": cfg.max_lines},
            )
        )

        if not_applicable:
            reason = (
                f"excluded by content.exclude '{excluded_by}'"
                if excluded_by is not None
                else "extension not in content.extensions"
            )
            return ContentResolution(
                path=path,
                kind=RuleKind.EXCLUDED,
                limit=0,
                warn_at=None,
                warn_threshold=None,
                warn_source=WarnSource.NONE,
                skip_comments=cfg.skip_comments,
                skip_blank=cfg.skip_blank,
                candidates=tuple(candidates),
                pattern=excluded_by,
                reason=reason,
            )

        if override_winner is not None:
            override = cfg.overrides[override_winner]
            warn_at, warn_threshold, source = self._warn(None, None, False)
            return ContentResolution(
                path=path,
                kind=RuleKind.OVERRIDE,
                limit=override.max_lines,
                warn_at=warn_at,
                warn_threshold=warn_threshold,
                warn_source=source,
                skip_comments=cfg.skip_comments,
                skip_blank=cfg.skip_blank,
                candidates=tuple(candidates),
                index=override_winner,
                pattern=override.path,
                reason=override.reason,
            )

        if rule_winner is not None:
            rule = cfg.rules[rule_winner]
            warn_at, warn_threshold, source = self._warn(rule.warn_at, rule.warn_threshold, True)
            return ContentResolution(
                path=path,
                kind=RuleKind.RULE,
                limit=rule.max_lines if rule.max_lines is not None else cfg.max_lines,
                warn_at=warn_at,
                warn_threshold=warn_threshold,
                warn_source=source,
                skip_comments=(
                    rule.skip_comments if rule.skip_comments is not None else cfg.skip_comments
                ),
                skip_blank=rule.skip_blank if rule.skip_blank is not None else cfg.skip_blank,
                candidates=tuple(candidates),
                index=rule_winner,
                pattern=rule.pattern,
                reason=rule.reason,
            )

        warn_at, warn_threshold, source = self._warn(None, None, False)
        return ContentResolution(
            path=path,
            kind=RuleKind.DEFAULT,
            limit=cfg.max_lines,
            warn_at=warn_at,
            warn_threshold=warn_threshold,
            warn_source=source,
            skip_comments=cfg.skip_comments,
            skip_blank=cfg.skip_blank,
            candidates=tuple(candidates),
        )


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StructureLimits:
    """Effective structure limits; None means unset, UNLIMITED disables a check."""

    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    warn_files_at: Optional[int] = None
    warn_dirs_at: Optional[int] = None
    warn_files_threshold: Optional[float] = None
    warn_dirs_threshold: Optional[float] = None
    warn_depth_threshold: Optional[float] = None
    relative_depth: bool = False
    # Components of the matched scope before its first glob metacharacter.
    base_depth: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_files": self.max_files,
            "max_dirs": self.max_dirs,
            "max_depth": self.max_depth,
            "warn_files_at": self.warn_files_at,
            "warn_dirs_at": self.warn_dirs_at,
            "warn_files_threshold": self.warn_files_threshold,
            "warn_dirs_threshold": self.warn_dirs_threshold,
            "warn_depth_threshold": self.warn_depth_threshold,
            "relative_depth": self.relative_depth,
        }


@dataclass(frozen=True)
class StructureResolution:
    """Effective structure limits for one directory plus the trace."""

    path: str
    kind: RuleKind
    limits: StructureLimits
    candidates: Tuple[RuleCandidate, ...]
    index: Optional[int] = None
    pattern: Optional[str] = None
    reason: Optional[str] = None

    @property
    def chosen(self) -> Optional[RuleCandidate]:
        for candidate in self.candidates:
            if candidate.status == MatchStatus.MATCHED:
                return candidate
        return None

    def effective_depth(self, path: str, depth: int) -> int:
        """Depth the max_depth limit is compared against."""
        if self.limits.relative_depth:
            return max(0, path_depth(path) - self.limits.base_depth)
        return depth

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "matched": {"kind": self.kind.value, "index": self.index, "pattern": self.pattern},
            "effective": self.limits.to_dict(),
            "reason": self.reason,
            "candidates": [c.to_dict() for c in self.candidates],
        }


def is_unlimited(value: Optional[int]) -> bool:
    return value is None or value == UNLIMITED


class StructureResolver:
    """Resolves the effective structure rule for directory paths."""

    def __init__(self, config: StructureConfig):
        self.config = config
        self._rule_globs = [compile_glob(rule.scope) for rule in config.rules]

    def _global_limits(self) -> StructureLimits:
        cfg = self.config
        return StructureLimits(
            max_files=cfg.max_files,
            max_dirs=cfg.max_dirs,
            max_depth=cfg.max_depth,
            warn_files_at=cfg.warn_files_at,
            warn_dirs_at=cfg.warn_dirs_at,
            warn_files_threshold=cfg.warn_threshold,
            warn_dirs_threshold=cfg.warn_threshold,
            warn_depth_threshold=cfg.warn_threshold,
        )

    def resolve(self, path: str) -> StructureResolution:
        cfg = self.config
        defaults = self._global_limits()

        override_matches = [matches_suffix(o.path, path) for o in cfg.overrides]
        override_winner = next((i for i, m in enumerate(override_matches) if m), None)

        rule_matches = [g.matches(path, is_dir=True) for g in self._rule_globs]
        rule_winner = None
        if override_winner is None:
            for i, matched in enumerate(rule_matches):
                if matched:
                    rule_winner = i

        candidates: List[RuleCandidate] = []
        for i, (override, status) in enumerate(
            zip(cfg.overrides, _statuses(override_matches, override_winner))
        ):
            candidates.append(
                RuleCandidate(
                    source=f"structure.overrides[{i}]",
                    kind=RuleKind.OVERRIDE,
                    status=status,
                    pattern=override.path,
                    index=i,
                    limits={
                        "max_files": override.max_files,
                        "max_dirs": override.max_dirs,
                        "max_depth": override.max_depth,
                    },
                    reason=override.reason,
                )
            )

        for i, (rule, status) in enumerate(zip(cfg.rules, _statuses(rule_matches, rule_winner))):
            if override_winner is not None and rule_matches[i]:
                status = MatchStatus.SUPERSEDED
            candidates.append(
                RuleCandidate(
                    source=f"structure.rules[{i}]",
                    kind=RuleKind.RULE,
                    status=status,
                    pattern=rule.scope,
                    index=i,
                    limits={
                        "max_files": rule.max_files,
                        "max_dirs": rule.max_dirs,
                        "max_depth": rule.max_depth,
                    },
                    reason=rule.reason,
                )
            )

        default_matched = override_winner is None and rule_winner is None
        candidates.append(
            RuleCandidate(
                source="structure (default)",
                kind=RuleKind.DEFAULT,
                status=MatchStatus.MATCHED if default_matched else MatchStatus.SUPERSEDED,
                limits={
                    "max_files": cfg.max_files,
                    "max_dirs": cfg.max_dirs,
                    "max_depth": cfg.max_depth,
                },
            )
        )

        if override_winner is not None:
            override = cfg.overrides[override_winner]
            limits = StructureLimits(
                max_files=override.max_files if override.max_files is not None else defaults.max_files,
                max_dirs=override.max_dirs if override.max_dirs is not None else defaults.max_dirs,
                max_depth=override.max_depth if override.max_depth is not None else defaults.max_depth,
                warn_files_at=defaults.warn_files_at if override.max_files is None else None,
                warn_dirs_at=defaults.warn_dirs_at if override.max_dirs is None else None,
                warn_files_threshold=defaults.warn_files_threshold,
                warn_dirs_threshold=defaults.warn_dirs_threshold,
                warn_depth_threshold=defaults.warn_depth_threshold,
            )
            return StructureResolution(
                path=path,
                kind=RuleKind.OVERRIDE,
                limits=limits,
                candidates=tuple(candidates),
                index=override_winner,
                pattern=override.path,
                reason=override.reason,
            )

        if rule_winner is not None:
            rule = cfg.rules[rule_winner]
            limits = StructureLimits(
                max_files=rule.max_files if rule.max_files is not None else defaults.max_files,
                max_dirs=rule.max_dirs if rule.max_dirs is not None else defaults.max_dirs,
                max_depth=rule.max_depth if rule.max_depth is not None else defaults.max_depth,
                warn_files_at=(
                    rule.warn_files_at if rule.warn_files_at is not None else defaults.warn_files_at
                ),
                warn_dirs_at=(
                    rule.warn_dirs_at if rule.warn_dirs_at is not None else defaults.warn_dirs_at
                ),
                warn_files_threshold=_first_set(
                    rule.warn_files_threshold, rule.warn_threshold, defaults.warn_files_threshold
                ),
                warn_dirs_threshold=_first_set(
                    rule.warn_dirs_threshold, rule.warn_threshold, defaults.warn_dirs_threshold
                ),
                warn_depth_threshold=_first_set(rule.warn_threshold, defaults.warn_depth_threshold),
                relative_depth=rule.relative_depth,
                base_depth=self._rule_globs[rule_winner].literal_prefix_depth(),
            )
            return StructureResolution(
                path=path,
                kind=RuleKind.RULE,
                limits=limits,
                candidates=tuple(candidates),
                index=rule_winner,
                pattern=rule.scope,
                reason=rule.reason,
            )

        return StructureResolution(
            path=path, kind=RuleKind.DEFAULT, limits=defaults, candidates=tuple(candidates)
        )


def _first_set(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None
