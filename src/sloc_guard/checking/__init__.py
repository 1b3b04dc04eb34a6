"""Rule resolution and the content, structure and sibling checkers."""

from .content import ContentChecker, classify
from .resolver import (
    ContentResolution,
    ContentResolver,
    MatchStatus,
    RuleCandidate,
    RuleKind,
    StructureLimits,
    StructureResolution,
    StructureResolver,
    WarnSource,
)
from .siblings import SiblingChecker
from .structure import StructureChecker, limit_outcome

__all__ = [
    "ContentChecker",
    "classify",
    "ContentResolution",
    "ContentResolver",
    "MatchStatus",
    "RuleCandidate",
    "RuleKind",
    "StructureLimits",
    "StructureResolution",
    "StructureResolver",
    "WarnSource",
    "SiblingChecker",
    "StructureChecker",
    "limit_outcome",
]
