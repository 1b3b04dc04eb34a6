"""Structure checks: per-directory limits and sibling rules."""

import math
from typing import Dict, Iterable, List, Optional

from ..config.models import StructureConfig
from ..models import StructureViolation, ViolationKind
from ..scanning.models import DirStats
from .resolver import StructureResolution, StructureResolver, is_unlimited
from .siblings import SiblingChecker


def limit_outcome(
    actual: int,
    limit: Optional[int],
    warn_at: Optional[int] = None,
    warn_fraction: Optional[float] = None,
) -> Optional[bool]:
    """None when within budget, False when over the limit, True for a warning.

    An absolute ``warn_at`` warns at ``actual >= warn_at``. A fraction warns
    above ``ceil(limit * fraction)``.
    """
    if is_unlimited(limit):
        return None
    if actual > limit:
        return False
    if warn_at is not None:
        return True if actual >= warn_at else None
    if warn_fraction is not None and actual > math.ceil(limit * warn_fraction):
        return True
    return None


class StructureChecker:
    """Checks directory stats against resolved structure limits."""

    def __init__(self, config: StructureConfig):
        self.config = config
        self.resolver = StructureResolver(config)
        self.siblings = SiblingChecker(config)

    def check_directory(self, path: str, stats: DirStats) -> List[StructureViolation]:
        resolution = self.resolver.resolve(path)
        return self._check_resolved(path, stats, resolution)

    def _check_resolved(
        self, path: str, stats: DirStats, resolution: StructureResolution
    ) -> List[StructureViolation]:
        limits = resolution.limits
        checks = (
            (ViolationKind.FILE_COUNT, stats.file_count, limits.max_files,
             limits.warn_files_at, limits.warn_files_threshold),
            (ViolationKind.DIR_COUNT, stats.dir_count, limits.max_dirs,
             limits.warn_dirs_at, limits.warn_dirs_threshold),
            (ViolationKind.MAX_DEPTH, resolution.effective_depth(path, stats.depth),
             limits.max_depth, None, limits.warn_depth_threshold),
        )

        violations = []
        for kind, actual, limit, warn_at, warn_fraction in checks:
            outcome = limit_outcome(actual, limit, warn_at, warn_fraction)
            if outcome is None:
                continue
            violations.append(
                StructureViolation.limit_exceeded(
                    kind,
                    path,
                    actual,
                    limit,
                    is_warning=outcome,
                    override_reason=resolution.reason,
                    rule=resolution.pattern,
                )
            )
        return violations

    def check(self, dir_stats: Dict[str, DirStats]) -> List[StructureViolation]:
        """Check every directory; results sorted by (path, kind)."""
        violations: List[StructureViolation] = []
        for path in sorted(dir_stats):
            violations.extend(self.check_directory(path, dir_stats[path]))
        return violations

    def check_siblings(self, files: Iterable[str]) -> List[StructureViolation]:
        return self.siblings.check(files)
