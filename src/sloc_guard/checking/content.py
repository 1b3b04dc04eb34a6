"""Content checks: line counts against the resolved line budget."""

from typing import Optional

from ..config.models import ContentConfig
from ..counting import LineStats
from ..models import CheckResult, CheckStatus, ViolationCategory
from .resolver import ContentResolution, ContentResolver


def classify(sloc: int, resolution: ContentResolution) -> CheckStatus:
    limit = resolution.limit
    if sloc > limit:
        return CheckStatus.FAILED
    if resolution.warn_at is not None:
        return CheckStatus.WARNING if sloc >= resolution.warn_at else CheckStatus.PASSED
    if resolution.warn_threshold is not None and limit > 0:
        if sloc / limit >= resolution.warn_threshold:
            return CheckStatus.WARNING
    return CheckStatus.PASSED


def _suggestions(sloc: int, limit: int) -> tuple:
    over = sloc - limit
    return (
        f"Remove at least {over} line{'s' if over != 1 else ''} to get under {limit}",
        "Split the file by responsibility into smaller modules",
    )


class ContentChecker:
    """Applies the resolved content rule to a file's line counts."""

    def __init__(self, config: ContentConfig):
        self.resolver = ContentResolver(config)

    def check(self, path: str, stats: LineStats) -> Optional[CheckResult]:
        """Check one file. Returns None when the file is excluded from content checks."""
        resolution = self.resolver.resolve(path)
        if resolution.is_excluded:
            return None
        return self.check_resolved(path, stats, resolution)

    def check_resolved(
        self, path: str, stats: LineStats, resolution: ContentResolution
    ) -> CheckResult:
        effective = stats.effective(resolution.skip_comments, resolution.skip_blank)
        sloc = effective.sloc
        status = classify(sloc, resolution)
        return CheckResult(
            path=path,
            status=status,
            limit=resolution.limit,
            stats=effective,
            raw_stats=stats,
            override_reason=resolution.reason,
            violation_category=ViolationCategory.CONTENT,
            triggering_rule_pattern=resolution.pattern,
            suggestions=_suggestions(sloc, resolution.limit) if status == CheckStatus.FAILED else (),
        )
