"""Rule expiration: rules past their ``expires`` date still apply but warn."""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .models import SlocGuardConfig


@dataclass(frozen=True)
class ExpiredRule:
    rule_type: str  # "content" | "structure"
    index: int
    pattern: str
    expires: str
    reason: Optional[str] = None

    def describe(self) -> str:
        suffix = f" (reason: {self.reason})" if self.reason else ""
        return (
            f"{self.rule_type}.rules[{self.index}] (pattern: '{self.pattern}') "
            f"expired on {self.expires}{suffix}"
        )


def is_expired(expires: str, today: date) -> bool:
    return date.fromisoformat(expires) < today


def collect_expired_rules(
    config: SlocGuardConfig, today: Optional[date] = None
) -> List[ExpiredRule]:
    """List every content and structure rule whose date has passed."""
    today = today or date.today()
    expired: List[ExpiredRule] = []

    for i, rule in enumerate(config.content.rules):
        if rule.expires and is_expired(rule.expires, today):
            expired.append(ExpiredRule("content", i, rule.pattern, rule.expires, rule.reason))

    for i, rule in enumerate(config.structure.rules):
        if rule.expires and is_expired(rule.expires, today):
            expired.append(ExpiredRule("structure", i, rule.scope, rule.expires, rule.reason))

    return expired
