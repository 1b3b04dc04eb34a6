"""Base formatter interface for sloc-guard output rendering."""

from abc import ABC, abstractmethod
from typing import List

from ..models import CheckContext, CheckResult


def describe_result(result: CheckResult) -> str:
    """One-line human description of a result."""
    if result.violation is None:
        text = f"{result.sloc} lines (limit {result.limit})"
    elif result.violation.kind.is_limit:
        text = f"{result.violation.describe()}: {result.sloc} (limit {result.limit})"
    else:
        text = result.violation.describe()
    if result.override_reason:
        text += f" [reason: {result.override_reason}]"
    return text


def reportable(results: List[CheckResult]) -> List[CheckResult]:
    """Everything except passes."""
    return [r for r in results if not r.is_passed]


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, results: List[CheckResult], context: CheckContext) -> None:
        """Render results to stdout."""

    @abstractmethod
    def format(self, results: List[CheckResult], context: CheckContext) -> str:
        """Return formatted string representation of results."""
