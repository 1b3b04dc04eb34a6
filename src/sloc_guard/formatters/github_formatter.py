"""GitHub Actions formatter: workflow command annotations."""

from typing import List

from ..models import CheckContext, CheckResult
from .base import BaseFormatter, describe_result


def _escape(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(text: str) -> str:
    return _escape(text).replace(":", "%3A").replace(",", "%2C")


class GithubFormatter(BaseFormatter):
    """Output ``::error`` / ``::warning`` / ``::notice`` annotations."""

    def render(self, results: List[CheckResult], context: CheckContext) -> None:
        print(self.format(results, context))

    def format(self, results: List[CheckResult], context: CheckContext) -> str:
        lines: list[str] = []
        for r in results:
            if r.is_failed:
                level = "error"
            elif r.is_warning:
                level = "warning"
            elif r.is_grandfathered:
                level = "notice"
            else:
                continue
            title = "sloc-guard " + (r.violation.kind.value if r.violation else "max_lines")
            lines.append(
                f"::{level} file={_escape_property(r.path)},title={_escape_property(title)}"
                f"::{_escape(describe_result(r))}"
            )

        for path in context.summary.stale_baseline_entries:
            lines.append(f"::warning file={_escape_property(path)}::{_escape('stale baseline entry')}")

        s = context.summary
        lines.append(
            f"sloc-guard: {s.passed} passed, {s.warnings} warnings, {s.failed} failed, "
            f"{s.grandfathered} grandfathered"
        )
        return "\n".join(lines)
