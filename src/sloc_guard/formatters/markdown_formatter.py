"""Markdown formatter: a table suitable for PR comments."""

from typing import List

from ..models import CheckContext, CheckResult
from .base import BaseFormatter, describe_result, reportable


def _cell(text: str) -> str:
    return text.replace("|", "\\|")


class MarkdownFormatter(BaseFormatter):
    def render(self, results: List[CheckResult], context: CheckContext) -> None:
        print(self.format(results, context))

    def format(self, results: List[CheckResult], context: CheckContext) -> str:
        s = context.summary
        lines = [
            "## sloc-guard",
            "",
            f"**{s.failed}** failed, **{s.warnings}** warnings, "
            f"**{s.grandfathered}** grandfathered, **{s.passed}** passed "
            f"({context.files_scanned} files scanned)",
            "",
        ]
        rows = reportable(results)
        if rows:
            lines.append("| Status | Path | Category | Details |")
            lines.append("|--------|------|----------|---------|")
            for r in rows:
                lines.append(
                    f"| {r.status.value} | `{_cell(r.path)}` | {r.violation_category.value} "
                    f"| {_cell(describe_result(r))} |"
                )
            lines.append("")
        if s.stale_baseline_entries:
            lines.append("**Stale baseline entries:** " + ", ".join(f"`{p}`" for p in s.stale_baseline_entries))
            lines.append("")
        return "\n".join(lines)
