"""Rich terminal formatter for sloc-guard."""

import io
from typing import List, Optional

from rich.console import Console

from ..models import CheckContext, CheckResult, CheckStatus
from .base import BaseFormatter, describe_result

STATUS_LABELS = {
    CheckStatus.FAILED: ("FAILED", "red bold"),
    CheckStatus.WARNING: ("WARNING", "yellow"),
    CheckStatus.GRANDFATHERED: ("GRANDFATHERED", "cyan"),
    CheckStatus.PASSED: ("PASSED", "green"),
}

GROUP_ORDER = (CheckStatus.FAILED, CheckStatus.WARNING, CheckStatus.GRANDFATHERED, CheckStatus.PASSED)


class TextFormatter(BaseFormatter):
    """Results grouped by status, followed by a summary line."""

    def __init__(self, show_passed: bool = False, console: Optional[Console] = None):
        self.show_passed = show_passed
        self.console = console or Console()

    def render(self, results: List[CheckResult], context: CheckContext) -> None:
        self._print(self.console, results, context)

    def format(self, results: List[CheckResult], context: CheckContext) -> str:
        buffer = io.StringIO()
        console = Console(file=buffer, width=120, no_color=True, highlight=False)
        self._print(console, results, context)
        return buffer.getvalue()

    def _print(self, console: Console, results: List[CheckResult], context: CheckContext) -> None:
        for expired in context.expired_rules:
            console.print(f"[yellow]expired rule:[/yellow] {expired}", highlight=False)

        for status in GROUP_ORDER:
            if status == CheckStatus.PASSED and not self.show_passed:
                continue
            group = [r for r in results if r.status == status]
            if not group:
                continue
            label, style = STATUS_LABELS[status]
            for result in group:
                console.print(
                    f"[{style}]{label:<13}[/{style}] {result.path}: {describe_result(result)}",
                    highlight=False,
                )
                if status == CheckStatus.FAILED:
                    for suggestion in result.suggestions:
                        console.print(f"              [dim]hint: {suggestion}[/dim]", highlight=False)

        summary = context.summary
        for path in summary.stale_baseline_entries:
            console.print(f"[yellow]stale baseline entry:[/yellow] {path}", highlight=False)

        if results or context.files_scanned:
            console.print()
        parts = [
            f"{context.files_scanned} files",
            f"[green]{summary.passed} passed[/green]",
            f"[yellow]{summary.warnings} warnings[/yellow]",
            f"[red]{summary.failed} failed[/red]",
        ]
        if summary.grandfathered:
            parts.append(f"[cyan]{summary.grandfathered} grandfathered[/cyan]")
        if context.structure_enabled:
            parts.insert(1, f"{context.directories_scanned} directories")
        console.print("Summary: " + ", ".join(parts), highlight=False)
