"""JSON formatter for sloc-guard."""

import json
from typing import Any, Dict, List, Tuple

from ..models import CheckContext, CheckResult
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render ``{summary, results}`` as JSON."""

    def render(self, results: List[CheckResult], context: CheckContext) -> None:
        print(self.format(results, context))

    def format(self, results: List[CheckResult], context: CheckContext) -> str:
        data = {
            "summary": context.summary.to_dict(),
            "files_scanned": context.files_scanned,
            "directories_scanned": context.directories_scanned,
            "expired_rules": list(context.expired_rules),
            "results": [r.to_dict() for r in results],
        }
        return json.dumps(data, indent=2)


def parse_report(text: str) -> Tuple[Dict[str, Any], List[CheckResult]]:
    """Inverse of JsonFormatter.format: (summary dict, results)."""
    data = json.loads(text)
    return data["summary"], [CheckResult.from_dict(r) for r in data["results"]]
