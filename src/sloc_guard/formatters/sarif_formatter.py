"""SARIF 2.1.0 formatter for code-scanning uploads."""

import json
from typing import Any, Dict, List

from .. import __version__
from ..models import CheckContext, CheckResult
from .base import BaseFormatter, describe_result

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
SARIF_VERSION = "2.1.0"
TOOL_NAME = "sloc-guard"


def rule_id(result: CheckResult) -> str:
    """``sloc-guard/<category>/<kind>``, e.g. ``sloc-guard/structure/file-count``."""
    kind = result.violation.kind.value if result.violation else "max_lines"
    return f"{TOOL_NAME}/{result.violation_category.value}/{kind.replace('_', '-')}"


def _rule_descriptor(rid: str, result: CheckResult) -> Dict[str, Any]:
    if result.violation is None:
        text = "File exceeds its line budget"
    else:
        text = f"Directory or file breaks a structure rule: {result.violation.kind.value}"
    return {
        "id": rid,
        "name": rid.rsplit("/", 1)[-1],
        "shortDescription": {"text": text},
        "defaultConfiguration": {"level": "error"},
    }


def _properties(result: CheckResult) -> Dict[str, Any]:
    props: Dict[str, Any] = {"sloc": result.sloc, "limit": result.limit}
    if not result.is_structure:
        stats = result.raw_stats or result.stats
        props["stats"] = {
            "total": stats.total,
            "code": stats.code,
            "comment": stats.comment,
            "blank": stats.blank,
        }
    if result.override_reason:
        props["overrideReason"] = result.override_reason
    if result.triggering_rule_pattern:
        props["rule"] = result.triggering_rule_pattern
    return props


class SarifFormatter(BaseFormatter):
    """One SARIF result per failed or warning entry."""

    def render(self, results: List[CheckResult], context: CheckContext) -> None:
        print(self.format(results, context))

    def format(self, results: List[CheckResult], context: CheckContext) -> str:
        rules: Dict[str, Dict[str, Any]] = {}
        sarif_results = []
        for r in results:
            if not (r.is_failed or r.is_warning):
                continue
            rid = rule_id(r)
            if rid not in rules:
                rules[rid] = _rule_descriptor(rid, r)
            sarif_results.append(
                {
                    "ruleId": rid,
                    "ruleIndex": list(rules).index(rid),
                    "level": "error" if r.is_failed else "warning",
                    "message": {"text": describe_result(r)},
                    "locations": [
                        {
                            "physicalLocation": {
                                "artifactLocation": {"uri": r.path, "uriBaseId": "%SRCROOT%"}
                            }
                        }
                    ],
                    "properties": _properties(r),
                }
            )

        data = {
            "$schema": SARIF_SCHEMA,
            "version": SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": TOOL_NAME,
                            "version": __version__,
                            "rules": list(rules.values()),
                        }
                    },
                    "results": sarif_results,
                }
            ],
        }
        return json.dumps(data, indent=2)
