"""Output formatters for sloc-guard."""

from .base import BaseFormatter, describe_result
from .github_formatter import GithubFormatter
from .json_formatter import JsonFormatter, parse_report
from .markdown_formatter import MarkdownFormatter
from .sarif_formatter import SarifFormatter
from .text_formatter import TextFormatter

FORMATS = ("text", "json", "github", "markdown", "sarif")


def get_formatter(name: str, show_passed: bool = False) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "text", "json", "github", "markdown", "sarif"
        show_passed: Include passing files (text output only)

    Returns:
        Formatter instance

    Raises:
        ValueError: If name is not recognized
    """
    if name == "text":
        return TextFormatter(show_passed=show_passed)
    formatters = {
        "json": JsonFormatter,
        "github": GithubFormatter,
        "markdown": MarkdownFormatter,
        "sarif": SarifFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(FORMATS)}")
    return cls()


__all__ = [
    "BaseFormatter",
    "TextFormatter",
    "JsonFormatter",
    "GithubFormatter",
    "MarkdownFormatter",
    "SarifFormatter",
    "FORMATS",
    "describe_result",
    "get_formatter",
    "parse_report",
]
