"""Root of the sloc-guard exception hierarchy.

Policy violations are results, never exceptions. Anything raised from this
hierarchy means the run itself could not be carried out, and the CLI exits
with the error's ``exit_code``.
"""

from typing import Dict, Optional

from .. import EXIT_CONFIG_ERROR


class SlocGuardError(Exception):
    """Base exception for all sloc-guard errors."""

    exit_code = EXIT_CONFIG_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        # "Invalid config file: a.toml: expected '='" rather than repeating
        # the path in a details suffix.
        text = self.message
        reason = self.details.get("reason")
        if reason:
            text = f"{text}: {reason}"
        extra = [
            f"{k}={v}"
            for k, v in self.details.items()
            if k != "reason" and v and v not in self.message
        ]
        if extra:
            text = f"{text} ({', '.join(extra)})"
        return text
