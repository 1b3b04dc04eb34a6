"""
sloc-guard - source size and directory structure policy enforcement.

Checks every file against a line budget and every directory against a
structural budget (file count, subdirectory count, depth, allowed and
denied names, required siblings), then reports violations with a
CI-friendly exit code.
"""

__version__ = "0.4.0"

EXIT_SUCCESS = 0
EXIT_THRESHOLD_EXCEEDED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

__all__ = [
    "__version__",
    "EXIT_SUCCESS",
    "EXIT_THRESHOLD_EXCEEDED",
    "EXIT_CONFIG_ERROR",
    "EXIT_INTERRUPTED",
]
