"""
Logging for sloc-guard.

stdout carries the report and nothing else, so ``--format json`` or
``sarif`` output can be piped straight into another tool. Every log
record and every CLI error message goes to stderr through one shared rich
console so the two never interleave out of order.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "sloc_guard"

# Resolves sys.stderr at write time, so test runners that swap the stream
# still capture it.
diagnostics_console = Console(stderr=True)


def level_for(verbose: bool = False, quiet: bool = False) -> int:
    """``--quiet`` wins over ``--verbose``; the default shows warnings."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Attach handlers to the ``sloc_guard`` logger only.

    Calling it again replaces the previous handlers, so repeated CLI
    invocations in one process do not duplicate output. The root logger is
    left alone for programs that embed sloc-guard.

    Args:
        verbose: Enable DEBUG level logging with timestamps and call sites
        quiet: Suppress all but ERROR level logging
        log_file: Optional file that receives every record at DEBUG level

    Returns:
        The configured ``sloc_guard`` logger
    """
    level = level_for(verbose, quiet)
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=diagnostics_console,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG if log_file else level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``sloc_guard`` namespace; bare names are prefixed."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
