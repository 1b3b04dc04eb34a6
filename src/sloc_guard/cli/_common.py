"""Shared CLI helpers."""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .. import EXIT_INTERRUPTED
from ..config import LoadedConfig, load_config
from ..exceptions import ConfigurationError, SlocGuardError
from ..logging_config import diagnostics_console, get_logger

console = Console()
err_console = diagnostics_console

logger = get_logger(__name__)


@contextmanager
def guarded(action: str) -> Iterator[None]:
    """Map sloc-guard errors and interrupts to exit codes."""
    try:
        yield
    except typer.Exit:
        raise
    except SlocGuardError as e:
        logger.debug(f"{e.__class__.__name__}: {e}")
        label = "Configuration error" if isinstance(e, ConfigurationError) else "Error"
        err_console.print(f"[red]{label}:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        logger.info(f"{action} interrupted by user")
        err_console.print(f"\n[yellow]{action} interrupted[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)


def resolve_config(
    config: Optional[Path] = None,
    no_config: bool = False,
    no_extends: bool = False,
    **overrides: Any,
) -> LoadedConfig:
    """Build configuration from CLI options."""
    return load_config(
        config_file=config,
        no_config=no_config,
        no_extends=no_extends,
        **overrides,
    )


def build_overrides(
    max_lines: Optional[int] = None,
    warn_threshold: Optional[float] = None,
    count_comments: bool = False,
    count_blank: bool = False,
    extensions: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    no_gitignore: bool = False,
    max_files: Optional[int] = None,
    max_dirs: Optional[int] = None,
    max_depth: Optional[int] = None,
    strict: bool = False,
    fail_fast: bool = False,
    ratchet: Optional[str] = None,
) -> Dict[str, Any]:
    """Translate check options into load_config overrides; unset options stay None."""
    return {
        "max_lines": max_lines,
        "warn_threshold": warn_threshold,
        "skip_comments": False if count_comments else None,
        "skip_blank": False if count_blank else None,
        "extensions": list(extensions) if extensions else None,
        "exclude": list(exclude) if exclude else None,
        "gitignore": False if no_gitignore else None,
        "max_files": max_files,
        "max_dirs": max_dirs,
        "max_depth": max_depth,
        "warnings_as_errors": True if strict else None,
        "fail_fast": True if fail_fast else None,
        "ratchet": ratchet,
    }
