"""CLI entry point: registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ..logging_config import setup_logging
from ._common import console

app = typer.Typer(
    name="sloc-guard",
    help="sloc-guard - source size and directory structure policy enforcement",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]sloc-guard[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)


@app.callback()
def _root(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[str] = typer.Option(
        None,
        "--log-file",
        help="Also write logs to this file",
        hidden=True,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """
    Check source files against line budgets and directories against structure rules.

    [bold cyan]Examples:[/bold cyan]

      sloc-guard check

      sloc-guard check src --format json

      sloc-guard explain src/main.rs
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)


def main() -> None:
    app()


# Import subcommands to register them
from .check import check as _check  # noqa: F401, E402
from .explain import explain as _explain  # noqa: F401, E402
from .baseline import baseline as _baseline  # noqa: F401, E402
from .validate import validate as _validate  # noqa: F401, E402
from .presets import presets as _presets  # noqa: F401, E402
from .trend import trend as _trend  # noqa: F401, E402
