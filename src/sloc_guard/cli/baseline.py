"""Baseline command."""

from pathlib import Path
from typing import List, Optional

import click
import typer

from ..baseline import Baseline, UpdateMode
from ..file_ops import SaveOutcome
from ..orchestrator import CheckOptions, run_check
from ..state import baseline_path, discover_project_root
from . import app
from ._common import console, guarded, resolve_config


@app.command()
def baseline(
    paths: Optional[List[Path]] = typer.Argument(
        None,
        help="Directories to scan (default: current directory)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Baseline file (default: .sloc-guard-baseline.json at the project root)",
        dir_okay=False,
    ),
    mode: str = typer.Option(
        "all",
        "--mode",
        "-m",
        help="Which failures to record",
        click_type=click.Choice([m.value for m in UpdateMode], case_sensitive=False),
    ),
    show: bool = typer.Option(
        False, "--show",
        help="Show the current baseline instead of writing one",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    no_config: bool = typer.Option(False, "--no-config", help="Ignore all configuration files"),
):
    """Record the current failures so that only new ones fail later checks."""
    target = output or baseline_path(discover_project_root(Path.cwd()))

    with guarded("Baseline"):
        if show:
            store = Baseline.load(target)
            if not len(store):
                console.print("[yellow]No baseline found.[/yellow]")
                raise typer.Exit(0)
            console.print(f"[bold cyan]Baseline[/bold cyan] ({target})")
            for path in store.paths:
                entry = store.get(path)
                if entry.kind == "content":
                    console.print(f"  content    {entry.lines:>6}  {path}")
                else:
                    console.print(f"  structure  {entry.violation_kind:>6}  {path}")
            raise typer.Exit(0)

        loaded = resolve_config(config, no_config)
        options = CheckOptions(
            paths=list(paths or []),
            baseline_file=target,
            update_baseline=UpdateMode(mode.lower()),
        )
        outcome = run_check(options, loaded)

    if outcome.baseline_saved == SaveOutcome.SAVED:
        recorded = outcome.summary.failed + outcome.summary.grandfathered
        console.print(f"[green]Baseline saved to {target} ({recorded} violations)[/green]")
    else:
        console.print(f"[yellow]Baseline not saved: {target} is locked by another run[/yellow]")
