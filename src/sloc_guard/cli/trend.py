"""Trend CLI command -- show how project line totals change over time."""

import json
from datetime import datetime
from pathlib import Path

import click
import typer
from rich.table import Table

from ..history import TrendHistory
from ..state import discover_project_root, history_path
from . import app
from ._common import console


def _sparkline(values: list) -> str:
    """Generate an ASCII sparkline from a list of numeric values."""
    if not values:
        return ""
    blocks = " ▁▂▃▄▅▆▇█"
    mn, mx = min(values), max(values)
    if mx == mn:
        return blocks[4] * len(values)
    return "".join(
        blocks[min(8, int((v - mn) / (mx - mn) * 8))] for v in values
    )


def _signed(value: int) -> str:
    if value > 0:
        return f"[red]+{value}[/red]"
    if value < 0:
        return f"[green]{value}[/green]"
    return "[dim]0[/dim]"


@app.command()
def trend(
    path: Path = typer.Argument(
        Path("."),
        help="Project directory",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    last_n: int = typer.Option(
        20,
        "--last",
        "-n",
        help="Number of recent snapshots to include",
        min=1,
        max=1000,
    ),
    fmt: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format",
        click_type=click.Choice(["text", "json"], case_sensitive=False),
    ),
):
    """
    Show recorded snapshots of project line totals with deltas.

    Snapshots are recorded after successful checks when
    [bold]trend.auto_snapshot_on_check[/bold] is enabled.
    """
    history = TrendHistory.load(history_path(discover_project_root(path)))
    rows = list(history.deltas())[-last_n:]

    if fmt.lower() == "json":
        print(json.dumps([entry.to_dict() for entry, _ in rows], indent=2))
        return

    if not rows:
        console.print("[yellow]No trend history recorded yet.[/yellow]")
        raise typer.Exit(0)

    console.print(f"Code lines  {_sparkline([entry.code for entry, _ in rows])}")
    table = Table(box=None)
    table.add_column("When")
    table.add_column("Commit")
    table.add_column("Files", justify="right")
    table.add_column("Code", justify="right")
    table.add_column("Δ code", justify="right")
    table.add_column("Comment", justify="right")
    table.add_column("Blank", justify="right")
    for entry, delta in rows:
        table.add_row(
            datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M"),
            (entry.git_ref or "")[:8],
            str(entry.total_files),
            str(entry.code),
            _signed(delta.code) if delta else "",
            str(entry.comment),
            str(entry.blank),
        )
    console.print(table)
