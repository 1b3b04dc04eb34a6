"""Presets command: list built-in presets or print one."""

from typing import Optional

import typer

from ..config import PRESET_PREFIX, available_presets
from ..config.presets import PRESETS
from . import app
from ._common import console, err_console


@app.command()
def presets(
    name: Optional[str] = typer.Argument(None, help="Preset to print"),
):
    """List the built-in presets usable with extends = "preset:<name>"."""
    if name is None:
        for preset in available_presets():
            console.print(f"  {PRESET_PREFIX}{preset}", highlight=False)
        return

    source = PRESETS.get(name.removeprefix(PRESET_PREFIX))
    if source is None:
        err_console.print(
            f"[red]Unknown preset:[/red] {name} (available: {', '.join(available_presets())})"
        )
        raise typer.Exit(1)
    console.print(source.strip(), markup=False, highlight=False)
