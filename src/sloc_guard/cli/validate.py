"""Validate command: load the configuration and report problems."""

from pathlib import Path
from typing import Optional

import typer

from ..config import collect_expired_rules
from . import app
from ._common import console, guarded, resolve_config


@app.command()
def validate(
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    no_extends: bool = typer.Option(False, "--no-extends", help="Do not follow 'extends'"),
):
    """Check that the configuration loads, and list expired rules."""
    with guarded("Validate"):
        loaded = resolve_config(config, no_extends=no_extends)

    sources = ", ".join(loaded.sources) or "built-in defaults"
    console.print(f"[green]Configuration is valid[/green] ({sources})")
    if loaded.preset_used:
        console.print(f"  preset: {loaded.preset_used}")

    cfg = loaded.config
    console.print(
        f"  {len(cfg.content.rules)} content rules, {len(cfg.content.overrides)} content overrides, "
        f"{len(cfg.structure.rules)} structure rules, {len(cfg.structure.overrides)} structure overrides"
    )
    for rule in collect_expired_rules(cfg):
        console.print(f"[yellow]expired:[/yellow] {rule.describe()}", highlight=False)
