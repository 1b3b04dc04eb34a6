"""Explain command: show which rule governs a path."""

from pathlib import Path
from typing import Optional

import click
import typer

from ..explain import explain_path, render_explanation
from . import app
from ._common import console, guarded, resolve_config


@app.command()
def explain(
    path: Path = typer.Argument(..., help="File or directory to explain"),
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
    no_config: bool = typer.Option(False, "--no-config", help="Ignore all configuration files"),
    fmt: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format",
        click_type=click.Choice(["text", "json"], case_sensitive=False),
    ),
    directory: Optional[bool] = typer.Option(
        None,
        "--directory/--file",
        help="Force the structure or content trace (default: based on what is on disk)",
    ),
):
    """
    Explain which rule sets the limits for PATH and which rules lost.

    [bold cyan]Examples:[/bold cyan]

      sloc-guard explain src/generated/types.rs

      sloc-guard explain src/components --format json
    """
    with guarded("Explain"):
        loaded = resolve_config(config, no_config)
        explanation = explain_path(path, loaded.config, as_directory=directory)
        if fmt.lower() == "json":
            print(explanation.to_json())
        else:
            render_explanation(explanation, console)
