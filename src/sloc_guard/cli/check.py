"""Check command: the main policy run."""

from pathlib import Path
from typing import List, Optional

import click
import typer

from .. import EXIT_CONFIG_ERROR
from ..baseline import UpdateMode
from ..formatters import FORMATS, get_formatter
from ..orchestrator import CheckOptions, run_check
from . import app
from ._common import build_overrides, err_console, guarded, resolve_config


@app.command()
def check(
    paths: Optional[List[Path]] = typer.Argument(
        None,
        help="Directories or files to scan (default: current directory)",
    ),
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
    no_extends: bool = typer.Option(False, "--no-extends", help="Do not follow 'extends'"),
    fmt: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format",
        click_type=click.Choice(list(FORMATS), case_sensitive=False),
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to a file instead of stdout",
        dir_okay=False,
    ),
    max_lines: Optional[int] = typer.Option(None, "--max-lines", min=1, help="Default line budget"),
    warn_threshold: Optional[float] = typer.Option(
        None, "--warn-threshold", min=0.0, max=1.0, help="Warn at this fraction of the budget"
    ),
    count_comments: bool = typer.Option(False, "--count-comments", help="Count comment lines"),
    count_blank: bool = typer.Option(False, "--count-blank", help="Count blank lines"),
    ext: Optional[List[str]] = typer.Option(
        None, "--ext", help="File extensions to check (replaces content.extensions)"
    ),
    exclude: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x", help="Extra scanner exclude glob"
    ),
    include: Optional[List[Path]] = typer.Option(
        None, "--include", "-i", help="Scan only these directories (replaces PATHS)"
    ),
    files: bool = typer.Option(
        False, "--files", help="Treat PATHS as a literal file list; skips structure checks"
    ),
    diff: Optional[str] = typer.Option(
        None,
        "--diff",
        metavar="REF",
        help="Check only files changed between REF and HEAD (or a base..target range)",
    ),
    staged: bool = typer.Option(False, "--staged", help="Check only files staged in git"),
    max_files: Optional[int] = typer.Option(None, "--max-files", min=-1),
    max_dirs: Optional[int] = typer.Option(None, "--max-dirs", min=-1),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=-1),
    warn_only: bool = typer.Option(False, "--warn-only", help="Always exit 0"),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as failures"),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Stop at the first failure"),
    baseline_file: Optional[Path] = typer.Option(
        None, "--baseline", "-b", help="Baseline file (default: .sloc-guard-baseline.json)"
    ),
    update_baseline: Optional[str] = typer.Option(
        None,
        "--update-baseline",
        help="Rewrite the baseline from this run's failures",
        click_type=click.Choice([m.value for m in UpdateMode], case_sensitive=False),
    ),
    ratchet: Optional[str] = typer.Option(
        None,
        "--ratchet",
        help="How to treat baseline entries that no longer fail",
        click_type=click.Choice(["warn", "auto", "strict"], case_sensitive=False),
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Do not read or write the SLOC cache"),
    no_gitignore: bool = typer.Option(False, "--no-gitignore", help="Ignore .gitignore files"),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=64,
    ),
    show_passed: bool = typer.Option(False, "--show-passed", help="List passing files too"),
):
    """
    Check files against line budgets and directories against structure rules.

    Exit codes: 0 ok, 1 policy violation, 2 configuration or I/O error.

    [bold cyan]Examples:[/bold cyan]

      sloc-guard check

      sloc-guard check src tests --max-lines 400

      sloc-guard check --files src/main.rs src/lib.rs

      sloc-guard check --diff origin/main

      sloc-guard check --format github --strict
    """
    paths = list(paths or [])
    if any(v is not None for v in (max_files, max_dirs, max_depth)) and not paths:
        err_console.print("[red]Error:[/red] --max-files/--max-dirs/--max-depth require an explicit PATH")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    if files and not paths:
        err_console.print("[red]Error:[/red] --files requires at least one file")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    if diff and staged:
        err_console.print("[red]Error:[/red] --diff and --staged are mutually exclusive")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    if (diff or staged) and update_baseline:
        err_console.print("[red]Error:[/red] --update-baseline needs a full run, not --diff/--staged")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    with guarded("Check"):
        overrides = build_overrides(
            max_lines=max_lines,
            warn_threshold=warn_threshold,
            count_comments=count_comments,
            count_blank=count_blank,
            extensions=ext,
            exclude=exclude,
            no_gitignore=no_gitignore,
            max_files=max_files,
            max_dirs=max_dirs,
            max_depth=max_depth,
            strict=strict,
            fail_fast=fail_fast,
            ratchet=ratchet,
        )
        loaded = resolve_config(config, no_config, no_extends, **overrides)
        options = CheckOptions(
            paths=[] if files else paths,
            include=list(include or []),
            files=paths if files else [],
            baseline_file=baseline_file,
            update_baseline=UpdateMode(update_baseline) if update_baseline else None,
            warn_only=warn_only,
            no_cache=no_cache,
            no_gitignore=no_gitignore,
            workers=workers,
            diff_ref=diff,
            staged=staged,
        )
        outcome = run_check(options, loaded)

        formatter = get_formatter(fmt.lower(), show_passed=show_passed)
        if output is not None:
            output.write_text(formatter.format(outcome.results, outcome.context), encoding="utf-8")
            err_console.print(f"Report written to {output}")
        else:
            formatter.render(outcome.results, outcome.context)

    raise typer.Exit(outcome.exit_code)
