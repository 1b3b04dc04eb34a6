"""Explain which rule governs a path and why.

Files get the content trace, directories the structure trace. The trace
comes straight from the resolvers, so what ``explain`` prints is exactly
what ``check`` applies.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from rich.console import Console
from rich.table import Table

from .checking import (
    ContentResolution,
    ContentResolver,
    MatchStatus,
    RuleCandidate,
    StructureResolution,
    StructureResolver,
)
from .config import SlocGuardConfig
from .matching import normalize_path

SECTION_ORDER = (
    (MatchStatus.MATCHED, "Matched"),
    (MatchStatus.SUPERSEDED, "Superseded"),
    (MatchStatus.NO_MATCH, "No match"),
    (MatchStatus.NOT_APPLICABLE, "Not applicable"),
)

STATUS_STYLE = {
    MatchStatus.MATCHED: "green",
    MatchStatus.SUPERSEDED: "yellow",
    MatchStatus.NO_MATCH: "dim",
    MatchStatus.NOT_APPLICABLE: "dim",
}


@dataclass
class Explanation:
    path: str
    target: str  # "file" | "directory"
    resolution: Union[ContentResolution, StructureResolution]

    @property
    def candidates(self) -> List[RuleCandidate]:
        return list(self.resolution.candidates)

    def to_dict(self) -> Dict[str, Any]:
        data = {"target": self.target}
        data.update(self.resolution.to_dict())
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def display_path(path: Path, base_dir: Optional[Path] = None) -> str:
    """Normalized display key for *path*, relative to *base_dir* when inside it."""
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    disk = path if path.is_absolute() else base / path
    rel = os.path.relpath(disk, base)
    if rel == ".." or rel.startswith(".." + os.sep):
        return normalize_path(disk)
    return normalize_path(rel)


def explain_path(
    path: Path,
    config: SlocGuardConfig,
    base_dir: Optional[Path] = None,
    as_directory: Optional[bool] = None,
) -> Explanation:
    """
    Build the explanation for one path.

    Args:
        path: File or directory, absolute or relative to base_dir
        config: Loaded configuration
        base_dir: Directory display paths are relative to (default: cwd)
        as_directory: Force the structure (True) or content (False) trace;
            by default directories on disk get the structure trace
    """
    key = display_path(Path(path), base_dir)
    if as_directory is None:
        base = Path(base_dir) if base_dir is not None else Path.cwd()
        disk = Path(path) if Path(path).is_absolute() else base / path
        as_directory = disk.is_dir()

    if as_directory:
        return Explanation(key, "directory", StructureResolver(config.structure).resolve(key))
    return Explanation(key, "file", ContentResolver(config.content).resolve(key))


def _format_limits(limits: Dict[str, Any]) -> str:
    parts = [f"{name}={value}" for name, value in limits.items() if value is not None]
    return ", ".join(parts) or "-"


def render_explanation(explanation: Explanation, console: Console) -> None:
    """Print the trace as sections, chosen rule first."""
    resolution = explanation.resolution
    console.print(f"[bold]{explanation.path}[/bold] ({explanation.target})")
    console.print()

    for status, title in SECTION_ORDER:
        rows = [c for c in explanation.candidates if c.status == status]
        if not rows:
            continue
        table = Table(title=f"[{STATUS_STYLE[status]}]{title}[/]", title_justify="left", box=None)
        table.add_column("Source")
        table.add_column("Pattern")
        table.add_column("Limits")
        table.add_column("Reason")
        for candidate in rows:
            table.add_row(
                candidate.source,
                candidate.pattern or "",
                _format_limits(candidate.limits),
                candidate.reason or "",
            )
        console.print(table)
        console.print()

    console.print("[bold]Effective[/bold]")
    if isinstance(resolution, ContentResolution):
        if resolution.is_excluded:
            console.print(f"  not checked: {resolution.reason}")
            return
        console.print(f"  max_lines      {resolution.limit}")
        if resolution.warn_at is not None:
            console.print(f"  warn_at        {resolution.warn_at} ({resolution.warn_source.value})")
        elif resolution.warn_threshold is not None:
            console.print(
                f"  warn_threshold {resolution.warn_threshold} ({resolution.warn_source.value})"
            )
        console.print(f"  skip_comments  {str(resolution.skip_comments).lower()}")
        console.print(f"  skip_blank     {str(resolution.skip_blank).lower()}")
    else:
        for name, value in resolution.limits.to_dict().items():
            if value is not None and value is not False:
                console.print(f"  {name:<21}{value}")
    if resolution.reason:
        console.print(f"  reason         {resolution.reason}")
