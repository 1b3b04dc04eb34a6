"""Where sloc-guard keeps its state files.

State lives under ``.git/sloc-guard/`` inside a git checkout so that it is
never committed by accident, and under ``.sloc-guard/`` otherwise. The
baseline is different: it is meant to be committed, so it sits at the
project root.
"""

from pathlib import Path
from typing import Optional

from .config.loader import CONFIG_FILENAME

STATE_DIRNAME = ".sloc-guard"
GIT_STATE_DIRNAME = "sloc-guard"
CACHE_FILENAME = "cache.json"
HISTORY_FILENAME = "history.json"
BASELINE_FILENAME = ".sloc-guard-baseline.json"


def discover_project_root(start: Optional[Path] = None) -> Path:
    """Nearest ancestor holding ``.git`` or a project config; else *start*."""
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        if (directory / ".git").exists() or (directory / CONFIG_FILENAME).is_file():
            return directory
    return origin


def state_dir(project_root: Path) -> Path:
    git_dir = project_root / ".git"
    if git_dir.is_dir():
        return git_dir / GIT_STATE_DIRNAME
    return project_root / STATE_DIRNAME


def cache_path(project_root: Path) -> Path:
    return state_dir(project_root) / CACHE_FILENAME


def history_path(project_root: Path) -> Path:
    return state_dir(project_root) / HISTORY_FILENAME


def baseline_path(project_root: Path) -> Path:
    return project_root / BASELINE_FILENAME
