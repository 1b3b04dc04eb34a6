"""
Changed-file queries for ``check --diff`` and ``check --staged``.

Only content checks are narrowed to the changed files. Structure checks
still see the whole tree, because a directory's file count depends on
files nobody touched.
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Set

from .exceptions import GitError
from .logging_config import get_logger

logger = get_logger(__name__)

GIT_TIMEOUT_SECONDS = 30


def _git(repo_path: Path, *args: str) -> str:
    command = " ".join(args)
    try:
        result = subprocess.run(
            ["git", "-C", str(repo_path), *args],
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as e:
        raise GitError(command, "git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(command, f"timed out after {GIT_TIMEOUT_SECONDS}s") from e
    if result.returncode != 0:
        raise GitError(command, result.stderr.strip() or f"exit status {result.returncode}")
    return result.stdout


def repository_root(path: Path) -> Path:
    """Top of the working tree containing *path*."""
    return Path(_git(path, "rev-parse", "--show-toplevel").strip()).resolve()


def diff_arguments(diff_ref: Optional[str], staged: bool) -> List[str]:
    """
    ``git diff`` arguments for a changed-files query.

    A single ref is compared with HEAD; ``base..target`` compares the two
    committed trees as written. ``staged`` compares the index with HEAD.
    """
    if staged:
        return ["diff", "--name-only", "-z", "--cached"]
    if not diff_ref:
        raise ValueError("diff_ref is required unless staged is set")
    if ".." in diff_ref:
        return ["diff", "--name-only", "-z", diff_ref]
    return ["diff", "--name-only", "-z", diff_ref, "HEAD"]


def changed_files(start: Path, diff_ref: Optional[str] = None, staged: bool = False) -> Set[Path]:
    """
    Absolute paths of the files git reports as changed.

    Raises:
        GitError: Not inside a repository, unknown ref, or git missing
    """
    top = repository_root(start)
    output = _git(top, *diff_arguments(diff_ref, staged))
    paths = {(top / name).resolve() for name in output.split("\0") if name}
    logger.debug(f"git reports {len(paths)} changed files ({'staged' if staged else diff_ref})")
    return paths
