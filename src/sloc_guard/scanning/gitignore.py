"""``.gitignore`` parsing and matching.

Rules are kept in file order and evaluated last-match-wins, so a later
``!pattern`` re-includes what an earlier pattern ignored. A pattern with a
slash anywhere but the end is anchored to the directory holding its
``.gitignore``; otherwise it matches a name at any depth below it.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from ..exceptions import InvalidPatternError
from ..logging_config import get_logger
from ..matching import GlobPattern, compile_glob, path_name

logger = get_logger(__name__)


@dataclass(frozen=True)
class GitIgnoreRule:
    """A single .gitignore rule."""

    pattern: str
    negation: bool
    directory_only: bool
    anchored: bool
    # Directory holding the .gitignore, relative to the scan root ("." for the root).
    source_dir: str
    glob: GlobPattern

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.source_dir != ".":
            prefix = self.source_dir + "/"
            if not rel_path.startswith(prefix):
                return False
            rel_path = rel_path[len(prefix):]
        if self.anchored:
            if self.glob.basename_only and "/" in rel_path:
                return False
            return self.glob.matches(rel_path)
        return self.glob.matches(path_name(rel_path))


def parse_gitignore_lines(lines: Iterable[str], source_dir: str) -> List[GitIgnoreRule]:
    """Parse .gitignore lines into rules; malformed patterns are skipped."""
    rules = []
    for raw in lines:
        line = raw.rstrip("\n\r")
        if not line.strip() or line.startswith("#"):
            continue
        if line.startswith("\\#") or line.startswith("\\!"):
            line = line[1:]
            negation = False
        else:
            negation = line.startswith("!")
            if negation:
                line = line[1:]
        line = line.rstrip(" ")

        directory_only = line.endswith("/")
        if directory_only:
            line = line.rstrip("/")

        anchored = line.startswith("/")
        if anchored:
            line = line.lstrip("/")
        if "/" in line:
            anchored = True
        if not line:
            continue

        try:
            glob = compile_glob(line)
        except InvalidPatternError as e:
            logger.debug(f"Skipping gitignore pattern {raw.strip()!r}: {e.reason}")
            continue

        rules.append(
            GitIgnoreRule(
                pattern=line,
                negation=negation,
                directory_only=directory_only,
                anchored=anchored,
                source_dir=source_dir,
                glob=glob,
            )
        )
    return rules


def parse_gitignore_file(gitignore_path: Path, source_dir: str) -> List[GitIgnoreRule]:
    """Parse a .gitignore file; a missing or unreadable file has no rules."""
    try:
        with open(gitignore_path, "r", encoding="utf-8", errors="replace") as f:
            return parse_gitignore_lines(f, source_dir)
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(f"Cannot read {gitignore_path}: {e}")
        return []


def matches_gitignore(rel_path: str, is_dir: bool, rules: List[GitIgnoreRule]) -> bool:
    """Check if a path is ignored, respecting negations."""
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negation
    return ignored
