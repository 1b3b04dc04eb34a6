"""Directory walkers with subtree pruning.

Both walkers yield one ``WalkEntry`` per visited entry, the scan root first.
A directory rejected by the prune callback (or ignored by git) is neither
yielded nor descended into.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from ..exceptions import ScanError
from ..logging_config import get_logger
from ..matching import normalize_path, parent_path, path_name
from ..state import discover_project_root
from .gitignore import GitIgnoreRule, matches_gitignore, parse_gitignore_file

logger = get_logger(__name__)


@dataclass(frozen=True)
class WalkEntry:
    """One entry seen by the walker."""

    name: str
    # Display path: the scan root joined with ``rel``.
    key: str
    # Path relative to the scan root ("." for the root itself).
    rel: str
    abs_path: Path
    is_dir: bool
    # Depth under the scan root (root = 0).
    depth: int


class TreeWalker:
    """Plain recursive walk, sorted by name for deterministic output."""

    def __init__(
        self,
        root: Path,
        should_prune: Optional[Callable[[WalkEntry], bool]] = None,
        root_key: Optional[str] = None,
    ):
        self.root = Path(root)
        self.root_key = normalize_path(root_key if root_key is not None else root)
        self.should_prune = should_prune or (lambda entry: False)

    def _join(self, rel: str) -> str:
        if self.root_key == ".":
            return rel
        if self.root_key == "/":
            return "/" + rel
        return f"{self.root_key}/{rel}"

    def walk(self) -> Iterator[WalkEntry]:
        if not self.root.exists():
            raise ScanError(self.root, "path does not exist")
        if not self.root.is_dir():
            raise ScanError(self.root, "not a directory")

        root_entry = WalkEntry(
            name=path_name(self.root_key),
            key=self.root_key,
            rel=".",
            abs_path=self.root,
            is_dir=True,
            depth=0,
        )
        yield root_entry

        stack = [root_entry]
        while stack:
            directory = stack.pop()
            self._enter_directory(directory)
            subdirs = []
            for child in self._list_children(directory):
                if self._is_ignored(child) or self.should_prune(child):
                    continue
                yield child
                if child.is_dir:
                    subdirs.append(child)
            stack.extend(reversed(subdirs))

    def _list_children(self, directory: WalkEntry) -> List[WalkEntry]:
        try:
            with os.scandir(directory.abs_path) as it:
                dir_entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            if directory.depth == 0:
                raise ScanError(directory.abs_path, f"cannot list directory: {e}")
            logger.warning(f"Cannot list {directory.key}: {e}")
            return []

        children = []
        for entry in dir_entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    is_dir = True
                elif entry.is_symlink() and entry.is_dir():
                    logger.debug(f"Not following directory symlink: {entry.path}")
                    continue
                elif entry.is_file():
                    is_dir = False
                else:
                    continue
            except OSError as e:
                logger.warning(f"Cannot stat {entry.path}: {e}")
                continue

            rel = entry.name if directory.rel == "." else f"{directory.rel}/{entry.name}"
            children.append(
                WalkEntry(
                    name=entry.name,
                    key=self._join(rel),
                    rel=rel,
                    abs_path=Path(entry.path),
                    is_dir=is_dir,
                    depth=directory.depth + 1,
                )
            )
        return children

    def _enter_directory(self, directory: WalkEntry) -> None:
        pass

    def _is_ignored(self, entry: WalkEntry) -> bool:
        return False


class GitignoreWalker(TreeWalker):
    """Walker that honours ``.gitignore`` files and ``.git/info/exclude``.

    Rules are matched against paths relative to the project root, so a scan
    rooted in a subdirectory still sees the ``.gitignore`` files above it.
    """

    def __init__(
        self,
        root: Path,
        should_prune: Optional[Callable[[WalkEntry], bool]] = None,
        root_key: Optional[str] = None,
        project_root: Optional[Path] = None,
    ):
        super().__init__(root, should_prune, root_key)
        self._rules: Dict[str, List[GitIgnoreRule]] = {}
        resolved = self.root.resolve()
        top = Path(project_root).resolve() if project_root is not None else discover_project_root(resolved)
        try:
            self._prefix = normalize_path(resolved.relative_to(top))
        except ValueError:
            top, self._prefix = resolved, "."
        self._project_root = top

    def _project_rel(self, rel: str) -> str:
        if self._prefix == ".":
            return rel
        if rel == ".":
            return self._prefix
        return f"{self._prefix}/{rel}"

    def _ancestor_rules(self) -> List[GitIgnoreRule]:
        """Rules from the project root down to the scan root's parent."""
        rules = parse_gitignore_file(self._project_root / ".git" / "info" / "exclude", ".")
        if self._prefix == ".":
            return rules
        directory, source = self._project_root, "."
        for part in self._prefix.split("/")[:-1]:
            rules += parse_gitignore_file(directory / ".gitignore", source)
            directory = directory / part
            source = part if source == "." else f"{source}/{part}"
        rules += parse_gitignore_file(directory / ".gitignore", source)
        return rules

    def _enter_directory(self, directory: WalkEntry) -> None:
        if directory.rel == ".":
            inherited = self._ancestor_rules()
        else:
            inherited = self._rules.get(parent_path(directory.rel), [])
        own = parse_gitignore_file(directory.abs_path / ".gitignore", self._project_rel(directory.rel))
        self._rules[directory.rel] = inherited + own if own else inherited

    def _is_ignored(self, entry: WalkEntry) -> bool:
        rules = self._rules.get(parent_path(entry.rel), [])
        if not rules:
            return False
        if matches_gitignore(self._project_rel(entry.rel), entry.is_dir, rules):
            logger.debug(f"Ignored by .gitignore: {entry.key}")
            return True
        return False


def make_walker(
    root: Path,
    use_gitignore: bool,
    should_prune: Optional[Callable[[WalkEntry], bool]] = None,
    root_key: Optional[str] = None,
    project_root: Optional[Path] = None,
) -> TreeWalker:
    if use_gitignore:
        return GitignoreWalker(root, should_prune, root_key, project_root)
    return TreeWalker(root, should_prune, root_key)
