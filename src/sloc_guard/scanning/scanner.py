"""Structure-aware directory scanning.

One walk per scan root produces the file list, the per-directory
immediate-child counts and the allow/deny/naming violations. Entries
matching ``scanner.exclude`` are pruned: excluded directories are never
descended into, so their contents do not reach any count.
"""

import os
from pathlib import Path
from typing import Optional, Sequence, Set, Tuple

from ..config.models import SlocGuardConfig
from ..logging_config import get_logger
from ..matching import GlobSet, normalize_path, parent_path
from ..models import StructureViolation, ViolationType
from .allowlist import compile_global_lists, compile_rules, find_rule_for_directory
from .models import DirStats, FileFilter, ScanResult
from .walker import WalkEntry, make_walker

logger = get_logger(__name__)

GLOBAL_RULE = "global"


def _is_within(key: str, root_key: str) -> bool:
    if root_key == ".":
        return not key.startswith("/")
    return key == root_key or key.startswith(root_key.rstrip("/") + "/")


class StructureScanner:
    """Walks scan roots and collects files, directory stats and inline violations."""

    def __init__(
        self,
        config: SlocGuardConfig,
        file_filter: FileFilter,
        use_gitignore: Optional[bool] = None,
        base_dir: Optional[Path] = None,
    ):
        """
        Initialize scanner.

        Args:
            config: Loaded configuration
            file_filter: Decides which files go to the content checks
            use_gitignore: Overrides ``scanner.gitignore`` when not None
            base_dir: Directory display paths are relative to (default: cwd)
        """
        self.file_filter = file_filter
        self.use_gitignore = config.scanner.gitignore if use_gitignore is None else use_gitignore
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.scanner_exclude = GlobSet(config.scanner.exclude)
        self.count_exclude = GlobSet(config.structure.count_exclude)
        self.global_lists = compile_global_lists(config.structure)
        self.rules = compile_rules(config.structure)

    # -- exclusion -----------------------------------------------------------

    def _matches_any(self, globs: GlobSet, entry: WalkEntry) -> bool:
        return (
            globs.matches(entry.rel, entry.is_dir)
            or globs.matches(entry.key, entry.is_dir)
            or globs.matches(entry.name, entry.is_dir)
        )

    def is_scanner_excluded(self, entry: WalkEntry) -> bool:
        return entry.depth > 0 and self._matches_any(self.scanner_exclude, entry)

    def is_count_excluded(self, entry: WalkEntry) -> bool:
        return bool(self.count_exclude) and self._matches_any(self.count_exclude, entry)

    # -- roots ---------------------------------------------------------------

    def _resolve_root(self, root: Path) -> Tuple[Path, str]:
        """On-disk path and display key of a scan root."""
        root = Path(root)
        disk = root if root.is_absolute() else self.base_dir / root
        try:
            rel = disk.resolve().relative_to(self.base_dir.resolve())
            return disk, normalize_path(rel)
        except (ValueError, OSError):
            return disk, normalize_path(disk)

    def scan(self, roots: Sequence[Path]) -> ScanResult:
        """
        Walk every root once and return the combined ScanResult.

        Raises:
            ScanError: If a root is missing or cannot be listed
        """
        result = ScanResult()
        seen: Set[Tuple[str, ViolationType]] = set()

        resolved = sorted((self._resolve_root(r) for r in roots), key=lambda item: len(item[1]))
        for disk, root_key in resolved:
            if any(_is_within(root_key, done) for done in result.roots):
                logger.debug(f"Skipping nested scan root {root_key}")
                continue
            result.roots.append(root_key)
            walker = make_walker(disk, self.use_gitignore, self.is_scanner_excluded, root_key)
            for entry in walker.walk():
                if entry.is_dir:
                    self._process_directory(entry, result, seen)
                else:
                    self._process_file(entry, result, seen)

        logger.debug(
            f"Scan complete: {len(result.files)} files to check, "
            f"{len(result.dir_stats)} directories, "
            f"{len(result.allowlist_violations)} inline violations"
        )
        return result

    # -- entries -------------------------------------------------------------

    def _add(
        self, result: ScanResult, seen: Set[Tuple[str, ViolationType]], violation: StructureViolation
    ) -> None:
        key = violation.dedup_key()
        if key in seen:
            return
        seen.add(key)
        result.allowlist_violations.append(violation)

    def _process_file(
        self, entry: WalkEntry, result: ScanResult, seen: Set[Tuple[str, ViolationType]]
    ) -> None:
        result.all_files[entry.key] = entry.abs_path
        if self.file_filter.accepts(entry.key):
            result.files[entry.key] = entry.abs_path

        if self.is_count_excluded(entry):
            return

        parent = parent_path(entry.key)
        stats = result.dir_stats.setdefault(parent, DirStats(depth=entry.depth - 1))
        stats.file_count += 1
        self._check_file(entry, parent, result, seen)

    def _check_file(
        self,
        entry: WalkEntry,
        parent: str,
        result: ScanResult,
        seen: Set[Tuple[str, ViolationType]],
    ) -> None:
        path, name = entry.key, entry.name
        lists = self.global_lists

        if lists.has_file_allowlist and not lists.file_allowed(path, name):
            self._add(result, seen, StructureViolation.disallowed_file(path, GLOBAL_RULE))
            return

        rule = find_rule_for_directory(self.rules, parent)

        denied = lists.file_denied(path, name)
        if denied is not None and not (rule and rule.lists.file_allowed(path, name)):
            self._add(result, seen, StructureViolation.denied_file(path, GLOBAL_RULE, denied))
            return

        if rule is None:
            return

        denied = rule.lists.file_denied(path, name)
        if denied is not None:
            self._add(result, seen, StructureViolation.denied_file(path, rule.scope, denied))
            return

        if rule.lists.has_file_allowlist and not rule.lists.file_allowed(path, name):
            self._add(result, seen, StructureViolation.disallowed_file(path, rule.scope))

        if not rule.name_matches_convention(name):
            self._add(
                result,
                seen,
                StructureViolation.naming_convention(path, rule.scope, rule.rule.file_naming_pattern),
            )

    def _process_directory(
        self, entry: WalkEntry, result: ScanResult, seen: Set[Tuple[str, ViolationType]]
    ) -> None:
        stats = result.dir_stats.setdefault(entry.key, DirStats())
        stats.depth = entry.depth
        if entry.depth == 0:
            return

        parent = parent_path(entry.key)
        if not self.is_count_excluded(entry):
            result.dir_stats.setdefault(parent, DirStats(depth=entry.depth - 1)).dir_count += 1
        self._check_directory(entry, parent, result, seen)

    def _check_directory(
        self,
        entry: WalkEntry,
        parent: str,
        result: ScanResult,
        seen: Set[Tuple[str, ViolationType]],
    ) -> None:
        path, name = entry.key, entry.name
        lists = self.global_lists

        if lists.has_dir_allowlist and not lists.dir_allowed(path, name):
            self._add(result, seen, StructureViolation.disallowed_directory(path, GLOBAL_RULE))
            return

        rule = find_rule_for_directory(self.rules, parent)

        denied = lists.dir_denied(path, name)
        if denied is not None and not (rule and rule.lists.dir_allowed(path, name)):
            self._add(result, seen, StructureViolation.denied_directory(path, GLOBAL_RULE, denied))
            return

        if rule is None:
            return

        denied = rule.lists.dir_denied(path, name)
        if denied is not None:
            self._add(result, seen, StructureViolation.denied_directory(path, rule.scope, denied))
            return

        if rule.lists.has_dir_allowlist and not rule.lists.dir_allowed(path, name):
            self._add(result, seen, StructureViolation.disallowed_directory(path, rule.scope))


def scan_files_only(
    paths: Sequence[Path], file_filter: FileFilter, base_dir: Optional[Path] = None
) -> ScanResult:
    """File-list mode: no walk, no structure data, just the filtered files."""
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    result = ScanResult()
    for path in paths:
        path = Path(path)
        disk = path if path.is_absolute() else base / path
        try:
            key = normalize_path(os.path.relpath(disk, base))
        except ValueError:
            key = normalize_path(disk)
        if key.startswith("../") or key == "..":
            key = normalize_path(disk)
        if not disk.is_file():
            logger.warning(f"Skipping {key}: not a file")
            continue
        result.all_files[key] = disk
        if file_filter.accepts(key):
            result.files[key] = disk
    return result

