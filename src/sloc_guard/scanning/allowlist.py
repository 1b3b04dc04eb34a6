"""Compiled allow/deny lists for files and directories.

``allow_files``/``deny_files`` and ``allow_dirs``/``deny_dirs`` without a
slash match the entry name anywhere; patterns with a slash match the
whole path. Extensions compare case-insensitively with the leading dot.
"""

from typing import Iterable, List, Optional

from ..config.models import StructureConfig, StructureRule
from ..matching import GlobSet, compile_glob, compile_regex, file_extension


def _first_match(globs: GlobSet, path: str, name: str, is_dir: bool) -> Optional[str]:
    pattern = globs.first_match(path, is_dir) or globs.first_match(name, is_dir)
    return pattern.source if pattern else None


class AllowDenyLists:
    """One set of allow/deny lists, global or per rule."""

    def __init__(
        self,
        allow_extensions: Iterable[str] = (),
        allow_patterns: Iterable[str] = (),
        allow_files: Iterable[str] = (),
        allow_dirs: Iterable[str] = (),
        deny_extensions: Iterable[str] = (),
        deny_patterns: Iterable[str] = (),
        deny_files: Iterable[str] = (),
        deny_dirs: Iterable[str] = (),
    ):
        self.allow_extensions: List[str] = [e.lower() for e in allow_extensions]
        self.allow_patterns = GlobSet(allow_patterns)
        self.allow_files = GlobSet(allow_files)
        self.allow_dirs = GlobSet(allow_dirs)
        self.deny_extensions: List[str] = list(deny_extensions)
        self.deny_patterns = GlobSet(deny_patterns)
        self.deny_files = GlobSet(deny_files)
        self.deny_dirs = GlobSet(deny_dirs)

    @property
    def has_file_allowlist(self) -> bool:
        return bool(self.allow_extensions or self.allow_patterns or self.allow_files)

    @property
    def has_dir_allowlist(self) -> bool:
        return bool(self.allow_dirs)

    def file_allowed(self, path: str, name: str) -> bool:
        if file_extension(name).lower() in self.allow_extensions:
            return True
        if _first_match(self.allow_files, path, name, False):
            return True
        return _first_match(self.allow_patterns, path, name, False) is not None

    def file_denied(self, path: str, name: str) -> Optional[str]:
        """The deny entry matching a file, or None."""
        ext = file_extension(name)
        if ext:
            for denied in self.deny_extensions:
                if denied.lower() == ext.lower():
                    return denied
        return _first_match(self.deny_files, path, name, False) or _first_match(
            self.deny_patterns, path, name, False
        )

    def dir_allowed(self, path: str, name: str) -> bool:
        return _first_match(self.allow_dirs, path, name, True) is not None

    def dir_denied(self, path: str, name: str) -> Optional[str]:
        """The deny entry matching a directory, or None."""
        return _first_match(self.deny_dirs, path, name, True) or _first_match(
            self.deny_patterns, path, name, True
        )


class CompiledStructureRule:
    """A structure rule with its scope and lists compiled once."""

    def __init__(self, index: int, rule: StructureRule):
        self.index = index
        self.rule = rule
        self.scope = rule.scope
        self.scope_glob = compile_glob(rule.scope)
        self.lists = AllowDenyLists(
            rule.allow_extensions,
            rule.allow_patterns,
            rule.allow_files,
            rule.allow_dirs,
            rule.deny_extensions,
            rule.deny_patterns,
            rule.deny_files,
            rule.deny_dirs,
        )
        self.naming = (
            compile_regex(rule.file_naming_pattern) if rule.file_naming_pattern else None
        )

    def matches_directory(self, dir_path: str) -> bool:
        return self.scope_glob.matches(dir_path, is_dir=True)

    def name_matches_convention(self, name: str) -> bool:
        return self.naming is None or self.naming.search(name) is not None


def compile_global_lists(config: StructureConfig) -> AllowDenyLists:
    return AllowDenyLists(
        config.allow_extensions,
        config.allow_patterns,
        config.allow_files,
        config.allow_dirs,
        config.deny_extensions,
        config.deny_patterns,
        config.deny_files,
        config.deny_dirs,
    )


def compile_rules(config: StructureConfig) -> List[CompiledStructureRule]:
    return [CompiledStructureRule(i, rule) for i, rule in enumerate(config.rules)]


def find_rule_for_directory(
    rules: List[CompiledStructureRule], dir_path: str
) -> Optional[CompiledStructureRule]:
    """First rule whose scope matches the directory."""
    for rule in rules:
        if rule.matches_directory(dir_path):
            return rule
    return None
