"""Directory walking, gitignore handling and structure-aware scanning."""

from .allowlist import AllowDenyLists, CompiledStructureRule, compile_rules, find_rule_for_directory
from .gitignore import GitIgnoreRule, matches_gitignore, parse_gitignore_file, parse_gitignore_lines
from .models import DirStats, FileFilter, ScanResult
from .scanner import GLOBAL_RULE, StructureScanner, scan_files_only
from .walker import GitignoreWalker, TreeWalker, WalkEntry, make_walker

__all__ = [
    "AllowDenyLists",
    "CompiledStructureRule",
    "compile_rules",
    "find_rule_for_directory",
    "GitIgnoreRule",
    "matches_gitignore",
    "parse_gitignore_file",
    "parse_gitignore_lines",
    "DirStats",
    "FileFilter",
    "ScanResult",
    "GLOBAL_RULE",
    "StructureScanner",
    "scan_files_only",
    "GitignoreWalker",
    "TreeWalker",
    "WalkEntry",
    "make_walker",
]
