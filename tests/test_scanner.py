"""Tests for the structure-aware scanner: pruning, counting and allow/deny lists."""

import pytest

from sloc_guard.checking import StructureChecker
from sloc_guard.config import build_config
from sloc_guard.exceptions import ScanError
from sloc_guard.models import ViolationKind
from sloc_guard.scanning import (
    GLOBAL_RULE,
    FileFilter,
    StructureScanner,
    parse_gitignore_lines,
    matches_gitignore,
    scan_files_only,
)


def _scan(root, raw=None, use_gitignore=False, extensions=("rs", "py", "tsx"), roots=None):
    config = build_config(raw or {})
    scanner = StructureScanner(
        config,
        FileFilter(extensions, config.content.exclude),
        use_gitignore=use_gitignore,
        base_dir=root,
    )
    return config, scanner.scan(roots or [root])


class TestCounting:
    def test_immediate_children_only(self, tmp_path, write_tree):
        write_tree(tmp_path, {
            "a/x.rs": "",
            "a/y.rs": "",
            "a/b/z.rs": "",
            "a/b/c/": "",
            "top.rs": "",
        })
        _, result = _scan(tmp_path)
        assert result.dir_stats["."].file_count == 1
        assert result.dir_stats["."].dir_count == 1
        assert result.dir_stats["a"].file_count == 2
        assert result.dir_stats["a"].dir_count == 1
        assert result.dir_stats["a/b"].file_count == 1
        assert result.dir_stats["a/b"].dir_count == 1
        assert result.dir_stats["a/b/c"].depth == 3
        assert result.dir_stats["a"].depth == 1

    def test_count_exclude_skips_counting_but_not_content(self, tmp_path, write_tree):
        write_tree(tmp_path, {"a/x.rs": "", "a/README.md": "", "a/notes.md": ""})
        _, result = _scan(tmp_path, {"structure": {"count_exclude": ["*.md"]}})
        assert result.dir_stats["a"].file_count == 1
        assert "a/README.md" in result.all_files

    def test_file_filter_selects_content_files(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/main.rs": "", "src/notes.txt": "", "src/gen/out.rs": ""})
        _, result = _scan(tmp_path, {"content": {"exclude": ["src/gen/**"]}})
        assert sorted(result.files) == ["src/main.rs"]
        assert sorted(result.all_files) == ["src/gen/out.rs", "src/main.rs", "src/notes.txt"]


class TestPruning:
    def test_git_directory_is_pruned_before_counting(self, tmp_path, write_tree):
        """A huge .git directory never reaches dir_stats or the limit checks."""
        objects = tmp_path / ".git" / "objects"
        for i in range(253):
            (objects / f"{i:02x}").mkdir(parents=True)
        write_tree(tmp_path, {"src/main.rs": "fn main() {}\n"})

        config, result = _scan(tmp_path, {"structure": {"max_dirs": 10}})

        assert not any(key.startswith(".git") for key in result.dir_stats)
        assert result.dir_stats["."].dir_count == 1
        violations = StructureChecker(config.structure).check(result.dir_stats)
        assert violations == []

    def test_basename_exclude_prunes_nested_directories(self, tmp_path, write_tree):
        write_tree(tmp_path, {"web/node_modules/pkg/index.tsx": "", "web/app.tsx": ""})
        _, result = _scan(tmp_path, {"scanner": {"exclude": [".git/**", "node_modules"]}})
        assert list(result.files) == ["web/app.tsx"]
        assert not any("node_modules" in key for key in result.dir_stats)
        assert result.dir_stats["web"].dir_count == 0

    def test_gitignore_is_honoured(self, tmp_path, write_tree):
        write_tree(tmp_path, {
            ".gitignore": "build/\n*.log\n",
            "build/out.rs": "",
            "src/main.rs": "",
            "src/debug.log": "",
            "src/.gitignore": "generated.rs\n",
            "src/generated.rs": "",
        })
        _, result = _scan(tmp_path, use_gitignore=True)
        assert "build/out.rs" not in result.all_files
        assert "src/debug.log" not in result.all_files
        assert "src/generated.rs" not in result.all_files
        assert "src/main.rs" in result.files

    def test_gitignore_can_be_disabled(self, tmp_path, write_tree):
        write_tree(tmp_path, {".gitignore": "build/\n", "build/out.rs": ""})
        _, result = _scan(tmp_path, use_gitignore=False)
        assert "build/out.rs" in result.files

    def test_subdirectory_root_inherits_project_gitignore(self, project, write_tree):
        write_tree(project, {
            ".gitignore": "*.log\n/src/gen/\n",
            ".git/info/exclude": "scratch.rs\n",
            "src/main.rs": "",
            "src/debug.log": "",
            "src/scratch.rs": "",
            "src/gen/out.rs": "",
        })
        _, result = _scan(project, use_gitignore=True, roots=[project / "src"])
        assert list(result.files) == ["src/main.rs"]
        assert "src/debug.log" not in result.all_files
        assert "src/gen" not in result.dir_stats


class TestRoots:
    def test_nested_roots_are_scanned_once(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/a.rs": "", "b.rs": ""})
        _, result = _scan(tmp_path, roots=[tmp_path / "src", tmp_path])
        assert result.roots == ["."]
        assert sorted(result.files) == ["b.rs", "src/a.rs"]

    def test_subdirectory_root_keeps_display_prefix(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/a.rs": ""})
        _, result = _scan(tmp_path, roots=[tmp_path / "src"])
        assert result.roots == ["src"]
        assert list(result.files) == ["src/a.rs"]

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(ScanError):
            _scan(tmp_path, roots=[tmp_path / "missing"])

    def test_files_only_mode(self, tmp_path, write_tree):
        write_tree(tmp_path, {"a.rs": "", "notes.txt": ""})
        result = scan_files_only(
            [tmp_path / "a.rs", tmp_path / "notes.txt", tmp_path / "gone.rs"],
            FileFilter(["rs"]),
            base_dir=tmp_path,
        )
        assert list(result.files) == ["a.rs"]
        assert sorted(result.all_files) == ["a.rs", "notes.txt"]
        assert result.dir_stats == {}


class TestAllowDeny:
    def test_rule_allow_overrides_global_deny(self, tmp_path, write_tree):
        """A per-rule allow_files entry beats the global deny_extensions."""
        write_tree(tmp_path, {"config/settings.json": "{}", "config/other.json": "{}"})
        _, result = _scan(tmp_path, {
            "structure": {
                "deny_extensions": [".json"],
                "rules": [{"scope": "config/**", "allow_files": ["settings.json"]}],
            }
        })
        violations = result.allowlist_violations
        assert len(violations) == 1
        violation = violations[0]
        assert violation.path == "config/other.json"
        assert violation.kind == ViolationKind.DENIED_FILE
        assert violation.violation_type.matched_pattern == ".json"
        assert violation.triggering_rule_pattern == GLOBAL_RULE

    def test_global_allowlist(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/a.rs": "", "src/b.exe": ""})
        _, result = _scan(tmp_path, {"structure": {"allow_extensions": ["rs"]}})
        assert [(v.path, v.kind) for v in result.allowlist_violations] == [
            ("src/b.exe", ViolationKind.DISALLOWED_FILE)
        ]

    def test_denied_directory(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/__pycache__/x.pyc": "", "src/a.py": ""})
        _, result = _scan(tmp_path, {"structure": {"deny_dirs": ["__pycache__"]}})
        kinds = [(v.path, v.kind) for v in result.allowlist_violations]
        assert ("src/__pycache__", ViolationKind.DENIED_DIRECTORY) in kinds

    def test_directory_denied_twice_is_reported_once(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/build/x.rs": "", "src/a.rs": ""})
        _, result = _scan(tmp_path, {
            "structure": {"deny_dirs": ["build"], "deny_patterns": ["**/build/"]}
        })
        denied = [v for v in result.allowlist_violations if v.path == "src/build"]
        assert len(denied) == 1
        assert denied[0].kind == ViolationKind.DENIED_DIRECTORY

    def test_rule_deny_patterns(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/a.rs": "", "src/a.rs.bak": ""})
        _, result = _scan(tmp_path, {
            "structure": {"rules": [{"scope": "src/**", "deny_patterns": ["*.bak"]}]}
        })
        violation = result.allowlist_violations[0]
        assert violation.path == "src/a.rs.bak"
        assert violation.triggering_rule_pattern == "src/**"

    def test_naming_convention(self, tmp_path, write_tree):
        write_tree(tmp_path, {
            "src/components/Button.tsx": "",
            "src/components/button.tsx": "",
            "src/util.tsx": "",
        })
        _, result = _scan(tmp_path, {
            "structure": {
                "rules": [{"scope": "src/components/**", "file_naming_pattern": "^[A-Z]"}]
            }
        })
        assert [(v.path, v.kind) for v in result.allowlist_violations] == [
            ("src/components/button.tsx", ViolationKind.NAMING_CONVENTION)
        ]

    def test_count_excluded_files_are_not_checked(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/a.json": ""})
        _, result = _scan(tmp_path, {
            "structure": {"deny_extensions": ["json"], "count_exclude": ["*.json"]}
        })
        assert result.allowlist_violations == []


class TestGitignoreRules:
    def test_negation_reincludes(self):
        rules = parse_gitignore_lines(["*.log", "!keep.log"], ".")
        assert matches_gitignore("debug.log", False, rules)
        assert not matches_gitignore("keep.log", False, rules)

    def test_anchored_pattern(self):
        rules = parse_gitignore_lines(["/build"], ".")
        assert matches_gitignore("build", True, rules)
        assert not matches_gitignore("src/build", True, rules)

    def test_comments_and_blank_lines(self):
        assert parse_gitignore_lines(["# comment", "", "   "], ".") == []
