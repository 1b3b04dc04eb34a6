"""Tests for glob compilation and path helpers."""

import pytest

from sloc_guard.exceptions import InvalidPatternError
from sloc_guard.matching import (
    GlobSet,
    compile_glob,
    file_extension,
    matches_path,
    matches_suffix,
    normalize_extension,
    normalize_path,
    parent_path,
    path_depth,
)


class TestGlob:
    def test_double_star_spans_directories(self):
        pattern = compile_glob("**/*.rs")
        assert pattern.matches("src/a/b.rs")
        assert pattern.matches("main.rs")
        assert not pattern.matches("src/a/b.py")

    def test_trailing_double_star_matches_the_directory_itself(self):
        pattern = compile_glob("src/generated/**")
        assert pattern.matches("src/generated")
        assert pattern.matches("src/generated/x/y.rs")
        assert not pattern.matches("src/generatedx")
        assert not pattern.matches("lib/src/generated/a.rs")

    def test_pattern_without_slash_matches_basename(self):
        assert matches_path("*.rs", "deep/dir/x.rs")
        assert matches_path("node_modules", "web/node_modules")
        assert not matches_path("src/*.rs", "deep/src/x.rs")

    def test_single_star_stays_in_component(self):
        assert matches_path("src/*.rs", "src/a.rs")
        assert not matches_path("src/*.rs", "src/a/b.rs")

    def test_braces_and_nesting(self):
        pattern = compile_glob("{src,src/**}")
        assert pattern.matches("src")
        assert pattern.matches("src/a")
        assert not pattern.matches("lib")
        assert matches_path("*.{rs,go}", "a/b.go")

    def test_character_classes(self):
        assert matches_path("[abc].rs", "a.rs")
        assert not matches_path("[!abc].rs", "a.rs")
        assert matches_path("[^abc].rs", "d.rs")

    def test_escaped_metacharacter_is_literal(self):
        assert matches_path("a\\*.rs", "a*.rs")
        assert not matches_path("a\\*.rs", "ab.rs")

    def test_directory_only_pattern(self):
        pattern = compile_glob("build/")
        assert pattern.matches("build", is_dir=True)
        assert not pattern.matches("build", is_dir=False)

    def test_leading_dot_slash_is_ignored(self):
        assert matches_path("./src/**", "src/main.rs")

    @pytest.mark.parametrize("pattern", ["{a,b", "[abc", "", "   "])
    def test_invalid_patterns_raise(self, pattern):
        with pytest.raises(InvalidPatternError):
            compile_glob(pattern)

    def test_literal_prefix_depth(self):
        assert compile_glob("src/features/**").literal_prefix_depth() == 2
        assert compile_glob("**/tests").literal_prefix_depth() == 0
        assert compile_glob("src/*.rs").literal_prefix_depth() == 1


class TestGlobSet:
    def test_first_match_respects_order(self):
        globs = GlobSet(["*.rs", "src/**"])
        assert globs.first_match("src/main.rs").source == "*.rs"
        assert globs.first_match("src/readme.md").source == "src/**"
        assert globs.first_match("lib/readme.md") is None

    def test_empty_set_is_falsy(self):
        assert not GlobSet()
        assert not GlobSet().matches("anything")


class TestPaths:
    def test_normalize_path(self):
        assert normalize_path(".\\src\\main.rs") == "src/main.rs"
        assert normalize_path("./") == "."
        assert normalize_path("src//a/./b") == "src/a/b"

    def test_parent_and_depth(self):
        assert parent_path("a") == "."
        assert parent_path("a/b/c") == "a/b"
        assert path_depth(".") == 0
        assert path_depth("a/b/c") == 3

    def test_matches_suffix_is_component_aligned(self):
        assert matches_suffix("main.rs", "src/main.rs")
        assert matches_suffix("src/main.rs", "src/main.rs")
        assert not matches_suffix("ain.rs", "src/main.rs")
        assert not matches_suffix("lib/src/main.rs", "src/main.rs")

    def test_file_extension(self):
        assert file_extension("src/main.rs") == ".rs"
        assert file_extension("archive.tar.gz") == ".gz"
        assert file_extension(".gitignore") == ""
        assert file_extension("Makefile") == ""

    def test_normalize_extension(self):
        assert normalize_extension("json") == ".json"
        assert normalize_extension(".json") == ".json"
