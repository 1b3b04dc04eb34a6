"""Tests for language-aware line counting and ignore directives."""

import pytest

from sloc_guard.counting import LanguageDefinition, LanguageRegistry, LineCounter, LineStats
from sloc_guard.exceptions import FileAccessError


def _counter(name: str) -> LineCounter:
    return LineCounter(LanguageRegistry.with_builtins().get(name))


class TestLineStats:
    def test_sloc_excludes_ignored(self):
        stats = LineStats(total=12, code=5, comment=3, blank=2, ignored=2)
        assert stats.sloc == 10

    def test_effective_zeroes_skipped_buckets(self):
        stats = LineStats(total=10, code=5, comment=3, blank=2)
        assert stats.effective(True, True).sloc == 5
        assert stats.effective(False, True).sloc == 8
        assert stats.effective(False, False).sloc == 10
        assert stats.effective(True, True).total == 10

    def test_dict_round_trip(self):
        stats = LineStats(total=4, code=1, comment=1, blank=1, ignored=1)
        assert LineStats.from_dict(stats.to_dict()) == stats


class TestLineCounter:
    def test_rust_comments_strings_and_blanks(self):
        source = (
            "// header comment\n"
            "fn main() {\n"
            '    let s = "// not a comment";\n'
            "\n"
            "    /* block\n"
            "       still block */\n"
            '    println!("hi"); // trailing\n'
            "}\n"
        )
        stats = _counter("Rust").count(source)
        assert stats == LineStats(total=8, code=4, comment=3, blank=1)

    def test_rust_nested_block_comments(self):
        source = "/* outer /* inner */ still comment */\nfn x() {}\n"
        stats = _counter("Rust").count(source)
        assert stats.comment == 1
        assert stats.code == 1

    def test_c_block_comments_do_not_nest(self):
        source = "/* outer /* inner */\nint x;\n"
        stats = _counter("C").count(source)
        assert stats.comment == 1
        assert stats.code == 1

    def test_python_docstring_counts_as_comment(self):
        stats = _counter("Python").count('"""Module doc."""\nx = 1\n# note\n')
        assert stats.comment == 2
        assert stats.code == 1

    def test_code_after_block_comment_on_same_line_is_code(self):
        stats = _counter("Rust").count("/* c */ let a = 1;\n")
        assert stats.code == 1
        assert stats.comment == 0

    def test_crlf_and_missing_trailing_newline(self):
        stats = _counter("Rust").count("let a = 1;\r\n\r\nlet b = 2;")
        assert stats == LineStats(total=3, code=2, blank=1)

    def test_empty_source(self):
        assert _counter("Rust").count("") == LineStats()


class TestDirectives:
    def test_ignore_file_on_first_non_blank_line(self):
        stats = _counter("Rust").count("\n// sloc-guard:ignore-file\nfn a() {}\n")
        assert stats == LineStats(total=3, ignored=3)

    def test_ignore_file_later_in_file_is_inert(self):
        stats = _counter("Rust").count("fn a() {}\n// sloc-guard:ignore-file\n")
        assert stats.ignored == 0
        assert stats.code == 1

    def test_ignore_next(self):
        source = "// sloc-guard:ignore-next 2\nlet a = 1;\nlet b = 2;\nlet c = 3;\n"
        stats = _counter("Rust").count(source)
        assert stats == LineStats(total=4, code=1, comment=1, ignored=2)

    def test_ignore_block(self):
        source = (
            "fn a() {}\n"
            "// sloc-guard:ignore-start\n"
            "fn b() {}\n"
            "fn c() {}\n"
            "// sloc-guard:ignore-end\n"
            "fn d() {}\n"
        )
        stats = _counter("Rust").count(source)
        assert stats == LineStats(total=6, code=2, comment=2, ignored=2)

    def test_unterminated_ignore_block_runs_to_end(self):
        source = "fn a() {}\n# sloc-guard:ignore-start\nx = 1\ny = 2\n"
        stats = _counter("Python").count(source)
        assert stats.code == 1
        assert stats.ignored == 2

    def test_directive_inside_string_is_not_a_directive(self):
        stats = _counter("Rust").count('let s = "sloc-guard:ignore-next 5";\nlet t = 1;\n')
        assert stats.code == 2
        assert stats.ignored == 0


class TestCountFile:
    def test_counts_file_on_disk(self, tmp_path):
        path = tmp_path / "a.rs"
        path.write_text("fn a() {}\n\n// c\n")
        stats = _counter("Rust").count_file(path)
        assert stats == LineStats(total=3, code=1, comment=1, blank=1)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileAccessError):
            _counter("Rust").count_file(tmp_path / "missing.rs")

    def test_binary_and_invalid_utf8_are_decoded_leniently(self, tmp_path):
        path = tmp_path / "mixed.rs"
        path.write_bytes(b"\xff\xfe\x00fn main(){}\n// c\n\n\x80\x81")
        stats = _counter("Rust").count_file(path)
        assert stats == LineStats(total=4, code=2, comment=1, blank=1)


class TestLanguageRegistry:
    def test_lookup_by_path(self):
        registry = LanguageRegistry.with_builtins()
        assert registry.for_path("src/a.rs").name == "Rust"
        assert registry.for_path("src/A.TSX").name == "TypeScript"
        assert registry.for_path("README") is None
        assert registry.for_path("notes.txt") is None

    def test_custom_language_claims_extension(self):
        custom = LanguageDefinition(name="MyHeader", extensions=("h",), line_comments=("//",))
        registry = LanguageRegistry.with_builtins([custom])
        assert registry.for_path("x.h").name == "MyHeader"
        assert registry.for_path("x.c").name == "C"

    def test_fingerprint_changes_with_languages(self):
        base = LanguageRegistry.with_builtins().fingerprint()
        custom = LanguageDefinition(name="Foo", extensions=("foo",), line_comments=("%",))
        assert LanguageRegistry.with_builtins([custom]).fingerprint() != base

    def test_definition_requires_extensions(self):
        with pytest.raises(ValueError):
            LanguageDefinition(name="Empty", extensions=())
