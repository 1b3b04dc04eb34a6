"""Language definitions - comment and string syntax per language.

Adding a new built-in language:
  1. Add a LanguageDefinition entry to BUILTIN_LANGUAGES below.
  2. That's it. The registry maps its extensions automatically.

Users add or replace languages through ``[languages.<name>]`` tables.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..matching import file_extension


@dataclass(frozen=True)
class LanguageDefinition:
    """Everything the line counter needs to know about a language."""

    name: str
    # Extensions without the leading dot, lower case.
    extensions: Tuple[str, ...]
    line_comments: Tuple[str, ...] = ()
    block_comments: Tuple[Tuple[str, str], ...] = ()
    # Delimiters that open a string literal; comments are not recognized inside.
    string_delimiters: Tuple[str, ...] = ('"',)
    # Subset of string_delimiters that may span lines (template literals, raw strings).
    multiline_strings: Tuple[str, ...] = ()
    nested_comments: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("language name must not be empty")
        if not self.extensions:
            raise ValueError(f"language {self.name!r} must declare at least one extension")
        for start, end in self.block_comments:
            if not start or not end:
                raise ValueError(f"language {self.name!r} has an empty block comment delimiter")
        for marker in self.line_comments:
            if not marker:
                raise ValueError(f"language {self.name!r} has an empty line comment marker")

    def fingerprint(self) -> dict:
        """Plain-data view used for cache invalidation."""
        return {
            "name": self.name,
            "extensions": sorted(self.extensions),
            "line_comments": list(self.line_comments),
            "block_comments": [list(pair) for pair in self.block_comments],
            "string_delimiters": list(self.string_delimiters),
            "multiline_strings": list(self.multiline_strings),
            "nested_comments": self.nested_comments,
        }


_C_BLOCK = (("/*", "*/"),)
_C_LINE = ("//",)

BUILTIN_LANGUAGES: List[LanguageDefinition] = [
    LanguageDefinition(
        name="Rust",
        extensions=("rs",),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        nested_comments=True,
    ),
    LanguageDefinition(
        name="Go",
        extensions=("go",),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        string_delimiters=('"', "'", "`"),
        multiline_strings=("`",),
    ),
    LanguageDefinition(
        name="Python",
        extensions=("py", "pyi"),
        line_comments=("#",),
        block_comments=(('"""', '"""'), ("'''", "'''")),
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="JavaScript",
        extensions=("js", "jsx", "mjs", "cjs"),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        string_delimiters=('"', "'", "`"),
        multiline_strings=("`",),
    ),
    LanguageDefinition(
        name="TypeScript",
        extensions=("ts", "tsx", "mts", "cts"),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        string_delimiters=('"', "'", "`"),
        multiline_strings=("`",),
    ),
    LanguageDefinition(
        name="C",
        extensions=("c", "h"),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="C++",
        extensions=("cpp", "hpp", "cc", "cxx", "hxx", "hh"),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="Java",
        extensions=("java",),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="Ruby",
        extensions=("rb",),
        line_comments=("#",),
        block_comments=(("=begin", "=end"),),
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="Shell",
        extensions=("sh", "bash", "zsh"),
        line_comments=("#",),
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="Lua",
        extensions=("lua",),
        line_comments=("--",),
        block_comments=(("--[[", "]]"),),
        string_delimiters=('"', "'"),
    ),
]


class LanguageRegistry:
    """Maps file extensions to language definitions.

    Later registrations win: a user language claiming ``.h`` takes it away
    from C, and a user language reusing a built-in name replaces it.
    """

    def __init__(self, languages: Iterable[LanguageDefinition] = ()):
        self._by_name: Dict[str, LanguageDefinition] = {}
        self._by_ext: Dict[str, LanguageDefinition] = {}
        for language in languages:
            self.register(language)

    @classmethod
    def with_builtins(cls, custom: Iterable[LanguageDefinition] = ()) -> "LanguageRegistry":
        registry = cls(BUILTIN_LANGUAGES)
        for language in custom:
            registry.register(language)
        return registry

    def register(self, language: LanguageDefinition) -> None:
        previous = self._by_name.get(language.name.lower())
        if previous is not None:
            for ext in previous.extensions:
                if self._by_ext.get(ext) is previous:
                    del self._by_ext[ext]
        self._by_name[language.name.lower()] = language
        for ext in language.extensions:
            self._by_ext[ext.lower().lstrip(".")] = language

    def get(self, name: str) -> Optional[LanguageDefinition]:
        return self._by_name.get(name.lower())

    def for_extension(self, ext: str) -> Optional[LanguageDefinition]:
        return self._by_ext.get(ext.lower().lstrip("."))

    def for_path(self, path: str) -> Optional[LanguageDefinition]:
        ext = file_extension(path)
        if not ext:
            return None
        return self.for_extension(ext)

    @property
    def languages(self) -> List[LanguageDefinition]:
        return sorted(self._by_name.values(), key=lambda lang: lang.name)

    def extensions(self) -> List[str]:
        return sorted(self._by_ext)

    def fingerprint(self) -> list:
        return [lang.fingerprint() for lang in self.languages]
