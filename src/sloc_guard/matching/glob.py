"""Glob and regex compilation.

Supported glob syntax:

    *        any run of characters except ``/``
    **       zero or more whole path components (only as a full component)
    ?        one character except ``/``
    [abc]    character class, ``[!abc]`` or ``[^abc]`` to negate
    {a,b}    alternatives, may nest and contain other glob syntax
    \\x       literal ``x``

A trailing ``/`` marks a directory-only pattern. Patterns without any ``/``
are matched against the last path component only.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from ..exceptions import InvalidPatternError
from .paths import PathLike, normalize_path, path_name

GLOB_META = frozenset("*?[{")


@dataclass(frozen=True)
class GlobPattern:
    """A compiled glob pattern."""

    source: str
    regex: "re.Pattern[str]"
    dir_only: bool
    basename_only: bool

    def matches(self, path: PathLike, is_dir: Optional[bool] = None) -> bool:
        """Match a path. ``is_dir=None`` means the entry kind is unknown."""
        if self.dir_only and is_dir is False:
            return False
        normalized = normalize_path(path)
        target = path_name(normalized) if self.basename_only else normalized
        return self.regex.fullmatch(target) is not None

    def literal_prefix_depth(self) -> int:
        """Components before the first glob metacharacter.

        ``src/features/**`` has depth 2, ``**/tests`` has depth 0.
        """
        depth = 0
        for part in self.source.rstrip("/").split("/"):
            if not part or any(ch in GLOB_META for ch in part):
                break
            depth += 1
        return depth


class _Translator:
    """Recursive-descent glob to regex translation."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.pos = 0

    def error(self, reason: str) -> InvalidPatternError:
        return InvalidPatternError(self.pattern, reason)

    def _at_component_start(self) -> bool:
        return self.pos == 0 or self.pattern[self.pos - 1] in "/{,"

    def _component_ends_at(self, index: int, in_brace: bool) -> bool:
        if index >= len(self.pattern):
            return True
        ch = self.pattern[index]
        return ch == "/" or (in_brace and ch in ",}")

    def translate(self, in_brace: bool = False) -> str:
        out: List[str] = []
        p = self.pattern
        while self.pos < len(p):
            ch = p[self.pos]
            if in_brace and ch in ",}":
                return "".join(out)
            if ch == "/" and p.startswith("/**", self.pos) and self._component_ends_at(
                self.pos + 3, in_brace
            ) and (self.pos + 3 >= len(p) or p[self.pos + 3] != "/"):
                # trailing "/**" also matches the directory itself
                out.append("(?:/.*)?")
                self.pos += 3
            elif ch == "*" and p.startswith("**", self.pos):
                if self._at_component_start() and self._component_ends_at(self.pos + 2, in_brace):
                    if self.pos + 2 < len(p) and p[self.pos + 2] == "/":
                        out.append("(?:.*/)?")
                        self.pos += 3
                    else:
                        out.append(".*")
                        self.pos += 2
                else:
                    out.append("[^/]*")
                    self.pos += 2
            elif ch == "*":
                out.append("[^/]*")
                self.pos += 1
            elif ch == "?":
                out.append("[^/]")
                self.pos += 1
            elif ch == "[":
                out.append(self._char_class())
            elif ch == "{":
                out.append(self._alternatives())
            elif ch == "}":
                raise self.error("unmatched '}'")
            elif ch == "\\":
                if self.pos + 1 >= len(p):
                    raise self.error("dangling escape at end of pattern")
                out.append(re.escape(p[self.pos + 1]))
                self.pos += 2
            else:
                out.append(re.escape(ch))
                self.pos += 1
        if in_brace:
            raise self.error("unclosed '{'")
        return "".join(out)

    def _char_class(self) -> str:
        p = self.pattern
        end = self.pos + 1
        if end < len(p) and p[end] in "!^":
            end += 1
        if end < len(p) and p[end] == "]":
            end += 1
        while end < len(p) and p[end] != "]":
            end += 1
        if end >= len(p):
            raise self.error("unclosed '['")
        body = p[self.pos + 1:end]
        self.pos = end + 1
        negate = body[:1] in ("!", "^")
        if negate:
            body = body[1:]
        if not body:
            raise self.error("empty character class")
        escaped = (
            body.replace("\\", "\\\\")
            .replace("^", "\\^")
            .replace("[", "\\[")
            .replace("]", "\\]")
        )
        if negate:
            return f"[^/{escaped}]"
        return f"(?:(?!/)[{escaped}])"

    def _alternatives(self) -> str:
        self.pos += 1
        options: List[str] = []
        while True:
            options.append(self.translate(in_brace=True))
            ch = self.pattern[self.pos]
            self.pos += 1
            if ch == "}":
                break
        if options == [""]:
            raise self.error("empty '{}' group")
        return "(?:" + "|".join(options) + ")"


@lru_cache(maxsize=4096)
def compile_glob(pattern: str) -> GlobPattern:
    """Compile a glob pattern, raising InvalidPatternError on bad syntax."""
    if not pattern or not pattern.strip():
        raise InvalidPatternError(pattern, "empty pattern")
    source = pattern
    dir_only = source.endswith("/") and source != "/"
    body = source.rstrip("/") if dir_only else source
    while body.startswith("./"):
        body = body[2:]
    if not body:
        raise InvalidPatternError(pattern, "pattern has no path component")
    translator = _Translator(body)
    try:
        regex = re.compile(translator.translate())
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e
    return GlobPattern(
        source=pattern,
        regex=regex,
        dir_only=dir_only,
        basename_only="/" not in body,
    )


def matches_path(pattern: str, path: PathLike, is_dir: Optional[bool] = None) -> bool:
    """Compile *pattern* (cached) and match it against *path*."""
    return compile_glob(pattern).matches(path, is_dir)


@lru_cache(maxsize=1024)
def compile_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a user regex, raising InvalidPatternError on bad syntax."""
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e


class GlobSet:
    """An ordered collection of compiled globs."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns: Tuple[GlobPattern, ...] = tuple(compile_glob(p) for p in patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def first_match(self, path: PathLike, is_dir: Optional[bool] = None) -> Optional[GlobPattern]:
        for pattern in self.patterns:
            if pattern.matches(path, is_dir):
                return pattern
        return None

    def matches(self, path: PathLike, is_dir: Optional[bool] = None) -> bool:
        return self.first_match(path, is_dir) is not None
