"""Line classification: code, comment, blank, ignored.

A line is *blank* when it holds only whitespace, *comment* when every
non-whitespace character lies inside a line or block comment, and *code*
otherwise. String literals are tracked so that comment markers inside them
are not treated as comments.

Inline directives, written inside a comment:

    sloc-guard:ignore-file       on the first non-blank line, ignore everything
    sloc-guard:ignore-next N     ignore the next N lines
    sloc-guard:ignore-start      ignore lines until sloc-guard:ignore-end
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from ..exceptions import FileAccessError
from .languages import LanguageDefinition

DIRECTIVE_PREFIX = "sloc-guard:"

_IGNORE_FILE = re.compile(r"sloc-guard:ignore-file\b")
_IGNORE_NEXT = re.compile(r"sloc-guard:ignore-next\s+(\d+)")
_IGNORE_START = re.compile(r"sloc-guard:ignore-start\b")
_IGNORE_END = re.compile(r"sloc-guard:ignore-end\b")


@dataclass(frozen=True)
class LineStats:
    """Line counts for one file. ``total = code + comment + blank + ignored``."""

    total: int = 0
    code: int = 0
    comment: int = 0
    blank: int = 0
    ignored: int = 0

    @property
    def sloc(self) -> int:
        return self.code + self.comment + self.blank

    def effective(self, skip_comments: bool, skip_blank: bool) -> "LineStats":
        """Zero the buckets that the active rule does not count."""
        return replace(
            self,
            comment=0 if skip_comments else self.comment,
            blank=0 if skip_blank else self.blank,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "LineStats":
        return cls(
            total=int(data.get("total", 0)),
            code=int(data.get("code", 0)),
            comment=int(data.get("comment", 0)),
            blank=int(data.get("blank", 0)),
            ignored=int(data.get("ignored", 0)),
        )


class _ScanState:
    """Lexical state carried from one line to the next."""

    __slots__ = ("block", "depth", "string")

    def __init__(self) -> None:
        self.block: Optional[Tuple[str, str]] = None
        self.depth = 0
        self.string: Optional[str] = None


class LineCounter:
    """Counts lines of source text for one language."""

    def __init__(self, language: LanguageDefinition):
        self.language = language
        # Longest delimiters first so "--[[" wins over "--" and '"""' over '"'.
        self._blocks = sorted(language.block_comments, key=lambda pair: -len(pair[0]))
        self._line_markers = sorted(language.line_comments, key=len, reverse=True)
        self._strings = sorted(language.string_delimiters, key=len, reverse=True)

    def count_file(self, path: Path) -> LineStats:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise FileAccessError(Path(path), f"OS error: {e}") from e
        return self.count(data.decode("utf-8", errors="replace"))

    def count(self, source: str) -> LineStats:
        lines = source.split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        state = _ScanState()
        code = comment = blank = ignored = 0
        first_non_blank_seen = False
        ignore_next = 0
        in_ignore_block = False

        for raw in lines:
            line = raw.rstrip("\r")
            is_blank = not line.strip()
            has_code, has_comment = self._classify(line, state)

            if not is_blank and not first_non_blank_seen:
                first_non_blank_seen = True
                if has_comment and _IGNORE_FILE.search(line):
                    return LineStats(total=len(lines), ignored=len(lines))

            if has_comment and DIRECTIVE_PREFIX in line:
                if in_ignore_block:
                    if _IGNORE_END.search(line):
                        in_ignore_block = False
                        comment += 1
                        continue
                else:
                    if _IGNORE_START.search(line):
                        in_ignore_block = True
                        comment += 1
                        continue
                    match = _IGNORE_NEXT.search(line)
                    if match:
                        ignore_next = int(match.group(1))
                        comment += 1
                        continue

            if in_ignore_block:
                ignored += 1
            elif ignore_next > 0:
                ignore_next -= 1
                ignored += 1
            elif is_blank:
                blank += 1
            elif has_code:
                code += 1
            else:
                comment += 1

        return LineStats(
            total=len(lines), code=code, comment=comment, blank=blank, ignored=ignored
        )

    def _classify(self, line: str, state: _ScanState) -> Tuple[bool, bool]:
        """Return (has_code, has_comment) and advance the lexical state."""
        has_code = False
        has_comment = False
        i = 0
        n = len(line)

        while i < n:
            if state.block is not None:
                has_comment = True
                start, end = state.block
                if self.language.nested_comments and line.startswith(start, i):
                    state.depth += 1
                    i += len(start)
                elif line.startswith(end, i):
                    state.depth -= 1
                    i += len(end)
                    if state.depth == 0:
                        state.block = None
                else:
                    i += 1
                continue

            if state.string is not None:
                has_code = True
                if line[i] == "\\":
                    i += 2
                elif line.startswith(state.string, i):
                    i += len(state.string)
                    state.string = None
                else:
                    i += 1
                continue

            ch = line[i]
            if ch.isspace():
                i += 1
                continue

            block = self._block_start(line, i)
            if block is not None:
                state.block = block
                state.depth = 1
                has_comment = True
                i += len(block[0])
                continue

            if any(line.startswith(marker, i) for marker in self._line_markers):
                has_comment = True
                break

            delimiter = self._string_start(line, i)
            if delimiter is not None:
                state.string = delimiter
                has_code = True
                i += len(delimiter)
                continue

            has_code = True
            i += 1

        if state.string is not None and state.string not in self.language.multiline_strings:
            state.string = None

        return has_code, has_comment

    def _block_start(self, line: str, i: int) -> Optional[Tuple[str, str]]:
        for pair in self._blocks:
            if line.startswith(pair[0], i):
                return pair
        return None

    def _string_start(self, line: str, i: int) -> Optional[str]:
        for delimiter in self._strings:
            if line.startswith(delimiter, i):
                return delimiter
        return None
