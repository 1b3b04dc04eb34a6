"""Path normalization helpers.

Every path handed to a matcher goes through :func:`normalize_path` first:
forward slashes only, no ``.`` components, no leading ``./``, no trailing
slash. The scan root ``.`` stays ``.`` so it can be used as a mapping key.
"""

import os
import re
from typing import List, Union

PathLike = Union[str, "os.PathLike[str]"]

_SEPARATORS = re.compile(r"[\\/]")


def _components(path: str) -> List[str]:
    return [part for part in _SEPARATORS.split(path) if part not in ("", ".")]


def normalize_path(path: PathLike) -> str:
    """Return *path* with forward slashes and without ``./`` noise.

    >>> normalize_path(".\\\\src\\\\main.rs")
    'src/main.rs'
    >>> normalize_path("./")
    '.'
    """
    text = os.fspath(path)
    absolute = text.startswith("/") or text.startswith("\\")
    joined = "/".join(_components(text))
    if absolute:
        return "/" + joined
    return joined or "."


def path_name(path: str) -> str:
    """Last component of a normalized path (``.`` for the root)."""
    if path in (".", "/"):
        return path
    return path.rsplit("/", 1)[-1]


def parent_path(path: str) -> str:
    """Parent of a normalized path; the parent of a top-level entry is ``.``."""
    if path in (".", "/"):
        return path
    head, sep, _ = path.rpartition("/")
    if not sep:
        return "."
    return head or "/"


def path_depth(path: str) -> int:
    """Number of components in a normalized relative path (``.`` is 0)."""
    if path == ".":
        return 0
    return len(_components(path))


def matches_suffix(literal: str, path: PathLike) -> bool:
    """True when *literal* equals *path* or a component-aligned suffix of it.

    ``matches_suffix("main.rs", "src/main.rs")`` holds while
    ``matches_suffix("ain.rs", "src/main.rs")`` does not.
    """
    wanted = _components(literal)
    if not wanted:
        return False
    actual = _components(os.fspath(path))
    if len(wanted) > len(actual):
        return False
    return actual[len(actual) - len(wanted):] == wanted


def file_extension(name: str) -> str:
    """Extension including the leading dot, or ``""``.

    Dotfiles such as ``.gitignore`` have no extension.
    """
    base = path_name(name)
    stem, dot, ext = base.rpartition(".")
    if not dot or not stem or not ext:
        return ""
    return f".{ext}"


def normalize_extension(ext: str) -> str:
    """Config extensions may be written ``json`` or ``.json``; keep the dot."""
    ext = ext.strip()
    if not ext:
        return ext
    return ext if ext.startswith(".") else f".{ext}"
