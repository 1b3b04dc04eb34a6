"""Path normalization and glob/regex matching."""

from .glob import GlobPattern, GlobSet, compile_glob, compile_regex, matches_path
from .paths import (
    file_extension,
    matches_suffix,
    normalize_extension,
    normalize_path,
    parent_path,
    path_depth,
    path_name,
)

__all__ = [
    "GlobPattern",
    "GlobSet",
    "compile_glob",
    "compile_regex",
    "matches_path",
    "normalize_path",
    "normalize_extension",
    "matches_suffix",
    "file_extension",
    "parent_path",
    "path_depth",
    "path_name",
]
