"""Scanner output and the global file filter."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

from ..matching import GlobSet, file_extension
from ..models import StructureViolation


@dataclass
class DirStats:
    """Immediate-children counts for one directory."""

    file_count: int = 0
    dir_count: int = 0
    depth: int = 0


@dataclass
class ScanResult:
    """Everything one scanner pass produces.

    ``files`` holds the paths that pass the file filter (content checks);
    ``all_files`` holds every file the walk reached (sibling checks).
    Both map a normalized display path to the on-disk path.
    """

    files: Dict[str, Path] = field(default_factory=dict)
    all_files: Dict[str, Path] = field(default_factory=dict)
    dir_stats: Dict[str, DirStats] = field(default_factory=dict)
    allowlist_violations: List[StructureViolation] = field(default_factory=list)
    # Scan root keys in walk order.
    roots: List[str] = field(default_factory=list)


class FileFilter:
    """Accepts files whose extension is configured and that are not content-excluded."""

    def __init__(self, extensions: Iterable[str], exclude: Iterable[str] = ()):
        self.extensions = frozenset(ext.lower().lstrip(".") for ext in extensions)
        self.exclude = GlobSet(exclude)

    def accepts(self, path: str) -> bool:
        ext = file_extension(path)
        if not ext or ext[1:].lower() not in self.extensions:
            return False
        return not self.exclude.matches(path, is_dir=False)
