"""
Trend history: periodic snapshots of project-wide line totals.

Stored as ``{"version": 1, "entries": [...]}`` in the state directory.
Retention drops entries older than ``max_age_days`` and then the oldest
entries beyond ``max_entries``; ``min_interval_secs`` throttles snapshots.
"""

import json
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config.models import TrendConfig
from .counting import LineStats
from .exceptions import FileAccessError, LockTimeoutError
from .file_ops import DEFAULT_LOCK_TIMEOUT_MS, SaveOutcome, atomic_write_text, file_lock, safe_read_text
from .logging_config import get_logger

logger = get_logger(__name__)

HISTORY_VERSION = 1
SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class TrendEntry:
    timestamp: int
    total_files: int
    total_lines: int
    code: int
    comment: int
    blank: int
    git_ref: Optional[str] = None
    git_branch: Optional[str] = None

    @classmethod
    def from_stats(
        cls,
        total_files: int,
        totals: LineStats,
        timestamp: Optional[int] = None,
        git_ref: Optional[str] = None,
        git_branch: Optional[str] = None,
    ) -> "TrendEntry":
        return cls(
            timestamp=int(time.time()) if timestamp is None else timestamp,
            total_files=total_files,
            total_lines=totals.total,
            code=totals.code,
            comment=totals.comment,
            blank=totals.blank,
            git_ref=git_ref,
            git_branch=git_branch,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "total_files": self.total_files,
            "total_lines": self.total_lines,
            "code": self.code,
            "comment": self.comment,
            "blank": self.blank,
        }
        if self.git_ref is not None:
            data["git_ref"] = self.git_ref
        if self.git_branch is not None:
            data["git_branch"] = self.git_branch
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrendEntry":
        return cls(
            timestamp=int(data["timestamp"]),
            total_files=int(data["total_files"]),
            total_lines=int(data["total_lines"]),
            code=int(data["code"]),
            comment=int(data["comment"]),
            blank=int(data["blank"]),
            git_ref=data.get("git_ref"),
            git_branch=data.get("git_branch"),
        )


@dataclass(frozen=True)
class TrendDelta:
    files: int
    lines: int
    code: int
    comment: int
    blank: int

    @classmethod
    def between(cls, previous: TrendEntry, current: TrendEntry) -> "TrendDelta":
        return cls(
            files=current.total_files - previous.total_files,
            lines=current.total_lines - previous.total_lines,
            code=current.code - previous.code,
            comment=current.comment - previous.comment,
            blank=current.blank - previous.blank,
        )

    @property
    def has_changes(self) -> bool:
        return any((self.files, self.lines, self.code, self.comment, self.blank))


def git_context(repo_path: Path) -> Tuple[Optional[str], Optional[str]]:
    """(HEAD commit, branch name) or Nones outside a git checkout."""
    return _rev_parse(repo_path, "HEAD"), _rev_parse(repo_path, "--abbrev-ref", "HEAD")


def _rev_parse(repo_path: Path, *args: str) -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", "-C", str(repo_path), "rev-parse", *args],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return None
    if result.returncode != 0:
        return None
    value = result.stdout.strip()
    # Detached HEAD reports the literal "HEAD" as branch.
    return value if value and value != "HEAD" else None


@dataclass
class TrendHistory:
    entries: List[TrendEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def latest(self) -> Optional[TrendEntry]:
        return self.entries[-1] if self.entries else None

    def should_add(self, config: TrendConfig, now: int) -> bool:
        if config.min_interval_secs is None or self.latest is None:
            return True
        return now - self.latest.timestamp >= config.min_interval_secs

    def add_if_allowed(self, entry: TrendEntry, config: TrendConfig) -> bool:
        if not self.should_add(config, entry.timestamp):
            logger.debug("Trend snapshot skipped: min_interval_secs not reached")
            return False
        self.entries.append(entry)
        return True

    def apply_retention(self, config: TrendConfig, now: int) -> int:
        """Drop expired and excess entries; returns how many were removed."""
        before = len(self.entries)
        if config.max_age_days is not None:
            cutoff = now - config.max_age_days * SECONDS_PER_DAY
            self.entries = [e for e in self.entries if e.timestamp >= cutoff]
        if config.max_entries is not None and len(self.entries) > config.max_entries:
            self.entries = self.entries[len(self.entries) - config.max_entries:]
        return before - len(self.entries)

    def deltas(self) -> Iterable[Tuple[TrendEntry, Optional[TrendDelta]]]:
        previous = None
        for entry in self.entries:
            yield entry, TrendDelta.between(previous, entry) if previous else None
            previous = entry

    def to_json(self) -> str:
        data = {"version": HISTORY_VERSION, "entries": [e.to_dict() for e in self.entries]}
        return json.dumps(data, indent=2) + "\n"

    @classmethod
    def load(cls, path: Path) -> "TrendHistory":
        """Load history; a missing or unreadable file is an empty history."""
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            with file_lock(path, exclusive=False):
                text = safe_read_text(path)
        except FileNotFoundError:
            return cls()
        except (LockTimeoutError, FileAccessError) as e:
            logger.warning(f"Trend history not loaded: {e}")
            return cls()
        try:
            raw = json.loads(text)
            if raw.get("version") != HISTORY_VERSION:
                logger.warning(f"Ignoring trend history with version {raw.get('version')!r}")
                return cls()
            return cls([TrendEntry.from_dict(e) for e in raw.get("entries", [])])
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring corrupt trend history {path}: {e}")
            return cls()

    def save(
        self,
        path: Path,
        config: Optional[TrendConfig] = None,
        timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS,
    ) -> SaveOutcome:
        if config is not None:
            removed = self.apply_retention(config, int(time.time()))
            if removed:
                logger.debug(f"Trend retention removed {removed} entries")
        path = Path(path)
        try:
            with file_lock(path, exclusive=True, timeout_ms=timeout_ms):
                atomic_write_text(path, self.to_json())
        except (LockTimeoutError, FileAccessError) as e:
            logger.warning(f"Trend history not saved: {e}")
            return SaveOutcome.SKIPPED
        return SaveOutcome.SAVED
