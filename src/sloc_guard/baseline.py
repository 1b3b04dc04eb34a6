"""Baseline management: grandfathering known violations and the ratchet.

The baseline file maps forward-slash paths to the violation recorded for
them. Content entries store a sha256 of the file so that editing a
grandfathered file makes its violation count again; structure entries
store the violation kind.

    {
      "version": 1,
      "files": {
        "src/big.rs": {"kind": "content", "lines": 812, "hash": "ab12..."},
        "src/handlers": {"kind": "structure", "violation_kind": "file_count", "count": 31}
      }
    }
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .exceptions import ConfigFileError, FileAccessError, LockTimeoutError, UnsupportedVersionError
from .file_ops import DEFAULT_LOCK_TIMEOUT_MS, SaveOutcome, atomic_write_text, file_lock, safe_read_text
from .logging_config import get_logger
from .models import CheckResult

logger = get_logger(__name__)

BASELINE_VERSION = 1
CONTENT_KIND = "content"
STRUCTURE_KIND = "structure"


class UpdateMode(str, Enum):
    ALL = "all"
    CONTENT = "content"
    STRUCTURE = "structure"
    NEW = "new"


class RatchetMode(str, Enum):
    WARN = "warn"
    AUTO = "auto"
    STRICT = "strict"


@dataclass(frozen=True)
class BaselineEntry:
    """One grandfathered violation."""

    kind: str
    lines: Optional[int] = None
    hash: Optional[str] = None
    violation_kind: Optional[str] = None
    count: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        if self.kind == CONTENT_KIND:
            return {"kind": CONTENT_KIND, "lines": self.lines, "hash": self.hash}
        return {"kind": STRUCTURE_KIND, "violation_kind": self.violation_kind, "count": self.count}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "BaselineEntry":
        kind = data.get("kind")
        if kind == CONTENT_KIND:
            return cls(kind=CONTENT_KIND, lines=int(data.get("lines", 0)), hash=data.get("hash"))
        if kind == STRUCTURE_KIND:
            return cls(
                kind=STRUCTURE_KIND,
                violation_kind=str(data.get("violation_kind")),
                count=int(data.get("count", 0)),
            )
        raise ValueError(f"unknown baseline entry kind {kind!r}")


def compute_file_hash(path: Path) -> Optional[str]:
    """sha256 of the file bytes, or None when the file cannot be read."""
    try:
        return hashlib.sha256(Path(path).read_bytes()).hexdigest()
    except OSError as e:
        logger.warning(f"Cannot hash {path}: {e}")
        return None


Hasher = Callable[[Path], Optional[str]]


@dataclass
class Baseline:
    """In-memory baseline store."""

    entries: Dict[str, BaselineEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def get(self, path: str) -> Optional[BaselineEntry]:
        return self.entries.get(path)

    @property
    def paths(self) -> List[str]:
        return sorted(self.entries)

    def to_json(self) -> str:
        data = {
            "version": BASELINE_VERSION,
            "files": {path: self.entries[path].to_dict() for path in sorted(self.entries)},
        }
        return json.dumps(data, indent=2, sort_keys=True) + "\n"

    @classmethod
    def from_json(cls, text: str, source: str = "<baseline>") -> "Baseline":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigFileError(Path(source), f"invalid JSON: {e}")
        if not isinstance(raw, dict):
            raise ConfigFileError(Path(source), "baseline must be a JSON object")
        version = raw.get("version")
        if version != BASELINE_VERSION:
            raise UnsupportedVersionError("baseline", version, BASELINE_VERSION)
        files = raw.get("files", {})
        if not isinstance(files, dict):
            raise ConfigFileError(Path(source), "'files' must be an object")
        entries = {}
        for path, entry in files.items():
            try:
                entries[path] = BaselineEntry.from_dict(entry)
            except (TypeError, ValueError, AttributeError) as e:
                raise ConfigFileError(Path(source), f"bad entry for {path}: {e}")
        return cls(entries)

    @classmethod
    def load(cls, path: Path, permissive: bool = False) -> "Baseline":
        """Load a baseline file. A missing file is an empty baseline.

        Args:
            path: Baseline file
            permissive: Return an empty baseline instead of raising on a
                corrupt or unsupported file (used when it is about to be rewritten)

        Raises:
            ConfigFileError: Corrupt file
            UnsupportedVersionError: Unknown version
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"No baseline file at {path}")
            return cls()
        try:
            with file_lock(path, exclusive=False):
                text = safe_read_text(path)
        except FileNotFoundError:
            logger.debug(f"No baseline file at {path}")
            return cls()
        except LockTimeoutError:
            logger.warning(f"Baseline {path} is locked; reading without lock")
            try:
                text = safe_read_text(path)
            except FileNotFoundError:
                return cls()
        except FileAccessError as e:
            if permissive:
                logger.warning(f"Ignoring unreadable baseline: {e}")
                return cls()
            raise ConfigFileError(path, e.reason)

        try:
            baseline = cls.from_json(text, str(path))
        except (ConfigFileError, UnsupportedVersionError) as e:
            if permissive:
                logger.warning(f"Ignoring existing baseline: {e}")
                return cls()
            raise
        logger.debug(f"Loaded baseline with {len(baseline)} entries from {path}")
        return baseline

    def save(self, path: Path, timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS) -> SaveOutcome:
        """Persist under an exclusive lock; a lock timeout skips the write."""
        path = Path(path)
        try:
            with file_lock(path, exclusive=True, timeout_ms=timeout_ms):
                atomic_write_text(path, self.to_json())
        except LockTimeoutError as e:
            logger.warning(f"Baseline not saved: {e}")
            return SaveOutcome.SKIPPED
        logger.info(f"Saved baseline with {len(self)} entries to {path}")
        return SaveOutcome.SAVED


def _disk_path(result: CheckResult, file_paths: Optional[Mapping[str, Path]]) -> Path:
    if file_paths and result.path in file_paths:
        return file_paths[result.path]
    return Path(result.path)


def entry_for(
    result: CheckResult, file_paths: Optional[Mapping[str, Path]] = None, hasher: Hasher = compute_file_hash
) -> Optional[BaselineEntry]:
    """Baseline entry recording *result*, or None if it cannot be recorded."""
    if result.is_structure:
        return BaselineEntry(
            kind=STRUCTURE_KIND,
            violation_kind=result.violation.kind.value if result.violation else None,
            count=result.sloc,
        )
    digest = hasher(_disk_path(result, file_paths))
    if digest is None:
        return None
    return BaselineEntry(kind=CONTENT_KIND, lines=result.sloc, hash=digest)


def grandfather(
    results: Iterable[CheckResult],
    baseline: Baseline,
    file_paths: Optional[Mapping[str, Path]] = None,
    hasher: Hasher = compute_file_hash,
) -> List[CheckResult]:
    """Rewrite failures the baseline still certifies to Grandfathered."""
    rewritten = []
    for result in results:
        entry = baseline.get(result.path) if result.is_failed else None
        if entry is not None and _still_matches(result, entry, file_paths, hasher):
            result = result.into_grandfathered()
        rewritten.append(result)
    return rewritten


def _still_matches(
    result: CheckResult,
    entry: BaselineEntry,
    file_paths: Optional[Mapping[str, Path]],
    hasher: Hasher,
) -> bool:
    if result.is_structure:
        return (
            entry.kind == STRUCTURE_KIND
            and result.violation is not None
            and entry.violation_kind == result.violation.kind.value
        )
    if entry.kind != CONTENT_KIND or entry.hash is None:
        return False
    return hasher(_disk_path(result, file_paths)) == entry.hash


def update_baseline(
    results: Iterable[CheckResult],
    mode: UpdateMode,
    baseline: Baseline,
    file_paths: Optional[Mapping[str, Path]] = None,
    hasher: Hasher = compute_file_hash,
) -> Baseline:
    """Build the next baseline from failed and grandfathered results.

    ``all`` rebuilds from scratch. ``content``/``structure`` rebuild that
    category and keep the other one's existing entries. ``new`` keeps every
    existing entry and only adds paths not yet present. A path with several
    violations keeps the last one recorded.
    """
    recordable = [r for r in results if r.is_failed or r.is_grandfathered]

    if mode == UpdateMode.ALL:
        entries: Dict[str, BaselineEntry] = {}
    elif mode == UpdateMode.CONTENT:
        entries = {p: e for p, e in baseline.entries.items() if e.kind == STRUCTURE_KIND}
        recordable = [r for r in recordable if not r.is_structure]
    elif mode == UpdateMode.STRUCTURE:
        entries = {p: e for p, e in baseline.entries.items() if e.kind == CONTENT_KIND}
        recordable = [r for r in recordable if r.is_structure]
    else:
        entries = dict(baseline.entries)
        recordable = [r for r in recordable if r.path not in baseline.entries]

    for result in recordable:
        entry = entry_for(result, file_paths, hasher)
        if entry is not None:
            entries[result.path] = entry
    return Baseline(entries)


def find_stale(results: Iterable[CheckResult], baseline: Baseline) -> List[str]:
    """Baseline paths that no current failed or grandfathered result targets."""
    live = {r.path for r in results if r.is_failed or r.is_grandfathered}
    return [path for path in baseline.paths if path not in live]


@dataclass
class RatchetOutcome:
    stale: List[str]
    failed: bool = False
    tightened: Optional[Baseline] = None


def apply_ratchet(
    results: List[CheckResult], baseline: Baseline, mode: RatchetMode
) -> RatchetOutcome:
    """Evaluate the ratchet.

    ``warn`` only reports stale entries, ``auto`` returns a baseline without
    them, ``strict`` marks the run as failed while any are present.
    """
    stale = find_stale(results, baseline)
    if not stale:
        return RatchetOutcome(stale=[])
    if mode == RatchetMode.AUTO:
        stale_set = set(stale)
        tightened = Baseline({p: e for p, e in baseline.entries.items() if p not in stale_set})
        logger.info(f"Ratchet: removing {len(stale)} stale baseline entries")
        return RatchetOutcome(stale=stale, tightened=tightened)
    if mode == RatchetMode.STRICT:
        return RatchetOutcome(stale=stale, failed=True)
    logger.warning(
        f"Ratchet: {len(stale)} baseline entries no longer fail and can be removed: "
        + ", ".join(stale)
    )
    return RatchetOutcome(stale=stale)
