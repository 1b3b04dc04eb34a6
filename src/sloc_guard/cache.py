"""
Persistent SLOC cache keyed by file size, mtime and a config digest.

A hit skips reading and counting the file. Any change to the size, the
modification time or the counting-related configuration is a miss.
"""

import hashlib
import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .config.models import ContentConfig
from .counting import LanguageRegistry, LineStats
from .exceptions import FileAccessError, LockTimeoutError
from .file_ops import DEFAULT_LOCK_TIMEOUT_MS, SaveOutcome, atomic_write_text, file_lock, safe_read_text
from .logging_config import get_logger

logger = get_logger(__name__)

CACHE_VERSION = 1


def compute_config_hash(content: ContentConfig, registry: LanguageRegistry) -> str:
    """Digest of everything that changes how lines are counted."""
    payload = {
        "languages": registry.fingerprint(),
        "skip_comments": content.skip_comments,
        "skip_blank": content.skip_blank,
        "extensions": sorted(content.extension_set),
    }
    encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


@dataclass(frozen=True)
class CacheEntry:
    size: int
    mtime: int
    stats: LineStats

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "mtime": self.mtime, "stats": self.stats.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            size=int(data["size"]),
            mtime=int(data["mtime"]),
            stats=LineStats.from_dict(data["stats"]),
        )


def file_signature(path: Path) -> Optional[tuple]:
    """(size, mtime in ns) of *path*, or None if it cannot be stat'ed."""
    try:
        st = path.stat()
    except OSError:
        return None
    return (st.st_size, st.st_mtime_ns)


class SlocCache:
    """
    Thread-safe line-count cache.

    Workers call ``get``/``put`` concurrently; a single lock guards the
    entry map for the duration of each lookup or insert.
    """

    def __init__(self, config_hash: str, entries: Optional[Dict[str, CacheEntry]] = None):
        self.config_hash = config_hash
        self._entries: Dict[str, CacheEntry] = dict(entries or {})
        self._lock = threading.Lock()
        self._dirty = False
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @staticmethod
    def key_for(path: Path) -> str:
        return str(Path(path).absolute())

    def get(self, path: Path, size: int, mtime: int) -> Optional[LineStats]:
        key = self.key_for(path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.size == size and entry.mtime == mtime:
                self.hits += 1
                return entry.stats
            self.misses += 1
        return None

    def put(self, path: Path, size: int, mtime: int, stats: LineStats) -> None:
        key = self.key_for(path)
        with self._lock:
            self._entries[key] = CacheEntry(size, mtime, stats)
            self._dirty = True

    def retain(self, paths: Iterable[Path]) -> None:
        """Drop entries for files not seen in this run."""
        keep = {self.key_for(p) for p in paths}
        with self._lock:
            before = len(self._entries)
            self._entries = {k: v for k, v in self._entries.items() if k in keep}
            if len(self._entries) != before:
                self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def to_json(self) -> str:
        with self._lock:
            entries = {k: self._entries[k].to_dict() for k in sorted(self._entries)}
        data = {"version": CACHE_VERSION, "config_hash": self.config_hash, "entries": entries}
        return json.dumps(data, sort_keys=True) + "\n"

    @classmethod
    def load(cls, path: Path, config_hash: str) -> "SlocCache":
        """
        Load the cache file; any problem yields an empty cache.

        A different version or config hash discards every entry.
        """
        path = Path(path)
        if not path.exists():
            return cls(config_hash)
        try:
            with file_lock(path, exclusive=False):
                text = safe_read_text(path)
        except FileNotFoundError:
            return cls(config_hash)
        except (LockTimeoutError, FileAccessError) as e:
            logger.warning(f"Cache not loaded: {e}")
            return cls(config_hash)

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt cache {path}: {e}")
            return cls(config_hash)

        if not isinstance(raw, dict) or raw.get("version") != CACHE_VERSION:
            logger.debug("Cache version mismatch; starting fresh")
            return cls(config_hash)
        if raw.get("config_hash") != config_hash:
            logger.debug("Cache config hash changed; starting fresh")
            return cls(config_hash)

        entries = {}
        for key, value in (raw.get("entries") or {}).items():
            try:
                entries[key] = CacheEntry.from_dict(value)
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Dropping malformed cache entry for {key}")
        logger.debug(f"Loaded {len(entries)} cache entries from {path}")
        return cls(config_hash, entries)

    def save(self, path: Path, timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS) -> SaveOutcome:
        """Persist under an exclusive lock; failures skip the write."""
        path = Path(path)
        try:
            with file_lock(path, exclusive=True, timeout_ms=timeout_ms):
                atomic_write_text(path, self.to_json())
        except (LockTimeoutError, FileAccessError) as e:
            logger.warning(f"Cache not saved: {e}")
            return SaveOutcome.SKIPPED
        self._dirty = False
        logger.debug(f"Saved {len(self)} cache entries to {path} (hits={self.hits}, misses={self.misses})")
        return SaveOutcome.SAVED
