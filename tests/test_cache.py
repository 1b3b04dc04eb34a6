"""Tests for the persistent line-count cache."""

import json
from concurrent.futures import ThreadPoolExecutor

from sloc_guard.cache import SlocCache, compute_config_hash, file_signature
from sloc_guard.config import ContentConfig
from sloc_guard.counting import LanguageDefinition, LanguageRegistry, LineStats
from sloc_guard.file_ops import SaveOutcome, file_lock

STATS = LineStats(total=10, code=7, comment=2, blank=1)


class TestConfigHash:
    def test_stable_for_equal_config(self):
        registry = LanguageRegistry.with_builtins()
        assert compute_config_hash(ContentConfig(), registry) == compute_config_hash(ContentConfig(), registry)
        assert len(compute_config_hash(ContentConfig(), registry)) == 16

    def test_changes_with_counting_settings(self):
        registry = LanguageRegistry.with_builtins()
        base = compute_config_hash(ContentConfig(), registry)
        assert compute_config_hash(ContentConfig(skip_comments=False), registry) != base
        assert compute_config_hash(ContentConfig(extensions=["rs"]), registry) != base

    def test_ignores_limits(self):
        registry = LanguageRegistry.with_builtins()
        assert compute_config_hash(ContentConfig(max_lines=10), registry) == compute_config_hash(
            ContentConfig(), registry
        )

    def test_changes_with_languages(self):
        custom = LanguageDefinition(name="Foo", extensions=("foo",), line_comments=("%",))
        assert compute_config_hash(ContentConfig(), LanguageRegistry.with_builtins([custom])) != (
            compute_config_hash(ContentConfig(), LanguageRegistry.with_builtins())
        )


class TestSlocCache:
    def test_hit_requires_same_size_and_mtime(self, tmp_path):
        cache = SlocCache("cfg")
        path = tmp_path / "a.rs"
        cache.put(path, 100, 5, STATS)
        assert cache.get(path, 100, 5) == STATS
        assert cache.get(path, 101, 5) is None
        assert cache.get(path, 100, 6) is None
        assert cache.hits == 1
        assert cache.misses == 2

    def test_save_and_load(self, tmp_path):
        cache_file = tmp_path / "state" / "cache.json"
        cache = SlocCache("cfg")
        cache.put(tmp_path / "a.rs", 100, 5, STATS)
        assert cache.dirty
        assert cache.save(cache_file) == SaveOutcome.SAVED
        assert not cache.dirty

        loaded = SlocCache.load(cache_file, "cfg")
        assert loaded.get(tmp_path / "a.rs", 100, 5) == STATS
        data = json.loads(cache_file.read_text())
        assert data["version"] == 1
        assert data["config_hash"] == "cfg"

    def test_config_hash_mismatch_discards_entries(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        cache = SlocCache("old")
        cache.put(tmp_path / "a.rs", 1, 1, STATS)
        cache.save(cache_file)
        assert len(SlocCache.load(cache_file, "new")) == 0

    def test_corrupt_or_missing_file_is_empty(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        assert len(SlocCache.load(cache_file, "cfg")) == 0
        assert not (tmp_path / "cache.json.lock").exists()
        cache_file.write_text("{broken")
        assert len(SlocCache.load(cache_file, "cfg")) == 0
        cache_file.write_text('{"version": 99, "config_hash": "cfg", "entries": {}}')
        assert len(SlocCache.load(cache_file, "cfg")) == 0

    def test_locked_file_skips_save(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        cache = SlocCache("cfg")
        cache.put(tmp_path / "a.rs", 1, 1, STATS)
        with file_lock(cache_file, exclusive=True):
            assert cache.save(cache_file, timeout_ms=50) == SaveOutcome.SKIPPED
        assert cache.dirty
        assert not cache_file.exists()

    def test_retain_drops_unseen_files(self, tmp_path):
        cache = SlocCache("cfg")
        cache.put(tmp_path / "a.rs", 1, 1, STATS)
        cache.put(tmp_path / "b.rs", 1, 1, STATS)
        cache.save(tmp_path / "cache.json")
        cache.retain([tmp_path / "a.rs"])
        assert len(cache) == 1
        assert cache.dirty

    def test_concurrent_puts(self, tmp_path):
        cache = SlocCache("cfg")

        def put(i):
            cache.put(tmp_path / f"f{i}.rs", i, i, STATS)
            return cache.get(tmp_path / f"f{i}.rs", i, i)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(put, range(200)))
        assert len(cache) == 200
        assert all(r == STATS for r in results)

    def test_file_signature(self, tmp_path):
        path = tmp_path / "a.rs"
        path.write_text("abc")
        size, mtime = file_signature(path)
        assert size == 3
        assert mtime > 0
        assert file_signature(tmp_path / "missing.rs") is None
