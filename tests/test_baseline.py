"""Tests for the baseline store, grandfathering and the ratchet."""

import json

import pytest

from sloc_guard.baseline import (
    Baseline,
    BaselineEntry,
    RatchetMode,
    UpdateMode,
    apply_ratchet,
    compute_file_hash,
    find_stale,
    grandfather,
    update_baseline,
)
from sloc_guard.counting import LineStats
from sloc_guard.exceptions import ConfigFileError, UnsupportedVersionError
from sloc_guard.file_ops import SaveOutcome, file_lock
from sloc_guard.models import (
    CheckResult,
    CheckStatus,
    StructureViolation,
    ViolationKind,
    structure_violation_to_result,
)


def _make_content_result(path, status=CheckStatus.FAILED, sloc=600, limit=500):
    return CheckResult(path=path, status=status, limit=limit, stats=LineStats(total=sloc, code=sloc))


def _make_structure_result(path, kind=ViolationKind.FILE_COUNT, actual=30, limit=20):
    return structure_violation_to_result(
        StructureViolation.limit_exceeded(kind, path, actual, limit)
    )


def _fixed_hash(path):
    return "h-" + str(path)


class TestBaselineEntry:
    def test_content_entry_dict(self):
        entry = BaselineEntry(kind="content", lines=600, hash="abc")
        assert entry.to_dict() == {"kind": "content", "lines": 600, "hash": "abc"}
        assert BaselineEntry.from_dict(entry.to_dict()) == entry

    def test_structure_entry_dict(self):
        entry = BaselineEntry(kind="structure", violation_kind="file_count", count=30)
        assert entry.to_dict() == {"kind": "structure", "violation_kind": "file_count", "count": 30}

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            BaselineEntry.from_dict({"kind": "other"})


class TestBaselineFile:
    def test_missing_file_is_empty(self, tmp_path):
        baseline = Baseline.load(tmp_path / "baseline.json")
        assert len(baseline) == 0
        assert not (tmp_path / "baseline.json.lock").exists()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "baseline.json"
        baseline = Baseline({
            "b.rs": BaselineEntry(kind="content", lines=10, hash="x"),
            "a": BaselineEntry(kind="structure", violation_kind="dir_count", count=4),
        })
        assert baseline.save(path) == SaveOutcome.SAVED
        loaded = Baseline.load(path)
        assert loaded == baseline
        assert loaded.paths == ["a", "b.rs"]
        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert list(data["files"]) == ["a", "b.rs"]

    def test_saving_twice_is_byte_identical(self, tmp_path):
        path = tmp_path / "baseline.json"
        baseline = Baseline({"a.rs": BaselineEntry(kind="content", lines=10, hash="x")})
        baseline.save(path)
        first = path.read_bytes()
        Baseline.load(path).save(path)
        assert path.read_bytes() == first

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "baseline.json"
        path.write_text('{"version": 2, "files": {}}')
        with pytest.raises(UnsupportedVersionError):
            Baseline.load(path)
        assert len(Baseline.load(path, permissive=True)) == 0

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "baseline.json"
        path.write_text("{not json")
        with pytest.raises(ConfigFileError):
            Baseline.load(path)

    def test_locked_file_skips_save(self, tmp_path):
        path = tmp_path / "baseline.json"
        with file_lock(path, exclusive=True):
            outcome = Baseline().save(path, timeout_ms=50)
        assert outcome == SaveOutcome.SKIPPED
        assert not path.exists()


class TestGrandfather:
    def test_content_failure_matching_hash(self, tmp_path):
        source = tmp_path / "a.rs"
        source.write_text("fn a() {}\n")
        baseline = Baseline({"a.rs": BaselineEntry(kind="content", lines=600, hash=compute_file_hash(source))})

        results = grandfather([_make_content_result("a.rs")], baseline, {"a.rs": source})
        assert results[0].status == CheckStatus.GRANDFATHERED

    def test_edited_file_fails_again(self, tmp_path):
        source = tmp_path / "a.rs"
        source.write_text("fn a() {}\n")
        baseline = Baseline({"a.rs": BaselineEntry(kind="content", lines=600, hash=compute_file_hash(source))})
        source.write_text("fn a() {}\nfn b() {}\n")

        results = grandfather([_make_content_result("a.rs")], baseline, {"a.rs": source})
        assert results[0].status == CheckStatus.FAILED

    def test_structure_failure_matches_on_kind(self):
        baseline = Baseline({"src": BaselineEntry(kind="structure", violation_kind="file_count", count=25)})
        results = grandfather(
            [_make_structure_result("src"), _make_structure_result("src", ViolationKind.DIR_COUNT)],
            baseline,
        )
        assert [r.status for r in results] == [CheckStatus.GRANDFATHERED, CheckStatus.FAILED]

    def test_passed_and_warning_results_untouched(self):
        baseline = Baseline({"a.rs": BaselineEntry(kind="content", lines=1, hash="h-a.rs")})
        results = grandfather(
            [_make_content_result("a.rs", CheckStatus.WARNING, sloc=460)], baseline, hasher=_fixed_hash
        )
        assert results[0].status == CheckStatus.WARNING


class TestUpdateBaseline:
    def test_all_mode_records_failures(self):
        results = [
            _make_content_result("a.rs"),
            _make_content_result("ok.rs", CheckStatus.PASSED, sloc=10),
            _make_structure_result("src"),
        ]
        baseline = update_baseline(results, UpdateMode.ALL, Baseline(), hasher=_fixed_hash)
        assert baseline.paths == ["a.rs", "src"]
        assert baseline.get("a.rs") == BaselineEntry(kind="content", lines=600, hash="h-a.rs")
        assert baseline.get("src").violation_kind == "file_count"
        assert baseline.get("src").count == 30

    def test_all_mode_is_idempotent(self):
        results = [_make_content_result("a.rs"), _make_structure_result("src")]
        first = update_baseline(results, UpdateMode.ALL, Baseline(), hasher=_fixed_hash)
        rerun = grandfather(results, first, hasher=_fixed_hash)
        second = update_baseline(rerun, UpdateMode.ALL, first, hasher=_fixed_hash)
        assert second.to_json() == first.to_json()

    def test_content_mode_keeps_structure_entries(self):
        existing = Baseline({
            "src": BaselineEntry(kind="structure", violation_kind="file_count", count=25),
            "old.rs": BaselineEntry(kind="content", lines=700, hash="x"),
        })
        baseline = update_baseline([_make_content_result("a.rs")], UpdateMode.CONTENT, existing, hasher=_fixed_hash)
        assert baseline.paths == ["a.rs", "src"]

    def test_structure_mode_keeps_content_entries(self):
        existing = Baseline({"old.rs": BaselineEntry(kind="content", lines=700, hash="x")})
        baseline = update_baseline(
            [_make_structure_result("lib"), _make_content_result("a.rs")],
            UpdateMode.STRUCTURE,
            existing,
            hasher=_fixed_hash,
        )
        assert baseline.paths == ["lib", "old.rs"]

    def test_new_mode_only_adds(self):
        existing = Baseline({"a.rs": BaselineEntry(kind="content", lines=700, hash="old")})
        results = [_make_content_result("a.rs", sloc=900), _make_content_result("b.rs")]
        baseline = update_baseline(results, UpdateMode.NEW, existing, hasher=_fixed_hash)
        assert baseline.get("a.rs").hash == "old"
        assert "b.rs" in baseline

    def test_unreadable_file_is_not_recorded(self):
        baseline = update_baseline(
            [_make_content_result("gone.rs")], UpdateMode.ALL, Baseline(), hasher=lambda p: None
        )
        assert len(baseline) == 0


class TestRatchet:
    def _baseline(self):
        return Baseline({
            "a.rs": BaselineEntry(kind="content", lines=600, hash="h-a.rs"),
            "b.rs": BaselineEntry(kind="content", lines=600, hash="h-b.rs"),
        })

    def _results(self):
        return [
            _make_content_result("a.rs", CheckStatus.GRANDFATHERED),
            _make_content_result("b.rs", CheckStatus.PASSED, sloc=100),
        ]

    def test_find_stale(self):
        assert find_stale(self._results(), self._baseline()) == ["b.rs"]

    def test_strict_fails_on_stale_entries(self):
        outcome = apply_ratchet(self._results(), self._baseline(), RatchetMode.STRICT)
        assert outcome.failed
        assert outcome.stale == ["b.rs"]
        assert outcome.tightened is None

    def test_auto_removes_stale_entries(self):
        outcome = apply_ratchet(self._results(), self._baseline(), RatchetMode.AUTO)
        assert not outcome.failed
        assert outcome.tightened.paths == ["a.rs"]

    def test_auto_is_monotonic(self):
        tightened = apply_ratchet(self._results(), self._baseline(), RatchetMode.AUTO).tightened
        again = apply_ratchet(self._results(), tightened, RatchetMode.AUTO)
        assert again.stale == []
        assert again.tightened is None

    def test_warn_only_reports(self):
        outcome = apply_ratchet(self._results(), self._baseline(), RatchetMode.WARN)
        assert outcome.stale == ["b.rs"]
        assert not outcome.failed
        assert outcome.tightened is None

    def test_nothing_stale(self):
        results = [_make_content_result("a.rs", CheckStatus.GRANDFATHERED)]
        baseline = Baseline({"a.rs": BaselineEntry(kind="content", lines=600, hash="h")})
        assert apply_ratchet(results, baseline, RatchetMode.STRICT).failed is False
