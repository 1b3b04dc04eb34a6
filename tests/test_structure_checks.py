"""Tests for directory limit checks and sibling rules."""

from sloc_guard.checking import SiblingChecker, StructureChecker, limit_outcome
from sloc_guard.config import SiblingRule, StructureConfig, StructureRule, build_config
from sloc_guard.models import CheckStatus, ViolationKind, structure_violation_to_result
from sloc_guard.scanning import DirStats


class TestLimitOutcome:
    def test_unset_and_unlimited_never_fire(self):
        assert limit_outcome(5, None) is None
        assert limit_outcome(10_000, -1) is None

    def test_over_limit_fails(self):
        assert limit_outcome(11, 10) is False

    def test_at_limit_without_warning_passes(self):
        assert limit_outcome(10, 10) is None

    def test_absolute_warning(self):
        assert limit_outcome(8, 10, warn_at=8) is True
        assert limit_outcome(7, 10, warn_at=8) is None

    def test_fraction_warning_uses_ceiling(self):
        assert limit_outcome(10, 10, warn_fraction=0.9) is True
        assert limit_outcome(9, 10, warn_fraction=0.9) is None


class TestStructureChecker:
    def test_each_limit_kind(self):
        config = StructureConfig(max_files=2, max_dirs=1, max_depth=1)
        dir_stats = {
            ".": DirStats(file_count=3, dir_count=0, depth=0),
            "a": DirStats(file_count=1, dir_count=2, depth=1),
            "a/b": DirStats(file_count=0, dir_count=0, depth=2),
        }
        violations = StructureChecker(config).check(dir_stats)
        assert [(v.path, v.kind, v.actual, v.limit) for v in violations] == [
            (".", ViolationKind.FILE_COUNT, 3, 2),
            ("a", ViolationKind.DIR_COUNT, 2, 1),
            ("a/b", ViolationKind.MAX_DEPTH, 2, 1),
        ]
        assert not any(v.is_warning for v in violations)

    def test_warning_threshold(self):
        config = StructureConfig(max_files=10, warn_files_at=8)
        violations = StructureChecker(config).check({"src": DirStats(file_count=8, depth=1)})
        assert len(violations) == 1
        assert violations[0].is_warning
        assert structure_violation_to_result(violations[0]).status == CheckStatus.WARNING

    def test_depth_warning_threshold(self):
        config = build_config({"structure": {"max_depth": 4, "warn_threshold": 0.5}}).structure
        violations = StructureChecker(config).check_directory("a/b/c/d", DirStats(depth=4))
        assert [(v.kind, v.is_warning) for v in violations] == [(ViolationKind.MAX_DEPTH, True)]
        assert StructureChecker(config).check_directory("a/b", DirStats(depth=2)) == []

    def test_rule_warn_threshold_applies_to_depth(self):
        config = StructureConfig(
            max_depth=10,
            rules=[StructureRule("src/**", max_depth=3, warn_threshold=0.5)],
        )
        violations = StructureChecker(config).check({"src/a/b": DirStats(depth=3)})
        assert violations[0].kind == ViolationKind.MAX_DEPTH
        assert violations[0].is_warning
        assert violations[0].limit == 3

    def test_rule_and_override_reason_flow_into_violation(self):
        config = StructureConfig(
            max_files=1,
            rules=[StructureRule("src/**", max_files=3, reason="bigger modules")],
        )
        violations = StructureChecker(config).check({"src/a": DirStats(file_count=4, depth=2)})
        assert violations[0].limit == 3
        assert violations[0].override_reason == "bigger modules"
        assert violations[0].triggering_rule_pattern == "src/**"

    def test_unlimited_rule_disables_check(self):
        config = StructureConfig(max_files=1, rules=[StructureRule("vendor/**", max_files=-1)])
        assert StructureChecker(config).check({"vendor/x": DirStats(file_count=500, depth=2)}) == []

    def test_result_conversion_has_hint(self):
        config = StructureConfig(max_files=1)
        violation = StructureChecker(config).check({".": DirStats(file_count=2)})[0]
        result = structure_violation_to_result(violation)
        assert result.is_structure
        assert result.sloc == 2
        assert result.suggestions


def _checker(*siblings, scope="src/**"):
    return SiblingChecker(StructureConfig(rules=[StructureRule(scope, siblings=list(siblings))]))


class TestDirectedSiblings:
    def test_missing_test_file(self):
        checker = _checker(SiblingRule(kind="directed", match="*.rs", require=("{stem}_test.rs",)))
        violations = checker.check(["src/a.rs", "src/a_test.rs", "src/b.rs"])
        assert len(violations) == 1
        violation = violations[0]
        assert violation.path == "src/b.rs"
        assert violation.kind == ViolationKind.MISSING_SIBLING
        assert violation.violation_type.expected == "src/b_test.rs"

    def test_out_of_scope_files_are_ignored(self):
        checker = _checker(SiblingRule(kind="directed", match="*.rs", require=("{stem}_test.rs",)))
        assert checker.check(["lib/b.rs"]) == []

    def test_warn_severity(self):
        checker = _checker(
            SiblingRule(kind="directed", match="*.rs", require=("{stem}_test.rs",), severity="warn")
        )
        assert checker.check(["src/b.rs"])[0].is_warning


class TestSiblingGroups:
    def _group(self, severity="error"):
        return SiblingRule(
            kind="group",
            group=("{stem}.tsx", "{stem}.test.tsx", "{stem}.stories.tsx"),
            severity=severity,
        )

    def test_incomplete_group(self):
        violations = _checker(self._group()).check(["src/Foo.tsx", "src/Foo.test.tsx"])
        assert len(violations) == 1
        violation = violations[0]
        assert violation.path == "src/Foo.tsx"
        assert violation.kind == ViolationKind.GROUP_INCOMPLETE
        assert violation.violation_type.missing == ("Foo.stories.tsx",)
        assert violation.actual == 2
        assert violation.limit == 3

    def test_complete_group_and_unrelated_files(self):
        files = ["src/Foo.tsx", "src/Foo.test.tsx", "src/Foo.stories.tsx", "src/util.ts"]
        assert _checker(self._group()).check(files) == []

    def test_anchor_is_first_present_member(self):
        violations = _checker(self._group()).check(["src/Bar.stories.tsx"])
        assert violations[0].path == "src/Bar.stories.tsx"
        assert violations[0].violation_type.missing == ("Bar.tsx", "Bar.test.tsx")

    def test_groups_are_per_directory(self):
        files = ["src/a/Foo.tsx", "src/a/Foo.test.tsx", "src/a/Foo.stories.tsx", "src/b/Foo.tsx"]
        violations = _checker(self._group()).check(files)
        assert [v.path for v in violations] == ["src/b/Foo.tsx"]
