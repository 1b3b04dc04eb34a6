"""Sibling rules: files that must live next to each other.

Templates use ``{stem}`` for the triggering file's stem. A *directed* rule
requires every ``require`` template to exist next to each file matching
``match``. An *atomic group* requires all members to exist as soon as one
does; it reports a single GroupIncomplete on the first present member.
"""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..config.models import SiblingRule, StructureConfig
from ..matching import GlobPattern, compile_glob, parent_path, path_name
from ..models import StructureViolation, ViolationKind, ViolationType
from ..scanning.allowlist import CompiledStructureRule, compile_rules

STEM_TOKEN = "{stem}"
_GLOB_SPECIAL = re.compile(r"([*?\[\]{}\\])")


def _escape_glob(text: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", text)


def template_glob(template: str) -> GlobPattern:
    """Glob matching any file a template could produce."""
    prefix, _, suffix = template.partition(STEM_TOKEN)
    return compile_glob(_escape_glob(prefix) + "*" + _escape_glob(suffix))


def expand_template(template: str, stem: str) -> str:
    return template.replace(STEM_TOKEN, stem)


def extract_stem(template: str, name: str) -> Optional[str]:
    """The stem that makes *template* produce *name*, or None."""
    prefix, _, suffix = template.partition(STEM_TOKEN)
    if len(name) <= len(prefix) + len(suffix):
        return None
    if not name.startswith(prefix) or not name.endswith(suffix):
        return None
    return name[len(prefix): len(name) - len(suffix)]


def _join(directory: str, name: str) -> str:
    return name if directory == "." else f"{directory}/{name}"


@dataclass(frozen=True)
class _CompiledSibling:
    rule: CompiledStructureRule
    sibling: SiblingRule
    match: Optional[GlobPattern]
    # Globs for the files the rule requires; such files never trigger it.
    produced: Tuple[GlobPattern, ...]


class SiblingChecker:
    """Evaluates every sibling rule over a file list."""

    def __init__(self, config: StructureConfig):
        self._directed: List[_CompiledSibling] = []
        self._groups: List[_CompiledSibling] = []
        for rule in compile_rules(config):
            for sibling in rule.rule.siblings:
                if sibling.kind == "directed":
                    self._directed.append(
                        _CompiledSibling(
                            rule,
                            sibling,
                            compile_glob(sibling.match),
                            tuple(template_glob(t) for t in sibling.require),
                        )
                    )
                else:
                    self._groups.append(_CompiledSibling(rule, sibling, None, ()))

    @property
    def enabled(self) -> bool:
        return bool(self._directed or self._groups)

    def check(self, files: Iterable[str]) -> List[StructureViolation]:
        file_list = sorted(set(files))
        if not self.enabled:
            return []
        present: Set[str] = set(file_list)
        violations = self._check_directed(file_list, present)
        violations.extend(self._check_groups(file_list))
        return sorted(violations, key=lambda v: v.sort_key())

    def _check_directed(self, files: List[str], present: Set[str]) -> List[StructureViolation]:
        violations = []
        for path in files:
            directory, name = parent_path(path), path_name(path)
            stem = PurePosixPath(name).stem
            for compiled in self._directed:
                if not compiled.rule.matches_directory(directory):
                    continue
                if not compiled.match.matches(path, is_dir=False):
                    continue
                if any(glob.matches(name, is_dir=False) for glob in compiled.produced):
                    continue
                for template in compiled.sibling.require:
                    expected = _join(directory, expand_template(template, stem))
                    if expected in present:
                        continue
                    violations.append(
                        StructureViolation(
                            path=path,
                            violation_type=ViolationType(
                                ViolationKind.MISSING_SIBLING, expected=expected
                            ),
                            is_warning=compiled.sibling.is_warning,
                            triggering_rule_pattern=compiled.rule.scope,
                        )
                    )
        return violations

    def _check_groups(self, files: List[str]) -> List[StructureViolation]:
        # (group number, directory, stem) -> member index -> path
        instances: Dict[Tuple[int, str, str], Dict[int, str]] = {}
        for path in files:
            directory, name = parent_path(path), path_name(path)
            for number, compiled in enumerate(self._groups):
                if not compiled.rule.matches_directory(directory):
                    continue
                best: Optional[Tuple[int, int, str]] = None
                for member, template in enumerate(compiled.sibling.group):
                    stem = extract_stem(template, name)
                    if stem is None:
                        continue
                    specificity = len(template) - len(STEM_TOKEN)
                    if best is None or specificity > best[0]:
                        best = (specificity, member, stem)
                if best is None:
                    continue
                _, member, stem = best
                instances.setdefault((number, directory, stem), {})[member] = path

        violations = []
        for (number, directory, stem), members in sorted(instances.items()):
            compiled = self._groups[number]
            group = compiled.sibling.group
            missing = tuple(
                expand_template(template, stem)
                for member, template in enumerate(group)
                if member not in members
            )
            if not missing:
                continue
            anchor = members[min(members)]
            violations.append(
                StructureViolation(
                    path=anchor,
                    violation_type=ViolationType(
                        ViolationKind.GROUP_INCOMPLETE,
                        patterns=tuple(group),
                        missing=missing,
                    ),
                    actual=len(members),
                    limit=len(group),
                    is_warning=compiled.sibling.is_warning,
                    triggering_rule_pattern=compiled.rule.scope,
                )
            )
        return violations
