"""
Check orchestration: config → scan → count → check → baseline → exit code.

The CLI builds a ``CheckOptions`` and calls ``run_check``; everything the
formatters need comes back in a ``CheckOutcome``. Configuration errors
propagate as exceptions. Policy violations only affect ``exit_code``.
"""

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from . import EXIT_SUCCESS, EXIT_THRESHOLD_EXCEEDED
from .baseline import (
    Baseline,
    RatchetMode,
    UpdateMode,
    apply_ratchet,
    grandfather,
    update_baseline,
)
from .cache import SlocCache, compute_config_hash, file_signature
from .checking import ContentChecker, StructureChecker
from .config import LoadedConfig, SlocGuardConfig, collect_expired_rules, load_config
from .counting import LanguageRegistry, LineCounter, LineStats
from .exceptions import FileAccessError
from .file_ops import SaveOutcome
from .git_diff import changed_files
from .history import TrendEntry, TrendHistory, git_context
from .logging_config import get_logger
from .models import (
    CheckContext,
    CheckResult,
    CheckSummary,
    structure_violation_to_result,
    sort_results,
)
from .scanning import FileFilter, ScanResult, StructureScanner, scan_files_only
from .state import baseline_path, cache_path, discover_project_root, history_path

logger = get_logger(__name__)

DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)


@dataclass
class CheckOptions:
    """Everything ``sloc-guard check`` can be told on the command line."""

    paths: List[Path] = field(default_factory=list)
    include: List[Path] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)
    config_file: Optional[Path] = None
    no_config: bool = False
    no_extends: bool = False
    overrides: Dict[str, Any] = field(default_factory=dict)
    baseline_file: Optional[Path] = None
    update_baseline: Optional[UpdateMode] = None
    warn_only: bool = False
    no_cache: bool = False
    no_gitignore: bool = False
    workers: Optional[int] = None
    base_dir: Optional[Path] = None
    # Narrow content checks to files changed since this ref, or to staged files.
    diff_ref: Optional[str] = None
    staged: bool = False

    @property
    def files_mode(self) -> bool:
        return bool(self.files)

    @property
    def diff_mode(self) -> bool:
        return bool(self.diff_ref) or self.staged


@dataclass
class CheckOutcome:
    results: List[CheckResult]
    context: CheckContext
    exit_code: int
    config: SlocGuardConfig
    stale_entries: List[str] = field(default_factory=list)
    baseline_saved: Optional[SaveOutcome] = None
    cache_saved: Optional[SaveOutcome] = None
    snapshot_taken: bool = False

    @property
    def summary(self) -> CheckSummary:
        return self.context.summary


def compute_exit_code(
    summary: CheckSummary,
    warnings_as_errors: bool,
    warn_only: bool,
    ratchet_failed: bool = False,
) -> int:
    if warn_only:
        return EXIT_SUCCESS
    if summary.failed > 0 or ratchet_failed:
        return EXIT_THRESHOLD_EXCEEDED
    if warnings_as_errors and summary.warnings > 0:
        return EXIT_THRESHOLD_EXCEEDED
    return EXIT_SUCCESS


class FileProcessor:
    """
    Counts and checks individual files; safe to call from worker threads.

    The cache is the only shared mutable state. ``failure_detected`` is set
    on the first failure when fail-fast is on, and workers that have not
    started yet return without doing any work.
    """

    def __init__(
        self,
        config: SlocGuardConfig,
        registry: LanguageRegistry,
        cache: Optional[SlocCache] = None,
        fail_fast: bool = False,
    ):
        self.checker = ContentChecker(config.content)
        self.registry = registry
        self.cache = cache
        self.fail_fast = fail_fast
        self.failure_detected = threading.Event()
        self._counters: Dict[str, LineCounter] = {}
        self._counters_lock = threading.Lock()

    def _counter_for(self, key: str) -> Optional[LineCounter]:
        language = self.registry.for_path(key)
        if language is None:
            return None
        with self._counters_lock:
            counter = self._counters.get(language.name)
            if counter is None:
                counter = self._counters[language.name] = LineCounter(language)
        return counter

    def count(self, key: str, disk_path: Path) -> Optional[LineStats]:
        counter = self._counter_for(key)
        if counter is None:
            logger.debug(f"Skipping {key}: no language for extension")
            return None

        signature = file_signature(disk_path) if self.cache is not None else None
        if signature is not None:
            cached = self.cache.get(disk_path, *signature)
            if cached is not None:
                return cached

        stats = counter.count_file(disk_path)
        if signature is not None:
            self.cache.put(disk_path, signature[0], signature[1], stats)
        return stats

    def process(self, key: str, disk_path: Path) -> Optional[CheckResult]:
        if self.fail_fast and self.failure_detected.is_set():
            return None
        resolution = self.checker.resolver.resolve(key)
        if resolution.is_excluded:
            return None
        try:
            stats = self.count(key, disk_path)
        except FileAccessError as e:
            logger.warning(f"Skipping {key}: {e.reason}")
            return None
        if stats is None:
            return None
        result = self.checker.check_resolved(key, stats, resolution)
        if result.is_failed and self.fail_fast:
            self.failure_detected.set()
        return result


def process_files(
    processor: FileProcessor, files: Dict[str, Path], workers: Optional[int] = None
) -> List[CheckResult]:
    """Run the processor over every file, in parallel when there are many."""
    workers = workers or DEFAULT_WORKERS
    results: List[CheckResult] = []
    if workers <= 1 or len(files) < 2:
        for key in sorted(files):
            result = processor.process(key, files[key])
            if result is not None:
                results.append(result)
        return results

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(processor.process, key, disk): key for key, disk in files.items()
        }
        try:
            for future in as_completed(futures):
                result = future.result()
                if result is not None:
                    results.append(result)
        except KeyboardInterrupt:
            for future in futures:
                future.cancel()
            raise
    return results


def _scan(
    config: SlocGuardConfig, options: CheckOptions, base_dir: Path
) -> ScanResult:
    file_filter = FileFilter(config.content.extension_set, config.content.exclude)
    if options.files_mode:
        return scan_files_only(options.files, file_filter, base_dir=base_dir)
    roots = list(options.include or options.paths or [base_dir])
    scanner = StructureScanner(
        config,
        file_filter,
        use_gitignore=False if options.no_gitignore else None,
        base_dir=base_dir,
    )
    return scanner.scan(roots)


def _narrow_to_changed(scan: ScanResult, options: CheckOptions, base_dir: Path) -> None:
    """Keep only changed files for content checks; directory stats stay whole."""
    changed = changed_files(base_dir, options.diff_ref, options.staged)
    before = len(scan.files)
    scan.files = {key: disk for key, disk in scan.files.items() if disk.resolve() in changed}
    logger.debug(f"Diff filter kept {len(scan.files)} of {before} files")


def _structure_results(config: SlocGuardConfig, scan: ScanResult) -> List[CheckResult]:
    checker = StructureChecker(config.structure)
    violations = list(scan.allowlist_violations)
    violations.extend(checker.check(scan.dir_stats))
    violations.extend(checker.check_siblings(scan.all_files))
    return [structure_violation_to_result(v) for v in violations]


def _totals(results: List[CheckResult]) -> Tuple[int, LineStats]:
    total = code = comment = blank = ignored = files = 0
    for result in results:
        if result.is_structure:
            continue
        raw = result.raw_stats or result.stats
        files += 1
        total += raw.total
        code += raw.code
        comment += raw.comment
        blank += raw.blank
        ignored += raw.ignored
    return files, LineStats(total, code, comment, blank, ignored)


def run_check(options: CheckOptions, loaded: Optional[LoadedConfig] = None) -> CheckOutcome:
    """
    Run one full check.

    Args:
        options: Command-line options
        loaded: Pre-loaded configuration (loaded from options when None)

    Returns:
        CheckOutcome with sorted results and the exit code

    Raises:
        ConfigurationError: Invalid configuration or baseline file
        ScanError: A scan root cannot be walked
    """
    base_dir = Path(options.base_dir or Path.cwd())
    if loaded is None:
        loaded = load_config(
            config_file=options.config_file,
            start=base_dir,
            no_config=options.no_config,
            no_extends=options.no_extends,
            **options.overrides,
        )
    config = loaded.config

    expired = collect_expired_rules(config)
    for rule in expired:
        logger.warning(rule.describe())

    project_root = discover_project_root(base_dir)
    baseline_file = Path(options.baseline_file or baseline_path(project_root))
    baseline: Optional[Baseline] = None
    if options.baseline_file is not None or baseline_file.exists() or options.update_baseline:
        baseline = Baseline.load(baseline_file, permissive=options.update_baseline is not None)

    registry = LanguageRegistry.with_builtins(config.languages)
    cache: Optional[SlocCache] = None
    cache_file = cache_path(project_root)
    if not options.no_cache:
        cache = SlocCache.load(cache_file, compute_config_hash(config.content, registry))

    started = time.monotonic()
    scan = _scan(config, options, base_dir)
    if options.diff_mode:
        _narrow_to_changed(scan, options, base_dir)
    logger.debug(
        f"Scanned {len(scan.files)} files and {len(scan.dir_stats)} directories "
        f"in {time.monotonic() - started:.2f}s"
    )

    processor = FileProcessor(config, registry, cache, fail_fast=config.check.fail_fast)
    results = process_files(processor, scan.files, options.workers)
    if not options.files_mode:
        results.extend(_structure_results(config, scan))

    results = sort_results(results)

    stale: List[str] = []
    ratchet_failed = False
    baseline_saved: Optional[SaveOutcome] = None
    if baseline is not None:
        results = grandfather(results, baseline, scan.files)
        ratchet_mode = config.baseline.ratchet
        if ratchet_mode and options.update_baseline is None and not options.diff_mode:
            outcome = apply_ratchet(results, baseline, RatchetMode(ratchet_mode))
            stale = outcome.stale
            ratchet_failed = outcome.failed
            if outcome.tightened is not None:
                baseline_saved = outcome.tightened.save(baseline_file)
        if options.update_baseline is not None:
            updated = update_baseline(results, options.update_baseline, baseline, scan.files)
            baseline_saved = updated.save(baseline_file)

    cache_saved: Optional[SaveOutcome] = None
    if cache is not None:
        if not (options.files_mode or options.diff_mode):
            cache.retain(scan.files.values())
        if cache.dirty:
            cache_saved = cache.save(cache_file)

    summary = CheckSummary.from_results(results, stale)
    context = CheckContext(
        summary=summary,
        files_scanned=len(scan.files),
        directories_scanned=len(scan.dir_stats),
        structure_enabled=not options.files_mode,
        expired_rules=[rule.describe() for rule in expired],
    )
    exit_code = compute_exit_code(
        summary, config.check.warnings_as_errors, options.warn_only, ratchet_failed
    )

    snapshot_taken = False
    if (
        exit_code == EXIT_SUCCESS
        and config.trend.auto_snapshot_on_check
        and not options.files_mode
        and not options.diff_mode
    ):
        snapshot_taken = take_snapshot(results, config, project_root)

    return CheckOutcome(
        results=results,
        context=context,
        exit_code=exit_code,
        config=config,
        stale_entries=stale,
        baseline_saved=baseline_saved,
        cache_saved=cache_saved,
        snapshot_taken=snapshot_taken,
    )


def take_snapshot(results: List[CheckResult], config: SlocGuardConfig, project_root: Path) -> bool:
    """Append a trend entry for this run unless throttled."""
    files, totals = _totals(results)
    git_ref, git_branch = git_context(project_root)
    entry = TrendEntry.from_stats(files, totals, git_ref=git_ref, git_branch=git_branch)
    path = history_path(project_root)
    history = TrendHistory.load(path)
    if not history.add_if_allowed(entry, config.trend):
        return False
    return history.save(path, config.trend) == SaveOutcome.SAVED
