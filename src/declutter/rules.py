"""Scheduled, rule-driven cleanup."""

import calendar
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable

from declutter.categories import get_category
from declutter.classifier import validate_criterion
from declutter.cleaner import collapse_nested, perform_action
from declutter.config import expand_path
from declutter.models import (
    CleaningRule,
    RuleAction,
    RuleExecutionResult,
    RuleTarget,
    Schedule,
    ScanCriterion,
)
from declutter.scanner import ScanFunction, scan_tree
from declutter.storage import RuleStore

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class RuleObserver:
    """Receives one notification per executed rule, on the thread that ran the request."""

    def on_rule_executed(self, result: RuleExecutionResult) -> None:
        pass


def default_rules() -> list[CleaningRule]:
    """Rules created on first run; both start disabled."""
    return [
        CleaningRule(
            name="Clean Download Fragments",
            description="Remove incomplete download files older than 7 days",
            icon="arrow.down.circle",
            targets=[
                RuleTarget(
                    path="~/Downloads",
                    criterion=ScanCriterion(
                        pattern=r"\.part$|\.download$|\.crdownload$",
                        size_threshold=1_000_000,  # 1 MB
                        age_threshold=timedelta(days=7),
                    ),
                    action=RuleAction.MOVE_TO_TRASH,
                    category="Incomplete Downloads",
                )
            ],
            schedule=Schedule.WEEKLY,
            is_enabled=False,
        ),
        CleaningRule(
            name="Clean Application Caches",
            description="Remove cache files larger than 500MB",
            icon="folder",
            targets=[
                RuleTarget(
                    path="~/.cache",
                    criterion=ScanCriterion(size_threshold=500_000_000),  # 500 MB
                    action=RuleAction.DELETE,
                    category="Application Caches",
                )
            ],
            schedule=Schedule.MONTHLY,
            is_enabled=False,
        ),
    ]


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def whole_months_between(start: datetime, end: datetime) -> int:
    """Number of complete calendar months from start to end (0 if end < start)."""
    if end < start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if _add_months(start, months) > end:
        months -= 1
    return max(months, 0)


def is_due(rule: CleaningRule, now: datetime) -> bool:
    """Whether a rule's schedule says it should run at now.

    Manual rules are never due. A rule that has never run is due. Otherwise at
    least one whole hour, day, 7 days or calendar month must have elapsed
    since the last run.
    """
    if rule.schedule is Schedule.MANUAL:
        return False
    if rule.last_run is None:
        return True

    elapsed = now - rule.last_run
    if elapsed < timedelta(0):
        return False

    if rule.schedule is Schedule.HOURLY:
        return elapsed >= timedelta(hours=1)
    if rule.schedule is Schedule.DAILY:
        return elapsed.days >= 1
    if rule.schedule is Schedule.WEEKLY:
        return elapsed.days >= 7
    if rule.schedule is Schedule.MONTHLY:
        return whole_months_between(rule.last_run, now) >= 1
    return False


def validate_target(target: RuleTarget) -> list[str]:
    """Problems that would make a target fail when executed."""
    problems = validate_criterion(target.criterion)
    if not target.path.strip():
        problems.append("Target path is empty")
    return problems


def validate_rule(rule: CleaningRule) -> list[str]:
    """Problems with a rule, one string per problem (empty when valid)."""
    problems = []
    if not rule.name.strip():
        problems.append("Rule name is empty")
    if not rule.targets:
        problems.append("Rule has no targets")
    for index, target in enumerate(rule.targets, start=1):
        problems.extend(f"Target {index}: {p}" for p in validate_target(target))
    return problems


class RulesEngine:
    """Owns the persisted rule collection and executes rules."""

    def __init__(
        self,
        store: RuleStore | None = None,
        scan_fn: ScanFunction = scan_tree,
        observer: RuleObserver | None = None,
        clock: Clock = datetime.now,
        max_workers: int = 4,
        protected_paths: Iterable[str] = (),
    ) -> None:
        self._store = store or RuleStore()
        self._scan_fn = scan_fn
        self.observer = observer or RuleObserver()
        self._clock = clock
        self._max_workers = max_workers
        self._protected_paths = list(protected_paths)
        self._lock = threading.RLock()

        loaded = self._store.load()
        if loaded is None:
            log.info("No saved rules, starting with defaults")
            self._rules = default_rules()
        else:
            self._rules = loaded

    # ------------------------------------------------------------------
    # Collection management
    # ------------------------------------------------------------------

    @property
    def rules(self) -> list[CleaningRule]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._rules]

    def get_rule(self, rule_id: str) -> CleaningRule | None:
        """Find a rule by id or unique id prefix."""
        with self._lock:
            exact = [r for r in self._rules if r.id == rule_id]
            matches = exact or [r for r in self._rules if r.id.startswith(rule_id)]
            return matches[0].model_copy(deep=True) if len(matches) == 1 else None

    def add_rule(self, rule: CleaningRule) -> None:
        with self._lock:
            self._rules.append(rule.model_copy(deep=True))
            self._save()

    def update_rule(self, rule: CleaningRule) -> bool:
        """Replace the rule with the same id; unknown ids are ignored."""
        with self._lock:
            for index, existing in enumerate(self._rules):
                if existing.id == rule.id:
                    self._rules[index] = rule.model_copy(deep=True)
                    self._save()
                    return True
        return False

    def delete_rule(self, rule_id: str) -> bool:
        with self._lock:
            before = len(self._rules)
            self._rules = [r for r in self._rules if r.id != rule_id]
            if len(self._rules) == before:
                return False
            self._save()
            return True

    def toggle_rule(self, rule_id: str) -> CleaningRule | None:
        with self._lock:
            for rule in self._rules:
                if rule.id == rule_id:
                    rule.is_enabled = not rule.is_enabled
                    self._save()
                    return rule.model_copy(deep=True)
        return None

    def _save(self) -> None:
        if not self._store.save(self._rules):
            log.warning("Rules were not saved; changes live only in memory")

    def _stamp_last_run(self, rule_id: str, when: datetime) -> None:
        # Only this rule's row changes; concurrent runs touch different rows
        with self._lock:
            for rule in self._rules:
                if rule.id == rule_id:
                    rule.last_run = when
                    self._save()
                    return

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def due_rules(self, now: datetime | None = None) -> list[CleaningRule]:
        now = now or self._clock()
        return [r for r in self.rules if r.is_enabled and is_due(r, now)]

    def execute_rule(self, rule: CleaningRule) -> RuleExecutionResult:
        """Run every target of rule in order and stamp its last run.

        Missing roots, bad patterns and per-file failures become entries in
        the result's error list; they never stop the remaining work.
        """
        result = self._perform(rule.model_copy(deep=True))
        self._stamp_last_run(rule.id, result.executed_at)
        self.observer.on_rule_executed(result)
        return result

    def check_and_execute_due_rules(self, now: datetime | None = None) -> list[RuleExecutionResult]:
        """Execute every enabled rule that is due, concurrently.

        Returns an empty list straight away when nothing is due.
        """
        due = self.due_rules(now)
        if not due:
            return []

        log.info("Running %d due rule(s)", len(due))
        results: list[RuleExecutionResult] = []
        workers = min(self._max_workers, len(due))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="declutter-rule") as executor:
            futures = {executor.submit(self._perform, rule): rule for rule in due}
            for future in as_completed(futures):
                rule = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    log.exception("Rule '%s' crashed", rule.name)
                    result = RuleExecutionResult(
                        rule_id=rule.id,
                        rule_name=rule.name,
                        executed_at=self._clock(),
                        errors=[f"Rule crashed: {e}"],
                    )
                self._stamp_last_run(rule.id, result.executed_at)
                self.observer.on_rule_executed(result)
                results.append(result)

        return results

    def _perform(self, rule: CleaningRule) -> RuleExecutionResult:
        result = RuleExecutionResult(rule_id=rule.id, rule_name=rule.name, executed_at=self._clock())

        for target in rule.targets:
            self._run_target(target, result)

        log.info(
            "Rule '%s': %d processed, %d bytes freed, %d error(s)",
            rule.name,
            result.files_processed,
            result.space_freed,
            len(result.errors),
        )
        return result

    def _run_target(self, target: RuleTarget, result: RuleExecutionResult) -> None:
        root = expand_path(target.path)
        try:
            root.stat()
        except FileNotFoundError:
            log.warning("Rule target not found: %s", target.path)
            result.errors.append(f"Path not found: {target.path}")
            return
        except OSError as e:
            log.warning("Cannot read rule target %s: %s", target.path, e)
            result.errors.append(f"Cannot read {target.path}: {e}")
            return

        category = get_category(target.category)
        try:
            report = self._scan_fn(
                root,
                target.criterion,
                target.category or category.name,
                category.risk_tier,
                recursive=True,
                include_directories=target.include_directories,
            )
        except OSError as e:
            log.warning("Scanning %s failed: %s", target.path, e)
            result.errors.append(f"{target.path}: {e}")
            return
        result.errors.extend(report.errors)

        for entry in collapse_nested(report.entries):
            outcome = perform_action(target.action, Path(entry.path), self._protected_paths)
            if outcome.error:
                result.errors.append(outcome.error)
            elif outcome.processed:
                result.processed_paths.append(entry.path)
                result.space_freed += outcome.bytes_freed


def run_scheduler(
    engine: RulesEngine,
    stop: threading.Event,
    interval: float = 300,
    on_results: Callable[[list[RuleExecutionResult]], None] | None = None,
    on_tick: Callable[[], object] | None = None,
) -> None:
    """Check for due rules every interval seconds until stop is set.

    Blocks the calling thread; results are handed to on_results there.
    """
    while not stop.is_set():
        if on_tick:
            on_tick()
        results = engine.check_and_execute_due_rules()
        if results and on_results:
            on_results(results)
        stop.wait(interval)
