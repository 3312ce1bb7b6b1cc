"""Decide whether a filesystem entry matches a scan criterion."""

import re
from datetime import datetime

from declutter.exceptions import InvalidPatternError
from declutter.models import ScanCriterion


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a criterion pattern, raising InvalidPatternError on bad syntax."""
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e


class Matcher:
    """A ScanCriterion with its pattern compiled once.

    Build one per scan or rule target and reuse it for every entry.

    Raises:
        InvalidPatternError: if the criterion's pattern does not compile.
    """

    def __init__(self, criterion: ScanCriterion) -> None:
        self.criterion = criterion
        self._regex = compile_pattern(criterion.pattern) if criterion.pattern is not None else None

    @property
    def has_pattern(self) -> bool:
        return self._regex is not None

    def name_matches(self, name: str) -> bool:
        """Search the pattern anywhere in the base name; no pattern matches all."""
        if self._regex is None:
            return True
        return self._regex.search(name) is not None

    def matches(self, name: str, size_bytes: int, modified: datetime, now: datetime) -> bool:
        """Apply every constraint that is set; all of them must hold."""
        threshold = self.criterion.size_threshold
        if threshold is not None and not size_bytes > threshold:
            return False

        max_age = self.criterion.age_threshold
        if max_age is not None and not (now - modified) > max_age:
            return False

        return self.name_matches(name)

    def matches_directory(self, name: str, total_size: int) -> bool:
        """Judge a directory as a unit by its name and aggregate size only."""
        threshold = self.criterion.size_threshold
        if threshold is not None and not total_size > threshold:
            return False
        return self.name_matches(name)


def classify(
    name: str,
    size_bytes: int,
    modified: datetime,
    criterion: ScanCriterion,
    now: datetime | None = None,
) -> bool:
    """One-off classification of a single entry.

    Compiles the pattern on every call; traversal code should hold a Matcher.
    """
    return Matcher(criterion).matches(name, size_bytes, modified, now or datetime.now())


def validate_criterion(criterion: ScanCriterion) -> list[str]:
    """Return human-readable problems with a criterion (empty when valid)."""
    problems = []
    if criterion.pattern is not None:
        try:
            compile_pattern(criterion.pattern)
        except InvalidPatternError as e:
            problems.append(str(e))
    if criterion.age_threshold is not None and criterion.age_threshold.total_seconds() < 0:
        problems.append("Age threshold must not be negative")
    return problems
