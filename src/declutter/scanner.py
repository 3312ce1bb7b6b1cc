"""Recursive traversal and classification of filesystem trees.

This module walks a root directory with os.scandir, classifies every file
(and, after recursing into it, every directory by its aggregate size) and
returns the matches as ProblemEntry objects.
"""

import logging
import os
import stat
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Protocol

from declutter.classifier import Matcher
from declutter.config import expand_path
from declutter.exceptions import InvalidPatternError
from declutter.models import ProblemEntry, RiskTier, ScanCriterion, ScanReport

log = logging.getLogger(__name__)

EntryCallback = Callable[[ProblemEntry], None]


class CancelToken:
    """Cooperative cancellation flag shared between a caller and a traversal."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ScanFunction(Protocol):
    """Signature shared by scan_tree and test doubles standing in for it."""

    def __call__(
        self,
        root: Path,
        criterion: ScanCriterion,
        category: str,
        risk_tier: RiskTier,
        *,
        recursive: bool = True,
        include_directories: bool = True,
        cancel_token: CancelToken | None = None,
        on_entry: EntryCallback | None = None,
        now: datetime | None = None,
    ) -> ScanReport: ...


def get_directory_size(path: Path) -> tuple[int, int, int]:
    """
    Calculate total size of a directory tree.

    Symlinked directories are not followed.

    Returns:
        Tuple of (total_bytes, file_count, dir_count)
    """
    total_size = 0
    file_count = 0
    dir_count = 0
    stack: list[str | Path] = [path]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total_size += entry.stat(follow_symlinks=False).st_size
                            file_count += 1
                        elif entry.is_dir(follow_symlinks=False):
                            dir_count += 1
                            stack.append(entry.path)
                    except OSError:
                        continue
        except OSError:
            continue

    return total_size, file_count, dir_count


class _Traversal:
    """State for one scan_tree call."""

    def __init__(
        self,
        matcher: Matcher,
        category: str,
        risk_tier: RiskTier,
        recursive: bool,
        include_directories: bool,
        cancel_token: CancelToken,
        on_entry: EntryCallback | None,
        now: datetime,
    ) -> None:
        self.matcher = matcher
        self.category = category
        self.risk_tier = risk_tier
        self.recursive = recursive
        self.include_directories = include_directories
        self.cancel_token = cancel_token
        self.on_entry = on_entry
        self.now = now
        self.entries: list[ProblemEntry] = []
        # (st_dev, st_ino) of every directory entered, so symlink loops end
        self.visited: set[tuple[int, int]] = set()

    def _emit(self, path: str, name: str, size: int, st: os.stat_result, is_dir: bool) -> None:
        entry = ProblemEntry(
            path=path,
            name=name,
            size_bytes=size,
            modified=datetime.fromtimestamp(st.st_mtime),
            category=self.category,
            risk_tier=self.risk_tier,
            is_directory=is_dir,
        )
        self.entries.append(entry)
        if self.on_entry:
            self.on_entry(entry)

    def walk(self, directory: str | Path) -> int:
        """Classify the children of directory; return its aggregate file size."""
        total = 0
        try:
            with os.scandir(directory) as it:
                children = list(it)
        except OSError as e:
            log.debug("Cannot list %s: %s", directory, e)
            return 0

        for child in children:
            if self.cancel_token.cancelled:
                return total

            try:
                # Symlinks are followed like ordinary entries
                st = child.stat()
            except OSError as e:
                log.debug("Skipping %s: %s", child.path, e)
                continue

            if stat.S_ISREG(st.st_mode):
                total += st.st_size
                modified = datetime.fromtimestamp(st.st_mtime)
                if self.matcher.matches(child.name, st.st_size, modified, self.now):
                    self._emit(child.path, child.name, st.st_size, st, is_dir=False)

            elif stat.S_ISDIR(st.st_mode) and self.recursive:
                identity = (st.st_dev, st.st_ino)
                if identity in self.visited:
                    log.debug("Already visited %s, not descending again", child.path)
                    continue
                self.visited.add(identity)

                # Always descend; the pattern only filters what gets reported
                size = self.walk(child.path)
                total += size
                if self.cancel_token.cancelled:
                    return total

                if self.include_directories and self.matcher.matches_directory(child.name, size):
                    self._emit(child.path, child.name, size, st, is_dir=True)

        return total


def scan_tree(
    root: Path,
    criterion: ScanCriterion,
    category: str,
    risk_tier: RiskTier,
    *,
    recursive: bool = True,
    include_directories: bool = True,
    cancel_token: CancelToken | None = None,
    on_entry: EntryCallback | None = None,
    now: datetime | None = None,
) -> ScanReport:
    """
    Walk root and report every entry that matches criterion.

    Files are classified on their own size and modification time. When
    recursive, directories are always descended into; afterwards a directory
    whose name passes the pattern is classified as a unit using the summed
    size of every file below it (the age threshold applies to files only).
    Both the directory and its matching descendants may appear in the result.

    Args:
        root: Directory to scan (may contain ~)
        criterion: Pattern/size/age constraints
        category: Category name stamped on every entry
        risk_tier: Risk tier stamped on every entry
        recursive: Descend into subdirectories
        include_directories: Report directories as units
        cancel_token: Checked before each child; once set, remaining
            siblings are skipped and what was found so far is returned
        on_entry: Optional callback fired for each match as it is found
        now: Reference time for age checks (defaults to the current time)

    Returns:
        ScanReport with the matches; a missing root or a bad pattern is
        recorded in its errors instead of raising.
    """
    report = ScanReport()
    root = expand_path(str(root))

    try:
        root_stat = root.stat()
    except FileNotFoundError:
        log.warning("Scan root does not exist: %s", root)
        report.errors.append(f"Path not found: {root}")
        report.finished_at = datetime.now()
        return report
    except OSError as e:
        log.warning("Cannot read scan root %s: %s", root, e)
        report.errors.append(f"Cannot read {root}: {e}")
        report.finished_at = datetime.now()
        return report

    if not stat.S_ISDIR(root_stat.st_mode):
        report.errors.append(f"Not a directory: {root}")
        report.finished_at = datetime.now()
        return report

    try:
        matcher = Matcher(criterion)
    except InvalidPatternError as e:
        log.warning("Skipping %s: %s", root, e)
        report.errors.append(f"{root}: {e}")
        report.finished_at = datetime.now()
        return report

    token = cancel_token or CancelToken()
    traversal = _Traversal(
        matcher=matcher,
        category=category,
        risk_tier=risk_tier,
        recursive=recursive,
        include_directories=include_directories,
        cancel_token=token,
        on_entry=on_entry,
        now=now or datetime.now(),
    )
    traversal.visited.add((root_stat.st_dev, root_stat.st_ino))

    traversal.walk(root)

    report.entries = traversal.entries
    report.cancelled = token.cancelled
    report.finished_at = datetime.now()
    log.debug("Scanned %s: %d matches%s", root, len(report.entries), " (cancelled)" if report.cancelled else "")
    return report
