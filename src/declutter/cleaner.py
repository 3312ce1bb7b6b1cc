"""Cleanup actions with safety checks for declutter."""

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Iterable, NamedTuple

from send2trash import send2trash

from declutter.config import expand_path
from declutter.models import CleanupResult, ProblemEntry, RuleAction
from declutter.privileges import delete_with_privileges
from declutter.scanner import get_directory_size

log = logging.getLogger(__name__)

ElevatedDelete = Callable[[Path], bool]

# Paths that should NEVER be deleted as a unit
BLOCKED_PATHS = [
    "~/Documents",
    "~/Desktop",
    "~/Pictures",
    "~/Music",
    "~/Movies",
    "~/Videos",
    "~/Downloads",
    "~/.config",
    "~/.ssh",
    "/System",
    "/Library",
    "/Applications",
    "/usr",
    "/bin",
    "/sbin",
    "/etc",
    "/var",
    "/home",
    "/Users",
    "/",
    "~",
]


class ActionOutcome(NamedTuple):
    """What one rule action did to one path."""

    processed: bool
    bytes_freed: int
    error: str | None = None


def is_path_safe(path: Path, protected_paths: Iterable[str] = ()) -> bool:
    """
    Check if a path is safe to delete.

    Args:
        path: Path to check
        protected_paths: User-configured paths; they and everything below
            them are refused

    Returns:
        True if safe to delete, False otherwise
    """
    path_str = str(path)

    for blocked in BLOCKED_PATHS:
        if path_str == str(expand_path(blocked)):
            return False

    for protected in protected_paths:
        protected_expanded = str(expand_path(protected))
        if path_str == protected_expanded or path_str.startswith(protected_expanded.rstrip("/") + "/"):
            return False

    return True


def _measure(path: Path) -> tuple[int, int]:
    if path.is_symlink():
        # Removing a link frees the link, not its target
        return path.lstat().st_size, 1
    if path.is_dir():
        size, files, _ = get_directory_size(path)
        return size, files
    return path.stat().st_size, 1


def delete_path(path: Path, dry_run: bool = False) -> tuple[int, int, str | None]:
    """
    Permanently delete a path (file or directory).

    Args:
        path: Path to delete
        dry_run: If True, don't actually delete

    Returns:
        Tuple of (bytes_freed, files_deleted, error_message)
    """
    if not os.path.lexists(path):
        return 0, 0, None

    try:
        size, files = _measure(path)

        if dry_run:
            return size, files, None

        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()

        return size, files, None

    except PermissionError as e:
        return 0, 0, f"Permission denied: {e}"
    except OSError as e:
        return 0, 0, f"OS error: {e}"


def trash_path(path: Path, dry_run: bool = False) -> tuple[int, int, str | None]:
    """
    Move a path to the platform trash so it can be recovered.

    Returns:
        Tuple of (bytes_freed, files_trashed, error_message)
    """
    if not os.path.lexists(path):
        return 0, 0, None

    try:
        size, files = _measure(path)
        if dry_run:
            return size, files, None
        send2trash(str(path))
        return size, files, None
    except PermissionError as e:
        return 0, 0, f"Permission denied: {e}"
    except OSError as e:
        return 0, 0, f"OS error: {e}"


def perform_action(
    action: RuleAction,
    path: Path,
    protected_paths: Iterable[str] = (),
) -> ActionOutcome:
    """Apply a rule action to one matched path.

    Compress is accepted but does nothing, so it never counts as processed.
    """
    if action is RuleAction.COMPRESS:
        log.info("Would compress: %s", path)
        return ActionOutcome(processed=False, bytes_freed=0)

    if not is_path_safe(path, protected_paths):
        return ActionOutcome(False, 0, f"Error processing {path}: refusing to touch a protected path")

    if not os.path.lexists(path):
        log.debug("Already gone: %s", path)
        return ActionOutcome(processed=False, bytes_freed=0)

    if action is RuleAction.DELETE:
        freed, _, error = delete_path(path)
    else:
        freed, _, error = trash_path(path)

    if error:
        log.warning("%s failed for %s: %s", action.label, path, error)
        return ActionOutcome(False, 0, f"Error processing {path}: {error}")
    return ActionOutcome(True, freed)


def collapse_nested(entries: list[ProblemEntry]) -> list[ProblemEntry]:
    """Drop entries that sit inside a directory entry of the same list."""
    directories = sorted(
        (e.path.rstrip(os.sep) + os.sep for e in entries if e.is_directory), key=len
    )
    if not directories:
        return list(entries)

    kept = []
    for entry in entries:
        if any(entry.path.startswith(d) for d in directories):
            continue
        kept.append(entry)
    return kept


def remove_entries(
    entries: list[ProblemEntry],
    dry_run: bool = False,
    elevated: ElevatedDelete | None = delete_with_privileges,
    protected_paths: Iterable[str] = (),
    progress_callback: Callable[[str, int], None] | None = None,
) -> CleanupResult:
    """
    Permanently delete scan entries the user picked.

    A failed normal delete falls back to the elevated deleter (when given);
    the entry only counts as removed if the path is really gone afterwards.

    Args:
        entries: Entries to delete
        dry_run: If True, report what would be freed without deleting
        elevated: Fallback deleter, or None to never escalate
        protected_paths: Extra user-protected paths
        progress_callback: Optional callback(path, bytes_freed)

    Returns:
        CleanupResult with totals and per-entry errors
    """
    protected = list(protected_paths)
    result = CleanupResult(dry_run=dry_run)

    for entry in collapse_nested(entries):
        path = Path(entry.path)

        if not is_path_safe(path, protected):
            result.errors.append(f"Blocked path: {path}")
            continue

        bytes_freed, _, error = delete_path(path, dry_run)

        if error and elevated is not None:
            log.info("Normal delete of %s failed (%s), trying elevated delete", path, error)
            if elevated(path):
                bytes_freed, error = entry.size_bytes, None
            else:
                error = f"{error} (elevated delete also failed)"

        if error:
            result.errors.append(f"{path}: {error}")
            continue

        result.bytes_freed += bytes_freed
        result.entries_removed += 1
        result.removed_paths.append(str(path))
        if progress_callback:
            progress_callback(str(path), bytes_freed)

    return result
