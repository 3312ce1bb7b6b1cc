"""JSON file storage for rules, scan locations and disk usage history."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Generic, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from declutter.config import HISTORY_FILE, LOCATIONS_FILE, RULES_FILE, data_dir
from declutter.models import CleaningRule, DiskUsageSnapshot, ScanLocation

log = logging.getLogger(__name__)

T = TypeVar("T")


def write_atomic(path: Path, text: str) -> bool:
    """Write text to path so that readers see either the old or the new file.

    The data goes to a temporary file in the same directory, is flushed to
    disk, and then renamed over the target.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        log.warning("Could not write %s: %s", path, e)
        return False

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        return True
    except OSError as e:
        log.warning("Could not write %s: %s", path, e)
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        return False


class JsonStore(Generic[T]):
    """A whole collection persisted as one JSON document."""

    filename: str = ""

    def __init__(self, adapter: TypeAdapter[T], path: Path | None = None) -> None:
        self.adapter = adapter
        self.path = path or (data_dir() / self.filename)

    def load(self) -> Optional[T]:
        """Return the stored value, or None when absent or unreadable."""
        if not self.path.exists():
            return None
        try:
            return self.adapter.validate_json(self.path.read_bytes())
        except (ValidationError, OSError) as e:
            log.warning("Ignoring unreadable %s: %s", self.path, e)
            return None

    def save(self, value: T) -> bool:
        """Persist value, keeping the previous file if the write fails."""
        data = self.adapter.dump_json(value, indent=2).decode("utf-8")
        return write_atomic(self.path, data + "\n")


class RuleStore(JsonStore[list[CleaningRule]]):
    filename = RULES_FILE

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(TypeAdapter(list[CleaningRule]), path)


class LocationStore(JsonStore[list[ScanLocation]]):
    filename = LOCATIONS_FILE

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(TypeAdapter(list[ScanLocation]), path)


class HistoryStore(JsonStore[list[DiskUsageSnapshot]]):
    filename = HISTORY_FILE

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(TypeAdapter(list[DiskUsageSnapshot]), path)
