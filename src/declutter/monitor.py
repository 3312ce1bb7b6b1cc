"""Disk usage sampling and history."""

import logging
import shutil
from datetime import datetime, timedelta
from enum import Enum

from declutter.models import DiskUsage, DiskUsageSnapshot
from declutter.storage import HistoryStore

log = logging.getLogger(__name__)

MAX_HISTORY_DAYS = 30
TREND_WINDOW_DAYS = 7
TREND_THRESHOLD_BYTES = 1_000_000_000  # 1 GB


class UsageTrend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"

    @property
    def description(self) -> str:
        return f"Disk usage is {self.value}"


def get_disk_usage(mount_point: str = "/") -> DiskUsage:
    """
    Get overall disk usage for a mount point.

    Args:
        mount_point: Mount point to check (default: /)

    Returns:
        DiskUsage with total, used, and free bytes
    """
    usage = shutil.disk_usage(mount_point)
    return DiskUsage(
        total_bytes=usage.total,
        used_bytes=usage.used,
        free_bytes=usage.free,
        mount_point=mount_point,
    )


class DiskMonitor:
    """Records disk usage snapshots and keeps the last 30 days of them."""

    def __init__(self, store: HistoryStore | None = None, mount_point: str = "/") -> None:
        self._store = store or HistoryStore()
        self.mount_point = mount_point
        self.history: list[DiskUsageSnapshot] = self._store.load() or []

    def sample(self, now: datetime | None = None) -> DiskUsage | None:
        """Measure the disk, append a snapshot and persist the pruned history."""
        now = now or datetime.now()
        try:
            usage = get_disk_usage(self.mount_point)
        except OSError as e:
            log.warning("Could not read disk usage for %s: %s", self.mount_point, e)
            return None

        self.history.append(
            DiskUsageSnapshot(timestamp=now, used_bytes=usage.used_bytes, total_bytes=usage.total_bytes)
        )
        cutoff = now - timedelta(days=MAX_HISTORY_DAYS)
        self.history = [s for s in self.history if s.timestamp >= cutoff]
        self._store.save(self.history)
        return usage

    def history_for_days(self, days: int, now: datetime | None = None) -> list[DiskUsageSnapshot]:
        cutoff = (now or datetime.now()) - timedelta(days=days)
        return [s for s in self.history if s.timestamp >= cutoff]

    def usage_trend(self, now: datetime | None = None) -> UsageTrend:
        """Compare the oldest and newest snapshot of the last week."""
        recent = self.history_for_days(TREND_WINDOW_DAYS, now)
        if len(recent) < 2:
            return UsageTrend.STABLE

        difference = recent[-1].used_bytes - recent[0].used_bytes
        if difference > TREND_THRESHOLD_BYTES:
            return UsageTrend.INCREASING
        elif difference < -TREND_THRESHOLD_BYTES:
            return UsageTrend.DECREASING
        return UsageTrend.STABLE
