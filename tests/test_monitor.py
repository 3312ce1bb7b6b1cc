"""Tests for disk usage monitoring."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from declutter.models import DiskUsage, DiskUsageSnapshot
from declutter.monitor import MAX_HISTORY_DAYS, DiskMonitor, UsageTrend, get_disk_usage
from declutter.storage import HistoryStore

NOW = datetime(2024, 6, 15, 12, 0)
GB = 1_000_000_000


def _usage(used):
    return DiskUsage(total_bytes=100 * GB, used_bytes=used, free_bytes=100 * GB - used)


@pytest.fixture
def store(tmp_path):
    return HistoryStore(tmp_path / "history.json")


class TestGetDiskUsage:
    def test_returns_usage(self):
        usage = get_disk_usage("/")
        assert usage.total_bytes > 0
        assert usage.mount_point == "/"


class TestDiskMonitor:
    def test_sample_records_and_persists(self, store):
        monitor = DiskMonitor(store)
        with patch("declutter.monitor.get_disk_usage", return_value=_usage(10 * GB)):
            usage = monitor.sample(NOW)

        assert usage.used_bytes == 10 * GB
        assert DiskMonitor(store).history == [
            DiskUsageSnapshot(timestamp=NOW, used_bytes=10 * GB, total_bytes=100 * GB)
        ]

    def test_old_snapshots_pruned(self, store):
        store.save(
            [
                DiskUsageSnapshot(timestamp=NOW - timedelta(days=MAX_HISTORY_DAYS + 1), used_bytes=1, total_bytes=2),
                DiskUsageSnapshot(timestamp=NOW - timedelta(days=3), used_bytes=1, total_bytes=2),
            ]
        )
        monitor = DiskMonitor(store)
        with patch("declutter.monitor.get_disk_usage", return_value=_usage(GB)):
            monitor.sample(NOW)

        assert len(monitor.history) == 2
        assert monitor.history[0].timestamp == NOW - timedelta(days=3)

    def test_unreadable_disk(self, store):
        monitor = DiskMonitor(store)
        with patch("declutter.monitor.get_disk_usage", side_effect=OSError("gone")):
            assert monitor.sample(NOW) is None
        assert monitor.history == []


class TestUsageTrend:
    def _monitor(self, store, *used_by_days_ago):
        store.save(
            [
                DiskUsageSnapshot(timestamp=NOW - timedelta(days=days), used_bytes=used, total_bytes=100 * GB)
                for days, used in used_by_days_ago
            ]
        )
        return DiskMonitor(store)

    def test_stable_without_history(self, store):
        assert DiskMonitor(store).usage_trend(NOW) is UsageTrend.STABLE

    def test_increasing(self, store):
        monitor = self._monitor(store, (5, 10 * GB), (0, 12 * GB))
        assert monitor.usage_trend(NOW) is UsageTrend.INCREASING

    def test_decreasing(self, store):
        monitor = self._monitor(store, (5, 12 * GB), (0, 10 * GB))
        assert monitor.usage_trend(NOW) is UsageTrend.DECREASING

    def test_small_change_is_stable(self, store):
        monitor = self._monitor(store, (5, 10 * GB), (0, 10 * GB + GB // 2))
        assert monitor.usage_trend(NOW) is UsageTrend.STABLE

    def test_only_last_week_counts(self, store):
        monitor = self._monitor(store, (20, 1 * GB), (3, 10 * GB), (0, 10 * GB))
        assert monitor.usage_trend(NOW) is UsageTrend.STABLE

    def test_description(self):
        assert UsageTrend.INCREASING.description == "Disk usage is increasing"
