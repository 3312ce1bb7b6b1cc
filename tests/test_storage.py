"""Tests for JSON persistence and settings."""

import json
from datetime import datetime, timedelta
from unittest.mock import patch

from declutter.config import CONFIG_FILE, Settings, data_dir, expand_path, load_settings, save_settings
from declutter.models import CleaningRule, DiskUsageSnapshot, RuleTarget, ScanCriterion, ScanLocation
from declutter.storage import HistoryStore, LocationStore, RuleStore, write_atomic


class TestWriteAtomic:
    def test_writes_and_creates_parents(self, tmp_path):
        path = tmp_path / "a" / "b" / "file.json"

        assert write_atomic(path, "hello")
        assert path.read_text() == "hello"

    def test_replaces_existing(self, tmp_path):
        path = tmp_path / "file.json"
        path.write_text("old")

        write_atomic(path, "new")

        assert path.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]

    def test_failed_replace_keeps_old_file(self, tmp_path):
        path = tmp_path / "file.json"
        path.write_text("old")

        with patch("declutter.storage.os.replace", side_effect=OSError("disk full")):
            assert not write_atomic(path, "new")

        assert path.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


class TestStores:
    def test_missing_file_loads_none(self, tmp_path):
        assert RuleStore(tmp_path / "rules.json").load() is None

    def test_rules_round_trip(self, tmp_path):
        store = RuleStore(tmp_path / "rules.json")
        rules = [
            CleaningRule(
                name="r",
                targets=[
                    RuleTarget(
                        path="~/x",
                        criterion=ScanCriterion(pattern=r"\.tmp$", age_threshold=timedelta(days=3)),
                    )
                ],
                last_run=datetime(2024, 1, 2, 3, 4),
            )
        ]

        assert store.save(rules)
        assert store.load() == rules

    def test_empty_list_is_not_absent(self, tmp_path):
        store = LocationStore(tmp_path / "locations.json")
        store.save([])
        assert store.load() == []

    def test_locations_round_trip(self, tmp_path):
        store = LocationStore(tmp_path / "locations.json")
        locations = [ScanLocation(name="dl", path="/tmp/dl", categories=["Incomplete Downloads"])]
        store.save(locations)
        assert store.load() == locations

    def test_history_round_trip(self, tmp_path):
        store = HistoryStore(tmp_path / "history.json")
        history = [DiskUsageSnapshot(timestamp=datetime(2024, 1, 1), used_bytes=1, total_bytes=2)]
        store.save(history)
        assert store.load() == history

    def test_corrupt_file_loads_none(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json")
        assert RuleStore(path).load() is None

    def test_wrong_shape_loads_none(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([{"unexpected": True}]))
        assert RuleStore(path).load() is None

    def test_default_path_in_data_dir(self, isolated_home):
        assert RuleStore().path == isolated_home / "rules.json"


class TestSettings:
    def test_data_dir_from_environment(self, isolated_home):
        assert data_dir() == isolated_home

    def test_defaults_when_missing(self):
        settings = load_settings()
        assert settings == Settings()
        assert settings.rule_workers == 4

    def test_round_trip(self):
        save_settings(Settings(protected_paths=["~/keep"], rule_workers=2))
        loaded = load_settings()
        assert loaded.protected_paths == ["~/keep"]
        assert loaded.rule_workers == 2

    def test_invalid_file_falls_back(self, isolated_home):
        isolated_home.mkdir(parents=True)
        (isolated_home / CONFIG_FILE).write_text('{"rule_workers": 0}')
        assert load_settings() == Settings()

    def test_expand_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert expand_path("~/x") == tmp_path / "x"
