"""Tests for scan locations."""

import pytest

from declutter.exceptions import AccessResolutionError
from declutter.locations import LocationManager, PathLocationProvider, default_locations
from declutter.models import ScanLocation
from declutter.storage import LocationStore


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def store(tmp_path):
    return LocationStore(tmp_path / "locations.json")


class TestPathLocationProvider:
    def test_plain_path(self, tmp_path):
        location = ScanLocation(name="x", path=str(tmp_path))
        assert PathLocationProvider().resolve_access(location) == tmp_path

    def test_token_pointing_at_directory(self, tmp_path):
        granted = tmp_path / "granted"
        granted.mkdir()
        location = ScanLocation(name="x", path="/elsewhere", access_token=str(granted))
        assert PathLocationProvider().resolve_access(location) == granted

    def test_stale_token(self, tmp_path):
        location = ScanLocation(name="x", path=str(tmp_path), access_token=str(tmp_path / "gone"))
        with pytest.raises(AccessResolutionError):
            PathLocationProvider().resolve_access(location)


class TestDefaultLocations:
    def test_downloads_always_present(self, fake_home):
        locations = default_locations()
        assert [loc.path for loc in locations] == [str(fake_home / "Downloads")]
        assert locations[0].categories == ["Incomplete Downloads"]

    def test_existing_category_roots_added(self, fake_home):
        (fake_home / ".cache").mkdir()
        (fake_home / ".local" / "share" / "Trash").mkdir(parents=True)

        by_path = {loc.path: loc for loc in default_locations()}

        assert by_path[str(fake_home / ".cache")].categories == ["Application Caches"]
        assert by_path[str(fake_home / ".local" / "share" / "Trash")].categories == ["Trash Items"]
        assert str(fake_home / "Library" / "Caches") not in by_path


class TestLocationManager:
    def test_first_run_uses_defaults(self, fake_home, store):
        manager = LocationManager(store)
        assert [loc.path for loc in manager.locations] == [str(fake_home / "Downloads")]

    def test_add_persists(self, fake_home, store, tmp_path):
        manager = LocationManager(store)
        added = manager.add_location(str(tmp_path / "projects"), ["Developer Files"])

        reloaded = LocationManager(store)
        assert added.id in [loc.id for loc in reloaded.locations]
        assert added.name == "projects"

    def test_add_expands_tilde(self, fake_home, store):
        added = LocationManager(store).add_location("~/stuff", ["Other"], name="Stuff")
        assert added.path == str(fake_home / "stuff")
        assert added.name == "Stuff"

    def test_remove(self, fake_home, store):
        manager = LocationManager(store)
        location = manager.locations[0]
        assert manager.remove_location(location.id)
        assert manager.locations == []
        assert LocationManager(store).locations == []
        assert not manager.remove_location(location.id)

    def test_toggle_and_enabled(self, fake_home, store, tmp_path):
        manager = LocationManager(store)
        extra = manager.add_location(str(tmp_path), ["Other"])

        toggled = manager.toggle_location(extra.id)

        assert toggled.is_enabled is False
        assert extra.id not in [loc.id for loc in manager.enabled_locations()]
        assert manager.toggle_location("missing") is None

    def test_get_by_prefix(self, fake_home, store, tmp_path):
        manager = LocationManager(store)
        added = manager.add_location(str(tmp_path), ["Other"])
        assert manager.get(added.id[:8]).id == added.id
        assert manager.get("zzzz") is None
