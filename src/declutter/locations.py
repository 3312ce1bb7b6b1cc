"""User-selected scan locations and how they are resolved to readable roots."""

import logging
import os
import threading
from pathlib import Path
from typing import Protocol

from declutter.categories import CATEGORIES
from declutter.config import expand_path
from declutter.exceptions import AccessResolutionError
from declutter.models import ScanLocation
from declutter.storage import LocationStore

log = logging.getLogger(__name__)


class LocationProvider(Protocol):
    """Turns a ScanLocation into a root the scanner can read."""

    def resolve_access(self, location: ScanLocation) -> Path:
        """Return a usable root path, or raise AccessResolutionError."""
        ...


class PathLocationProvider:
    """Resolves locations without any platform access-grant mechanism.

    A location without a token resolves to its own path. A token is treated
    as opaque; the only form this provider understands is a path to an
    existing directory.
    """

    def resolve_access(self, location: ScanLocation) -> Path:
        if location.access_token is None:
            return expand_path(location.path)

        candidate = expand_path(location.access_token)
        if os.path.isdir(candidate):
            return candidate
        raise AccessResolutionError(f"Stale or invalid access token for {location.name}")


def default_locations() -> list[ScanLocation]:
    """
    Get default scan locations for first-time users.

    Every built-in category root that exists on this machine becomes an
    enabled location tagged with that category. Downloads is always included.
    """
    locations: list[ScanLocation] = []
    seen: set[str] = set()

    for category in CATEGORIES.values():
        for raw_path in category.paths:
            path = expand_path(raw_path)
            always = category.name == "Incomplete Downloads"
            if str(path) in seen or not (always or os.path.isdir(path)):
                continue
            seen.add(str(path))
            locations.append(
                ScanLocation(
                    name=category.name if len(category.paths) == 1 else f"{category.name} ({path.name})",
                    path=str(path),
                    categories=[category.name],
                )
            )

    return locations


class LocationManager:
    """Owns the persisted collection of scan locations."""

    def __init__(self, store: LocationStore | None = None) -> None:
        self._store = store or LocationStore()
        self._lock = threading.RLock()
        loaded = self._store.load()
        self._locations: list[ScanLocation] = loaded if loaded is not None else default_locations()

    @property
    def locations(self) -> list[ScanLocation]:
        with self._lock:
            return [loc.model_copy(deep=True) for loc in self._locations]

    def enabled_locations(self) -> list[ScanLocation]:
        return [loc for loc in self.locations if loc.is_enabled]

    def get(self, location_id: str) -> ScanLocation | None:
        """Find a location by id or unique id prefix."""
        with self._lock:
            matches = [loc for loc in self._locations if loc.id.startswith(location_id)]
            return matches[0].model_copy(deep=True) if len(matches) == 1 else None

    def add_location(
        self,
        path: str,
        categories: list[str],
        access_token: str | None = None,
        name: str | None = None,
    ) -> ScanLocation:
        expanded = expand_path(path)
        location = ScanLocation(
            name=name or expanded.name or str(expanded),
            path=str(expanded),
            access_token=access_token,
            categories=categories,
        )
        with self._lock:
            self._locations.append(location)
            self._save()
        log.info("Added scan location %s (%s)", location.path, ", ".join(categories) or "no category")
        return location

    def remove_location(self, location_id: str) -> bool:
        with self._lock:
            before = len(self._locations)
            self._locations = [loc for loc in self._locations if loc.id != location_id]
            if len(self._locations) == before:
                return False
            self._save()
            return True

    def toggle_location(self, location_id: str) -> ScanLocation | None:
        with self._lock:
            for loc in self._locations:
                if loc.id == location_id:
                    loc.is_enabled = not loc.is_enabled
                    self._save()
                    return loc.model_copy(deep=True)
        return None

    def _save(self) -> None:
        self._store.save(self._locations)
