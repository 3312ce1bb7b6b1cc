"""Shared fixtures for declutter tests."""

import os
import time
from pathlib import Path

import pytest

from declutter.config import DATA_DIR_ENV


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test's rules, locations and history inside tmp_path."""
    data = tmp_path / "declutter-home"
    monkeypatch.setenv(DATA_DIR_ENV, str(data))
    return data


def _make_file(path: Path, size: int = 0, age_days: float = 0) -> Path:
    """Create a (sparse) file of size bytes whose mtime is age_days in the past."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    if age_days:
        stamp = time.time() - age_days * 86400
        os.utime(path, (stamp, stamp))
    return path


@pytest.fixture
def make_file():
    return _make_file
