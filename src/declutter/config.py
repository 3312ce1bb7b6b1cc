"""User settings and data-directory layout."""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

log = logging.getLogger(__name__)

DATA_DIR_ENV = "DECLUTTER_HOME"
DEFAULT_DATA_DIR = "~/.declutter"

RULES_FILE = "rules.json"
LOCATIONS_FILE = "locations.json"
HISTORY_FILE = "history.json"
CONFIG_FILE = "config.json"


class Settings(BaseModel):
    """Persistent user settings."""

    protected_paths: list[str] = Field(
        default_factory=list, description="Paths that are never deleted or trashed (supports ~)"
    )
    log_level: str = Field("WARNING", description="Root log level when not overridden on the CLI")
    rule_workers: int = Field(4, ge=1, description="Maximum rules executed concurrently")


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


def data_dir() -> Path:
    """Directory holding every declutter state file."""
    return expand_path(os.environ.get(DATA_DIR_ENV) or DEFAULT_DATA_DIR)


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults on any problem."""
    path = data_dir() / CONFIG_FILE
    if not path.exists():
        return Settings()

    try:
        with open(path) as f:
            return Settings.model_validate(json.load(f))
    except (json.JSONDecodeError, OSError, ValidationError) as e:
        log.warning("Could not load settings from %s: %s", path, e)
        return Settings()


def save_settings(settings: Settings) -> bool:
    """Save settings to disk."""
    from declutter.storage import write_atomic

    path = data_dir() / CONFIG_FILE
    return write_atomic(path, settings.model_dump_json(indent=2))
