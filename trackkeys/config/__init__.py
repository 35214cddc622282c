"""
Configuration management for trackkeys.

Settings are loaded from TOML. The bundled `trackkeys.toml` provides defaults;
a user file passed to `load_config()` only needs the values it changes.
"""

from __future__ import annotations

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

APP_DIR_NAME = "MusicPlayer"
PREFERENCES_DIR_NAME = "trackkeys"


def default_app_support_dir() -> Path:
    """Platform location of the music player's persisted stores."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME



def default_preferences_dir() -> Path:
    """
    Platform location of the trackkeys preferences database.

    Kept apart from the store directory so a run never creates anything there.
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Preferences" / PREFERENCES_DIR_NAME
    xdg = os.environ.get("XDG_STATE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "state"
    return base / PREFERENCES_DIR_NAME


@dataclass
class StorageConfig:
    app_support_dir: Path = field(default_factory=default_app_support_dir)
    preferences_dir: Path = field(default_factory=default_preferences_dir)
    preferences_db: Path = Path("trackkeys-preferences.sqlite3")

    @property
    def preferences_db_path(self) -> Path:
        if self.preferences_db.is_absolute():
            return self.preferences_db
        return self.preferences_dir / self.preferences_db


@dataclass
class MigrationConfig:
    enabled: bool = True
    state_key: str = "pathKeyDiskMigrationState"


@dataclass
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 9100


@dataclass
class AppConfig:
    """Loaded application configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    migration: MigrationConfig = field(default_factory=MigrationConfig)
    web: WebConfig = field(default_factory=WebConfig)


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_config(data: dict[str, Any]) -> AppConfig:
    storage = data.get("storage", {})
    migration = data.get("migration", {})
    web = data.get("web", {})

    app_dir_raw = str(storage.get("app_support_dir", "") or "")
    app_dir = Path(app_dir_raw).expanduser() if app_dir_raw else default_app_support_dir()
    prefs_dir_raw = str(storage.get("preferences_dir", "") or "")
    prefs_dir = Path(prefs_dir_raw).expanduser() if prefs_dir_raw else default_preferences_dir()

    return AppConfig(
        storage=StorageConfig(
            app_support_dir=app_dir,
            preferences_dir=prefs_dir,
            preferences_db=Path(
                str(storage.get("preferences_db", "trackkeys-preferences.sqlite3"))
            ).expanduser(),
        ),
        migration=MigrationConfig(
            enabled=bool(migration.get("enabled", True)),
            state_key=str(migration.get("state_key", "pathKeyDiskMigrationState")),
        ),
        web=WebConfig(
            host=str(web.get("host", "127.0.0.1")),
            port=int(web.get("port", 9100)),
        ),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load configuration from TOML.

    Args:
        config_path: Optional user config layered over the bundled defaults.

    Returns:
        Loaded AppConfig instance.
    """
    defaults_path = CONFIG_DIR / "trackkeys.toml"
    logger.debug("Loading default config from %s", defaults_path)
    data = _read_toml(defaults_path)

    if config_path is not None:
        logger.debug("Loading user config from %s", config_path)
        data = _merge(data, _read_toml(config_path))

    return _parse_config(data)


# Global singleton instance (lazy loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration (lazy loaded singleton)."""
    global _config

    if _config is None:
        _config = load_config()

    return _config


def reload_config(config_path: Path | None = None) -> AppConfig:
    """Force reload of the global configuration."""
    global _config
    _config = load_config(config_path)
    return _config
