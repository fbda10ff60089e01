"""Application configuration loader.

Loads centralized configuration from data/config/tracker_config_v1.yaml,
falling back to built-in defaults when the file is missing.

Usage:
    from tracker.config.app_config import load_app_config, resolve_data_dir

    config = load_app_config()
    data_dir = resolve_data_dir()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/tracker_config_v1.yaml")

# Environment override for the data directory
DATA_DIR_ENV = "TRACKER_DATA_DIR"

DEFAULT_TARGET = 75
ATTENDANCE_STORAGE_KEY = "attendance-tracker-data"
NOTES_STORAGE_KEY = "student_notes"


@dataclass
class StorageConfig:
    """Where and under which keys state is persisted."""

    data_dir: str = "data"
    attendance_key: str = ATTENDANCE_STORAGE_KEY
    notes_key: str = NOTES_STORAGE_KEY


@dataclass
class AttendanceConfig:
    """Defaults for new subjects."""

    default_target: int = DEFAULT_TARGET


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    attendance: AttendanceConfig = field(default_factory=AttendanceConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "storage": {
            "data_dir": "data",
            "attendance_key": ATTENDANCE_STORAGE_KEY,
            "notes_key": NOTES_STORAGE_KEY,
        },
        "attendance": {
            "default_target": DEFAULT_TARGET,
        },
    }


def _parse_default_target(value: Any) -> int:
    """Accept only integer targets in 1..100, otherwise use the default."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= 100:
        logger.warning("invalid_default_target", value=value, fallback=DEFAULT_TARGET)
        return DEFAULT_TARGET
    return value


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    storage_data = data.get("storage") or {}
    storage = StorageConfig(
        data_dir=str(storage_data.get("data_dir", "data")),
        attendance_key=str(storage_data.get("attendance_key", ATTENDANCE_STORAGE_KEY)),
        notes_key=str(storage_data.get("notes_key", NOTES_STORAGE_KEY)),
    )

    attendance_data = data.get("attendance") or {}
    attendance = AttendanceConfig(
        default_target=_parse_default_target(
            attendance_data.get("default_target", DEFAULT_TARGET)
        ),
    )

    return AppConfig(storage=storage, attendance=attendance)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config from YAML, or defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        try:
            data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            logger.error("app_config_parse_failed", source=str(CONFIG_FILE), error=str(e))
            data = _get_defaults()
        if not isinstance(data, dict):
            logger.error("app_config_not_a_mapping", source=str(CONFIG_FILE))
            data = _get_defaults()
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def resolve_data_dir() -> Path:
    """Resolve the data directory.

    TRACKER_DATA_DIR wins over the configured storage.data_dir.
    """
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path(load_app_config().storage.data_dir)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
