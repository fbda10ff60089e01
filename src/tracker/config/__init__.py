"""Configuration package for the attendance tracker."""

from tracker.config.app_config import (
    AppConfig,
    AttendanceConfig,
    StorageConfig,
    clear_config_cache,
    load_app_config,
    resolve_data_dir,
)

__all__ = [
    "AppConfig",
    "AttendanceConfig",
    "StorageConfig",
    "clear_config_cache",
    "load_app_config",
    "resolve_data_dir",
]
