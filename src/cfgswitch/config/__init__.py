"""
Settings management for the cfgswitch package.

This module provides loading, validating and persisting the user settings
stored in a TOML file.
"""

from .loader import (
    default_settings_path,
    load_settings_data,
    load_toml_file,
    save_settings_data,
)
from .manager import SettingsManager
from .validators import validate_ignored_field_list, validate_interval, validate_settings

__all__ = [
    "SettingsManager",
    "default_settings_path",
    "load_settings_data",
    "load_toml_file",
    "save_settings_data",
    "validate_ignored_field_list",
    "validate_interval",
    "validate_settings",
]
