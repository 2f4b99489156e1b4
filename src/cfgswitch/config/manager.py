"""
Settings management.

``SettingsManager`` owns one settings file. It loads and validates it once,
hands out copies of the current settings, and persists every update
immediately. One instance is created at startup and passed to whoever
needs it; there is no module-level settings state.
"""

import copy
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.config import SwitcherSettings, get_default_ignored_fields
from ..validation import ErrorSeverity, SwitcherError, handle_config_error, validate_bool
from .loader import default_settings_path, load_settings_data, save_settings_data
from .validators import validate_ignored_field_list, validate_interval, validate_settings

logger = logging.getLogger(__name__)


class SettingsManager:
    """Thread-safe access to the persisted user settings."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else default_settings_path()
        self._settings = SwitcherSettings()
        self._loaded = False
        self._lock = threading.Lock()

    def load(self, strict: bool = True) -> SwitcherSettings:
        """
        Load and validate the settings file.

        Args:
            strict: Raise on a malformed or invalid file. When False the
                error is logged and defaults are used instead.

        Returns:
            A copy of the loaded settings
        """
        try:
            settings = validate_settings(load_settings_data(self.settings_path))
        except SwitcherError as e:
            if strict:
                raise
            handle_config_error(
                error=e,
                context=f"loading {self.settings_path}, falling back to defaults",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
            settings = SwitcherSettings()

        with self._lock:
            self._settings = settings
            self._loaded = True
        logger.info(
            f"Settings loaded: interval={settings.monitor_interval_minutes}min, "
            f"auto_start={settings.auto_start_monitoring}, "
            f"ignored_fields={settings.ignored_fields}"
        )
        return copy.deepcopy(settings)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def current(self) -> SwitcherSettings:
        """Return a copy of the current settings."""
        with self._lock:
            return copy.deepcopy(self._settings)

    def save(self) -> None:
        with self._lock:
            save_settings_data(self.settings_path, self._settings.to_dict())
        logger.info(f"Settings saved to {self.settings_path}")

    def _update(self, **changes: Any) -> SwitcherSettings:
        with self._lock:
            updated = copy.deepcopy(self._settings)
            for key, value in changes.items():
                setattr(updated, key, value)
            save_settings_data(self.settings_path, updated.to_dict())
            self._settings = updated
            return copy.deepcopy(updated)

    def update_monitor_interval(self, minutes: Any) -> SwitcherSettings:
        interval = validate_interval(minutes)
        logger.info(f"Updating monitor interval to {interval} minutes")
        return self._update(monitor_interval_minutes=interval)

    def update_auto_start_monitoring(self, enabled: Any) -> SwitcherSettings:
        return self._update(
            auto_start_monitoring=validate_bool(enabled, field_name="auto_start_monitoring")
        )

    def update_language(self, language: Optional[str]) -> SwitcherSettings:
        return self._update(language=language.strip() if language and language.strip() else None)

    def update_show_notifications(self, enabled: Any) -> SwitcherSettings:
        return self._update(
            show_notifications=validate_bool(enabled, field_name="show_notifications")
        )

    def get_ignored_fields(self) -> List[str]:
        with self._lock:
            return list(self._settings.ignored_fields)

    def update_ignored_fields(self, fields: Any) -> SwitcherSettings:
        normalized = validate_ignored_field_list(fields)
        logger.info(f"Updating ignored fields to {normalized}")
        return self._update(ignored_fields=normalized)

    @staticmethod
    def get_default_ignored_fields() -> List[str]:
        return get_default_ignored_fields()

    def reset_ignored_fields_to_default(self) -> SwitcherSettings:
        return self._update(ignored_fields=get_default_ignored_fields())

    def reset_to_defaults(self) -> SwitcherSettings:
        logger.info("Resetting settings to defaults")
        defaults = SwitcherSettings()
        with self._lock:
            save_settings_data(self.settings_path, defaults.to_dict())
            self._settings = defaults
            return copy.deepcopy(defaults)

    def get_info(self) -> Dict[str, Any]:
        """Information about the settings state, for diagnostics."""
        return {
            "settings_loaded": self._loaded,
            "settings_path": str(self.settings_path),
        }
