"""
Settings validation.

Turns the raw ``[settings]`` table into a validated ``SwitcherSettings``,
applying defaults for anything left unset.
"""

import logging
from typing import Any, Dict

from ..models.config import SwitcherSettings, get_default_ignored_fields
from ..validation import (
    ValidationError,
    normalize_ignored_fields,
    validate_bool,
    validate_ignored_fields,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

MIN_INTERVAL_MINUTES = 0.01
MAX_INTERVAL_MINUTES = 24 * 60

KNOWN_KEYS = {
    "monitor_interval_minutes",
    "auto_start_monitoring",
    "language",
    "show_notifications",
    "ignored_fields",
    "max_scan_errors",
    "cache_size_limit",
}


def validate_interval(value: Any) -> float:
    return validate_positive_float(
        value,
        min_value=MIN_INTERVAL_MINUTES,
        max_value=MAX_INTERVAL_MINUTES,
        field_name="settings.monitor_interval_minutes",
    )


def validate_ignored_field_list(value: Any) -> list:
    """Validate then normalize an ignored-field list."""
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            "settings.ignored_fields must be a list of strings",
            field_name="settings.ignored_fields",
            value=value,
        )
    validate_ignored_fields(value)
    return normalize_ignored_fields(value)


def validate_settings(settings_data: Dict[str, Any]) -> SwitcherSettings:
    """
    Validate and create SwitcherSettings from raw settings data.

    Args:
        settings_data: Raw ``[settings]`` table from TOML

    Returns:
        Validated SwitcherSettings instance

    Raises:
        ValidationError: If validation fails
    """
    unknown = set(settings_data) - KNOWN_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown settings keys: {', '.join(sorted(unknown))}")

    defaults = SwitcherSettings()

    interval = validate_interval(
        settings_data.get("monitor_interval_minutes", defaults.monitor_interval_minutes)
    )
    auto_start = validate_bool(
        settings_data.get("auto_start_monitoring", defaults.auto_start_monitoring),
        field_name="settings.auto_start_monitoring",
    )
    show_notifications = validate_bool(
        settings_data.get("show_notifications", defaults.show_notifications),
        field_name="settings.show_notifications",
    )

    language = settings_data.get("language")
    if language is not None and (not isinstance(language, str) or not language.strip()):
        raise ValidationError(
            "settings.language must be a non-empty string",
            field_name="settings.language",
            value=language,
        )

    ignored_fields = validate_ignored_field_list(
        settings_data.get("ignored_fields", get_default_ignored_fields())
    )

    max_scan_errors = validate_positive_integer(
        settings_data.get("max_scan_errors", defaults.max_scan_errors),
        min_value=1,
        max_value=1000,
        field_name="settings.max_scan_errors",
    )
    cache_size_limit = validate_positive_integer(
        settings_data.get("cache_size_limit", defaults.cache_size_limit),
        min_value=1,
        max_value=1_000_000,
        field_name="settings.cache_size_limit",
    )

    return SwitcherSettings(
        monitor_interval_minutes=interval,
        auto_start_monitoring=auto_start,
        language=language.strip() if language else None,
        show_notifications=show_notifications,
        ignored_fields=ignored_fields,
        max_scan_errors=max_scan_errors,
        cache_size_limit=cache_size_limit,
    )
