"""
Settings data model.

This module contains the user settings consumed by the engine: the
monitoring cadence and budgets, and the list of top-level fields that are
ignored when classifying profiles.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_IGNORED_FIELDS = ("model", "feedbackSurveyState")


def get_default_ignored_fields() -> List[str]:
    """Return a fresh copy of the default ignored-field list."""
    return list(DEFAULT_IGNORED_FIELDS)


@dataclass
class SwitcherSettings:
    """
    User settings, loaded from `settings.toml`.
    """

    # Minutes between watcher ticks.
    monitor_interval_minutes: float = 5
    # Start the watcher as soon as the application context is started.
    auto_start_monitoring: bool = True
    # UI language code; stored only, never interpreted by the engine.
    language: Optional[str] = None
    # Report status changes through the notifier chosen at startup.
    show_notifications: bool = True
    # Top-level keys excluded when comparing live config and profiles.
    ignored_fields: List[str] = field(default_factory=get_default_ignored_fields)
    # Consecutive failed scans before a file is quarantined.
    max_scan_errors: int = 5
    # Maximum number of monitored files (and metadata cache entries).
    cache_size_limit: int = 1000

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # TOML has no null; omit unset optional values.
        return {k: v for k, v in data.items() if v is not None}
