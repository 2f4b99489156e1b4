"""
Operations exposed to UI collaborators and the CLI.

``SwitcherService`` is a thin facade over an ``AppContext``. Every failure
surfaces as a ``SwitcherError`` whose ``str()`` is a message that can be
shown to the user unchanged.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..models.config import SwitcherSettings
from ..models.monitoring import MonitoringStats
from ..models.profiles import CURRENT_PROFILE_ID, Profile, ProfileInfo
from ..validation import JsonValidator
from .context import AppContext
from .event_dispatcher import StatusListener, StatusSnapshot

logger = logging.getLogger(__name__)


class SwitcherService:
    """Facade over the profile engine."""

    def __init__(self, context: AppContext, validator: Optional[JsonValidator] = None):
        self.context = context
        self.validator = validator or JsonValidator.with_basic_rules()

    @property
    def store(self):
        return self.context.store

    def _ignored(self, ignored_fields: Optional[Iterable[str]]) -> List[str]:
        if ignored_fields is None:
            return self.context.settings.get_ignored_fields()
        return list(ignored_fields)

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    def initialize(self) -> List[Profile]:
        """
        Scan the profile directory and, if configured, start monitoring.

        Raises:
            ConfigIOError: The profile directory cannot be read
        """
        profiles = self.store.scan()
        if self.context.settings.current().auto_start_monitoring:
            self.start_monitoring()
        return profiles

    def start_monitoring(self) -> None:
        interval = self.context.settings.current().monitor_interval_minutes
        self.context.dispatcher.start()
        self.context.watcher.start(interval_minutes=interval)

    def stop_monitoring(self) -> None:
        self.context.watcher.stop()
        self.context.dispatcher.stop()

    def shutdown(self) -> None:
        logger.info("Shutting down")
        self.stop_monitoring()

    def add_status_listener(self, listener: StatusListener) -> None:
        self.context.dispatcher.add_listener(listener)

    def refresh(self) -> StatusSnapshot:
        """Rescan and recompare right away, outside the watcher cadence."""
        return self.context.dispatcher.refresh()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def list_profiles(self) -> List[ProfileInfo]:
        return self.store.list_profiles()

    def get_status(self, profile_id: str, ignored_fields: Optional[Iterable[str]] = None) -> str:
        """
        Status icon for one profile; always empty for ``"current"``.

        Raises:
            ProfileNotFound: Unknown id
            Busy: The store is locked
        """
        if profile_id == CURRENT_PROFILE_ID:
            return ""
        status = self.store.status_for(profile_id, self._ignored(ignored_fields))
        if status is None:
            return ""
        if status.is_error:
            logger.warning(f"Status for '{profile_id}' is an error: {status.reason}")
        return status.icon

    def get_statuses(self, ignored_fields: Optional[Iterable[str]] = None) -> StatusSnapshot:
        pairs = self.store.snapshot(self._ignored(ignored_fields))
        return StatusSnapshot(profiles=[p for p, _ in pairs], statuses=[s for _, s in pairs])

    def read_content(self, profile_id: str) -> str:
        return self.store.read_content(profile_id)

    def save_content(self, profile_id: str, content: str) -> None:
        self.store.save_content(profile_id, content)

    def create(self, name: str, content: str) -> str:
        return self.store.create(name, content)

    def create_from_current(self, name: str) -> str:
        """Create a profile holding a copy of the live configuration."""
        return self.store.create(name, self.store.read_content(CURRENT_PROFILE_ID))

    def delete(self, profile_id: str) -> None:
        self.store.delete(profile_id)

    def validate_json(self, content: str) -> Dict[str, Any]:
        return self.validator.validate(content).to_dict()

    def switch(self, profile_id: str) -> Profile:
        """
        Make ``profile_id`` the live configuration.

        The watcher picks up the rewritten live file on its next tick.
        """
        return self.context.coordinator.switch(profile_id)

    # ------------------------------------------------------------------
    # Diagnostics and settings
    # ------------------------------------------------------------------

    def profiles_info(self) -> Dict[str, Any]:
        profiles = self.store.get_profiles()
        return {
            "config_dir": str(self.store.config_dir),
            "live_path": str(self.store.live_path),
            "profile_count": len(profiles),
            "active_profile": next((p.name for p in profiles if p.is_active), None),
            "monitoring": self.context.watcher.is_running,
        }

    def monitoring_stats(self) -> MonitoringStats:
        return self.context.watcher.get_stats()

    def update_monitor_interval(self, minutes: Any) -> SwitcherSettings:
        """Persist a new interval and apply it to the running watcher."""
        settings = self.context.settings.update_monitor_interval(minutes)
        self.context.watcher.set_interval(settings.monitor_interval_minutes)
        return settings

    def update_ignored_fields(self, fields: Any) -> SwitcherSettings:
        return self.context.settings.update_ignored_fields(fields)

    def reset_ignored_fields(self) -> SwitcherSettings:
        return self.context.settings.reset_ignored_fields_to_default()
