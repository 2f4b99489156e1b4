"""
Application context.

Every long-lived component is constructed once here and handed to the
operations that need it. There is no module-level mutable state.
"""

import logging
import queue
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..config import SettingsManager
from ..monitoring import FileWatcher
from ..profiles import ProfileComparator, ProfileStore, SwitchCoordinator
from .event_dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


def default_config_dir() -> Path:
    """Directory holding the live ``settings.json`` of the configured tool."""
    return Path.home() / ".claude"


@dataclass
class AppContext:
    """The wired-up engine: settings, watcher, store, switcher and dispatcher."""

    settings: SettingsManager
    watcher: FileWatcher
    store: ProfileStore
    coordinator: SwitchCoordinator
    dispatcher: EventDispatcher
    channel: queue.Queue = field(default_factory=queue.Queue)

    @classmethod
    def create(
        cls,
        config_dir: Optional[Union[str, Path]] = None,
        settings: Optional[SettingsManager] = None,
    ) -> "AppContext":
        """
        Build a context for ``config_dir``.

        Args:
            config_dir: Directory with the live file and profiles
            settings: Settings manager; a default one is created and loaded
                (falling back to defaults on a bad file) when omitted
        """
        if settings is None:
            settings = SettingsManager()
        if not settings.is_loaded:
            settings.load(strict=False)
        current = settings.current()

        channel: queue.Queue = queue.Queue()
        watcher = FileWatcher(
            interval_minutes=current.monitor_interval_minutes,
            max_scan_errors=current.max_scan_errors,
            cache_size_limit=current.cache_size_limit,
            channel=channel,
        )
        store = ProfileStore(
            config_dir or default_config_dir(),
            comparator=ProfileComparator(),
            watcher=watcher,
        )
        dispatcher = EventDispatcher(store, channel, settings.get_ignored_fields)

        logger.debug(f"Application context created for {store.config_dir}")
        return cls(
            settings=settings,
            watcher=watcher,
            store=store,
            coordinator=SwitchCoordinator(store),
            dispatcher=dispatcher,
            channel=channel,
        )
