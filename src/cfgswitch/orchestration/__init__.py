"""
Wiring of the engine components and the operations exposed on top of them.
"""

from .context import AppContext, default_config_dir
from .event_dispatcher import EventDispatcher, StatusListener, StatusSnapshot
from .notifiers import (
    ConsoleNotifier,
    LogNotifier,
    SilentNotifier,
    StatusNotifier,
    create_notifier,
    summarize,
)
from .service import SwitcherService

__all__ = [
    "AppContext",
    "ConsoleNotifier",
    "EventDispatcher",
    "LogNotifier",
    "SilentNotifier",
    "StatusListener",
    "StatusNotifier",
    "StatusSnapshot",
    "SwitcherService",
    "create_notifier",
    "default_config_dir",
    "summarize",
]
