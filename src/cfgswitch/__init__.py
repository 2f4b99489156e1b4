"""
cfgswitch: switch a tool's live JSON configuration between saved profiles.

The package keeps a directory of profile files next to the live
configuration, reports which profile the live configuration currently
matches, and switches profiles atomically.

The package is organized into specialized modules:
- models: Data structures and type definitions
- validation: Error taxonomy, validators and JSON validation
- config: User settings loading and persistence
- monitoring: Polling change detection (metadata cache and file watcher)
- profiles: Profile store, comparator and switch coordinator
- orchestration: Application context, event dispatch and service facade
- cli: Command-line interface

Usage:
    From command line:
        cfgswitch list
        cfgswitch switch work

    Programmatically:
        from cfgswitch import AppContext, SwitcherService
        service = SwitcherService(AppContext.create("~/.claude"))
        service.initialize()
        service.switch("work")
"""

__version__ = "0.1.0"

from .config import SettingsManager
from .models import (
    CURRENT_PROFILE_ID,
    AccessMode,
    ChangeType,
    ConfigFileChange,
    Profile,
    ProfileInfo,
    ProfileStatus,
    StatusKind,
    SwitcherSettings,
)
from .monitoring import FileWatcher, MetadataCache
from .orchestration import AppContext, EventDispatcher, SwitcherService
from .profiles import ProfileComparator, ProfileStore, SwitchCoordinator
from .validation import SwitcherError

__all__ = [
    "__version__",
    "AccessMode",
    "AppContext",
    "CURRENT_PROFILE_ID",
    "ChangeType",
    "ConfigFileChange",
    "EventDispatcher",
    "FileWatcher",
    "MetadataCache",
    "Profile",
    "ProfileComparator",
    "ProfileInfo",
    "ProfileStatus",
    "ProfileStore",
    "SettingsManager",
    "StatusKind",
    "SwitchCoordinator",
    "SwitcherError",
    "SwitcherService",
    "SwitcherSettings",
]
