"""
Data models for the configuration switcher.

Settings Models:
- User settings consumed by the engine (interval, ignored fields, budgets)

Monitoring Models:
- Cached file metadata and the monitored-file record
- Per-tick change events and watcher statistics

Profile Models:
- Profiles, listing records and comparison statuses
- Store access modes and switch states

Validation Models:
- JSON validation issues and results
"""

from .config import DEFAULT_IGNORED_FIELDS, SwitcherSettings, get_default_ignored_fields
from .monitoring import (
    ChangeType,
    ConfigFileChange,
    FileMetadata,
    MonitoredFile,
    MonitoringStats,
)
from .profiles import (
    CURRENT_PROFILE_ID,
    FULL_MATCH,
    NO_MATCH,
    PARTIAL_MATCH,
    STATUS_ICONS,
    AccessMode,
    Profile,
    ProfileInfo,
    ProfileStatus,
    StatusKind,
    SwitchState,
)
from .validation import SEMANTIC_ERROR, SYNTAX_ERROR, ValidationIssue, ValidationResult

__all__ = [
    # Settings
    "DEFAULT_IGNORED_FIELDS",
    "SwitcherSettings",
    "get_default_ignored_fields",
    # Monitoring
    "ChangeType",
    "ConfigFileChange",
    "FileMetadata",
    "MonitoredFile",
    "MonitoringStats",
    # Profiles
    "CURRENT_PROFILE_ID",
    "FULL_MATCH",
    "NO_MATCH",
    "PARTIAL_MATCH",
    "STATUS_ICONS",
    "AccessMode",
    "Profile",
    "ProfileInfo",
    "ProfileStatus",
    "StatusKind",
    "SwitchState",
    # Validation
    "SEMANTIC_ERROR",
    "SYNTAX_ERROR",
    "ValidationIssue",
    "ValidationResult",
]
