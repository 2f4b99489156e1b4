"""
Profile data models.

This module contains the profile record owned by the store, the listing
record handed to UI collaborators, the comparison status, and the small
enums describing lock access modes and switch states.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

CURRENT_PROFILE_ID = "current"


@dataclass
class Profile:
    """A named, file-backed configuration snapshot."""

    # Unique name derived from the file name.
    name: str
    path: Path
    # Raw text as read during the last scan.
    content: str
    # Advisory display flag, set by the last successful switch.
    is_active: bool = False


@dataclass(frozen=True)
class ProfileInfo:
    """Listing record for a profile or for the live configuration."""

    id: str
    display_name: str
    file_path: str
    is_default: bool
    last_modified: Optional[datetime]
    file_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "file_path": self.file_path,
            "is_default": self.is_default,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "file_size": self.file_size,
        }


class StatusKind(Enum):
    """Classification of the live configuration against one profile."""
    FULL_MATCH = "full_match"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"
    ERROR = "error"


# Icons shown next to a profile name. NoMatch deliberately shows nothing.
STATUS_ICONS = {
    StatusKind.FULL_MATCH: "✅",
    StatusKind.PARTIAL_MATCH: "🔄",
    StatusKind.NO_MATCH: "",
    StatusKind.ERROR: "❌",
}


@dataclass(frozen=True)
class ProfileStatus:
    """
    Result of comparing the live configuration with a profile.

    ``reason`` is only set for ``StatusKind.ERROR``.
    """

    kind: StatusKind
    reason: Optional[str] = None

    @classmethod
    def error(cls, reason: str) -> "ProfileStatus":
        return cls(StatusKind.ERROR, reason)

    @property
    def is_error(self) -> bool:
        return self.kind is StatusKind.ERROR

    @property
    def icon(self) -> str:
        return STATUS_ICONS[self.kind]

    def __str__(self) -> str:
        if self.reason:
            return f"{self.kind.value}({self.reason})"
        return self.kind.value


FULL_MATCH = ProfileStatus(StatusKind.FULL_MATCH)
PARTIAL_MATCH = ProfileStatus(StatusKind.PARTIAL_MATCH)
NO_MATCH = ProfileStatus(StatusKind.NO_MATCH)


class AccessMode(Enum):
    """
    How an operation acquires the profile store lock.

    CONSISTENT waits for the lock; BEST_EFFORT fails fast with ``Busy``.
    """
    CONSISTENT = "consistent"
    BEST_EFFORT = "best_effort"


class SwitchState(Enum):
    """States of a single switch attempt."""
    REQUESTED = "requested"
    VALIDATING = "validating"
    WRITING = "writing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
