"""
Profile storage, comparison and switching.
"""

from .comparator import ProfileComparator, json_equal, strip_fields
from .store import (
    LIVE_CONFIG_NAME,
    PROFILE_SUFFIX,
    ProfileStore,
    atomic_write_text,
    ensure_valid_json,
    exclusive_write_text,
)
from .switcher import SwitchCoordinator

__all__ = [
    "LIVE_CONFIG_NAME",
    "PROFILE_SUFFIX",
    "ProfileComparator",
    "ProfileStore",
    "SwitchCoordinator",
    "atomic_write_text",
    "ensure_valid_json",
    "exclusive_write_text",
    "json_equal",
    "strip_fields",
]
