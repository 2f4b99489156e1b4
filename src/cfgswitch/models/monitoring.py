"""
Change-detection data models.

This module contains the per-file metadata snapshot kept by the watcher,
the monitored-file record, the per-tick change events and the read-only
statistics snapshot.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class FileMetadata:
    """
    Cached snapshot used to decide whether a file changed since the last tick.
    """

    # Modification time in nanoseconds (st_mtime_ns).
    modified_time: int
    # CRC-32 of the file content.
    checksum: int
    # Size in bytes.
    size: int

    def same_stat(self, modified_time: int, size: int) -> bool:
        """True when the (modified_time, size) pair matches this snapshot."""
        return self.modified_time == modified_time and self.size == size


@dataclass
class MonitoredFile:
    """
    A file in the watcher's monitored set.

    Its cached metadata lives in the watcher's ``MetadataCache``, keyed by
    ``path``, and is absent before the first successful scan.
    """

    path: Path
    # Consecutive failed stat/read attempts; reset to zero on success.
    error_count: int = 0
    # Message of the most recent failure.
    last_error: str = ""

    def is_quarantined(self, max_scan_errors: int) -> bool:
        """True once the file has used up its error budget."""
        return self.error_count >= max_scan_errors


class ChangeType(Enum):
    """Kinds of change a tick can detect."""
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ConfigFileChange:
    """One change detected during a single tick."""

    path: Path
    change_type: ChangeType


@dataclass(frozen=True)
class MonitoringStats:
    """Read-only counters describing the watcher's state."""

    monitored_files_count: int = 0
    cached_metadata_count: int = 0
    current_error_count: int = 0
    is_running: bool = False
    interval_minutes: float = 5.0
    cache_size_limit: int = 1000
    max_scan_errors: int = 5
    failed_files: tuple = field(default_factory=tuple)
