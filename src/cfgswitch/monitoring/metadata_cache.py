"""
Per-file metadata cache used to detect changes between watcher ticks.

A file's content is hashed only when its (modified_time, size) pair differs
from the cached one, so unchanged files cost a single ``stat`` per tick.
Entries are replaced only after a successful probe; a failing probe leaves
the previous entry untouched.
"""

import logging
import zlib
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from ..models.monitoring import ChangeType, FileMetadata

logger = logging.getLogger(__name__)

CHECKSUM_CHUNK_SIZE = 64 * 1024


def stat_file(path: Path) -> Optional[Tuple[int, int]]:
    """
    Return ``(st_mtime_ns, st_size)`` for ``path``, or None if it does not exist.

    Raises:
        OSError: For any failure other than the file being absent
    """
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    return st.st_mtime_ns, st.st_size


def compute_checksum(path: Path) -> int:
    """CRC-32 of the file's bytes, read in chunks."""
    checksum = 0
    with open(path, "rb") as f:
        while True:
            chunk = f.read(CHECKSUM_CHUNK_SIZE)
            if not chunk:
                break
            checksum = zlib.crc32(chunk, checksum)
    return checksum


class MetadataCache:
    """
    Mapping of path to the last successfully observed ``FileMetadata``.

    Not thread-safe on its own; the owning watcher serializes access.
    """

    def __init__(self, size_limit: int = 1000):
        if size_limit < 1:
            raise ValueError("size_limit must be >= 1")
        self.size_limit = size_limit
        self._entries: Dict[Path, FileMetadata] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[Path]:
        return iter(self._entries)

    def get(self, path: Path) -> Optional[FileMetadata]:
        return self._entries.get(path)

    def discard(self, path: Path) -> None:
        self._entries.pop(path, None)

    def clear(self) -> None:
        self._entries.clear()

    def store(self, path: Path, entry: Optional[FileMetadata]) -> None:
        """Set the entry for ``path``; None drops it."""
        if entry is None:
            self._entries.pop(path, None)
        else:
            self._entries[path] = entry

    def probe(self, path: Path) -> Optional[ChangeType]:
        """
        Compare the file on disk with its cached entry and refresh the entry.

        Returns:
            The detected change, or None when nothing observable changed
            (including a timestamp-only change with identical content)

        Raises:
            OSError: If the file exists but cannot be stat'ed or read; the
                cached entry is left as it was
        """
        change_type, entry = inspect_file(path, self._entries.get(path))
        self.store(path, entry)
        return change_type


def inspect_file(
    path: Path, cached: Optional[FileMetadata]
) -> Tuple[Optional[ChangeType], Optional[FileMetadata]]:
    """
    Classify ``path`` against ``cached`` without touching any cache.

    Safe to call without holding the owner's lock; the caller decides
    whether to store the returned entry.

    Returns:
        ``(change_type, entry)`` where ``entry`` is what the cache should
        hold for ``path`` afterwards (None when the file is absent)

    Raises:
        OSError: If the file exists but cannot be stat'ed or read
    """
    observed = stat_file(path)

    if observed is None:
        return (None if cached is None else ChangeType.DELETED), None

    modified_time, size = observed
    if cached is not None and cached.same_stat(modified_time, size):
        return None, cached

    try:
        checksum = compute_checksum(path)
    except FileNotFoundError:
        # Removed between stat and read.
        return (None if cached is None else ChangeType.DELETED), None

    entry = FileMetadata(modified_time=modified_time, checksum=checksum, size=size)
    if cached is None:
        return ChangeType.CREATED, entry
    if checksum != cached.checksum:
        return ChangeType.MODIFIED, entry

    logger.debug(f"Timestamp changed without content change: {path}")
    return None, entry
