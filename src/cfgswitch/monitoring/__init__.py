"""
File change detection for the cfgswitch package.
"""

from .file_watcher import ChangeCallback, FileWatcher
from .metadata_cache import MetadataCache, compute_checksum, inspect_file, stat_file

__all__ = [
    "ChangeCallback",
    "FileWatcher",
    "MetadataCache",
    "compute_checksum",
    "inspect_file",
    "stat_file",
]
