"""
Polling file watcher.

This module provides the FileWatcher that owns the monitored-file set and
runs a recurring background tick. Each tick probes every monitored file
against its cached metadata, collects the detected changes into a single
batch and delivers the batch once, to an optional callback and/or an
optional channel (``queue.Queue``) drained by a separate consumer.

Per-file failures are contained: each failed probe counts against the
file's error budget, and a file that exhausts its budget is skipped by
later ticks until it is registered again.
"""

import logging
import queue
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Union

from ..models.monitoring import ConfigFileChange, MonitoredFile, MonitoringStats
from ..validation import ScanErrorBudgetExceeded, validate_positive_float, validate_positive_integer
from .metadata_cache import MetadataCache, inspect_file

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[List[ConfigFileChange]], None]

STOP_JOIN_TIMEOUT = 5.0


class FileWatcher:
    """
    Poll-based change detector for a set of files.

    All mutable state (the monitored set, the metadata cache and the error
    counters) is guarded by one lock. The lock is held only to snapshot and
    to write back state, never while files are read or a batch is being
    delivered, so queries stay fast and callbacks may call back into the
    watcher. A second lock serializes whole ticks.
    """

    def __init__(
        self,
        interval_minutes: float = 5,
        max_scan_errors: int = 5,
        cache_size_limit: int = 1000,
        channel: Optional[queue.Queue] = None,
    ):
        """
        Initialize the watcher.

        Args:
            interval_minutes: Minutes between ticks once started
            max_scan_errors: Consecutive failures before a file is skipped
            cache_size_limit: Maximum number of monitored files
            channel: Optional queue receiving every non-empty batch
        """
        self._interval_minutes = validate_positive_float(
            interval_minutes, min_value=0.0001, field_name="interval_minutes"
        )
        self.max_scan_errors = validate_positive_integer(
            max_scan_errors, min_value=1, field_name="max_scan_errors"
        )
        self.channel = channel

        self._files: Dict[Path, MonitoredFile] = {}
        self._cache = MetadataCache(
            validate_positive_integer(cache_size_limit, min_value=1, field_name="cache_size_limit")
        )
        self._lock = threading.Lock()
        self._scan_lock = threading.Lock()

        self._on_change: Optional[ChangeCallback] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._wakeup = threading.Event()

    # ------------------------------------------------------------------
    # Monitored set
    # ------------------------------------------------------------------

    @staticmethod
    def _key(path: Union[str, Path]) -> Path:
        return Path(path).absolute()

    def add_file(self, path: Union[str, Path], seed: bool = True) -> bool:
        """
        Register a file for monitoring.

        Registering an already monitored file is a no-op apart from
        resetting its error counter, which puts a quarantined file back
        into rotation.

        Args:
            path: File to monitor; it does not need to exist yet
            seed: Populate the metadata cache now if the file exists, so
                the first tick does not report it as created

        Returns:
            True if the file is monitored after the call, False if the
            monitored set is full
        """
        key = self._key(path)
        with self._lock:
            existing = self._files.get(key)
            if existing is not None:
                if existing.error_count:
                    logger.info(f"Resetting scan error count for {key} (was {existing.error_count})")
                    existing.error_count = 0
                    existing.last_error = ""
                return True

            if len(self._files) >= self._cache.size_limit:
                logger.warning(
                    f"Cannot monitor {key}: monitored file limit ({self._cache.size_limit}) reached"
                )
                return False

            self._files[key] = MonitoredFile(path=key)
            if seed:
                try:
                    self._cache.probe(key)
                except OSError as e:
                    logger.debug(f"Could not seed metadata for {key}: {e}")

        logger.debug(f"Monitoring {key}")
        return True

    def remove_file(self, path: Union[str, Path]) -> bool:
        """Unregister a file and drop its cached metadata."""
        key = self._key(path)
        with self._lock:
            removed = self._files.pop(key, None)
            self._cache.discard(key)
        if removed is not None:
            logger.debug(f"Stopped monitoring {key}")
        return removed is not None

    def clear(self) -> None:
        """Drop every monitored file, e.g. when the config directory changes."""
        with self._lock:
            count = len(self._files)
            self._files.clear()
            self._cache.clear()
        logger.info(f"Cleared {count} monitored files")

    def monitored_files(self) -> List[Path]:
        with self._lock:
            return list(self._files)

    def failed_paths(self) -> Set[Path]:
        """Paths that exhausted their error budget and are no longer probed."""
        with self._lock:
            return {
                path for path, mf in self._files.items()
                if mf.is_quarantined(self.max_scan_errors)
            }

    def failure_reasons(self) -> Dict[Path, str]:
        """Error message for every quarantined path."""
        with self._lock:
            return {
                path: str(ScanErrorBudgetExceeded(path, mf.error_count, mf.last_error))
                for path, mf in self._files.items()
                if mf.is_quarantined(self.max_scan_errors)
            }

    def get_error_count(self, path: Union[str, Path]) -> int:
        with self._lock:
            mf = self._files.get(self._key(path))
            return mf.error_count if mf else 0

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def scan_once(self) -> List[ConfigFileChange]:
        """
        Run one tick synchronously.

        Returns:
            The batch of changes detected by this tick (possibly empty).
            A non-empty batch has also been delivered.
        """
        with self._scan_lock:
            changes = self._scan_locked()

        if changes:
            logger.info(f"Detected {len(changes)} changed file(s)")
            self._deliver(changes)
        else:
            logger.debug("No changes detected")
        return changes

    def _scan_locked(self) -> List[ConfigFileChange]:
        # Files are read with the state lock released.
        with self._lock:
            targets = [
                (mf, self._cache.get(mf.path)) for mf in self._files.values()
                if not mf.is_quarantined(self.max_scan_errors)
            ]

        outcomes = []
        for mf, cached in targets:
            try:
                outcomes.append((mf, cached, inspect_file(mf.path, cached), None))
            except OSError as e:
                outcomes.append((mf, cached, None, e))

        changes: List[ConfigFileChange] = []
        with self._lock:
            for mf, cached, outcome, error in outcomes:
                # Removed, or removed and registered again, during the tick.
                if self._files.get(mf.path) is not mf or self._cache.get(mf.path) is not cached:
                    continue
                if error is not None:
                    self._record_failure(mf, error)
                    continue

                change_type, entry = outcome
                self._cache.store(mf.path, entry)

                if mf.error_count:
                    logger.info(f"{mf.path} readable again after {mf.error_count} failed scans")
                    mf.error_count = 0
                    mf.last_error = ""

                if change_type is not None:
                    changes.append(ConfigFileChange(path=mf.path, change_type=change_type))
        return changes

    def _record_failure(self, mf: MonitoredFile, error: OSError) -> None:
        mf.error_count += 1
        mf.last_error = str(error)
        if mf.is_quarantined(self.max_scan_errors):
            logger.error(
                f"Giving up on {mf.path} after {mf.error_count} consecutive failed scans: {error}"
            )
        else:
            logger.warning(
                f"Failed to scan {mf.path} ({mf.error_count}/{self.max_scan_errors}): {error}"
            )

    def _deliver(self, changes: List[ConfigFileChange]) -> None:
        if self.channel is not None:
            self.channel.put(list(changes))

        callback = self._on_change
        if callback is not None:
            try:
                callback(changes)
            except Exception as e:
                logger.error(f"Change callback failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def interval_minutes(self) -> float:
        return self._interval_minutes

    def start(
        self,
        interval_minutes: Optional[float] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        """
        Start the background polling loop.

        Args:
            interval_minutes: Optional new interval, otherwise the current one
            on_change: Optional callback receiving each non-empty batch
        """
        if self.is_running:
            logger.warning("File watcher already running")
            return

        if interval_minutes is not None:
            self._interval_minutes = validate_positive_float(
                interval_minutes, min_value=0.0001, field_name="interval_minutes"
            )
        if on_change is not None:
            self._on_change = on_change

        # Each loop gets its own events, so a loop stopped from its own
        # callback cannot be revived by the start() that follows.
        self._stop_event = threading.Event()
        self._wakeup = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event, self._wakeup),
            name="cfgswitch-watcher",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            f"Started file watcher: {len(self._files)} files, every {self._interval_minutes} minutes"
        )

    def stop(self, timeout: float = STOP_JOIN_TIMEOUT) -> None:
        """
        Stop the polling loop. Safe to call repeatedly, before start(), and
        from inside a change callback.
        """
        self._stop_event.set()
        self._wakeup.set()

        thread = self._thread
        self._thread = None
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"File watcher thread did not stop within {timeout}s")
        logger.info("Stopped file watcher")

    def set_interval(self, minutes: float) -> None:
        """
        Change the polling cadence. Cached metadata and error counters are
        kept; a running loop restarts its wait with the new interval.
        """
        self._interval_minutes = validate_positive_float(
            minutes, min_value=0.0001, field_name="interval_minutes"
        )
        logger.info(f"Monitor interval set to {self._interval_minutes} minutes")
        if self.is_running:
            self._wakeup.set()

    def _run(self, stop_event: threading.Event, wakeup: threading.Event) -> None:
        while not stop_event.is_set():
            woke = wakeup.wait(timeout=self._interval_minutes * 60)
            if stop_event.is_set():
                break
            if woke:
                wakeup.clear()
                continue
            try:
                self.scan_once()
            except Exception as e:
                logger.error(f"Unexpected error during file scan: {e}", exc_info=True)
        logger.debug("File watcher loop exited")

    def get_stats(self) -> MonitoringStats:
        with self._lock:
            failed = tuple(
                str(path) for path, mf in self._files.items()
                if mf.is_quarantined(self.max_scan_errors)
            )
            return MonitoringStats(
                monitored_files_count=len(self._files),
                cached_metadata_count=len(self._cache),
                current_error_count=sum(mf.error_count for mf in self._files.values()),
                is_running=self.is_running,
                interval_minutes=self._interval_minutes,
                cache_size_limit=self._cache.size_limit,
                max_scan_errors=self.max_scan_errors,
                failed_files=failed,
            )
