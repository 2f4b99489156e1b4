"""
Change batch consumer.

The FileWatcher puts each non-empty batch on a ``queue.Queue``. The
EventDispatcher drains that queue on its own thread, rescans the profile
store, recomputes every status and hands the resulting snapshot to the
registered listeners. The watcher never calls into the store directly, so
the watcher's lifetime is independent of the consumer's.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..models.monitoring import ConfigFileChange
from ..models.profiles import AccessMode, Profile, ProfileStatus
from ..profiles import ProfileStore
from ..validation import SwitcherError

logger = logging.getLogger(__name__)

DISPATCHER_JOIN_TIMEOUT = 5.0

# Put on the channel to make the consumer loop exit.
_STOP = object()


@dataclass
class StatusSnapshot:
    """Profiles paired index-for-index with their statuses."""

    profiles: List[Profile] = field(default_factory=list)
    statuses: List[ProfileStatus] = field(default_factory=list)
    changes: List[ConfigFileChange] = field(default_factory=list)

    def items(self):
        return list(zip(self.profiles, self.statuses))


StatusListener = Callable[[StatusSnapshot], None]


class EventDispatcher:
    """Turns change batches into status snapshots for listeners."""

    def __init__(
        self,
        store: ProfileStore,
        channel: queue.Queue,
        ignored_fields: Callable[[], List[str]],
    ):
        """
        Args:
            store: Store to rescan and compare on each batch
            channel: Queue the watcher delivers batches to
            ignored_fields: Returns the ignored-field list in effect right now
        """
        self.store = store
        self.channel = channel
        self._ignored_fields = ignored_fields
        self._listeners: List[StatusListener] = []
        self._listeners_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self.last_snapshot: Optional[StatusSnapshot] = None

    def add_listener(self, listener: StatusListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Event dispatcher already running")
            return
        self._thread = threading.Thread(target=self._run, name="cfgswitch-dispatcher", daemon=True)
        self._thread.start()
        logger.debug("Started event dispatcher")

    def stop(self, timeout: float = DISPATCHER_JOIN_TIMEOUT) -> None:
        thread = self._thread
        self._thread = None
        if thread is None:
            return
        self.channel.put(_STOP)
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Event dispatcher did not stop within {timeout}s")
        logger.debug("Stopped event dispatcher")

    def _run(self) -> None:
        while True:
            batch = self.channel.get()
            if batch is _STOP:
                break

            # Coalesce batches that queued up while the last one was handled.
            changes = list(batch)
            stop_after = False
            while True:
                try:
                    extra = self.channel.get_nowait()
                except queue.Empty:
                    break
                if extra is _STOP:
                    stop_after = True
                    break
                changes.extend(extra)

            try:
                self.handle_batch(changes)
            except Exception as e:
                logger.error(f"Failed to handle change batch: {e}", exc_info=True)

            if stop_after:
                break
        logger.debug("Event dispatcher loop exited")

    def handle_batch(self, changes: List[ConfigFileChange]) -> StatusSnapshot:
        """Rescan, recompare and notify listeners. Runs synchronously."""
        for change in changes:
            logger.info(f"{change.change_type.value}: {change.path}")
        return self.refresh(changes)

    def refresh(self, changes: Optional[List[ConfigFileChange]] = None) -> StatusSnapshot:
        """
        Rebuild the status snapshot from disk.

        A failed directory scan keeps the previous profile list; statuses
        are still recomputed against it.
        """
        try:
            self.store.scan(AccessMode.CONSISTENT)
        except SwitcherError as e:
            logger.error(f"Profile scan failed, keeping previous list: {e}")

        pairs = self.store.snapshot(self._ignored_fields(), AccessMode.CONSISTENT)
        snapshot = StatusSnapshot(
            profiles=[p for p, _ in pairs],
            statuses=[s for _, s in pairs],
            changes=list(changes or []),
        )
        self.last_snapshot = snapshot
        self._notify(snapshot)
        return snapshot

    def _notify(self, snapshot: StatusSnapshot) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Status listener failed: {e}", exc_info=True)
