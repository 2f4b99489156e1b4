"""
Profile directory ownership.

The ProfileStore owns one configuration directory containing the live
configuration (``settings.json``) and any number of profiles named
``<name>.settings.json``. It is the only component that writes to these
files. All of its state is guarded by a single lock, acquired in one of
two modes (see ``AccessMode``):

- CONSISTENT waits for the lock. Used where a stale answer would be wrong,
  such as reading the live configuration right after a switch.
- BEST_EFFORT fails immediately with ``Busy`` when the lock is held, so
  UI-facing calls never queue behind a slow scan.

Calls into the FileWatcher are always made with the store lock released.
"""

import dataclasses
import logging
import os
import stat
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..models.profiles import (
    CURRENT_PROFILE_ID,
    AccessMode,
    Profile,
    ProfileInfo,
    ProfileStatus,
)
from ..monitoring import FileWatcher
from ..validation import (
    Busy,
    ConfigIOError,
    ErrorSeverity,
    ParseError,
    ProfileAlreadyExists,
    ProfileNotFound,
    ValidationError,
    handle_file_error,
    parse_json,
    simple_retry,
    validate_profile_name,
)
from .comparator import ProfileComparator

logger = logging.getLogger(__name__)

LIVE_CONFIG_NAME = "settings.json"
PROFILE_SUFFIX = ".settings.json"
CURRENT_DISPLAY_NAME = "Current"

# Attempts for the final rename; some platforms briefly lock files that
# another process is reading.
REPLACE_ATTEMPTS = 3
REPLACE_RETRY_DELAY = 0.05


def _write_temp(path: Path, content: str) -> str:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
    except BaseException:
        os.unlink(tmp_name)
        raise
    return tmp_name


def atomic_write_text(path: Path, content: str) -> None:
    """
    Replace ``path`` with ``content`` so readers see old or new, never partial.

    The content is written and fsync'ed to a temporary file in the same
    directory, then renamed over the target. On any failure the temporary
    file is removed and the target is left untouched.

    Raises:
        OSError: If writing or replacing fails
    """
    tmp_name = _write_temp(path, content)
    try:
        if path.exists():
            os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode))
        simple_retry(
            lambda: os.replace(tmp_name, path),
            max_attempts=REPLACE_ATTEMPTS,
            delay=REPLACE_RETRY_DELAY,
            context=f"replacing {path.name}",
            retry_on=(PermissionError,),
        )
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def exclusive_write_text(path: Path, content: str) -> None:
    """
    Create ``path`` with ``content``, failing if it already exists.

    The complete file is hard-linked into place, so the check for an
    existing file and the creation are a single filesystem operation and
    readers never see a partial file.

    Raises:
        FileExistsError: If ``path`` already exists
        OSError: If writing or linking fails
    """
    tmp_name = _write_temp(path, content)
    try:
        os.link(tmp_name, path)
    finally:
        os.unlink(tmp_name)


def ensure_valid_json(content: str) -> Any:
    """
    Parse ``content`` or raise a ValidationError pointing at the problem.
    """
    try:
        return parse_json(content)
    except ParseError as e:
        raise ValidationError(
            f"Invalid JSON: {e}", field_name="content", line=e.line, column=e.column
        ) from e


class ProfileStore:
    """Owns the profile list and the live configuration path."""

    def __init__(
        self,
        config_dir: Union[str, Path],
        comparator: Optional[ProfileComparator] = None,
        watcher: Optional[FileWatcher] = None,
    ):
        self.config_dir = Path(config_dir).absolute()
        self.comparator = comparator or ProfileComparator()
        self.watcher = watcher
        self._profiles: List[Profile] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Paths and locking
    # ------------------------------------------------------------------

    @property
    def live_path(self) -> Path:
        return self.config_dir / LIVE_CONFIG_NAME

    def profile_path(self, name: str) -> Path:
        return self.config_dir / f"{name}{PROFILE_SUFFIX}"

    @contextmanager
    def access(self, mode: AccessMode, operation: str = "access profiles") -> Iterator[None]:
        """
        Hold the store lock for the duration of the block.

        Raises:
            Busy: In BEST_EFFORT mode when the lock is already held
        """
        if mode is AccessMode.CONSISTENT:
            self._lock.acquire()
        elif not self._lock.acquire(blocking=False):
            logger.debug(f"Store busy, rejecting '{operation}'")
            raise Busy(operation)
        try:
            yield
        finally:
            self._lock.release()

    @staticmethod
    def _default_mode(profile_id: str) -> AccessMode:
        if profile_id == CURRENT_PROFILE_ID:
            return AccessMode.CONSISTENT
        return AccessMode.BEST_EFFORT

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_file(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigIOError(f"Cannot read {path}: {e}", path=path) from e

    def _write_file(self, path: Path, content: str, operation: str) -> None:
        try:
            atomic_write_text(path, content)
        except OSError as e:
            error = ConfigIOError(f"Cannot write {path}: {e}", path=path)
            handle_file_error(
                error=error,
                context=operation,
                severity=ErrorSeverity.ERROR,
                reraise=True,
                logger=logger,
            )

    def _create_file(self, name: str, path: Path, content: str) -> None:
        try:
            exclusive_write_text(path, content)
        except FileExistsError as e:
            raise ProfileAlreadyExists(name) from e
        except OSError as e:
            error = ConfigIOError(f"Cannot write {path}: {e}", path=path)
            handle_file_error(
                error=error,
                context=f"creating profile '{name}'",
                severity=ErrorSeverity.ERROR,
                reraise=True,
                logger=logger,
            )

    def _list_profile_files(self) -> List[Path]:
        try:
            entries = sorted(self.config_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise ConfigIOError(
                f"Cannot read profile directory {self.config_dir}: {e}", path=self.config_dir
            ) from e
        return [
            p for p in entries
            if p.name.endswith(PROFILE_SUFFIX)
            and len(p.name) > len(PROFILE_SUFFIX)
            and p.is_file()
        ]

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(self, mode: AccessMode = AccessMode.CONSISTENT) -> List[Profile]:
        """
        Re-enumerate the profile directory and re-read every profile.

        The new list replaces the old one only once it is complete; when
        the directory cannot be read the previous list is kept.

        Raises:
            ConfigIOError: If the directory cannot be listed
            Busy: In BEST_EFFORT mode when the store is locked
        """
        with self.access(mode, "scan profiles"):
            paths = self._list_profile_files()

            scanned: List[Profile] = []
            for path in paths:
                try:
                    content = self._read_file(path)
                except ConfigIOError as e:
                    logger.warning(f"Profile listed but unreadable: {e}")
                    content = ""
                name = path.name[: -len(PROFILE_SUFFIX)]
                scanned.append(Profile(name=name, path=path, content=content))

            active = {p.name for p in self._profiles if p.is_active}
            for profile in scanned:
                profile.is_active = profile.name in active

            old_paths = {p.path for p in self._profiles}
            self._profiles = scanned
            snapshot = [dataclasses.replace(p) for p in scanned]

        logger.info(f"Scanned {self.config_dir}: {len(snapshot)} profiles")
        self._sync_watcher(old_paths, {p.path for p in snapshot})
        return snapshot

    def _sync_watcher(self, old_paths: Iterable[Path], new_paths: Iterable[Path]) -> None:
        if self.watcher is None:
            return
        new_paths = set(new_paths)
        self.watcher.add_file(self.live_path)
        for path in sorted(new_paths):
            self.watcher.add_file(path)
        for path in set(old_paths) - new_paths:
            self.watcher.remove_file(path)

    def monitored_paths(self) -> List[Path]:
        """Paths the watcher should track: the live file and every profile."""
        with self.access(AccessMode.CONSISTENT, "list monitored files"):
            return [self.live_path] + [p.path for p in self._profiles]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_profiles(self, mode: AccessMode = AccessMode.BEST_EFFORT) -> List[Profile]:
        """Profiles in scan order (copies; mutating them has no effect)."""
        with self.access(mode, "list profiles"):
            return [dataclasses.replace(p) for p in self._profiles]

    def find_profile_locked(self, profile_id: str) -> Optional[Profile]:
        """Look up a profile by id. Caller must hold the store lock."""
        for profile in self._profiles:
            if profile.name == profile_id:
                return profile
        return None

    def _require_profile_locked(self, profile_id: str) -> Profile:
        profile = self.find_profile_locked(profile_id)
        if profile is None:
            raise ProfileNotFound(profile_id)
        return profile

    @staticmethod
    def _file_info(path: Path) -> Tuple[Optional[datetime], int]:
        try:
            st = path.stat()
        except OSError as e:
            logger.debug(f"Cannot stat {path}: {e}")
            return None, 0
        return datetime.fromtimestamp(st.st_mtime), st.st_size

    def list_profiles(self, mode: AccessMode = AccessMode.BEST_EFFORT) -> List[ProfileInfo]:
        """Listing records, live configuration first, then profiles in scan order."""
        with self.access(mode, "list profiles"):
            entries = [(CURRENT_PROFILE_ID, CURRENT_DISPLAY_NAME, self.live_path, True)]
            entries.extend((p.name, p.name, p.path, False) for p in self._profiles)

        infos = []
        for profile_id, display_name, path, is_default in entries:
            last_modified, size = self._file_info(path)
            infos.append(ProfileInfo(
                id=profile_id,
                display_name=display_name,
                file_path=str(path),
                is_default=is_default,
                last_modified=last_modified,
                file_size=size,
            ))
        return infos

    def read_content(self, profile_id: str, mode: Optional[AccessMode] = None) -> str:
        """
        Read the raw text of a profile, or of the live file for ``"current"``.

        The live file is read in CONSISTENT mode by default so a read that
        follows a switch always observes the switched content.

        Raises:
            ProfileNotFound: Unknown id
            ConfigIOError: File cannot be read
        """
        with self.access(mode or self._default_mode(profile_id), "read profile"):
            if profile_id == CURRENT_PROFILE_ID:
                return self._read_file(self.live_path)
            profile = self._require_profile_locked(profile_id)
            content = self._read_file(profile.path)
            profile.content = content
            return content

    def read_profile_locked(self, profile: Profile) -> str:
        """Fresh read of a profile's file. Caller must hold the store lock."""
        content = self._read_file(profile.path)
        profile.content = content
        return content

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def _watcher_failures(self) -> Dict[Path, str]:
        # Taken before the store lock so the two locks are never held together.
        if self.watcher is None:
            return {}
        return self.watcher.failure_reasons()

    def _read_live_for_compare(self, failures: Dict[Path, str]) -> Tuple[Any, Optional[str]]:
        if self.live_path in failures:
            return None, failures[self.live_path]
        try:
            text = self._read_file(self.live_path)
        except ConfigIOError as e:
            return None, str(e)
        try:
            return parse_json(text), None
        except ParseError as e:
            return None, f"live configuration: {e}"

    def _status_locked(
        self,
        profile: Profile,
        live: Any,
        live_error: Optional[str],
        failures: Dict[Path, str],
        ignored_fields: List[str],
    ) -> ProfileStatus:
        if profile.path in failures:
            return ProfileStatus.error(failures[profile.path])
        if live_error is not None:
            return ProfileStatus.error(live_error)
        try:
            content = self.read_profile_locked(profile)
        except ConfigIOError as e:
            return ProfileStatus.error(str(e))
        return self.comparator.compare(live, content, ignored_fields)

    def status_for(
        self,
        profile_id: str,
        ignored_fields: Iterable[str] = (),
        mode: AccessMode = AccessMode.BEST_EFFORT,
    ) -> Optional[ProfileStatus]:
        """
        Compare the live configuration with one profile.

        Returns:
            The profile's status, or None for ``"current"`` which has no
            status of its own

        Raises:
            ProfileNotFound: Unknown id
        """
        if profile_id == CURRENT_PROFILE_ID:
            return None

        failures = self._watcher_failures()
        with self.access(mode, "compare profile"):
            profile = self._require_profile_locked(profile_id)
            live, live_error = self._read_live_for_compare(failures)
            return self._status_locked(profile, live, live_error, failures, list(ignored_fields))

    def compare_all(
        self,
        ignored_fields: Iterable[str] = (),
        mode: AccessMode = AccessMode.BEST_EFFORT,
    ) -> List[ProfileStatus]:
        """Statuses aligned index-for-index with ``get_profiles()``."""
        failures = self._watcher_failures()
        ignored = list(ignored_fields)
        with self.access(mode, "compare profiles"):
            live, live_error = self._read_live_for_compare(failures)
            statuses = [
                self._status_locked(p, live, live_error, failures, ignored)
                for p in self._profiles
            ]
        logger.debug(f"Compared {len(statuses)} profiles")
        return statuses

    def snapshot(
        self,
        ignored_fields: Iterable[str] = (),
        mode: AccessMode = AccessMode.BEST_EFFORT,
    ) -> List[Tuple[Profile, ProfileStatus]]:
        """Profiles paired with their statuses, taken under one lock hold."""
        failures = self._watcher_failures()
        ignored = list(ignored_fields)
        with self.access(mode, "compare profiles"):
            live, live_error = self._read_live_for_compare(failures)
            return [
                (dataclasses.replace(p), self._status_locked(p, live, live_error, failures, ignored))
                for p in self._profiles
            ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save_content(
        self,
        profile_id: str,
        content: str,
        mode: AccessMode = AccessMode.BEST_EFFORT,
    ) -> None:
        """
        Overwrite an existing profile (or the live file for ``"current"``).

        Raises:
            ValidationError: Content is not valid JSON
            ProfileNotFound: Unknown id
            ConfigIOError: File cannot be written
        """
        ensure_valid_json(content)
        with self.access(mode, "save profile"):
            if profile_id == CURRENT_PROFILE_ID:
                self._write_file(self.live_path, content, "saving live configuration")
            else:
                profile = self._require_profile_locked(profile_id)
                self._write_file(profile.path, content, f"saving profile '{profile_id}'")
                profile.content = content
        logger.info(f"Saved profile '{profile_id}'")

    def create(
        self,
        name: str,
        content: str,
        mode: AccessMode = AccessMode.BEST_EFFORT,
    ) -> str:
        """
        Create a new profile file.

        Returns:
            Path of the new file

        Raises:
            ValidationError: Invalid name or content
            ProfileAlreadyExists: Name already taken
            ConfigIOError: File cannot be written
        """
        name = validate_profile_name(name)
        ensure_valid_json(content)
        with self.access(mode, "create profile"):
            path = self.profile_path(name)
            if self.find_profile_locked(name) is not None:
                raise ProfileAlreadyExists(name)
            self._create_file(name, path, content)
            self._profiles.append(Profile(name=name, path=path, content=content))

        if self.watcher is not None:
            self.watcher.add_file(path)
        logger.info(f"Created profile '{name}' at {path}")
        return str(path)

    def delete(self, profile_id: str, mode: AccessMode = AccessMode.BEST_EFFORT) -> None:
        """
        Delete a profile file.

        Raises:
            ValidationError: Attempt to delete the live configuration
            ProfileNotFound: Unknown id
            ConfigIOError: File cannot be removed
        """
        if profile_id == CURRENT_PROFILE_ID:
            raise ValidationError(
                "The live configuration cannot be deleted", field_name="profile_id", value=profile_id
            )
        with self.access(mode, "delete profile"):
            profile = self._require_profile_locked(profile_id)
            try:
                profile.path.unlink()
            except FileNotFoundError:
                logger.warning(f"Profile file already gone: {profile.path}")
            except OSError as e:
                raise ConfigIOError(f"Cannot delete {profile.path}: {e}", path=profile.path) from e
            self._profiles.remove(profile)

        if self.watcher is not None:
            self.watcher.remove_file(profile.path)
        logger.info(f"Deleted profile '{profile_id}'")

    def write_live_locked(self, content: str) -> None:
        """
        Atomically replace the live file. Caller must hold the store lock.

        Raises:
            OSError: The write failed; the live file is unchanged
        """
        atomic_write_text(self.live_path, content)

    def mark_active_locked(self, profile_id: str) -> None:
        """Flag one profile active and every other inactive. Caller holds the lock."""
        for profile in self._profiles:
            profile.is_active = profile.name == profile_id
