"""
Switching the live configuration to a stored profile.

A switch runs entirely under the store lock in CONSISTENT mode:

    REQUESTED -> VALIDATING -> WRITING -> COMMITTED
                     |            |
                     +------------+----> ROLLED_BACK

Only terminal states are published on the coordinator, so no other thread
can observe a half-finished switch.
"""

import dataclasses
import logging
import threading
from typing import List, Optional, Tuple

from ..models.profiles import CURRENT_PROFILE_ID, AccessMode, Profile, SwitchState
from ..validation import (
    ConfigIOError,
    InvalidProfileContent,
    ParseError,
    ProfileNotFound,
    SwitchFailed,
    parse_json,
)
from .store import ProfileStore

logger = logging.getLogger(__name__)


class SwitchCoordinator:
    """Installs a profile's content as the live configuration."""

    def __init__(self, store: ProfileStore):
        self.store = store
        self._state_lock = threading.Lock()
        self._last_state: Optional[SwitchState] = None
        self._last_transitions: Tuple[SwitchState, ...] = ()

    @property
    def last_state(self) -> Optional[SwitchState]:
        """Terminal state of the most recent switch, None before the first one."""
        with self._state_lock:
            return self._last_state

    @property
    def last_transitions(self) -> Tuple[SwitchState, ...]:
        """Every state the most recent switch passed through, in order."""
        with self._state_lock:
            return self._last_transitions

    def _publish(self, transitions: List[SwitchState]) -> None:
        with self._state_lock:
            self._last_state = transitions[-1]
            self._last_transitions = tuple(transitions)

    def switch(self, profile_id: str) -> Profile:
        """
        Make ``profile_id`` the live configuration.

        Returns:
            A copy of the now active profile

        Raises:
            ProfileNotFound: Unknown id (or ``"current"``)
            InvalidProfileContent: Stored content is not valid JSON
            SwitchFailed: Reading the profile or writing the live file failed
        """
        transitions = [SwitchState.REQUESTED]
        logger.info(f"Switch to '{profile_id}' requested")

        try:
            with self.store.access(AccessMode.CONSISTENT, "switch profile"):
                transitions.append(SwitchState.VALIDATING)
                profile = None
                if profile_id != CURRENT_PROFILE_ID:
                    profile = self.store.find_profile_locked(profile_id)
                if profile is None:
                    raise ProfileNotFound(profile_id)

                try:
                    content = self.store.read_profile_locked(profile)
                except ConfigIOError as e:
                    raise SwitchFailed(profile_id, str(e)) from e
                try:
                    parse_json(content)
                except ParseError as e:
                    raise InvalidProfileContent(profile_id, str(e)) from e

                transitions.append(SwitchState.WRITING)
                try:
                    self.store.write_live_locked(content)
                except OSError as e:
                    raise SwitchFailed(profile_id, str(e)) from e

                self.store.mark_active_locked(profile.name)
                result = dataclasses.replace(profile)
        except (ProfileNotFound, InvalidProfileContent, SwitchFailed) as e:
            transitions.append(SwitchState.ROLLED_BACK)
            self._publish(transitions)
            logger.warning(f"Switch to '{profile_id}' rolled back: {e}")
            raise

        transitions.append(SwitchState.COMMITTED)
        self._publish(transitions)
        logger.info(f"Switched live configuration to profile '{profile_id}'")
        return result
