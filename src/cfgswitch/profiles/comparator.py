"""
Structural comparison of the live configuration against a profile.

Classification:
- FULL_MATCH: both objects are deep-equal
- PARTIAL_MATCH: they differ, but become deep-equal once every ignored
  top-level key is removed from both sides
- NO_MATCH: they still differ after removing the ignored keys
- ERROR: either side fails to parse or is not a JSON object

An ignored key is dropped from both sides whether it is present on one
side, on both, or on neither; so a key that was added, removed or changed
is treated the same way. Ignoring only applies to top-level keys; nested
values are always compared in full.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from ..models.profiles import FULL_MATCH, NO_MATCH, PARTIAL_MATCH, ProfileStatus
from ..validation import ParseError, parse_json

logger = logging.getLogger(__name__)

JsonInput = Union[str, Any]


def json_equal(a: Any, b: Any) -> bool:
    """
    Strict structural equality over parsed JSON values.

    Objects compare key-order-insensitively, arrays order-sensitively.
    Scalars must be of the same JSON kind, so ``true`` is not ``1`` and
    ``1`` is not ``1.0``. Walks the values with an explicit stack, so any
    depth the parser accepted can be compared.
    """
    pending = [(a, b)]
    while pending:
        x, y = pending.pop()
        if isinstance(x, dict):
            if not isinstance(y, dict) or x.keys() != y.keys():
                return False
            pending.extend((x[k], y[k]) for k in x)
        elif isinstance(x, list):
            if not isinstance(y, list) or len(x) != len(y):
                return False
            pending.extend(zip(x, y))
        elif type(x) is not type(y) or x != y:
            return False
    return True


def strip_fields(obj: Mapping[str, Any], ignored_fields: Iterable[str]) -> dict:
    """Copy of ``obj`` without the ignored top-level keys."""
    ignored = set(ignored_fields)
    return {k: v for k, v in obj.items() if k not in ignored}


class ProfileComparator:
    """Stateless comparator; one instance can be shared by every caller."""

    @staticmethod
    def _load(value: JsonInput, side: str) -> Any:
        if isinstance(value, str):
            try:
                return parse_json(value)
            except ParseError as e:
                raise ParseError(f"{side}: {e}", line=e.line, column=e.column) from e
        return value

    def compare(
        self,
        live_json: JsonInput,
        profile_json: JsonInput,
        ignored_fields: Optional[Iterable[str]] = None,
    ) -> ProfileStatus:
        """
        Classify the live configuration against one profile.

        Args:
            live_json: Live configuration, as text or an already parsed value
            profile_json: Profile content, as text or an already parsed value
            ignored_fields: Top-level keys to leave out of the second check

        Returns:
            A fresh ProfileStatus; never raises for bad content
        """
        try:
            live = self._load(live_json, "live configuration")
            profile = self._load(profile_json, "profile")
        except ParseError as e:
            return ProfileStatus.error(str(e))

        if not isinstance(live, dict) or not isinstance(profile, dict):
            return ProfileStatus.error("expected object")

        if json_equal(live, profile):
            return FULL_MATCH

        ignored = list(ignored_fields or ())
        if ignored and json_equal(strip_fields(live, ignored), strip_fields(profile, ignored)):
            return PARTIAL_MATCH

        return NO_MATCH
