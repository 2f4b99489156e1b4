"""
Validation functions for settings values and user-supplied names.
"""

import re
from typing import Any, Iterable, List, Optional

from .exceptions import ValidationError

RESERVED_PROFILE_IDS = frozenset({"current"})

MAX_IGNORED_FIELD_LENGTH = 100
_INVALID_FIELD_CHARS = set('{}[]"\'\\')

_PROFILE_NAME_PATTERN = re.compile(r"^[\w][\w .\-]{0,63}$")


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_bool(value: Any, field_name: str = "value") -> bool:
    """Validate that a value is a real boolean (not a truthy stand-in)."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_profile_name(name: Any, field_name: str = "profile name") -> str:
    """
    Validate a profile name.

    Profile names become part of a file name, so they are limited to
    letters, digits, underscore, dash, dot and space, must not start with
    a dot or a space, and must not collide with a reserved id.

    Args:
        name: Profile name to validate
        field_name: Name of the field being validated

    Returns:
        Validated (stripped) profile name

    Raises:
        ValidationError: If name is invalid
    """
    if not isinstance(name, str):
        raise ValidationError(
            f"{field_name} must be a string, got {type(name).__name__}",
            field_name=field_name,
            value=name
        )

    name = name.strip()
    if not name:
        raise ValidationError(
            f"{field_name} cannot be empty",
            field_name=field_name,
            value=name
        )

    if name.lower() in RESERVED_PROFILE_IDS:
        raise ValidationError(
            f"{field_name} '{name}' is reserved",
            field_name=field_name,
            value=name
        )

    if not _PROFILE_NAME_PATTERN.match(name):
        raise ValidationError(
            f"{field_name} '{name}' may only contain letters, digits, '_', '-', '.' "
            f"and spaces (max 64 characters)",
            field_name=field_name,
            value=name
        )

    return name


def validate_ignored_fields(fields: Iterable[Any]) -> None:
    """
    Validate a list of ignored top-level field names.

    Each name is trimmed before checking. Empty names, names containing
    whitespace or any of ``{ } [ ] " ' \\``, and names longer than 100
    characters are rejected.

    Raises:
        ValidationError: On the first invalid name
    """
    for raw in fields:
        if not isinstance(raw, str):
            raise ValidationError(
                f"Ignored field names must be strings, got {raw!r}",
                field_name="ignored_fields",
                value=raw
            )
        field = raw.strip()
        if not field:
            raise ValidationError(
                "Ignored field name cannot be empty",
                field_name="ignored_fields",
                value=raw
            )
        if any(c.isspace() or c in _INVALID_FIELD_CHARS for c in field):
            raise ValidationError(
                f"Ignored field name '{field}' contains invalid characters",
                field_name="ignored_fields",
                value=raw
            )
        if len(field) > MAX_IGNORED_FIELD_LENGTH:
            raise ValidationError(
                f"Ignored field name '{field}' is too long "
                f"(max {MAX_IGNORED_FIELD_LENGTH} characters)",
                field_name="ignored_fields",
                value=raw
            )


def normalize_ignored_fields(fields: Iterable[str]) -> List[str]:
    """Trim, drop empty names and deduplicate, keeping first-seen order."""
    seen = set()
    normalized = []
    for raw in fields:
        field = raw.strip()
        if field and field not in seen:
            seen.add(field)
            normalized.append(field)
    return normalized
