"""
Validation and error handling for the cfgswitch package.

This module provides the error taxonomy, consistent error logging,
settings/name validators and the JSON content validation framework.
"""

from .exceptions import (
    Busy,
    ConfigIOError,
    ErrorSeverity,
    InvalidProfileContent,
    ParseError,
    ProfileAlreadyExists,
    ProfileNotFound,
    ScanErrorBudgetExceeded,
    SwitcherError,
    SwitchFailed,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
)
from .json_rules import (
    FieldType,
    FieldTypeRule,
    JsonValidator,
    ObjectRule,
    RequiredFieldsRule,
    ValidationRule,
    parse_json,
    validate_json,
)
from .strategies import simple_retry
from .validators import (
    RESERVED_PROFILE_IDS,
    normalize_ignored_fields,
    validate_bool,
    validate_ignored_fields,
    validate_positive_float,
    validate_positive_integer,
    validate_profile_name,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "SwitcherError",
    "ConfigIOError",
    "ParseError",
    "ValidationError",
    "ProfileNotFound",
    "ProfileAlreadyExists",
    "InvalidProfileContent",
    "SwitchFailed",
    "Busy",
    "ScanErrorBudgetExceeded",
    "handle_error",
    "handle_cli_error",
    "handle_config_error",
    "handle_file_error",
    # JSON validation
    "FieldType",
    "FieldTypeRule",
    "JsonValidator",
    "ObjectRule",
    "RequiredFieldsRule",
    "ValidationRule",
    "parse_json",
    "validate_json",
    # Strategies
    "simple_retry",
    # Validators
    "RESERVED_PROFILE_IDS",
    "normalize_ignored_fields",
    "validate_bool",
    "validate_ignored_fields",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_profile_name",
]
