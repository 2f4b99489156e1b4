"""
JSON content validation.

Content is validated in two stages. The syntax stage parses the text and
reports the decoder's position on failure; the semantic stage runs a list
of pluggable rules over the parsed value and only happens when the syntax
stage succeeded.

Usage:
    validator = JsonValidator.with_basic_rules()
    validator.add_rule(RequiredFieldsRule(["theme"]))
    result = validator.validate(text)
"""

import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List

from ..models.validation import SEMANTIC_ERROR, SYNTAX_ERROR, ValidationIssue, ValidationResult
from .exceptions import ParseError

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json(content: str) -> Any:
    """
    Parse strict JSON text.

    ``NaN``, ``Infinity`` and ``-Infinity`` are rejected even though the
    standard library decoder accepts them.

    Raises:
        ParseError: With 1-based line/column when the position is known,
            or at 1:1 for nesting deeper than the decoder can handle
    """
    try:
        return json.loads(content, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"{e.msg} at line {e.lineno} column {e.colno}",
            line=e.lineno,
            column=e.colno,
        ) from e
    except ValueError as e:
        raise ParseError(str(e), line=1, column=1) from e
    except RecursionError as e:
        raise ParseError("JSON nesting is too deep", line=1, column=1) from e


class ValidationRule(ABC):
    """A semantic check over an already-parsed JSON value."""

    name = "rule"

    @abstractmethod
    def validate(self, value: Any) -> List[ValidationIssue]:
        """Return the problems found in ``value`` (empty when valid)."""


class ObjectRule(ValidationRule):
    """The configuration must be a JSON object."""

    name = "object_rule"

    def validate(self, value: Any) -> List[ValidationIssue]:
        if isinstance(value, dict):
            return []
        return [ValidationIssue(1, 1, "Configuration must be a JSON object", SEMANTIC_ERROR)]


class RequiredFieldsRule(ValidationRule):
    """Every listed top-level field must be present."""

    name = "required_fields"

    def __init__(self, fields: List[str]):
        self.required_fields = list(fields)

    def validate(self, value: Any) -> List[ValidationIssue]:
        if not isinstance(value, dict):
            return []
        return [
            ValidationIssue(1, 1, f"Required field '{field}' is missing", SEMANTIC_ERROR)
            for field in self.required_fields
            if field not in value
        ]


class FieldType(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


def _matches_type(value: Any, expected: FieldType) -> bool:
    if expected is FieldType.STRING:
        return isinstance(value, str)
    if expected is FieldType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected is FieldType.BOOLEAN:
        return isinstance(value, bool)
    if expected is FieldType.ARRAY:
        return isinstance(value, list)
    return isinstance(value, dict)


class FieldTypeRule(ValidationRule):
    """Listed top-level fields, when present, must have the declared type."""

    name = "field_type"

    def __init__(self):
        self.field_types: Dict[str, FieldType] = {}

    def add_field_type(self, field_name: str, field_type: FieldType) -> "FieldTypeRule":
        self.field_types[field_name] = field_type
        return self

    def validate(self, value: Any) -> List[ValidationIssue]:
        if not isinstance(value, dict):
            return []
        issues = []
        for field_name, expected in self.field_types.items():
            if field_name in value and not _matches_type(value[field_name], expected):
                issues.append(ValidationIssue(
                    1, 1, f"Field '{field_name}' has incorrect type (expected {expected.value})",
                    SEMANTIC_ERROR,
                ))
        return issues


class JsonValidator:
    """Runs the syntax check followed by every registered semantic rule."""

    def __init__(self):
        self.rules: List[ValidationRule] = []

    @classmethod
    def with_basic_rules(cls) -> "JsonValidator":
        validator = cls()
        validator.add_rule(ObjectRule())
        return validator

    def add_rule(self, rule: ValidationRule) -> None:
        self.rules.append(rule)

    def get_rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def validate(self, content: str) -> ValidationResult:
        try:
            value = parse_json(content)
        except ParseError as e:
            logger.debug(f"JSON syntax error: {e}")
            return ValidationResult(
                is_valid=False,
                errors=[ValidationIssue(e.line, e.column, str(e), SYNTAX_ERROR)],
            )

        issues: List[ValidationIssue] = []
        for rule in self.rules:
            issues.extend(rule.validate(value))

        return ValidationResult(is_valid=not issues, errors=issues)


def validate_json(content: str) -> ValidationResult:
    """Validate ``content`` with the basic rule set (syntax + object check)."""
    return JsonValidator.with_basic_rules().validate(content)
