"""
JSON validation result models.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

SYNTAX_ERROR = "syntax"
SEMANTIC_ERROR = "semantic"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in JSON content (1-based line/column)."""

    line: int
    column: int
    message: str
    error_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "error_type": self.error_type,
        }


@dataclass
class ValidationResult:
    """Outcome of validating a piece of JSON content."""

    is_valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }
