"""Rule-set validation - error catalogue, feature and semantic validators."""

from .errors import (
    ErrorCode,
    ErrorLocation,
    RuleSetStructureError,
    Severity,
    ValidationError,
    ValidationResult,
)
from .structure import LoadResult, check_structure, load_ruleset
from .features import validate_features
from .semantics import validate_semantics
from .validator import format_feedback, validate_ruleset

__all__ = [
    "ErrorCode",
    "ErrorLocation",
    "RuleSetStructureError",
    "Severity",
    "ValidationError",
    "ValidationResult",
    "LoadResult",
    "check_structure",
    "load_ruleset",
    "validate_features",
    "validate_semantics",
    "format_feedback",
    "validate_ruleset",
]
