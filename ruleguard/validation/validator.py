"""
Validation facade - structure, then features, then semantics.

Usage:
    result = validate_ruleset(document, create_editor_vocabulary())
    if not result.valid:
        prompt += format_feedback(result)
"""

from __future__ import annotations
from typing import Any

from ..script_schema.ruleset import RuleSet
from ..script_schema.vocabulary import Vocabulary
from .errors import ValidationResult
from .features import validate_features
from .semantics import validate_semantics
from .structure import load_ruleset


def validate_ruleset(ruleset: RuleSet | dict[str, Any], vocabulary: Vocabulary) -> ValidationResult:
    """
    Validate a RuleSet or a raw rule-set document.

    Structural errors short-circuit: content checks only run on a
    document that loaded.
    """
    if not isinstance(ruleset, RuleSet):
        loaded = load_ruleset(ruleset)
        if not loaded.ok:
            return ValidationResult(errors=loaded.errors)
        ruleset = loaded.ruleset

    errors = validate_features(ruleset, vocabulary)
    errors.extend(validate_semantics(ruleset))
    return ValidationResult(errors=errors)


def format_feedback(result: ValidationResult) -> str:
    """Render critical errors as prompt feedback lines; "" when valid."""
    if result.valid:
        return ""
    lines = []
    for error in result.critical_errors:
        line = f"- {error.message}"
        if error.fix:
            line += f" (fix: {error.fix})"
        lines.append(line)
    return "\n".join(lines)
