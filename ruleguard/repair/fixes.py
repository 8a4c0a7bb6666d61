"""
Auto-fixes - deterministic numeric corrections.

Each fix targets the offending field through the error's structured
location (ErrorLocation.path), never through the message text. A fix is
skipped when the path no longer resolves, when the rule at the path is not
the rule the error names, or when the field does not hold a number.

Fixes are idempotent: applying one to an already corrected field is a
no-op and records nothing.
"""

from __future__ import annotations
import logging
from typing import Any, Callable

from ..script_schema.ruleset import RuleSet
from ..validation.errors import ErrorCode, ValidationError
from ..validation.features import (
    COORDINATE_RANGE,
    EFFECT_DURATION_MAX,
    LAYOUT_SCALE_MAX,
    MIN_POSITIVE,
    SCALE_AMOUNT_MAX,
    SPEED_RANGE,
    TIME_INTERVAL_MAX,
    TIME_SECONDS_MAX,
)
from .result import RepairAction

logger = logging.getLogger(__name__)

DEFAULT_POINTS = 100
DEFAULT_PROBABILITY = 0.5


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# code -> (description, correction of the current numeric value)
NUMERIC_FIXES: dict[ErrorCode, tuple[str, Callable[[float], float]]] = {
    ErrorCode.INVALID_COORDINATES: ("Clamped coordinate", lambda v: _clamp(v, *COORDINATE_RANGE)),
    ErrorCode.INVALID_SPEED: ("Clamped movement speed", lambda v: _clamp(abs(v), *SPEED_RANGE)),
    ErrorCode.UNUSUAL_SPEED: ("Clamped movement speed", lambda v: _clamp(abs(v), *SPEED_RANGE)),
    ErrorCode.INVALID_TIME_SECONDS: ("Clamped time seconds", lambda v: _clamp(v, 0.0, TIME_SECONDS_MAX)),
    ErrorCode.INVALID_TIME_INTERVAL: (
        "Clamped time interval", lambda v: _clamp(v, MIN_POSITIVE, TIME_INTERVAL_MAX),
    ),
    ErrorCode.INVALID_VOLUME: ("Clamped volume", lambda v: _clamp(v, 0.0, 1.0)),
    ErrorCode.INVALID_PROBABILITY: ("Clamped probability", lambda v: _clamp(v, 0.0, 1.0)),
    ErrorCode.NEGATIVE_POINTS: ("Made points positive", abs),
    ErrorCode.INVALID_EFFECT_DURATION: (
        "Clamped effect duration", lambda v: _clamp(v, MIN_POSITIVE, EFFECT_DURATION_MAX),
    ),
    ErrorCode.LONG_EFFECT_DURATION: (
        "Clamped effect duration", lambda v: _clamp(v, MIN_POSITIVE, EFFECT_DURATION_MAX),
    ),
    ErrorCode.INVALID_SCALE_AMOUNT: (
        "Clamped scale amount", lambda v: _clamp(v, MIN_POSITIVE, SCALE_AMOUNT_MAX),
    ),
    ErrorCode.LARGE_SCALE_AMOUNT: (
        "Clamped scale amount", lambda v: _clamp(v, MIN_POSITIVE, SCALE_AMOUNT_MAX),
    ),
    ErrorCode.INVALID_DURATION: ("Raised duration to a positive value", lambda v: max(MIN_POSITIVE, v)),
    ErrorCode.INVALID_SCALE: ("Reset scale to natural size", lambda v: 1.0 if v <= 0 else v),
    ErrorCode.EXTREME_SCALE: ("Clamped scale", lambda v: min(LAYOUT_SCALE_MAX, v)),
}

# code -> (description, value filled into an absent field)
DEFAULT_FILLS: dict[ErrorCode, tuple[str, Any]] = {
    ErrorCode.MISSING_POINTS: ("Added default points", DEFAULT_POINTS),
    ErrorCode.MISSING_PROBABILITY: ("Added default probability", DEFAULT_PROBABILITY),
}


def apply_auto_fix(ruleset: RuleSet, error: ValidationError) -> RepairAction | None:
    """
    Apply the auto-fix for one error to ruleset in place.

    Returns the audit record, or None when nothing was (or needed to be)
    changed.
    """
    path = error.location.path
    if not path or not _rule_matches(ruleset, error):
        return None
    try:
        parent = resolve_path(ruleset, path[:-1])
        current = _get(parent, path[-1])
    except (AttributeError, IndexError, KeyError, TypeError):
        logger.debug("Auto-fix path %s no longer resolves", error.location.describe())
        return None

    if error.code in DEFAULT_FILLS:
        if current is not None:
            return None
        description, corrected = DEFAULT_FILLS[error.code]
    elif error.code in NUMERIC_FIXES:
        if not _is_number(current):
            return None
        description, correct = NUMERIC_FIXES[error.code]
        corrected = correct(current)
        if corrected == current:
            return None
    else:
        return None

    _set(parent, path[-1], corrected)
    return RepairAction(
        error_code=ErrorCode(error.code).value,
        description=description,
        target=error.location.describe(),
        before=current,
        after=corrected,
    )


def resolve_path(root: Any, path: tuple[Any, ...]) -> Any:
    """Walk attribute names / list indexes from root."""
    node = root
    for part in path:
        node = _get(node, part)
    return node


def _get(node: Any, part: Any) -> Any:
    if isinstance(part, int):
        return node[part]
    return getattr(node, part)


def _set(node: Any, part: Any, value: Any) -> None:
    if isinstance(part, int):
        node[part] = value
    else:
        setattr(node, part, value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _rule_matches(ruleset: RuleSet, error: ValidationError) -> bool:
    """A path into script.rules must still point at the rule the error names."""
    path = error.location.path
    rule_id = error.location.rule_id
    if rule_id is None or len(path) < 3 or path[:2] != ("script", "rules"):
        return True
    index = path[2]
    rules = ruleset.rules
    return isinstance(index, int) and index < len(rules) and rules[index].id == rule_id
