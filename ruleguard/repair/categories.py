"""
Repair categories - how each error code is resolved.

The table is authoritative: every ErrorCode is listed explicitly. The
severity fallback in classify() only applies to codes a caller invents
outside the catalogue.
"""

from __future__ import annotations
from enum import Enum

from ..validation.errors import ErrorCode, ValidationError


class RepairCategory(Enum):
    AUTO_FIXABLE = "auto_fixable"      # numeric correction applied in place
    PARTIAL_REGEN = "partial_regen"    # local default, or scoped rule rewrite
    FULL_REGEN = "full_regen"          # systemic; regeneration brief only


_AUTO = RepairCategory.AUTO_FIXABLE
_PARTIAL = RepairCategory.PARTIAL_REGEN
_FULL = RepairCategory.FULL_REGEN

CATEGORY_TABLE: dict[ErrorCode, RepairCategory] = {
    # Structure
    ErrorCode.MALFORMED_RULESET: _FULL,
    ErrorCode.MISSING_SECTION: _FULL,

    # Vocabulary
    ErrorCode.INVALID_CONDITION_TYPE: _FULL,
    ErrorCode.INVALID_ACTION_TYPE: _FULL,
    ErrorCode.INVALID_PARAMETER_VALUE: _PARTIAL,

    # Numeric ranges
    ErrorCode.INVALID_COORDINATES: _AUTO,
    ErrorCode.INVALID_SCALE: _AUTO,
    ErrorCode.EXTREME_SCALE: _AUTO,
    ErrorCode.INVALID_SPEED: _AUTO,
    ErrorCode.UNUSUAL_SPEED: _AUTO,
    ErrorCode.INVALID_TIME_SECONDS: _AUTO,
    ErrorCode.INVALID_TIME_INTERVAL: _AUTO,
    ErrorCode.INVALID_VOLUME: _AUTO,
    ErrorCode.INVALID_PROBABILITY: _AUTO,
    ErrorCode.INVALID_DURATION: _AUTO,
    ErrorCode.INVALID_EFFECT_DURATION: _AUTO,
    ErrorCode.LONG_EFFECT_DURATION: _AUTO,
    ErrorCode.INVALID_SCALE_AMOUNT: _AUTO,
    ErrorCode.LARGE_SCALE_AMOUNT: _AUTO,
    ErrorCode.NEGATIVE_POINTS: _AUTO,

    # Missing parameters
    ErrorCode.MISSING_POINTS: _AUTO,
    ErrorCode.MISSING_PROBABILITY: _AUTO,
    ErrorCode.MISSING_COUNTER_VALUE: _PARTIAL,
    ErrorCode.MISSING_COUNTER_NAME: _PARTIAL,
    ErrorCode.MISSING_TARGET_ID: _PARTIAL,
    ErrorCode.MISSING_SOUND_ID: _PARTIAL,
    ErrorCode.MISSING_FLAG_ID: _PARTIAL,
    ErrorCode.MISSING_FORCE: _PARTIAL,
    ErrorCode.MISSING_IMPULSE: _PARTIAL,
    ErrorCode.MISSING_ANIMATION_INDEX: _PARTIAL,

    # Identity / layout
    ErrorCode.DUPLICATE_RULE_ID: _FULL,
    ErrorCode.DUPLICATE_LAYOUT_OBJECT: _PARTIAL,

    # References
    ErrorCode.INVALID_OBJECT_ID: _PARTIAL,
    ErrorCode.INVALID_COUNTER_NAME: _PARTIAL,
    ErrorCode.UNDEFINED_SOUND_ID: _PARTIAL,

    # Trivial outcomes
    ErrorCode.INSTANT_WIN: _FULL,
    ErrorCode.INSTANT_LOSE: _FULL,
    ErrorCode.AUTO_SUCCESS: _FULL,
    ErrorCode.AUTO_FAILURE: _FULL,
    ErrorCode.NO_PLAYER_ACTION: _PARTIAL,
    ErrorCode.NO_SUCCESS: _FULL,
    ErrorCode.NO_FAILURE: _PARTIAL,

    # Conflicts
    ErrorCode.SUCCESS_FAILURE_CONFLICT: _FULL,
    ErrorCode.SHOW_HIDE_CONFLICT: _FULL,
    ErrorCode.COUNTER_CONFLICT: _FULL,
    ErrorCode.SAME_RULE_SUCCESS_FAILURE: _FULL,
    ErrorCode.SAME_RULE_SHOW_HIDE: _FULL,

    # Counter usage / reachability
    ErrorCode.UNUSED_COUNTER: _PARTIAL,
    ErrorCode.COUNTER_NEVER_CHECKED: _PARTIAL,
    ErrorCode.COUNTER_NEVER_MODIFIED: _FULL,
    ErrorCode.UNREACHABLE_SUCCESS: _FULL,
    ErrorCode.UNREACHABLE_OBJECT_STATE: _PARTIAL,
}


def classify(error: ValidationError) -> RepairCategory:
    """Category of a single error; unlisted codes fall back on severity."""
    category = CATEGORY_TABLE.get(error.code)
    if category is not None:
        return category
    return _FULL if error.is_critical else _PARTIAL


def categorize(errors: list[ValidationError]) -> dict[RepairCategory, list[ValidationError]]:
    """Split errors by category, preserving their order within each group."""
    groups: dict[RepairCategory, list[ValidationError]] = {c: [] for c in RepairCategory}
    for error in errors:
        groups[classify(error)].append(error)
    return groups
