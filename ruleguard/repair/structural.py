"""
Structural fixes - deterministic partial-regen repairs with an
unambiguous default.

- A referenced but undefined counter is defined with initial value 0
- A referenced but undefined sound is defined as a generic tap sound
- An unused counter is removed

The identifier comes from ErrorLocation.subject.
"""

from __future__ import annotations
import logging
from typing import Callable

from ..script_schema.ruleset import CounterDefinition, RuleSet, SoundPlan
from ..validation.errors import ErrorCode, ValidationError
from .result import RepairAction

logger = logging.getLogger(__name__)

DEFAULT_SOUND_TRIGGER = "touch"
DEFAULT_SOUND_TYPE = "tap"


def _define_counter(ruleset: RuleSet, error: ValidationError) -> RepairAction | None:
    name = error.location.subject
    if not name or ruleset.get_counter(name) is not None:
        return None
    counter = CounterDefinition(id=name, name=name, initial_value=0)
    ruleset.script.counters.append(counter)
    return RepairAction(
        error_code=ErrorCode(error.code).value,
        description="Added missing counter",
        target=f"script.counters.{name}",
        after=counter.model_dump(by_alias=True),
    )


def _define_sound(ruleset: RuleSet, error: ValidationError) -> RepairAction | None:
    sound_id = error.location.subject
    if not sound_id or sound_id in ruleset.sound_ids:
        return None
    sound = SoundPlan(id=sound_id, trigger=DEFAULT_SOUND_TRIGGER, type=DEFAULT_SOUND_TYPE)
    ruleset.asset_plan.sounds.append(sound)
    return RepairAction(
        error_code=ErrorCode(error.code).value,
        description="Added missing sound",
        target=f"asset_plan.sounds.{sound_id}",
        after=sound.model_dump(by_alias=True),
    )


def _remove_counter(ruleset: RuleSet, error: ValidationError) -> RepairAction | None:
    counter = ruleset.get_counter(error.location.subject) if error.location.subject else None
    if counter is None:
        return None
    ruleset.script.counters.remove(counter)
    return RepairAction(
        error_code=ErrorCode(error.code).value,
        description="Removed unused counter",
        target=f"script.counters.{counter.id}",
        before=counter.model_dump(by_alias=True),
    )


STRUCTURAL_FIXES: dict[ErrorCode, Callable[[RuleSet, ValidationError], RepairAction | None]] = {
    ErrorCode.INVALID_COUNTER_NAME: _define_counter,
    ErrorCode.UNDEFINED_SOUND_ID: _define_sound,
    ErrorCode.UNUSED_COUNTER: _remove_counter,
}


def apply_structural_fixes(ruleset: RuleSet, errors: list[ValidationError]) -> list[RepairAction]:
    """Apply every applicable structural fix to ruleset in place."""
    repairs = []
    for error in errors:
        fix = STRUCTURAL_FIXES.get(error.code)
        if fix is None:
            continue
        repair = fix(ruleset, error)
        if repair:
            logger.info("Structural repair %s: %s", repair.error_code, repair.description)
            repairs.append(repair)
    return repairs
