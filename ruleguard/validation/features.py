"""
Feature Validator - Vocabulary membership and per-type parameter checks.

Validates that:
1. Every condition / action type is in the supplied capability table
2. Enumerated parameters take values the table accepts
3. Required per-type fields are present
4. Numeric parameters fall in their valid ranges

Every check is independent; nothing short-circuits, so one pass surfaces
every defect in the rule-set.
"""

from __future__ import annotations
from collections import Counter
from typing import Any

from ..script_schema.ruleset import Rule, RuleSet
from ..script_schema.vocabulary import Vocabulary
from ..script_schema.actions import TARGETED_ACTION_TYPES
from .errors import ErrorCode, ErrorLocation, ValidationError


# Fixed per-type numeric table (shared with the repair engine's clamps)
COORDINATE_RANGE = (0.0, 1.0)
SPEED_RANGE = (0.5, 15.0)
TIME_SECONDS_MAX = 60.0
TIME_INTERVAL_MAX = 10.0
EFFECT_DURATION_MAX = 5.0
SCALE_AMOUNT_MAX = 3.0
LAYOUT_SCALE_MAX = 3.0
MIN_POSITIVE = 0.1

Path = tuple[Any, ...]


def validate_features(ruleset: RuleSet, vocabulary: Vocabulary) -> list[ValidationError]:
    """
    Validate feature usage and parameter shapes of a rule-set.

    Returns every finding; purely read-only.
    """
    errors: list[ValidationError] = []

    errors.extend(_validate_rule_ids(ruleset))
    errors.extend(_validate_layout(ruleset))
    errors.extend(_validate_asset_positions(ruleset))

    for ri, rule in enumerate(ruleset.rules):
        base: Path = ("script", "rules", ri)
        errors.extend(_validate_operator(rule, base, vocabulary))
        for ci, condition in enumerate(rule.conditions):
            path = base + ("triggers", "conditions", ci)
            errors.extend(_validate_condition(rule, condition, path, vocabulary))
        for ai, action in enumerate(rule.actions):
            errors.extend(_validate_action(rule, action, base + ("actions", ai), vocabulary))

    return errors


# ---------------------------------------------------------------------------
# Rule-set level
# ---------------------------------------------------------------------------

def _validate_rule_ids(ruleset: RuleSet) -> list[ValidationError]:
    errors = []
    counts = Counter(rule.id for rule in ruleset.rules)
    for rule_id, count in counts.items():
        if count > 1:
            errors.append(ValidationError.critical(
                ErrorCode.DUPLICATE_RULE_ID,
                f'Rule id "{rule_id}" is used by {count} rules',
                fix="Give every rule a unique id",
                location=ErrorLocation(rule_id=rule_id, subject=rule_id),
            ))
    return errors


def _validate_layout(ruleset: RuleSet) -> list[ValidationError]:
    errors = []
    for oi, obj in enumerate(ruleset.layout_objects):
        base: Path = ("script", "layout", "objects", oi)
        for axis in ("x", "y"):
            value = getattr(obj.position, axis)
            if not _in_range(value, *COORDINATE_RANGE):
                errors.append(ValidationError.critical(
                    ErrorCode.INVALID_COORDINATES,
                    f'Layout object "{obj.object_id}": {axis} coordinate ({value}) is outside 0.0-1.0',
                    fix=f"Set the {axis} coordinate within 0.0-1.0",
                    location=ErrorLocation(base + ("position", axis), subject=obj.object_id),
                ))
        if obj.scale is None:
            continue
        for axis in ("x", "y"):
            value = getattr(obj.scale, axis)
            if value <= 0:
                errors.append(ValidationError.critical(
                    ErrorCode.INVALID_SCALE,
                    f'Layout object "{obj.object_id}": {axis} scale ({value}) must be positive',
                    fix="Use a positive scale (1.0 is the natural size)",
                    location=ErrorLocation(base + ("scale", axis), subject=obj.object_id),
                ))
            elif value > LAYOUT_SCALE_MAX:
                errors.append(ValidationError.warning(
                    ErrorCode.EXTREME_SCALE,
                    f'Layout object "{obj.object_id}": {axis} scale ({value}) is very large',
                    fix=f"Keep scale at or below {LAYOUT_SCALE_MAX}",
                    location=ErrorLocation(base + ("scale", axis), subject=obj.object_id),
                ))

    counts = Counter(obj.object_id for obj in ruleset.layout_objects)
    for object_id, count in counts.items():
        if count > 1:
            errors.append(ValidationError.warning(
                ErrorCode.DUPLICATE_LAYOUT_OBJECT,
                f'Object "{object_id}" appears {count} times in the layout',
                fix="Place each object once",
                location=ErrorLocation(subject=object_id),
            ))
    return errors


def _validate_asset_positions(ruleset: RuleSet) -> list[ValidationError]:
    """Asset-plan initial positions are advisory, so these are warnings."""
    errors = []
    for oi, obj in enumerate(ruleset.asset_plan.objects):
        if obj.initial_position is None:
            continue
        for axis in ("x", "y"):
            value = getattr(obj.initial_position, axis)
            if not _in_range(value, *COORDINATE_RANGE):
                errors.append(ValidationError.warning(
                    ErrorCode.INVALID_COORDINATES,
                    f'Asset "{obj.id}": initial {axis} coordinate ({value}) is outside 0.0-1.0',
                    fix="Set the initial position within 0.0-1.0",
                    location=ErrorLocation(
                        ("asset_plan", "objects", oi, "initial_position", axis),
                        subject=obj.id,
                    ),
                ))
    return errors


def _validate_operator(rule: Rule, base: Path, vocabulary: Vocabulary) -> list[ValidationError]:
    if rule.triggers is None:
        return []
    return _check_enum(
        vocabulary, "trigger.operator", rule.triggers.operator, rule,
        base + ("triggers", "operator"), "trigger operator",
    )


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

def _validate_condition(
    rule: Rule, condition: Any, path: Path, vocabulary: Vocabulary
) -> list[ValidationError]:
    ctype = condition.type
    if not vocabulary.allows_condition(ctype):
        return [ValidationError.critical(
            ErrorCode.INVALID_CONDITION_TYPE,
            f'Rule "{rule.id}": condition type "{ctype}" is not supported',
            fix=f"Use one of the supported condition types ({vocabulary.describe_conditions()})",
            location=ErrorLocation(path + ("type",), rule_id=rule.id, subject=str(ctype)),
        )]

    errors = []
    for field_name, value in _enum_fields(condition):
        errors.extend(_check_enum(
            vocabulary, f"condition.{ctype}.{field_name}", value, rule,
            path + (_snake(field_name),), f"{ctype} {field_name}",
        ))

    checker = _CONDITION_CHECKS.get(ctype)
    if checker:
        errors.extend(checker(rule, condition, path))
    return errors


def _check_counter_condition(rule: Rule, condition: Any, path: Path) -> list[ValidationError]:
    errors = []
    if not condition.counter_name:
        errors.append(ValidationError.critical(
            ErrorCode.MISSING_COUNTER_NAME,
            f'Rule "{rule.id}": counter condition has no counterName',
            fix="Name the counter this condition compares",
            location=ErrorLocation(path + ("counter_name",), rule_id=rule.id),
        ))
    if condition.value is None:
        errors.append(ValidationError.critical(
            ErrorCode.MISSING_COUNTER_VALUE,
            f'Rule "{rule.id}": counter condition has no value to compare against',
            fix="Add the threshold value",
            location=ErrorLocation(path + ("value",), rule_id=rule.id, subject=condition.counter_name),
        ))
    return errors


def _check_time_condition(rule: Rule, condition: Any, path: Path) -> list[ValidationError]:
    errors = []
    seconds = condition.seconds
    if seconds is not None:
        if seconds < 0:
            errors.append(ValidationError.critical(
                ErrorCode.INVALID_TIME_SECONDS,
                f'Rule "{rule.id}": time seconds ({seconds}) is negative',
                fix=f"Use 0-{TIME_SECONDS_MAX:g} seconds",
                location=ErrorLocation(path + ("seconds",), rule_id=rule.id),
            ))
        elif seconds > TIME_SECONDS_MAX:
            errors.append(ValidationError.warning(
                ErrorCode.INVALID_TIME_SECONDS,
                f'Rule "{rule.id}": time seconds ({seconds}) exceeds {TIME_SECONDS_MAX:g}',
                fix=f"Use 0-{TIME_SECONDS_MAX:g} seconds",
                location=ErrorLocation(path + ("seconds",), rule_id=rule.id),
            ))
    interval = condition.interval
    if interval is not None:
        if interval <= 0:
            errors.append(ValidationError.critical(
                ErrorCode.INVALID_TIME_INTERVAL,
                f'Rule "{rule.id}": time interval ({interval}) must be positive',
                fix=f"Use an interval in (0, {TIME_INTERVAL_MAX:g}] seconds",
                location=ErrorLocation(path + ("interval",), rule_id=rule.id),
            ))
        elif interval > TIME_INTERVAL_MAX:
            errors.append(ValidationError.warning(
                ErrorCode.INVALID_TIME_INTERVAL,
                f'Rule "{rule.id}": time interval ({interval}) exceeds {TIME_INTERVAL_MAX:g}',
                fix=f"Use an interval in (0, {TIME_INTERVAL_MAX:g}] seconds",
                location=ErrorLocation(path + ("interval",), rule_id=rule.id),
            ))
    return errors


def _check_flag_condition(rule: Rule, condition: Any, path: Path) -> list[ValidationError]:
    if condition.flag_id:
        return []
    return [ValidationError.critical(
        ErrorCode.MISSING_FLAG_ID,
        f'Rule "{rule.id}": flag condition has no flagId',
        fix="Name the flag this condition reads",
        location=ErrorLocation(path + ("flag_id",), rule_id=rule.id),
    )]


def _check_random_condition(rule: Rule, condition: Any, path: Path) -> list[ValidationError]:
    if condition.probability is None:
        return [ValidationError.critical(
            ErrorCode.MISSING_PROBABILITY,
            f'Rule "{rule.id}": random condition has no probability',
            fix="Add a probability between 0.0 and 1.0",
            location=ErrorLocation(path + ("probability",), rule_id=rule.id),
        )]
    return _check_probability(rule, condition.probability, path + ("probability",))


def _check_position_condition(rule: Rule, condition: Any, path: Path) -> list[ValidationError]:
    errors = []
    region = condition.region
    if region is not None:
        for axis in ("x", "y"):
            value = getattr(region, axis)
            if not _in_range(value, *COORDINATE_RANGE):
                errors.append(ValidationError.critical(
                    ErrorCode.INVALID_COORDINATES,
                    f'Rule "{rule.id}": position region {axis} ({value}) is outside 0.0-1.0',
                    fix="Keep the region inside the stage",
                    location=ErrorLocation(path + ("region", axis), rule_id=rule.id),
                ))
    return errors + _check_condition_target(rule, condition, path)


def _check_condition_target(rule: Rule, condition: Any, path: Path) -> list[ValidationError]:
    if rule.resolve_target(condition.target) is not None:
        return []
    return [ValidationError.critical(
        ErrorCode.MISSING_TARGET_ID,
        f'Rule "{rule.id}": {condition.type} condition has no target and the rule has no targetObjectId',
        fix="Set the condition target or the rule's targetObjectId",
        location=ErrorLocation(path + ("target",), rule_id=rule.id),
    )]


_CONDITION_CHECKS = {
    "counter": _check_counter_condition,
    "time": _check_time_condition,
    "flag": _check_flag_condition,
    "random": _check_random_condition,
    "position": _check_position_condition,
    "collision": _check_condition_target,
    "objectState": _check_condition_target,
}


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

def _validate_action(
    rule: Rule, action: Any, path: Path, vocabulary: Vocabulary
) -> list[ValidationError]:
    atype = action.type
    if not vocabulary.allows_action(atype):
        return [ValidationError.critical(
            ErrorCode.INVALID_ACTION_TYPE,
            f'Rule "{rule.id}": action type "{atype}" is not supported',
            fix=f"Use one of the supported action types ({vocabulary.describe_actions()})",
            location=ErrorLocation(path + ("type",), rule_id=rule.id, subject=str(atype)),
        )]

    errors = []
    for field_path, value in _action_enum_fields(action):
        errors.extend(_check_enum(
            vocabulary, f"action.{atype}.{'.'.join(field_path)}", value, rule,
            path + tuple(_snake(p) for p in field_path), f"{atype} {'.'.join(field_path)}",
        ))

    if atype in TARGETED_ACTION_TYPES and rule.action_target(action) is None:
        errors.append(ValidationError.critical(
            ErrorCode.MISSING_TARGET_ID,
            f'Rule "{rule.id}": {atype} action has no targetId and the rule has no targetObjectId',
            fix="Set targetId to the object this action affects",
            location=ErrorLocation(path + ("target_id",), rule_id=rule.id),
        ))

    checker = _ACTION_CHECKS.get(atype)
    if checker:
        errors.extend(checker(rule, action, path))

    if atype == "randomAction":
        for oi, option in enumerate(action.actions):
            option_path = path + ("actions", oi)
            if option.probability is not None:
                errors.extend(_check_probability(rule, option.probability, option_path + ("probability",)))
            errors.extend(_validate_action(rule, option.action, option_path + ("action",), vocabulary))
    return errors


def _check_move_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    errors = []
    movement = action.movement
    if movement is None:
        return errors
    speed = movement.speed
    speed_path = path + ("movement", "speed")
    if speed is not None:
        low, high = SPEED_RANGE
        if speed <= 0:
            errors.append(ValidationError.critical(
                ErrorCode.INVALID_SPEED,
                f'Rule "{rule.id}": move speed ({speed}) must be positive',
                fix=f"Use a speed between {low} and {high}",
                location=ErrorLocation(speed_path, rule_id=rule.id),
            ))
        elif not _in_range(speed, low, high):
            errors.append(ValidationError.warning(
                ErrorCode.UNUSUAL_SPEED,
                f'Rule "{rule.id}": move speed ({speed}) is outside the recommended {low}-{high}',
                fix=f"Use a speed between {low} and {high}",
                location=ErrorLocation(speed_path, rule_id=rule.id),
            ))
    if movement.duration is not None and movement.duration <= 0:
        errors.append(_invalid_duration(rule, movement.duration, path + ("movement", "duration")))
    target = movement.target
    if target is not None and not isinstance(target, str):
        for axis in ("x", "y"):
            value = getattr(target, axis)
            if not _in_range(value, *COORDINATE_RANGE):
                errors.append(ValidationError.critical(
                    ErrorCode.INVALID_COORDINATES,
                    f'Rule "{rule.id}": move target {axis} ({value}) is outside 0.0-1.0',
                    fix="Move to a point inside the stage",
                    location=ErrorLocation(path + ("movement", "target", axis), rule_id=rule.id),
                ))
    return errors


def _check_visibility_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    if action.duration is not None and action.duration <= 0:
        return [_invalid_duration(rule, action.duration, path + ("duration",))]
    return []


def _check_counter_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    errors = []
    if not action.counter_name:
        errors.append(ValidationError.critical(
            ErrorCode.MISSING_COUNTER_NAME,
            f'Rule "{rule.id}": counter action has no counterName',
            fix="Name the counter this action changes",
            location=ErrorLocation(path + ("counter_name",), rule_id=rule.id),
        ))
    if action.operation == "set" and action.value is None:
        errors.append(ValidationError.critical(
            ErrorCode.MISSING_COUNTER_VALUE,
            f'Rule "{rule.id}": counter "set" operation has no value',
            fix="Add the value to set the counter to",
            location=ErrorLocation(path + ("value",), rule_id=rule.id, subject=action.counter_name),
        ))
    return errors


def _check_add_score_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    points = action.points
    if points is None:
        return [ValidationError.critical(
            ErrorCode.MISSING_POINTS,
            f'Rule "{rule.id}": addScore action has no points',
            fix="Add the number of points to award",
            location=ErrorLocation(path + ("points",), rule_id=rule.id),
        )]
    if points < 0:
        return [ValidationError.warning(
            ErrorCode.NEGATIVE_POINTS,
            f'Rule "{rule.id}": addScore points ({points}) is negative',
            fix="Award a positive number of points",
            location=ErrorLocation(path + ("points",), rule_id=rule.id),
        )]
    return []


def _check_effect_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    errors = []
    effect = action.effect
    if effect is None:
        return errors
    duration = effect.duration
    if duration is not None:
        duration_path = path + ("effect", "duration")
        if duration <= 0:
            errors.append(ValidationError.critical(
                ErrorCode.INVALID_EFFECT_DURATION,
                f'Rule "{rule.id}": effect duration ({duration}) must be positive',
                fix=f"Use a duration up to {EFFECT_DURATION_MAX:g} seconds",
                location=ErrorLocation(duration_path, rule_id=rule.id),
            ))
        elif duration > EFFECT_DURATION_MAX:
            errors.append(ValidationError.warning(
                ErrorCode.LONG_EFFECT_DURATION,
                f'Rule "{rule.id}": effect duration ({duration}) exceeds {EFFECT_DURATION_MAX:g} seconds',
                fix=f"Keep effects at or below {EFFECT_DURATION_MAX:g} seconds",
                location=ErrorLocation(duration_path, rule_id=rule.id),
            ))
    scale = effect.scale_amount
    if scale is not None:
        scale_path = path + ("effect", "scale_amount")
        if scale <= 0:
            errors.append(ValidationError.critical(
                ErrorCode.INVALID_SCALE_AMOUNT,
                f'Rule "{rule.id}": effect scaleAmount ({scale}) must be positive',
                fix=f"Use a scale amount up to {SCALE_AMOUNT_MAX:g}",
                location=ErrorLocation(scale_path, rule_id=rule.id),
            ))
        elif scale > SCALE_AMOUNT_MAX:
            errors.append(ValidationError.warning(
                ErrorCode.LARGE_SCALE_AMOUNT,
                f'Rule "{rule.id}": effect scaleAmount ({scale}) exceeds {SCALE_AMOUNT_MAX:g}',
                fix=f"Keep scale amount at or below {SCALE_AMOUNT_MAX:g}",
                location=ErrorLocation(scale_path, rule_id=rule.id),
            ))
    return errors


def _check_flag_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    if action.flag_id:
        return []
    return [ValidationError.critical(
        ErrorCode.MISSING_FLAG_ID,
        f'Rule "{rule.id}": {action.type} action has no flagId',
        fix="Name the flag this action changes",
        location=ErrorLocation(path + ("flag_id",), rule_id=rule.id),
    )]


def _check_play_sound_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    errors = []
    if not action.sound_id:
        errors.append(ValidationError.critical(
            ErrorCode.MISSING_SOUND_ID,
            f'Rule "{rule.id}": playSound action has no soundId',
            fix="Reference a sound from the asset plan",
            location=ErrorLocation(path + ("sound_id",), rule_id=rule.id),
        ))
    volume = action.volume
    if volume is not None and not _in_range(volume, 0.0, 1.0):
        errors.append(ValidationError.critical(
            ErrorCode.INVALID_VOLUME,
            f'Rule "{rule.id}": playSound volume ({volume}) is outside 0.0-1.0',
            fix="Use a volume between 0.0 and 1.0",
            location=ErrorLocation(path + ("volume",), rule_id=rule.id),
        ))
    return errors


def _check_switch_animation_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    if action.animation_index is not None:
        return []
    return [ValidationError.critical(
        ErrorCode.MISSING_ANIMATION_INDEX,
        f'Rule "{rule.id}": switchAnimation action has no animationIndex',
        fix="Add the index of the animation to switch to",
        location=ErrorLocation(path + ("animation_index",), rule_id=rule.id),
    )]


def _check_apply_force_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    if action.force is not None:
        return []
    return [ValidationError.critical(
        ErrorCode.MISSING_FORCE,
        f'Rule "{rule.id}": applyForce action has no force vector',
        fix="Add a force {x, y}",
        location=ErrorLocation(path + ("force",), rule_id=rule.id),
    )]


def _check_apply_impulse_action(rule: Rule, action: Any, path: Path) -> list[ValidationError]:
    if action.impulse is not None:
        return []
    return [ValidationError.critical(
        ErrorCode.MISSING_IMPULSE,
        f'Rule "{rule.id}": applyImpulse action has no impulse vector',
        fix="Add an impulse {x, y}",
        location=ErrorLocation(path + ("impulse",), rule_id=rule.id),
    )]


_ACTION_CHECKS = {
    "move": _check_move_action,
    "hide": _check_visibility_action,
    "show": _check_visibility_action,
    "counter": _check_counter_action,
    "addScore": _check_add_score_action,
    "effect": _check_effect_action,
    "setFlag": _check_flag_action,
    "toggleFlag": _check_flag_action,
    "playSound": _check_play_sound_action,
    "switchAnimation": _check_switch_animation_action,
    "applyForce": _check_apply_force_action,
    "applyImpulse": _check_apply_impulse_action,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _in_range(value: float, low: float, high: float) -> bool:
    return low <= value <= high


def _check_probability(rule: Rule, probability: float, path: Path) -> list[ValidationError]:
    if _in_range(probability, 0.0, 1.0):
        return []
    return [ValidationError.critical(
        ErrorCode.INVALID_PROBABILITY,
        f'Rule "{rule.id}": probability ({probability}) is outside 0.0-1.0',
        fix="Use a probability between 0.0 and 1.0",
        location=ErrorLocation(path, rule_id=rule.id),
    )]


def _invalid_duration(rule: Rule, duration: float, path: Path) -> ValidationError:
    return ValidationError.critical(
        ErrorCode.INVALID_DURATION,
        f'Rule "{rule.id}": duration ({duration}) must be positive',
        fix="Use a positive duration in seconds",
        location=ErrorLocation(path, rule_id=rule.id),
    )


def _check_enum(
    vocabulary: Vocabulary,
    key: str,
    value: Any,
    rule: Rule,
    path: Path,
    label: str,
) -> list[ValidationError]:
    allowed = vocabulary.allowed_values(key)
    if value is None or allowed is None or value in allowed:
        return []
    return [ValidationError.critical(
        ErrorCode.INVALID_PARAMETER_VALUE,
        f'Rule "{rule.id}": {label} "{value}" is not supported',
        fix=f"Use one of: {', '.join(sorted(allowed))}",
        location=ErrorLocation(path, rule_id=rule.id, subject=str(value)),
    )]


def _enum_fields(condition: Any) -> list[tuple[str, Any]]:
    """(wireField, value) pairs of a condition's string-valued parameters."""
    dumped = condition.model_dump(by_alias=True, exclude_none=True)
    return [(k, v) for k, v in dumped.items() if k not in {"type", "target"} and isinstance(v, str)]


def _action_enum_fields(action: Any) -> list[tuple[tuple[str, ...], Any]]:
    """(wireFieldPath, value) pairs of an action's enumerable parameters."""
    fields: list[tuple[tuple[str, ...], Any]] = []
    if action.type == "move" and action.movement is not None:
        fields.append((("movement", "type"), action.movement.type))
        fields.append((("movement", "direction"), action.movement.direction))
    elif action.type == "counter":
        fields.append((("operation",), action.operation))
    elif action.type == "effect" and action.effect is not None:
        fields.append((("effect", "type"), action.effect.type))
    elif action.type == "randomAction":
        fields.append((("selectionMode",), action.selection_mode))
    return fields


def _snake(name: str) -> str:
    out = ""
    for ch in name:
        out += f"_{ch.lower()}" if ch.isupper() else ch
    return out
