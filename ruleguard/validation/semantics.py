"""
Semantic Validator - Cross-rule consistency checks.

Validates that:
1. Every identifier a rule uses resolves against the asset plan / counters
2. No outcome fires trivially (at t=0, or without any player input)
3. No two rules force opposite effects under the same trigger
4. Every counter is both written and read
5. Every success condition can actually become true

All checks accumulate; none raises for malformed content.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from collections import defaultdict
import operator
from typing import Any, Callable, Iterator

from ..script_schema.actions import (
    COUNTER_DECREASE_OPERATIONS,
    COUNTER_INCREASE_OPERATIONS,
    RandomAction,
)
from ..script_schema.conditions import TARGETED_CONDITION_TYPES
from ..script_schema.ruleset import RESERVED_TARGETS, Rule, RuleSet
from ..script_schema.signatures import rule_signature
from .errors import ErrorCode, ErrorLocation, ValidationError


Path = tuple[Any, ...]

# Comparators checked against a counter's initial value. Failure thresholds
# are conventionally "at least N", so the failure table is narrower.
INSTANT_WIN_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": operator.eq,
    "greaterOrEqual": operator.ge,
    "greater": operator.gt,
    "less": operator.lt,
    "lessOrEqual": operator.le,
}
INSTANT_LOSE_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": operator.eq,
    "greaterOrEqual": operator.ge,
    "greater": operator.gt,
}
DEFAULT_COMPARISON = "greaterOrEqual"

PLAYER_INPUT_CONDITIONS = frozenset({"touch", "collision", "position"})
AUTOMATIC_CONDITIONS = frozenset({"time", "gameState", "counter", "flag"})


@dataclass
class _RuleIndex:
    """Who reads / writes what, computed once per validation pass."""
    ruleset: RuleSet
    counter_writers: dict[str, list[Rule]] = field(default_factory=lambda: defaultdict(list))
    counter_readers: dict[str, list[Rule]] = field(default_factory=lambda: defaultdict(list))
    flag_writers: dict[str, list[Rule]] = field(default_factory=lambda: defaultdict(list))
    visibility_writers: dict[str, list[Rule]] = field(default_factory=lambda: defaultdict(list))
    drag_followed: set[str] = field(default_factory=set)

    @classmethod
    def build(cls, ruleset: RuleSet) -> _RuleIndex:
        index = cls(ruleset)
        for rule in ruleset.rules:
            for condition in rule.conditions:
                if condition.type == "counter" and condition.counter_name:
                    index.counter_readers[condition.counter_name].append(rule)
            for action in rule.iter_actions():
                atype = action.type
                if atype == "counter" and action.counter_name:
                    index.counter_writers[action.counter_name].append(rule)
                elif atype in ("setFlag", "toggleFlag") and action.flag_id:
                    index.flag_writers[action.flag_id].append(rule)
                elif atype in ("hide", "show"):
                    target = rule.action_target(action)
                    if target:
                        index.visibility_writers[target].append(rule)
                if _is_drag_follow(action):
                    target = rule.action_target(action)
                    if target:
                        index.drag_followed.add(target)
        return index

    @property
    def success_rules(self) -> list[Rule]:
        return [r for r in self.ruleset.rules if _fires(r, "success")]

    @property
    def failure_rules(self) -> list[Rule]:
        return [r for r in self.ruleset.rules if _fires(r, "failure")]

    def is_player_gated(self, rule: Rule, relaxed: bool = False) -> bool:
        """
        Whether a rule's own conditions include player input.

        With relaxed=False any touch/collision/position counts. With
        relaxed=True collision and position only count when the object
        involved follows the player's drag.
        """
        for condition in rule.conditions:
            ctype = condition.type
            if ctype == "touch":
                return True
            if ctype in ("collision", "position"):
                if not relaxed:
                    return True
                if rule.resolve_target(condition.target) in self.drag_followed:
                    return True
                if rule.target_object_id in self.drag_followed:
                    return True
        return False

    def player_fed(self, condition: Any, relaxed: bool = False) -> bool:
        """Whether some player-gated rule writes the counter/flag a condition reads."""
        if condition.type == "counter":
            writers = self.counter_writers.get(condition.counter_name, [])
        elif condition.type == "flag":
            writers = self.flag_writers.get(condition.flag_id, [])
        else:
            return False
        return any(self.is_player_gated(w, relaxed) for w in writers)

    def reaches_player(self, rule: Rule, relaxed: bool = False) -> bool:
        """Player input gates the rule directly or through one counter/flag hop."""
        if self.is_player_gated(rule, relaxed):
            return True
        return any(self.player_fed(c, relaxed) for c in rule.conditions)


def validate_semantics(ruleset: RuleSet) -> list[ValidationError]:
    """
    Run every cross-rule check on a structurally valid RuleSet.

    Returns the accumulated findings in check order.
    """
    index = _RuleIndex.build(ruleset)
    errors: list[ValidationError] = []

    errors.extend(_check_references(ruleset))
    errors.extend(_check_existence(index))
    errors.extend(_check_instant_outcomes(ruleset))
    errors.extend(_check_auto_outcomes(index))
    errors.extend(_check_player_action(index))
    errors.extend(_check_conflicts(ruleset))
    errors.extend(_check_counter_usage(index))
    errors.extend(_check_success_reachability(index))

    return errors


# ---------------------------------------------------------------------------
# Reference resolution
# ---------------------------------------------------------------------------

def _check_references(ruleset: RuleSet) -> list[ValidationError]:
    errors = []
    objects = ruleset.object_ids
    counters = ruleset.counter_ids
    sounds = ruleset.sound_ids

    for oi, obj in enumerate(ruleset.layout_objects):
        if obj.object_id not in objects:
            errors.append(_unknown_object(
                obj.object_id, f'Layout object "{obj.object_id}" is not in the asset plan',
                ErrorLocation(("script", "layout", "objects", oi, "object_id"), subject=obj.object_id),
            ))

    for ri, rule in enumerate(ruleset.rules):
        base: Path = ("script", "rules", ri)
        if _is_object_ref(rule.target_object_id) and rule.target_object_id not in objects:
            errors.append(_unknown_object(
                rule.target_object_id,
                f'Rule "{rule.id}": targetObjectId "{rule.target_object_id}" does not exist',
                ErrorLocation(base + ("target_object_id",), rule.id, rule.target_object_id),
            ))

        for ci, condition in enumerate(rule.conditions):
            path = base + ("triggers", "conditions", ci)
            ctype = condition.type
            if ctype in TARGETED_CONDITION_TYPES:
                target = condition.target
                if _is_object_ref(target) and target not in objects:
                    errors.append(_unknown_object(
                        target, f'Rule "{rule.id}": {ctype} condition target "{target}" does not exist',
                        ErrorLocation(path + ("target",), rule.id, target),
                    ))
            elif ctype == "counter":
                name = condition.counter_name
                if name and name not in counters:
                    errors.append(_unknown_counter(rule, name, path + ("counter_name",)))

        for action, path in _walk_actions(rule, base):
            atype = action.type
            target = getattr(action, "target_id", None)
            if _is_object_ref(target) and target not in objects:
                errors.append(_unknown_object(
                    target, f'Rule "{rule.id}": {atype} action targetId "{target}" does not exist',
                    ErrorLocation(path + ("target_id",), rule.id, target),
                ))
            if atype == "move" and action.movement is not None:
                goal = action.movement.target
                if isinstance(goal, str) and _is_object_ref(goal) and goal not in objects:
                    errors.append(_unknown_object(
                        goal, f'Rule "{rule.id}": move target "{goal}" does not exist',
                        ErrorLocation(path + ("movement", "target"), rule.id, goal),
                    ))
            elif atype == "counter":
                name = action.counter_name
                if name and name not in counters:
                    errors.append(_unknown_counter(rule, name, path + ("counter_name",)))
            elif atype in ("playSound", "stopSound"):
                sound = action.sound_id
                if sound and sound not in sounds:
                    errors.append(ValidationError.critical(
                        ErrorCode.UNDEFINED_SOUND_ID,
                        f'Rule "{rule.id}": sound "{sound}" is not defined in the asset plan',
                        fix="Reference a defined sound or add it to assetPlan.sounds",
                        location=ErrorLocation(path + ("sound_id",), rule.id, sound),
                    ))
    return errors


def _unknown_object(object_id: str, message: str, location: ErrorLocation) -> ValidationError:
    return ValidationError.critical(
        ErrorCode.INVALID_OBJECT_ID,
        message,
        fix="Use an object id from assetPlan.objects",
        location=location,
    )


def _unknown_counter(rule: Rule, name: str, path: Path) -> ValidationError:
    return ValidationError.critical(
        ErrorCode.INVALID_COUNTER_NAME,
        f'Rule "{rule.id}": counter "{name}" is not defined',
        fix=f'Define counter "{name}" in script.counters',
        location=ErrorLocation(path, rule.id, name),
    )


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

def _check_existence(index: _RuleIndex) -> list[ValidationError]:
    errors = []
    if not index.success_rules:
        errors.append(ValidationError.critical(
            ErrorCode.NO_SUCCESS,
            "No rule fires a success action; the game cannot be won",
            fix="Add a rule whose actions include success",
        ))
    if not index.failure_rules:
        errors.append(ValidationError.warning(
            ErrorCode.NO_FAILURE,
            "No rule fires a failure action; only the timeout can end the game in a loss",
            fix="Add a failure rule if the game should be losable before timeout",
        ))
    return errors


def _check_instant_outcomes(ruleset: RuleSet) -> list[ValidationError]:
    errors = []
    checks = (
        ("success", ErrorCode.INSTANT_WIN, INSTANT_WIN_COMPARATORS, "won"),
        ("failure", ErrorCode.INSTANT_LOSE, INSTANT_LOSE_COMPARATORS, "lost"),
    )
    for ri, rule in enumerate(ruleset.rules):
        base: Path = ("script", "rules", ri)
        for outcome, code, table, verb in checks:
            if not _fires(rule, outcome):
                continue
            if not rule.conditions:
                errors.append(ValidationError.critical(
                    code,
                    f'Rule "{rule.id}": {outcome} rule has no conditions, so the game is {verb} immediately',
                    fix=f"Gate the {outcome} action behind a condition",
                    location=ErrorLocation(base + ("triggers",), rule.id),
                ))
                continue
            hit = _initially_true(ruleset, rule, table)
            if hit is not None:
                ci, condition, initial = hit
                errors.append(ValidationError.critical(
                    code,
                    f'Rule "{rule.id}": counter "{condition.counter_name}" starts at {initial}, '
                    f'so "{condition.comparison or DEFAULT_COMPARISON} {condition.value}" holds at game start',
                    fix=_INSTANT_FIXES[code],
                    location=ErrorLocation(
                        base + ("triggers", "conditions", ci), rule.id, condition.counter_name,
                    ),
                ))
    return errors


_INSTANT_FIXES = {
    ErrorCode.INSTANT_WIN: "Lower the counter's initial value below the target or change the success condition",
    ErrorCode.INSTANT_LOSE: "Keep the counter's initial value away from the failure threshold",
}


def _initially_true(
    ruleset: RuleSet, rule: Rule, table: dict[str, Callable[[Any, Any], bool]]
) -> tuple[int, Any, Any] | None:
    """First counter condition of a rule already satisfied at t=0."""
    for ci, condition in enumerate(rule.conditions):
        if condition.type != "counter" or condition.value is None:
            continue
        counter = ruleset.get_counter(condition.counter_name) if condition.counter_name else None
        if counter is None:
            continue
        compare = table.get(condition.comparison or DEFAULT_COMPARISON)
        if compare and compare(counter.initial_value, condition.value):
            return ci, condition, counter.initial_value
    return None


def _check_auto_outcomes(index: _RuleIndex) -> list[ValidationError]:
    errors = []
    success_rules = index.success_rules
    failure_rules = index.failure_rules
    failure_gated = any(index.is_player_gated(r) for r in failure_rules)
    success_gated = any(index.reaches_player(r) for r in success_rules)

    for rule in success_rules:
        conditions = rule.conditions
        if not conditions or failure_gated:
            continue
        automatic = all(
            c.type in AUTOMATIC_CONDITIONS and not index.player_fed(c) for c in conditions
        )
        if automatic:
            errors.append(ValidationError.critical(
                ErrorCode.AUTO_SUCCESS,
                f'Rule "{rule.id}": success fires without any player input '
                f'({", ".join(sorted(rule.condition_types()))} only)',
                fix="Make success depend on a touch, collision or position condition, "
                    "or add a player-triggered failure",
                location=ErrorLocation(rule_id=rule.id),
            ))

    for rule in failure_rules:
        conditions = rule.conditions
        if not conditions or success_gated:
            continue
        if all(c.type == "time" for c in conditions):
            errors.append(ValidationError.critical(
                ErrorCode.AUTO_FAILURE,
                f'Rule "{rule.id}": failure fires on a timer and no success rule depends on player input',
                fix="Give the player a way to win before the timer expires",
                location=ErrorLocation(rule_id=rule.id),
            ))
    return errors


def _check_player_action(index: _RuleIndex) -> list[ValidationError]:
    success_rules = index.success_rules
    if not success_rules:
        return []
    if any(index.reaches_player(r, relaxed=True) for r in success_rules):
        return []
    first = success_rules[0]
    return [ValidationError.warning(
        ErrorCode.NO_PLAYER_ACTION,
        "No player action leads to success: no success rule is triggered by a touch, "
        "by a dragged object, or by a counter/flag that player input changes",
        fix="Add a touch-driven rule on the path to success",
        location=ErrorLocation(rule_id=first.id),
    )]


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

def _check_conflicts(ruleset: RuleSet) -> list[ValidationError]:
    errors = []
    rules = ruleset.rules

    for rule in rules:
        if _fires(rule, "success", nested=False) and _fires(rule, "failure", nested=False):
            errors.append(ValidationError.critical(
                ErrorCode.SAME_RULE_SUCCESS_FAILURE,
                f'Rule "{rule.id}" fires both success and failure',
                fix="Split success and failure into rules with different triggers",
                location=ErrorLocation(rule_id=rule.id),
            ))
        for object_id in sorted(_targets(rule, "show") & _targets(rule, "hide")):
            errors.append(ValidationError.critical(
                ErrorCode.SAME_RULE_SHOW_HIDE,
                f'Rule "{rule.id}" both shows and hides "{object_id}"',
                fix="Keep only one of show / hide for the object",
                location=ErrorLocation(rule_id=rule.id, subject=object_id),
            ))

    groups: dict[str, list[Rule]] = defaultdict(list)
    for rule in rules:
        signature = rule_signature(rule)
        if signature:
            groups[signature].append(rule)

    for signature, group in groups.items():
        for i, first in enumerate(group):
            for second in group[i + 1:]:
                errors.extend(_pair_conflicts(first, second, signature))
    return errors


def _pair_conflicts(first: Rule, second: Rule, signature: str) -> list[ValidationError]:
    errors = []
    pair = f'Rules "{first.id}" and "{second.id}"'

    if (
        (_fires(first, "success", False) and _fires(second, "failure", False))
        or (_fires(first, "failure", False) and _fires(second, "success", False))
    ):
        errors.append(ValidationError.critical(
            ErrorCode.SUCCESS_FAILURE_CONFLICT,
            f"{pair} fire success and failure on the same trigger ({signature})",
            fix="Use different triggers for the success and failure rules",
            location=ErrorLocation(rule_id=first.id, subject=second.id),
        ))

    clashing = (
        (_targets(first, "show") & _targets(second, "hide"))
        | (_targets(first, "hide") & _targets(second, "show"))
    )
    for object_id in sorted(clashing):
        errors.append(ValidationError.critical(
            ErrorCode.SHOW_HIDE_CONFLICT,
            f'{pair} show and hide "{object_id}" on the same trigger ({signature})',
            fix="Merge the rules or give them different triggers",
            location=ErrorLocation(rule_id=first.id, subject=object_id),
        ))

    up_first, down_first = _counter_directions(first)
    up_second, down_second = _counter_directions(second)
    for counter in sorted((up_first & down_second) | (down_first & up_second)):
        errors.append(ValidationError.critical(
            ErrorCode.COUNTER_CONFLICT,
            f'{pair} raise and lower counter "{counter}" on the same trigger ({signature})',
            fix="Merge the counter changes into one rule",
            location=ErrorLocation(rule_id=first.id, subject=counter),
        ))
    return errors


# ---------------------------------------------------------------------------
# Counters and success reachability
# ---------------------------------------------------------------------------

def _check_counter_usage(index: _RuleIndex) -> list[ValidationError]:
    errors = []
    for ci, counter in enumerate(index.ruleset.counters):
        path: Path = ("script", "counters", ci)
        readers = index.counter_readers.get(counter.id, [])
        writers = index.counter_writers.get(counter.id, [])
        if not readers and not writers:
            errors.append(ValidationError.warning(
                ErrorCode.UNUSED_COUNTER,
                f'Counter "{counter.id}" is never used',
                fix="Remove the counter or use it in a rule",
                location=ErrorLocation(path, subject=counter.id),
            ))
        elif not readers:
            errors.append(ValidationError.warning(
                ErrorCode.COUNTER_NEVER_CHECKED,
                f'Counter "{counter.id}" is changed but no condition ever checks it',
                fix="Add a counter condition that reacts to it, or remove it",
                location=ErrorLocation(path, rule_id=writers[0].id, subject=counter.id),
            ))
        elif not writers:
            errors.append(ValidationError.critical(
                ErrorCode.COUNTER_NEVER_MODIFIED,
                f'Counter "{counter.id}" is checked but never changed; it stays at {counter.initial_value}',
                fix="Add a counter action that changes it",
                location=ErrorLocation(path, rule_id=readers[0].id, subject=counter.id),
            ))
    return errors


def _check_success_reachability(index: _RuleIndex) -> list[ValidationError]:
    errors = []
    rules = index.ruleset.rules
    for ri, rule in enumerate(rules):
        if not _fires(rule, "success"):
            continue
        for ci, condition in enumerate(rule.conditions):
            path: Path = ("script", "rules", ri, "triggers", "conditions", ci)
            ctype = condition.type
            if ctype == "counter" and condition.counter_name:
                if not index.counter_writers.get(condition.counter_name):
                    errors.append(ValidationError.critical(
                        ErrorCode.UNREACHABLE_SUCCESS,
                        f'Rule "{rule.id}": success needs counter "{condition.counter_name}" '
                        f"to change, but no rule changes it",
                        fix="Add a rule with a counter action for it",
                        location=ErrorLocation(path, rule.id, condition.counter_name),
                    ))
            elif ctype == "flag" and condition.flag_id:
                if not index.flag_writers.get(condition.flag_id):
                    errors.append(ValidationError.critical(
                        ErrorCode.UNREACHABLE_SUCCESS,
                        f'Rule "{rule.id}": success needs flag "{condition.flag_id}", '
                        f"but no rule sets or toggles it",
                        fix="Add a setFlag or toggleFlag action for it",
                        location=ErrorLocation(path, rule.id, condition.flag_id),
                    ))
            elif ctype == "objectState":
                target = rule.resolve_target(condition.target)
                if target and not index.visibility_writers.get(target):
                    errors.append(ValidationError.warning(
                        ErrorCode.UNREACHABLE_OBJECT_STATE,
                        f'Rule "{rule.id}": success checks the state of "{target}", '
                        f"but no rule shows or hides it",
                        fix="Add a hide or show action for the object",
                        location=ErrorLocation(path, rule.id, target),
                    ))
    return errors


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fires(rule: Rule, action_type: str, nested: bool = True) -> bool:
    return any(a.type == action_type for a in rule.iter_actions(nested=nested))


def _targets(rule: Rule, action_type: str) -> set[str]:
    out = set()
    for action in rule.iter_actions(nested=False):
        if action.type == action_type:
            target = rule.action_target(action)
            if target:
                out.add(target)
    return out


def _counter_directions(rule: Rule) -> tuple[set[str], set[str]]:
    up, down = set(), set()
    for action in rule.iter_actions(nested=False):
        if action.type != "counter" or not action.counter_name:
            continue
        if action.operation in COUNTER_INCREASE_OPERATIONS:
            up.add(action.counter_name)
        elif action.operation in COUNTER_DECREASE_OPERATIONS:
            down.add(action.counter_name)
    return up, down


def _is_drag_follow(action: Any) -> bool:
    if action.type == "followDrag":
        return True
    return (
        action.type == "move"
        and action.movement is not None
        and action.movement.type == "followDrag"
    )


def _is_object_ref(target: Any) -> bool:
    return isinstance(target, str) and bool(target) and target not in RESERVED_TARGETS


def _walk_actions(rule: Rule, base: Path) -> Iterator[tuple[Any, Path]]:
    """Each action of a rule with its path, randomAction options included."""
    for ai, action in enumerate(rule.actions):
        path = base + ("actions", ai)
        yield action, path
        if isinstance(action, RandomAction):
            for oi, option in enumerate(action.actions):
                yield option.action, path + ("actions", oi, "action")
