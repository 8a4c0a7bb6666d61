"""
Reducer - Applies a rule's actions to a simulation state.

Pure function: (state, rule) -> new state. The input state is never
modified. Only actions that influence reachability are modelled:
visibility, counters, flags and terminal outcomes. Everything else
(sounds, effects, motion, physics) is a no-op here.

randomAction options are not applied, since which one fires is not
known statically.
"""

from __future__ import annotations
from typing import Any, Callable

from ..script_schema.ruleset import Rule
from .state import Outcome, SimulationState


def apply_rule(state: SimulationState, rule: Rule) -> SimulationState:
    """Fire every action of a rule once, returning the resulting state."""
    new_state = state.clone()
    for action in rule.actions:
        handler = _HANDLERS.get(action.type)
        if handler:
            handler(new_state, rule, action)
    return new_state


def counter_delta(action: Any) -> float | None:
    """
    Signed change a counter action applies per firing.

    Returns None for "set" (not a delta) and for unknown operations.
    """
    operation = action.operation
    if operation == "increment":
        return action.value if action.value is not None else 1
    if operation == "decrement":
        return -(action.value if action.value is not None else 1)
    if operation == "add":
        return action.value if action.value is not None else 1
    if operation == "subtract":
        return -(action.value if action.value is not None else 1)
    return None


def _apply_hide(state: SimulationState, rule: Rule, action: Any) -> None:
    target = rule.action_target(action)
    if target:
        state.hide(target)


def _apply_show(state: SimulationState, rule: Rule, action: Any) -> None:
    target = rule.action_target(action)
    if target:
        state.show(target)


def _apply_counter(state: SimulationState, rule: Rule, action: Any) -> None:
    name = action.counter_name
    if not name:
        return
    if action.operation == "set":
        state.counters[name] = action.value if action.value is not None else 0
        return
    delta = counter_delta(action)
    if delta is not None:
        state.counters[name] = state.counter(name) + delta


def _apply_set_flag(state: SimulationState, rule: Rule, action: Any) -> None:
    if action.flag_id:
        state.flags[action.flag_id] = True if action.value is None else bool(action.value)


def _apply_toggle_flag(state: SimulationState, rule: Rule, action: Any) -> None:
    if action.flag_id:
        state.flags[action.flag_id] = not state.flags.get(action.flag_id, False)


def _apply_success(state: SimulationState, rule: Rule, action: Any) -> None:
    if not state.terminated:
        state.outcome = Outcome.SUCCESS


def _apply_failure(state: SimulationState, rule: Rule, action: Any) -> None:
    if not state.terminated:
        state.outcome = Outcome.FAILURE


_HANDLERS: dict[str, Callable[[SimulationState, Rule, Any], None]] = {
    "hide": _apply_hide,
    "show": _apply_show,
    "counter": _apply_counter,
    "setFlag": _apply_set_flag,
    "toggleFlag": _apply_toggle_flag,
    "success": _apply_success,
    "failure": _apply_failure,
}
