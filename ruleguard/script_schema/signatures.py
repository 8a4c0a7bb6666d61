"""
Trigger signatures - canonical strings describing when a rule fires.

Two rules with the same signature fire on exactly the same trigger, so any
opposing outcomes they produce happen simultaneously. The signature is
built from the type plus the type-discriminating fields of each condition,
with "self" rebound to the rule's object and region coordinates rounded so
that cosmetic float noise does not hide a conflict.
"""

from __future__ import annotations
from typing import Any

from .ruleset import Rule


REGION_PRECISION = 2


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def condition_key(rule: Rule, condition: Any) -> str:
    """Normalized key for a single condition within its rule."""
    ctype = condition.type
    if ctype == "touch":
        parts = [rule.resolve_target(condition.target), condition.touch_type or "down"]
    elif ctype == "collision":
        parts = [rule.resolve_target(condition.target), condition.collision_type or "enter"]
    elif ctype == "counter":
        parts = [condition.counter_name, condition.comparison or "greaterOrEqual", condition.value]
    elif ctype == "time":
        parts = [condition.time_type, condition.seconds, condition.interval]
    elif ctype == "flag":
        parts = [condition.flag_id, condition.flag_state or "ON"]
    elif ctype == "gameState":
        parts = [condition.state]
    elif ctype == "position":
        region = condition.region
        coords = (
            [round(region.x, REGION_PRECISION), round(region.y, REGION_PRECISION),
             _round_opt(region.width), _round_opt(region.height)]
            if region else []
        )
        parts = [rule.resolve_target(condition.target), condition.area, *coords]
    elif ctype == "animation":
        parts = [rule.resolve_target(condition.target), condition.condition, condition.frame_number]
    elif ctype == "objectState":
        parts = [rule.resolve_target(condition.target), condition.state]
    elif ctype == "random":
        parts = [condition.probability]
    else:
        parts = [repr(sorted(condition.model_dump(exclude_none=True).items()))]
    return f"{ctype}:" + ",".join(_fmt(p) for p in parts)


def _round_opt(value: float | None) -> float | None:
    return round(value, REGION_PRECISION) if value is not None else None


def rule_signature(rule: Rule) -> str:
    """
    Canonical signature of a rule's trigger clause.

    Returns "" for a rule without conditions; such rules are never
    considered to share a trigger with anything.
    """
    conditions = rule.conditions
    if not conditions:
        return ""
    keys = sorted(condition_key(rule, c) for c in conditions)
    if len(keys) > 1:
        return f"{rule.operator.upper()}[" + "|".join(keys) + "]"
    return keys[0]
