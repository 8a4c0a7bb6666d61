"""
Regeneration brief - the text handed back when a rule-set must be
regenerated from scratch.

Deterministic: errors are grouped by code in first-seen order, each group
lists its messages and ends with a fixed remediation hint.
"""

from __future__ import annotations

from ..validation.errors import ErrorCode, ValidationError


BRIEF_HEADER = "Fix the following structural problems:"
GENERIC_HINT = "Rework the rules involved so this problem cannot occur"

REMEDIATION_HINTS: dict[ErrorCode, str] = {
    ErrorCode.INSTANT_WIN: "Lower the counter's initial value below the target or change the success condition",
    ErrorCode.INSTANT_LOSE: "Set the counter's initial value below the failure threshold",
    ErrorCode.AUTO_SUCCESS: "Require a player action such as a touch or collision for success",
    ErrorCode.AUTO_FAILURE: "Give the player a touch-driven way to win before the timer fails the game",
    ErrorCode.NO_SUCCESS: "Add a rule whose actions include success",
    ErrorCode.SUCCESS_FAILURE_CONFLICT: "Separate the success and failure conditions clearly",
    ErrorCode.SHOW_HIDE_CONFLICT: "Do not show and hide the same object on the same trigger",
    ErrorCode.COUNTER_CONFLICT: "Do not raise and lower the same counter on the same trigger",
    ErrorCode.SAME_RULE_SUCCESS_FAILURE: "Split success and failure into separate rules",
    ErrorCode.SAME_RULE_SHOW_HIDE: "Keep either show or hide for an object within one rule",
    ErrorCode.UNREACHABLE_SUCCESS: "Check the chain of rules that leads to the success condition",
    ErrorCode.COUNTER_NEVER_MODIFIED: "Add a rule that changes the counter",
    ErrorCode.DUPLICATE_RULE_ID: "Give every rule a unique id",
    ErrorCode.INVALID_CONDITION_TYPE: "Use only supported condition types",
    ErrorCode.INVALID_ACTION_TYPE: "Use only supported action types",
    ErrorCode.MALFORMED_RULESET: "Follow the rule-set schema exactly",
    ErrorCode.MISSING_SECTION: "Include the script and assetPlan sections with their objects and rules",
}


def build_regeneration_brief(errors: list[ValidationError]) -> str:
    """Render the full-regeneration errors as a prompt-ready brief."""
    grouped: dict[ErrorCode, list[str]] = {}
    for error in errors:
        grouped.setdefault(error.code, []).append(error.message)

    lines = [BRIEF_HEADER]
    for code, messages in grouped.items():
        lines.append("")
        lines.append(f"## {ErrorCode(code).value}")
        lines.extend(f"- {message}" for message in messages)
        lines.append(f"-> {REMEDIATION_HINTS.get(code, GENERIC_HINT)}")
    return "\n".join(lines)
