"""
Vocabulary - The capability table the feature validator checks against.

The set of supported condition/action types and the accepted values of
enumerated parameters change between editor/runtime deployments, so the
table is data handed to the validator rather than a constant inside it.
"""

from __future__ import annotations
from typing import Any

from pydantic import BaseModel, Field


class Vocabulary(BaseModel):
    """
    A versioned capability table.

    enumerations maps a parameter key to its accepted values. Keys name the
    owning element and field, e.g.:
        "trigger.operator"
        "condition.touch.touchType"
        "action.move.movement.type"
    A key that is absent means the parameter is not enumerated.
    """
    version: str = "unversioned"
    condition_types: frozenset[str]
    action_types: frozenset[str]
    enumerations: dict[str, frozenset[str]] = Field(default_factory=dict)

    def allows_condition(self, condition_type: Any) -> bool:
        return isinstance(condition_type, str) and condition_type in self.condition_types

    def allows_action(self, action_type: Any) -> bool:
        return isinstance(action_type, str) and action_type in self.action_types

    def allowed_values(self, key: str) -> frozenset[str] | None:
        return self.enumerations.get(key)

    def describe_conditions(self) -> str:
        return ", ".join(sorted(self.condition_types))

    def describe_actions(self) -> str:
        return ", ".join(sorted(self.action_types))


def load_vocabulary(data: dict[str, Any]) -> Vocabulary:
    """Build a Vocabulary from a plain mapping (e.g. parsed deployment JSON)."""
    return Vocabulary.model_validate(data)
