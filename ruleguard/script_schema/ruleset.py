"""
RuleSet - The unit under analysis.

A RuleSet pairs the game script (layout, counters, rules) with the asset
plan, which is the authoritative set of valid object / sound identifiers.

Design principles:
- Read-only for validators and the simulator
- Repairs work on a deep copy (clone), never on the caller's value
- Serializes back to the camelCase wire format via to_document()
"""

from __future__ import annotations
from typing import Any, Iterator

from pydantic import Field

from .actions import Action, RandomAction, TARGETED_ACTION_TYPES
from .base import Number, Point, WireModel
from .conditions import Condition


# Target tokens that never name an asset-plan object
RESERVED_TARGETS = frozenset({"self", "stage", "stageArea", "other"})


class LayoutObject(WireModel):
    """An object placed on the stage at a normalized position."""
    object_id: str
    position: Point
    scale: Point | None = None


class Layout(WireModel):
    objects: list[LayoutObject]


class CounterDefinition(WireModel):
    id: str
    name: str | None = None
    initial_value: Number = 0


class TriggerClause(WireModel):
    operator: str = "AND"
    conditions: list[Condition] = Field(default_factory=list)


class Rule(WireModel):
    """
    A trigger clause plus the actions it fires.

    `target_object_id` is the default binding for "self" references in both
    conditions and actions.
    """
    id: str
    name: str | None = None
    target_object_id: str | None = None
    triggers: TriggerClause | None = None
    actions: list[Action] = Field(default_factory=list)

    @property
    def conditions(self) -> list[Any]:
        return self.triggers.conditions if self.triggers else []

    @property
    def operator(self) -> str:
        return self.triggers.operator if self.triggers else "AND"

    def resolve_target(self, target: str | None) -> str | None:
        """Rebind a missing or "self" target to the rule's object."""
        if target is None or target == "self":
            return self.target_object_id
        return target

    def iter_actions(self, nested: bool = True) -> Iterator[Any]:
        """Iterate actions, descending into randomAction options if nested."""
        for action in self.actions:
            yield action
            if nested and isinstance(action, RandomAction):
                for option in action.actions:
                    yield option.action

    def has_action(self, action_type: str) -> bool:
        return any(a.type == action_type for a in self.iter_actions(nested=False))

    def condition_types(self) -> set[str]:
        return {c.type for c in self.conditions if isinstance(c.type, str)}

    def action_target(self, action: Any) -> str | None:
        """The object an action operates on, after "self" rebinding."""
        if action.type not in TARGETED_ACTION_TYPES:
            return None
        return self.resolve_target(action.target_id)


class GameScript(WireModel):
    layout: Layout
    counters: list[CounterDefinition] = Field(default_factory=list)
    rules: list[Rule]


class ObjectPlan(WireModel):
    id: str
    name: str | None = None
    purpose: str | None = None
    visual_description: str | None = None
    initial_position: Point | None = None
    size: str | None = None


class SoundPlan(WireModel):
    id: str
    trigger: str | None = None
    type: str | None = None


class BgmPlan(WireModel):
    id: str
    description: str | None = None
    mood: str | None = None


class AssetPlan(WireModel):
    objects: list[ObjectPlan]
    sounds: list[SoundPlan] = Field(default_factory=list)
    bgm: BgmPlan | None = None


class RuleSet(WireModel):
    """
    A complete candidate rule-set as handed over by the content producer.

    Usage:
        ruleset = RuleSet.model_validate(document)
        for rule in ruleset.rules:
            ...
    """
    script: GameScript
    asset_plan: AssetPlan

    @property
    def rules(self) -> list[Rule]:
        return self.script.rules

    @property
    def counters(self) -> list[CounterDefinition]:
        return self.script.counters

    @property
    def layout_objects(self) -> list[LayoutObject]:
        return self.script.layout.objects

    @property
    def object_ids(self) -> set[str]:
        return {o.id for o in self.asset_plan.objects}

    @property
    def counter_ids(self) -> set[str]:
        return {c.id for c in self.script.counters}

    @property
    def sound_ids(self) -> set[str]:
        return {s.id for s in self.asset_plan.sounds}

    def get_rule(self, rule_id: str) -> Rule | None:
        for rule in self.script.rules:
            if rule.id == rule_id:
                return rule
        return None

    def get_counter(self, counter_id: str) -> CounterDefinition | None:
        for counter in self.script.counters:
            if counter.id == counter_id:
                return counter
        return None

    def rules_with_action(self, action_type: str) -> list[Rule]:
        return [r for r in self.script.rules if r.has_action(action_type)]

    def clone(self) -> RuleSet:
        """Typed deep copy - repairs mutate the clone, never the original."""
        return self.model_copy(deep=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the camelCase wire format."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
