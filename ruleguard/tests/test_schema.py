"""
Tests for the rule script wire model.

Tests:
- Discriminated condition / action variants
- Unknown types retained for reporting
- "self" rebinding and trigger signatures
- Wire round-trip and deep copies
- Capability tables
"""

import pytest

from ..script_schema import RuleSet, load_vocabulary, rule_signature
from ..script_schema.actions import CounterAction, RandomAction, UnknownAction
from ..script_schema.conditions import CounterCondition, TouchCondition, UnknownCondition
from ..script_schema.ruleset import Rule
from ..vocabularies import create_editor_vocabulary, create_verified_vocabulary
from .conftest import rule_by_id


def _rule(data: dict) -> Rule:
    return Rule.model_validate(data)


class TestVariants:
    """Tests for condition / action parsing."""

    def test_conditions_parse_to_their_variant(self, tap_game):
        """Each condition becomes the model for its type."""
        assert isinstance(tap_game.get_rule("tap_obj1").conditions[0], TouchCondition)
        condition = tap_game.get_rule("win").conditions[0]
        assert isinstance(condition, CounterCondition)
        assert condition.counter_name == "score"
        assert condition.value == 5

    def test_actions_parse_to_their_variant(self, tap_game):
        """Counter actions expose snake_case fields."""
        action = tap_game.get_rule("tap_obj1").actions[0]
        assert isinstance(action, CounterAction)
        assert action.operation == "add"

    def test_unknown_condition_is_kept(self, tap_game_document):
        """Unsupported condition types load instead of failing the document."""
        rule_by_id(tap_game_document, "win")["triggers"]["conditions"].append(
            {"type": "shake", "strength": 3}
        )
        ruleset = RuleSet.model_validate(tap_game_document)
        condition = ruleset.get_rule("win").conditions[-1]
        assert isinstance(condition, UnknownCondition)
        assert condition.type == "shake"

    def test_unknown_action_is_kept(self):
        """Unsupported action types load as UnknownAction."""
        rule = _rule({"id": "r", "actions": [{"type": "explode"}]})
        assert isinstance(rule.actions[0], UnknownAction)

    def test_random_action_nests_actions(self):
        """randomAction options hold full actions."""
        rule = _rule({
            "id": "r",
            "actions": [{
                "type": "randomAction",
                "actions": [
                    {"action": {"type": "counter", "counterName": "score", "operation": "increment"}},
                    {"action": {"type": "success"}},
                ],
            }],
        })
        assert isinstance(rule.actions[0], RandomAction)
        assert [a.type for a in rule.iter_actions()] == ["randomAction", "counter", "success"]
        assert [a.type for a in rule.iter_actions(nested=False)] == ["randomAction"]


class TestTargets:
    """Tests for "self" rebinding."""

    def test_self_resolves_to_rule_target(self):
        """None and "self" mean the rule's object."""
        rule = _rule({"id": "r", "targetObjectId": "obj1"})
        assert rule.resolve_target("self") == "obj1"
        assert rule.resolve_target(None) == "obj1"
        assert rule.resolve_target("obj2") == "obj2"

    def test_action_target_falls_back_to_rule(self):
        """Targeted actions without targetId act on the rule's object."""
        rule = _rule({"id": "r", "targetObjectId": "obj1", "actions": [{"type": "hide"}]})
        assert rule.action_target(rule.actions[0]) == "obj1"


class TestSignatures:
    """Tests for canonical trigger signatures."""

    def test_self_and_explicit_target_match(self):
        """A "self" touch equals a touch naming the same object."""
        a = _rule({
            "id": "a", "targetObjectId": "obj1",
            "triggers": {"conditions": [{"type": "touch", "target": "self", "touchType": "down"}]},
        })
        b = _rule({
            "id": "b",
            "triggers": {"conditions": [{"type": "touch", "target": "obj1"}]},
        })
        assert rule_signature(a) == rule_signature(b)

    def test_touch_type_discriminates(self):
        """down and up touches are different triggers."""
        a = _rule({"id": "a", "triggers": {"conditions": [{"type": "touch", "target": "obj1", "touchType": "down"}]}})
        b = _rule({"id": "b", "triggers": {"conditions": [{"type": "touch", "target": "obj1", "touchType": "up"}]}})
        assert rule_signature(a) != rule_signature(b)

    def test_condition_order_is_irrelevant(self):
        """Signatures sort their condition keys."""
        touch = {"type": "touch", "target": "obj1"}
        flag = {"type": "flag", "flagId": "armed"}
        a = _rule({"id": "a", "triggers": {"conditions": [touch, flag]}})
        b = _rule({"id": "b", "triggers": {"conditions": [flag, touch]}})
        assert rule_signature(a) == rule_signature(b)

    def test_region_noise_is_rounded(self):
        """Tiny region differences do not hide a shared trigger."""
        def position(x):
            return _rule({"id": "p", "triggers": {"conditions": [{
                "type": "position", "target": "obj1", "area": "inside",
                "region": {"x": x, "y": 0.2, "width": 0.1, "height": 0.1},
            }]}})
        assert rule_signature(position(0.501)) == rule_signature(position(0.499))

    def test_no_conditions_has_empty_signature(self):
        """Rules without conditions never share a trigger."""
        assert rule_signature(_rule({"id": "r"})) == ""


class TestRuleSet:
    """Tests for RuleSet helpers and serialization."""

    def test_identifier_sets(self, tap_game):
        """Asset plan and counters provide the valid identifiers."""
        assert tap_game.object_ids == {"obj1"}
        assert tap_game.counter_ids == {"score"}
        assert tap_game.sound_ids == {"se_tap"}

    def test_to_document_uses_wire_names(self, tap_game):
        """Serialization goes back to camelCase."""
        document = tap_game.to_document()
        assert "assetPlan" in document
        rule = document["script"]["rules"][0]
        assert rule["targetObjectId"] == "obj1"
        assert rule["actions"][0]["counterName"] == "score"

    def test_clone_is_independent(self, tap_game):
        """Mutating a clone leaves the original alone."""
        clone = tap_game.clone()
        clone.script.counters[0].initial_value = 99
        clone.script.rules.pop()
        assert tap_game.counters[0].initial_value == 0
        assert len(tap_game.rules) == 3


class TestVocabulary:
    """Tests for capability tables."""

    def test_profiles_differ(self):
        """The verified profile is a subset of the editor profile."""
        editor = create_editor_vocabulary()
        verified = create_verified_vocabulary()
        assert verified.condition_types < editor.condition_types
        assert not verified.allows_condition("position")
        assert editor.allows_condition("position")

    def test_load_from_mapping(self):
        """Tables load from plain deployment data."""
        vocabulary = load_vocabulary({
            "version": "custom",
            "condition_types": ["touch"],
            "action_types": ["success"],
            "enumerations": {"condition.touch.touchType": ["down"]},
        })
        assert vocabulary.allows_condition("touch")
        assert not vocabulary.allows_action("failure")
        assert vocabulary.allowed_values("condition.touch.touchType") == frozenset({"down"})
        assert vocabulary.allowed_values("condition.touch.target") is None

    def test_non_string_types_are_not_allowed(self):
        """A missing type never passes membership."""
        assert not create_editor_vocabulary().allows_action(None)
