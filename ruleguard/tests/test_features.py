"""
Tests for the feature and parameter validator.

Tests:
- Vocabulary membership
- Enumerated parameters
- Required fields
- Numeric ranges and their severities
"""

import pytest

from ..script_schema import RuleSet
from ..validation import ErrorCode, Severity, validate_features
from ..vocabularies import create_verified_vocabulary
from .conftest import rule_by_id


def _findings(document, vocabulary):
    return validate_features(RuleSet.model_validate(document), vocabulary)


def _codes(errors):
    return {e.code for e in errors}


def _only(errors, code):
    matches = [e for e in errors if e.code == code]
    assert matches, f"{code} not reported"
    return matches


def _add_rule(document, rule):
    document["script"]["rules"].append(rule)


class TestMembership:
    """Tests for condition / action type membership."""

    def test_canonical_game_passes(self, tap_game, vocabulary):
        """The tap game uses only known types and in-range values."""
        assert validate_features(tap_game, vocabulary) == []

    def test_unknown_condition_type(self, tap_game_document, vocabulary):
        """Unknown condition types are critical."""
        rule_by_id(tap_game_document, "win")["triggers"]["conditions"].append({"type": "shake"})
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_CONDITION_TYPE)[0]
        assert error.severity == Severity.CRITICAL
        assert error.rule_id == "win"
        assert error.location.subject == "shake"

    def test_unknown_action_type(self, tap_game_document, vocabulary):
        """Unknown action types are critical."""
        rule_by_id(tap_game_document, "win")["actions"].append({"type": "explode"})
        assert ErrorCode.INVALID_ACTION_TYPE in _codes(_findings(tap_game_document, vocabulary))

    def test_vocabulary_is_not_hard_coded(self, tap_game_document, vocabulary):
        """The same rule-set is judged by the table it is given."""
        _add_rule(tap_game_document, {
            "id": "zone",
            "targetObjectId": "obj1",
            "triggers": {"conditions": [{
                "type": "position", "target": "self", "area": "inside",
                "region": {"x": 0.1, "y": 0.1, "width": 0.2, "height": 0.2},
            }]},
            "actions": [{"type": "playSound", "soundId": "se_tap"}],
        })
        assert _findings(tap_game_document, vocabulary) == []
        codes = _codes(_findings(tap_game_document, create_verified_vocabulary()))
        assert codes == {ErrorCode.INVALID_CONDITION_TYPE, ErrorCode.INVALID_ACTION_TYPE}

    def test_enumerated_value(self, tap_game_document, vocabulary):
        """Values outside an enumeration are critical INVALID_PARAMETER_VALUE."""
        rule_by_id(tap_game_document, "tap_obj1")["triggers"]["conditions"][0]["touchType"] = "poke"
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_PARAMETER_VALUE)[0]
        assert error.is_critical
        assert error.location.path[-1] == "touch_type"
        assert error.location.subject == "poke"

    def test_trigger_operator(self, tap_game_document, vocabulary):
        """XOR is not a trigger operator."""
        rule_by_id(tap_game_document, "win")["triggers"]["operator"] = "XOR"
        assert ErrorCode.INVALID_PARAMETER_VALUE in _codes(_findings(tap_game_document, vocabulary))


class TestRequiredFields:
    """Tests for per-type required fields."""

    def test_counter_condition_needs_value(self, tap_game_document, vocabulary):
        """A counter condition without a value is critical."""
        del rule_by_id(tap_game_document, "win")["triggers"]["conditions"][0]["value"]
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.MISSING_COUNTER_VALUE)[0]
        assert error.is_critical

    def test_counter_set_needs_value(self, tap_game_document, vocabulary):
        """A counter set action without a value is critical."""
        action = rule_by_id(tap_game_document, "tap_obj1")["actions"][0]
        action["operation"] = "set"
        del action["value"]
        assert ErrorCode.MISSING_COUNTER_VALUE in _codes(_findings(tap_game_document, vocabulary))

    def test_targeted_action_without_target(self, tap_game_document, vocabulary):
        """hide with neither targetId nor targetObjectId."""
        _add_rule(tap_game_document, {
            "id": "vanish",
            "triggers": {"conditions": [{"type": "touch", "target": "obj1", "touchType": "up"}]},
            "actions": [{"type": "hide"}],
        })
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.MISSING_TARGET_ID)[0]
        assert error.rule_id == "vanish"

    def test_rule_target_satisfies_targeted_action(self, tap_game_document, vocabulary):
        """targetObjectId is the fallback target."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append({"type": "hide"})
        assert ErrorCode.MISSING_TARGET_ID not in _codes(_findings(tap_game_document, vocabulary))

    @pytest.mark.parametrize("action, code", [
        ({"type": "playSound"}, ErrorCode.MISSING_SOUND_ID),
        ({"type": "setFlag"}, ErrorCode.MISSING_FLAG_ID),
        ({"type": "switchAnimation"}, ErrorCode.MISSING_ANIMATION_INDEX),
        ({"type": "applyForce"}, ErrorCode.MISSING_FORCE),
        ({"type": "applyImpulse"}, ErrorCode.MISSING_IMPULSE),
        ({"type": "addScore"}, ErrorCode.MISSING_POINTS),
        ({"type": "counter", "operation": "increment"}, ErrorCode.MISSING_COUNTER_NAME),
    ])
    def test_missing_field(self, tap_game_document, vocabulary, action, code):
        """Each action type reports its own missing field as critical."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append(action)
        error = _only(_findings(tap_game_document, vocabulary), code)[0]
        assert error.is_critical
        assert error.rule_id == "tap_obj1"

    def test_random_condition_needs_probability(self, tap_game_document, vocabulary):
        """A random condition without a probability is critical."""
        rule_by_id(tap_game_document, "tap_obj1")["triggers"]["conditions"].append({"type": "random"})
        assert ErrorCode.MISSING_PROBABILITY in _codes(_findings(tap_game_document, vocabulary))


class TestRanges:
    """Tests for numeric ranges."""

    def test_layout_coordinate_is_critical(self, tap_game_document, vocabulary):
        """Layout coordinates outside 0-1 are critical."""
        tap_game_document["script"]["layout"]["objects"][0]["position"]["x"] = 1.2
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_COORDINATES)[0]
        assert error.is_critical
        assert error.location.path == ("script", "layout", "objects", 0, "position", "x")

    def test_asset_position_is_warning(self, tap_game_document, vocabulary):
        """Asset-plan initial positions outside 0-1 are only warnings."""
        tap_game_document["assetPlan"]["objects"][0]["initialPosition"]["y"] = -0.1
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_COORDINATES)[0]
        assert error.severity == Severity.WARNING

    def test_speed_severities(self, tap_game_document, vocabulary):
        """Non-positive speed is critical; outside the band is a warning."""
        def move(speed):
            return {"type": "move", "movement": {"type": "straight", "speed": speed}}

        actions = rule_by_id(tap_game_document, "tap_obj1")["actions"]
        actions.extend([move(0), move(20)])
        errors = _findings(tap_game_document, vocabulary)
        assert _only(errors, ErrorCode.INVALID_SPEED)[0].is_critical
        assert _only(errors, ErrorCode.UNUSUAL_SPEED)[0].severity == Severity.WARNING

    def test_probability_range(self, tap_game_document, vocabulary):
        """Probability must lie within 0-1."""
        rule_by_id(tap_game_document, "tap_obj1")["triggers"]["conditions"].append(
            {"type": "random", "probability": 1.5}
        )
        assert _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_PROBABILITY)[0].is_critical

    def test_time_seconds(self, tap_game_document, vocabulary):
        """Negative seconds are critical; more than a minute is a warning."""
        conditions = rule_by_id(tap_game_document, "timeout")["triggers"]["conditions"]
        conditions[0]["seconds"] = -1
        assert _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_TIME_SECONDS)[0].is_critical
        conditions[0]["seconds"] = 90
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_TIME_SECONDS)[0]
        assert error.severity == Severity.WARNING

    def test_negative_points_is_warning(self, tap_game_document, vocabulary):
        """Negative addScore points are a warning."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append({"type": "addScore", "points": -5})
        assert _only(_findings(tap_game_document, vocabulary), ErrorCode.NEGATIVE_POINTS)[0].severity == Severity.WARNING

    def test_effect_bounds(self, tap_game_document, vocabulary):
        """Effect duration and scale amount have hard and advisory bounds."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append({
            "type": "effect",
            "effect": {"type": "scale", "duration": 8, "scaleAmount": 0},
        })
        errors = _findings(tap_game_document, vocabulary)
        assert _only(errors, ErrorCode.LONG_EFFECT_DURATION)[0].severity == Severity.WARNING
        assert _only(errors, ErrorCode.INVALID_SCALE_AMOUNT)[0].is_critical

    def test_nested_random_action_is_checked(self, tap_game_document, vocabulary):
        """randomAction options are validated like top-level actions."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append({
            "type": "randomAction",
            "selectionMode": "uniform",
            "actions": [{"action": {"type": "playSound", "soundId": "se_tap", "volume": 2}}],
        })
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.INVALID_VOLUME)[0]
        assert error.location.path[-3:] == (0, "action", "volume")

    def test_checks_do_not_short_circuit(self, tap_game_document, vocabulary):
        """Every defect shows up in one pass."""
        tap_game_document["script"]["layout"]["objects"][0]["position"]["x"] = 2
        rule_by_id(tap_game_document, "timeout")["triggers"]["conditions"][0]["seconds"] = -3
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append({"type": "addScore"})
        codes = _codes(_findings(tap_game_document, vocabulary))
        assert {
            ErrorCode.INVALID_COORDINATES,
            ErrorCode.INVALID_TIME_SECONDS,
            ErrorCode.MISSING_POINTS,
        } <= codes


class TestIdentity:
    """Tests for duplicate identifiers."""

    def test_duplicate_rule_id(self, tap_game_document, vocabulary):
        """Two rules with the same id are critical."""
        rule_by_id(tap_game_document, "timeout")["id"] = "win"
        assert ErrorCode.DUPLICATE_RULE_ID in _codes(_findings(tap_game_document, vocabulary))

    def test_duplicate_layout_object(self, tap_game_document, vocabulary):
        """Placing an object twice in the layout is a warning."""
        objects = tap_game_document["script"]["layout"]["objects"]
        objects.append({"objectId": "obj1", "position": {"x": 0.2, "y": 0.2}})
        error = _only(_findings(tap_game_document, vocabulary), ErrorCode.DUPLICATE_LAYOUT_OBJECT)[0]
        assert error.severity == Severity.WARNING
