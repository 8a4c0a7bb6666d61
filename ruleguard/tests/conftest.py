"""
Pytest fixtures for Ruleguard tests.
"""

import pytest

from ..config import EngineConfig
from ..script_schema import RuleSet, Vocabulary
from ..vocabularies import create_editor_vocabulary


@pytest.fixture
def vocabulary() -> Vocabulary:
    """Full editor capability table."""
    return create_editor_vocabulary()


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default tunables, independent of the environment."""
    return EngineConfig()


@pytest.fixture
def tap_game_document() -> dict:
    """
    Canonical tap game as a raw document.

    Tapping obj1 adds 1 to score; score >= 5 wins; 10 seconds loses.
    Valid: no findings from any validator.
    """
    return {
        "script": {
            "layout": {
                "objects": [
                    {"objectId": "obj1", "position": {"x": 0.5, "y": 0.5}},
                ],
            },
            "counters": [
                {"id": "score", "name": "Score", "initialValue": 0},
            ],
            "rules": [
                {
                    "id": "tap_obj1",
                    "targetObjectId": "obj1",
                    "triggers": {
                        "operator": "AND",
                        "conditions": [{"type": "touch", "target": "self", "touchType": "down"}],
                    },
                    "actions": [
                        {"type": "counter", "counterName": "score", "operation": "add", "value": 1},
                        {"type": "playSound", "soundId": "se_tap"},
                    ],
                },
                {
                    "id": "win",
                    "triggers": {
                        "operator": "AND",
                        "conditions": [{
                            "type": "counter",
                            "counterName": "score",
                            "comparison": "greaterOrEqual",
                            "value": 5,
                        }],
                    },
                    "actions": [{"type": "success", "score": 100}],
                },
                {
                    "id": "timeout",
                    "triggers": {
                        "operator": "AND",
                        "conditions": [{"type": "time", "timeType": "exact", "seconds": 10}],
                    },
                    "actions": [{"type": "failure", "message": "Time up"}],
                },
            ],
        },
        "assetPlan": {
            "objects": [
                {"id": "obj1", "name": "Star", "initialPosition": {"x": 0.5, "y": 0.5}},
            ],
            "sounds": [
                {"id": "se_tap", "trigger": "touch", "type": "tap"},
            ],
            "bgm": None,
        },
    }


@pytest.fixture
def tap_game(tap_game_document) -> RuleSet:
    """The canonical tap game, loaded."""
    return RuleSet.model_validate(tap_game_document)


def add_object(document: dict, object_id: str, x: float = 0.3, y: float = 0.3) -> None:
    """Place an extra object in both the layout and the asset plan."""
    document["script"]["layout"]["objects"].append(
        {"objectId": object_id, "position": {"x": x, "y": y}}
    )
    document["assetPlan"]["objects"].append({"id": object_id, "name": object_id})


def rule_by_id(document: dict, rule_id: str) -> dict:
    for rule in document["script"]["rules"]:
        if rule["id"] == rule_id:
            return rule
    raise KeyError(rule_id)
