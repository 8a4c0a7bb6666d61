"""
Tests for the repair engine.

Tests:
- Category table and classification
- Numeric auto-fixes through structured locations
- Structural fixes
- Scoped rewrites through a scripted collaborator
- Full-regeneration briefs
"""

import asyncio
import json

import pytest

from .. import config
from ..config import EngineConfig
from ..script_schema import RuleSet
from ..validation import (
    ErrorCode,
    ErrorLocation,
    ValidationError,
    validate_ruleset,
)
from ..repair import (
    CATEGORY_TABLE,
    OpenAIRuleRewriter,
    RepairCategory,
    RepairEngine,
    RuleRewriter,
    apply_auto_fix,
    build_regeneration_brief,
    categorize,
    classify,
    parse_rewritten_rules,
    repair_ruleset,
)
from ..repair.feedback import BRIEF_HEADER, REMEDIATION_HINTS
from .conftest import rule_by_id


class ScriptedRewriter(RuleRewriter):
    """Returns a fixed response (or raises) and records every prompt."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.prompts = []

    async def rewrite(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


def _fenced(rules):
    return "Here you go:\n```json\n" + json.dumps(rules) + "\n```"


def _validated(document, vocabulary):
    ruleset = RuleSet.model_validate(document)
    return ruleset, validate_ruleset(ruleset, vocabulary)


class TestCategories:
    """Tests for error classification."""

    def test_every_code_is_listed(self):
        """Every error code has a repair category."""
        assert set(CATEGORY_TABLE) == set(ErrorCode)

    @pytest.mark.parametrize("code, category", [
        (ErrorCode.INVALID_COORDINATES, RepairCategory.AUTO_FIXABLE),
        (ErrorCode.MISSING_POINTS, RepairCategory.AUTO_FIXABLE),
        (ErrorCode.MISSING_TARGET_ID, RepairCategory.PARTIAL_REGEN),
        (ErrorCode.UNUSED_COUNTER, RepairCategory.PARTIAL_REGEN),
        (ErrorCode.INSTANT_WIN, RepairCategory.FULL_REGEN),
        (ErrorCode.INVALID_ACTION_TYPE, RepairCategory.FULL_REGEN),
    ])
    def test_classify(self, code, category):
        """Codes map to their repair category."""
        assert classify(ValidationError.critical(code, "x")) == category

    def test_categorize_keeps_every_group(self):
        """Empty categories are still present in the grouping."""
        groups = categorize([ValidationError.critical(ErrorCode.NO_SUCCESS, "x")])
        assert set(groups) == set(RepairCategory)
        assert len(groups[RepairCategory.FULL_REGEN]) == 1
        assert groups[RepairCategory.AUTO_FIXABLE] == []


class TestAutoFixes:
    """Tests for numeric corrections."""

    def test_layout_coordinate_clamped(self, tap_game_document, vocabulary, engine_config):
        """An out-of-range layout coordinate is clamped into 0-1."""
        tap_game_document["script"]["layout"]["objects"][0]["position"]["x"] = 1.5
        ruleset, validation = _validated(tap_game_document, vocabulary)
        assert validation.has(ErrorCode.INVALID_COORDINATES)

        result = repair_ruleset(ruleset, validation, config=engine_config)

        assert result.success
        assert result.repaired_ruleset.layout_objects[0].position.x == 1.0
        assert ruleset.layout_objects[0].position.x == 1.5
        repair = result.repairs_applied[0]
        assert repair.error_code == "INVALID_COORDINATES"
        assert (repair.before, repair.after) == (1.5, 1.0)
        assert validate_ruleset(result.repaired_ruleset, vocabulary).valid

    def test_fix_is_idempotent(self, tap_game_document, vocabulary):
        """A second fix of the same error changes nothing."""
        tap_game_document["script"]["layout"]["objects"][0]["position"]["x"] = 1.5
        ruleset, validation = _validated(tap_game_document, vocabulary)
        error = validation.errors[0]
        assert apply_auto_fix(ruleset, error) is not None
        assert apply_auto_fix(ruleset, error) is None

    def test_unusual_speed(self, tap_game_document, vocabulary, engine_config):
        """An unusual speed is pulled back into the usual range."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append(
            {"type": "move", "movement": {"type": "straight", "speed": 20}}
        )
        ruleset, validation = _validated(tap_game_document, vocabulary)
        result = repair_ruleset(ruleset, validation, config=engine_config)
        assert result.success
        move = result.repaired_ruleset.get_rule("tap_obj1").actions[2]
        assert move.movement.speed == 15.0

    def test_stale_rule_index_is_skipped(self, tap_game):
        """The path points at rule 0, but the error names another rule."""
        error = ValidationError.warning(
            ErrorCode.UNUSUAL_SPEED,
            "speed",
            location=ErrorLocation(
                ("script", "rules", 0, "actions", 0, "movement", "speed"), rule_id="win",
            ),
        )
        assert apply_auto_fix(tap_game, error) is None

    def test_unresolvable_path_is_skipped(self, tap_game):
        """A location that no longer resolves is skipped."""
        error = ValidationError.critical(
            ErrorCode.INVALID_COORDINATES,
            "x",
            location=ErrorLocation(("script", "layout", "objects", 9, "position", "x")),
        )
        assert apply_auto_fix(tap_game, error) is None

    def test_missing_points_filled(self, tap_game_document, vocabulary, engine_config):
        """addScore without points gets the default of 100."""
        rule_by_id(tap_game_document, "tap_obj1")["actions"].append({"type": "addScore"})
        ruleset, validation = _validated(tap_game_document, vocabulary)
        result = repair_ruleset(ruleset, validation, config=engine_config)
        assert result.repaired_ruleset.get_rule("tap_obj1").actions[2].points == 100
        assert result.success

    def test_auto_repair_limit(self, tap_game_document, vocabulary):
        """Auto fixes stop at max_auto_repairs."""
        position = tap_game_document["script"]["layout"]["objects"][0]["position"]
        position["x"], position["y"] = 1.5, -0.5
        ruleset, validation = _validated(tap_game_document, vocabulary)

        result = repair_ruleset(ruleset, validation, config=EngineConfig(max_auto_repairs=1))

        assert len(result.repairs_applied) == 1
        assert result.repaired_ruleset.layout_objects[0].position.y == -0.5


class TestStructuralFixes:
    """Tests for deterministic reference repairs."""

    def test_undefined_counter_is_defined(self, tap_game_document, vocabulary, engine_config):
        """A counter used but never declared is added."""
        rule_by_id(tap_game_document, "win")["triggers"]["conditions"][0]["counterName"] = "points"
        rule_by_id(tap_game_document, "tap_obj1")["actions"][0]["counterName"] = "points"
        tap_game_document["script"]["counters"] = []
        ruleset, validation = _validated(tap_game_document, vocabulary)
        assert validation.has(ErrorCode.INVALID_COUNTER_NAME)

        result = repair_ruleset(ruleset, validation, config=engine_config)

        counter = result.repaired_ruleset.get_counter("points")
        assert counter is not None
        assert counter.initial_value == 0
        assert [r.error_code for r in result.repairs_applied] == ["INVALID_COUNTER_NAME"]

    def test_undefined_sound_is_defined(self, tap_game_document, vocabulary, engine_config):
        """A sound used but never planned is added to the asset plan."""
        tap_game_document["assetPlan"]["sounds"] = []
        ruleset, validation = _validated(tap_game_document, vocabulary)
        result = repair_ruleset(ruleset, validation, config=engine_config)
        assert "se_tap" in result.repaired_ruleset.sound_ids
        assert result.success

    def test_unused_counter_is_removed(self, tap_game_document, vocabulary, engine_config):
        """An unused counter is dropped from the repaired copy only."""
        tap_game_document["script"]["counters"].append({"id": "bonus", "initialValue": 0})
        ruleset, validation = _validated(tap_game_document, vocabulary)
        result = repair_ruleset(ruleset, validation, config=engine_config)
        assert result.repaired_ruleset.get_counter("bonus") is None
        assert ruleset.get_counter("bonus") is not None

    def test_structural_fixes_run_in_dry_run(self, tap_game_document, vocabulary):
        """Dry run still applies local fixes."""
        tap_game_document["assetPlan"]["sounds"] = []
        ruleset, validation = _validated(tap_game_document, vocabulary)
        result = repair_ruleset(ruleset, validation, config=EngineConfig(dry_run=True))
        assert "se_tap" in result.repaired_ruleset.sound_ids


class TestRewrite:
    """Tests for the scoped rule rewrite."""

    @pytest.fixture
    def broken(self, tap_game_document, vocabulary):
        """A hide action nobody can resolve a target for."""
        tap_game_document["script"]["rules"].append({
            "id": "vanish",
            "triggers": {"conditions": [{"type": "touch", "target": "obj1", "touchType": "hold"}]},
            "actions": [{"type": "hide"}],
        })
        ruleset, validation = _validated(tap_game_document, vocabulary)
        assert validation.codes() == {ErrorCode.MISSING_TARGET_ID}
        return ruleset, validation

    @staticmethod
    def _fixed_vanish():
        return {
            "id": "vanish",
            "triggers": {"operator": "AND", "conditions": [
                {"type": "touch", "target": "obj1", "touchType": "hold"},
            ]},
            "actions": [{"type": "hide", "targetId": "obj1"}],
        }

    def test_rewritten_rule_replaces_original(self, broken, vocabulary, engine_config):
        """A rewritten rule takes the place of the broken one."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter(_fenced([self._fixed_vanish()]))

        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)

        assert result.success
        assert result.repaired_ruleset.get_rule("vanish").actions[0].target_id == "obj1"
        repair = result.repairs_applied[0]
        assert repair.error_code == "MISSING_TARGET_ID"
        assert repair.target == "script.rules.vanish"
        assert validate_ruleset(result.repaired_ruleset, vocabulary).valid

    def test_prompt_is_scoped(self, broken, engine_config):
        """The prompt names the error code and the broken rule."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter(_fenced([self._fixed_vanish()]))
        repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)

        prompt = rewriter.prompts[0]
        assert "[MISSING_TARGET_ID]" in prompt
        assert '"vanish"' in prompt
        assert '"tap_obj1"' not in prompt
        assert "- obj1: Star" in prompt
        assert "- se_tap: tap" in prompt

    def test_bare_array_response(self, broken, engine_config):
        """An unfenced JSON array is accepted."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter(json.dumps([self._fixed_vanish()]))
        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)
        assert result.success

    def test_malformed_response(self, broken, engine_config):
        """Prose instead of JSON leaves the error in place."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter("I could not fix this.")
        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)
        assert not result.success
        assert result.repairs_applied == []
        assert [e.code for e in result.remaining_errors] == [ErrorCode.MISSING_TARGET_ID]

    def test_rewriter_failure(self, broken, engine_config):
        """A rewriter error is reported, not raised."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter(error=RuntimeError("rate limited"))
        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)
        assert not result.success
        assert len(result.remaining_errors) == 1

    def test_foreign_rule_ids_discarded(self, broken, engine_config):
        """A rewritten rule that was not asked for is never spliced in."""
        ruleset, validation = broken
        intruder = dict(self._fixed_vanish(), id="tap_obj1")
        rewriter = ScriptedRewriter(_fenced([intruder]))
        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)
        assert result.repairs_applied == []
        assert result.repaired_ruleset.get_rule("tap_obj1") == ruleset.get_rule("tap_obj1")

    def test_invalid_rule_discarded(self, broken, engine_config):
        """A rewritten rule that fails validation is not applied."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter(_fenced([{"id": "vanish", "actions": "hide"}]))
        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=engine_config)
        assert result.repairs_applied == []

    def test_dry_run_skips_rewriter(self, broken):
        """Dry run never calls the rewriter."""
        ruleset, validation = broken
        rewriter = ScriptedRewriter(_fenced([self._fixed_vanish()]))
        result = repair_ruleset(ruleset, validation, rewriter=rewriter, config=EngineConfig(dry_run=True))
        assert rewriter.prompts == []
        assert not result.success

    def test_engine_is_awaitable(self, broken, engine_config):
        """RepairEngine.repair runs under asyncio."""
        ruleset, validation = broken
        engine = RepairEngine(ScriptedRewriter(_fenced([self._fixed_vanish()])), engine_config)
        result = asyncio.run(engine.repair(ruleset, validation.errors))
        assert result.success

    def test_dry_run_from_environment(self, broken, monkeypatch):
        """RULEGUARD_DRY_RUN applies when no config is passed."""
        monkeypatch.setattr(config, "RULEGUARD_DRY_RUN", True)
        ruleset, validation = broken
        rewriter = ScriptedRewriter(_fenced([self._fixed_vanish()]))
        result = repair_ruleset(ruleset, validation, rewriter=rewriter)
        assert RepairEngine().config.dry_run is True
        assert rewriter.prompts == []
        assert not result.success


class TestFullRegeneration:
    """Tests for systemic errors."""

    def test_instant_win_brief(self, tap_game_document, vocabulary, engine_config):
        """An instant win asks for full regeneration."""
        tap_game_document["script"]["counters"][0]["initialValue"] = 5
        ruleset, validation = _validated(tap_game_document, vocabulary)

        result = repair_ruleset(ruleset, validation, config=engine_config)

        assert result.requires_full_regeneration
        assert not result.success
        assert result.repairs_applied == []
        feedback = result.regeneration_feedback
        assert feedback.startswith(BRIEF_HEADER)
        assert "## INSTANT_WIN" in feedback
        assert f"-> {REMEDIATION_HINTS[ErrorCode.INSTANT_WIN]}" in feedback

    def test_brief_groups_by_code(self):
        """The brief lists each code once with all its messages."""
        errors = [
            ValidationError.critical(ErrorCode.NO_SUCCESS, "first"),
            ValidationError.critical(ErrorCode.INSTANT_LOSE, "second"),
            ValidationError.critical(ErrorCode.NO_SUCCESS, "third"),
        ]
        lines = build_regeneration_brief(errors).split("\n")
        assert lines[:5] == [BRIEF_HEADER, "", "## NO_SUCCESS", "- first", "- third"]
        assert lines[6:8] == ["", "## INSTANT_LOSE"]

    def test_result_serializes(self, tap_game_document, vocabulary, engine_config):
        """RepairResult.to_dict carries the repaired document."""
        tap_game_document["script"]["counters"][0]["initialValue"] = 5
        ruleset, validation = _validated(tap_game_document, vocabulary)
        data = repair_ruleset(ruleset, validation, config=engine_config).to_dict()
        assert data["success"] is False
        assert data["requires_full_regeneration"] is True
        assert "assetPlan" in data["repaired_ruleset"]


class TestRewriterClient:
    """Tests for response parsing and the OpenAI client wrapper."""

    def test_parse_fenced(self):
        """Non-object entries in a fenced array are dropped."""
        assert parse_rewritten_rules(_fenced([{"id": "a"}, 3])) == [{"id": "a"}]

    @pytest.mark.parametrize("text", ["", "not json", '{"id": "a"}'])
    def test_parse_rejects(self, text):
        """Empty, non-JSON and non-array responses parse to nothing."""
        assert parse_rewritten_rules(text) == []

    def test_missing_api_key(self, monkeypatch):
        """Without an API key the client refuses to start."""
        monkeypatch.setattr(config, "OPENAI_API_KEY", None)
        with pytest.raises(ValueError):
            OpenAIRuleRewriter()

    def test_client_configuration(self):
        """An explicit key and model are used as given."""
        rewriter = OpenAIRuleRewriter(api_key="sk-test", model="gpt-test")
        assert rewriter.model == "gpt-test"
        assert rewriter.client is not None
