"""
Repair Engine - Resolves validation errors by category.

Strategy:
1. auto_fixable -> numeric correction applied in place
2. partial_regen -> deterministic default where one is unambiguous,
   otherwise one scoped rewrite of the implicated rules
3. full_regen -> no local edits; a regeneration brief is returned

The caller's RuleSet is never modified; every repair works on a clone.

Usage:
    engine = RepairEngine(rewriter=OpenAIRuleRewriter())
    result = await engine.repair(ruleset, validation.errors, context)
    if result.requires_full_regeneration:
        prompt += result.regeneration_feedback
"""

from __future__ import annotations
import asyncio
import logging

from pydantic import ValidationError as PydanticValidationError

from ..config import EngineConfig
from ..script_schema.ruleset import Rule, RuleSet
from ..validation.errors import ErrorCode, ValidationError, ValidationResult
from .categories import RepairCategory, categorize
from .feedback import build_regeneration_brief
from .fixes import apply_auto_fix
from .prompts import RegenerationContext, RepairPrompts, RewriteRequest
from .result import RepairAction, RepairResult
from .rewriter import RuleRewriter, parse_rewritten_rules
from .structural import STRUCTURAL_FIXES, apply_structural_fixes

logger = logging.getLogger(__name__)


class RepairEngine:
    """
    Classifies errors and applies the matching repair strategy.

    rewriter: collaborator for scoped rule rewrites; None disables them
        (deterministic fixes still run)
    config: engine tunables (max_auto_repairs, dry_run); defaults to
        EngineConfig.from_env()
    """

    def __init__(self, rewriter: RuleRewriter | None = None, config: EngineConfig | None = None):
        self.rewriter = rewriter
        self.config = config or EngineConfig.from_env()

    async def repair(
        self,
        ruleset: RuleSet,
        errors: list[ValidationError] | ValidationResult,
        context: RegenerationContext | None = None,
    ) -> RepairResult:
        if isinstance(errors, ValidationResult):
            errors = errors.errors
        repaired = ruleset.clone()
        groups = categorize(errors)
        repairs: list[RepairAction] = []

        logger.info("Repairing %d error(s)", len(errors))

        # 1. Direct numeric fixes
        repairs.extend(self._auto_repair(repaired, groups[RepairCategory.AUTO_FIXABLE]))

        # 2. Local defaults, then the scoped rewrite
        partial = groups[RepairCategory.PARTIAL_REGEN]
        repairs.extend(apply_structural_fixes(repaired, partial))
        rewrite_errors = [
            e for e in partial
            if e.code not in STRUCTURAL_FIXES and e.rule_id and repaired.get_rule(e.rule_id)
        ]
        if rewrite_errors and self._can_rewrite():
            repairs.extend(await self._rewrite(repaired, rewrite_errors, context))

        # 3. Systemic problems are only described
        full = groups[RepairCategory.FULL_REGEN]
        feedback = None
        if full:
            feedback = build_regeneration_brief(full)
            logger.warning("Full regeneration required: %d structural error(s)", len(full))

        remaining = _remaining_errors(errors, repairs, full)
        return RepairResult(
            repaired_ruleset=repaired,
            repairs_applied=repairs,
            remaining_errors=remaining,
            requires_full_regeneration=bool(full),
            regeneration_feedback=feedback,
        )

    def _can_rewrite(self) -> bool:
        if self.config.dry_run:
            logger.info("Dry run: skipping rule rewrite")
            return False
        return self.rewriter is not None

    def _auto_repair(self, ruleset: RuleSet, errors: list[ValidationError]) -> list[RepairAction]:
        repairs = []
        for i, error in enumerate(errors):
            if len(repairs) >= self.config.max_auto_repairs:
                logger.warning(
                    "Auto-repair limit (%d) reached; %d error(s) left as is",
                    self.config.max_auto_repairs, len(errors) - i,
                )
                break
            repair = apply_auto_fix(ruleset, error)
            if repair:
                logger.info("Auto-repaired %s at %s: %s -> %s",
                            repair.error_code, repair.target, repair.before, repair.after)
                repairs.append(repair)
        return repairs

    async def _rewrite(
        self,
        ruleset: RuleSet,
        errors: list[ValidationError],
        context: RegenerationContext | None,
    ) -> list[RepairAction]:
        """Send the implicated rules to the rewriter and splice the answers back in."""
        rule_ids = list(dict.fromkeys(e.rule_id for e in errors))
        rules = [ruleset.get_rule(rule_id) for rule_id in rule_ids]
        request = RewriteRequest.build(ruleset, rules, errors, context)

        try:
            response = await self.rewriter.rewrite(RepairPrompts.partial_repair(request))
        except Exception as e:
            logger.error(f"Rule rewrite failed: {e}", exc_info=True)
            return []

        repairs = []
        for data in parse_rewritten_rules(response):
            try:
                new_rule = Rule.model_validate(data)
            except PydanticValidationError as e:
                logger.warning(f"Discarding rewritten rule that does not validate: {e}")
                continue
            if new_rule.id not in request.rule_ids:
                logger.warning("Discarding rewritten rule %r: not one of the implicated rules", new_rule.id)
                continue
            repairs.extend(_replace_rule(ruleset, new_rule, errors))

        if not repairs:
            logger.warning("Rule rewrite produced no usable rules")
        return repairs


def _replace_rule(ruleset: RuleSet, new_rule: Rule, errors: list[ValidationError]) -> list[RepairAction]:
    rules = ruleset.script.rules
    index = next(i for i, r in enumerate(rules) if r.id == new_rule.id)
    before = rules[index].model_dump(by_alias=True, exclude_none=True, mode="json")
    after = new_rule.model_dump(by_alias=True, exclude_none=True, mode="json")
    rules[index] = new_rule

    codes = dict.fromkeys(ErrorCode(e.code).value for e in errors if e.rule_id == new_rule.id)
    logger.info("Rewrote rule %s for %s", new_rule.id, ", ".join(codes))
    return [
        RepairAction(
            error_code=code,
            description="Rewrote rule",
            target=f"script.rules.{new_rule.id}",
            before=before,
            after=after,
        )
        for code in codes
    ]


def _remaining_errors(
    errors: list[ValidationError],
    repairs: list[RepairAction],
    full_regen: list[ValidationError],
) -> list[ValidationError]:
    """Errors whose code was neither repaired nor escalated."""
    handled = {r.error_code for r in repairs}
    handled.update(ErrorCode(e.code).value for e in full_regen)
    return [e for e in errors if ErrorCode(e.code).value not in handled]


def repair_ruleset(
    ruleset: RuleSet,
    errors: list[ValidationError] | ValidationResult,
    context: RegenerationContext | None = None,
    rewriter: RuleRewriter | None = None,
    config: EngineConfig | None = None,
) -> RepairResult:
    """Synchronous wrapper around RepairEngine.repair()."""
    engine = RepairEngine(rewriter=rewriter, config=config)
    return asyncio.run(engine.repair(ruleset, errors, context))
