"""Rule-set repair - classification, deterministic fixes, rewrites and briefs."""

from .categories import CATEGORY_TABLE, RepairCategory, categorize, classify
from .engine import RepairEngine, repair_ruleset
from .feedback import build_regeneration_brief
from .fixes import apply_auto_fix
from .prompts import RegenerationContext, RepairPrompts, RewriteRequest
from .result import RepairAction, RepairResult
from .rewriter import OpenAIRuleRewriter, RuleRewriter, parse_rewritten_rules
from .structural import apply_structural_fixes

__all__ = [
    "CATEGORY_TABLE",
    "RepairCategory",
    "categorize",
    "classify",
    "RepairEngine",
    "repair_ruleset",
    "build_regeneration_brief",
    "apply_auto_fix",
    "RegenerationContext",
    "RepairPrompts",
    "RewriteRequest",
    "RepairAction",
    "RepairResult",
    "OpenAIRuleRewriter",
    "RuleRewriter",
    "parse_rewritten_rules",
    "apply_structural_fixes",
]
