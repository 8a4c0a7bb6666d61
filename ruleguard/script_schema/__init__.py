"""Rule script schema - wire-format models for rule-sets and capability tables."""

from .ruleset import (
    RuleSet,
    Rule,
    TriggerClause,
    CounterDefinition,
    LayoutObject,
    AssetPlan,
    ObjectPlan,
    SoundPlan,
    RESERVED_TARGETS,
)
from .conditions import Condition, CONDITION_MODELS
from .actions import Action, ACTION_MODELS
from .vocabulary import Vocabulary, load_vocabulary
from .signatures import rule_signature

__all__ = [
    "RuleSet",
    "Rule",
    "TriggerClause",
    "CounterDefinition",
    "LayoutObject",
    "AssetPlan",
    "ObjectPlan",
    "SoundPlan",
    "RESERVED_TARGETS",
    "Condition",
    "CONDITION_MODELS",
    "Action",
    "ACTION_MODELS",
    "Vocabulary",
    "load_vocabulary",
    "rule_signature",
]
