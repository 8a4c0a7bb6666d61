"""Repair audit records and the result of one repair cycle."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from ..script_schema.ruleset import RuleSet
from ..validation.errors import ValidationError


@dataclass
class RepairAction:
    """
    Audit record of one applied repair.

    before / after are plain values (numbers, or dumped wire dicts), never
    live references into the repaired RuleSet.
    """
    error_code: str
    description: str
    target: str
    before: Any = None
    after: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "description": self.description,
            "target": self.target,
            "before": self.before,
            "after": self.after,
        }


@dataclass
class RepairResult:
    """
    Outcome of RepairEngine.repair().

    success is derived: nothing remains and no full regeneration is needed.
    """
    repaired_ruleset: RuleSet
    repairs_applied: list[RepairAction] = field(default_factory=list)
    remaining_errors: list[ValidationError] = field(default_factory=list)
    requires_full_regeneration: bool = False
    regeneration_feedback: str | None = None

    @property
    def success(self) -> bool:
        return not self.remaining_errors and not self.requires_full_regeneration

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "repaired_ruleset": self.repaired_ruleset.to_document(),
            "repairs_applied": [r.to_dict() for r in self.repairs_applied],
            "remaining_errors": [e.to_dict() for e in self.remaining_errors],
            "requires_full_regeneration": self.requires_full_regeneration,
            "regeneration_feedback": self.regeneration_feedback,
        }
