"""
Repair Prompts - Text sent to the rule-rewrite collaborator.

The rewrite request is scoped: only the implicated rules, only the errors
found in them, and only the identifiers that currently exist. The
collaborator answers with a JSON array of replacement rules.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import json
from typing import Any

from ..script_schema.ruleset import Rule, RuleSet
from ..validation.errors import ValidationError


@dataclass
class RegenerationContext:
    """What the game is about; gives the rewriter something to aim at."""
    title: str = ""
    description: str = ""


@dataclass
class RewriteRequest:
    """Everything the collaborator may see for one scoped rewrite."""
    rules: list[Rule]
    errors: list[ValidationError]
    objects: list[tuple[str, str]] = field(default_factory=list)
    counters: list[tuple[str, Any]] = field(default_factory=list)
    sounds: list[tuple[str, str]] = field(default_factory=list)
    context: RegenerationContext = field(default_factory=RegenerationContext)

    @classmethod
    def build(
        cls,
        ruleset: RuleSet,
        rules: list[Rule],
        errors: list[ValidationError],
        context: RegenerationContext | None = None,
    ) -> RewriteRequest:
        return cls(
            rules=rules,
            errors=errors,
            objects=[(o.id, o.name or o.id) for o in ruleset.asset_plan.objects],
            counters=[(c.id, c.initial_value) for c in ruleset.counters],
            sounds=[(s.id, s.type or "sound") for s in ruleset.asset_plan.sounds],
            context=context or RegenerationContext(),
        )

    @property
    def rule_ids(self) -> set[str]:
        return {r.id for r in self.rules}


@dataclass
class RepairPrompts:
    """Prompt builders for the repair collaborator."""

    @staticmethod
    def system() -> str:
        return (
            "You repair rules of a small trigger/action game script. "
            "Change only what is needed to fix the listed errors, keep every rule id, "
            "and use only the identifiers you are given."
        )

    @staticmethod
    def partial_repair(request: RewriteRequest) -> str:
        """Prompt asking for corrected versions of the implicated rules."""
        errors = "\n".join(
            f"- [{e.code.value}] {e.message}" + (f" (fix: {e.fix})" if e.fix else "")
            for e in request.errors
        )
        rules = json.dumps(
            [r.model_dump(by_alias=True, exclude_none=True, mode="json") for r in request.rules],
            indent=2,
        )
        objects = "\n".join(f"- {oid}: {name}" for oid, name in request.objects) or "- (none)"
        counters = "\n".join(f"- {cid}: initial {value}" for cid, value in request.counters) or "- (none)"
        sounds = "\n".join(f"- {sid}: {kind}" for sid, kind in request.sounds) or "- (none)"
        title = request.context.title or "Untitled game"
        about = f"\n{request.context.description}\n" if request.context.description else ""

        return f"""The logic of the game "{title}" has the errors below. Fix the affected rules.
{about}
## Errors
{errors}

## Affected rules
```json
{rules}
```

## Available objects
{objects}

## Available counters
{counters}

## Available sounds
{sounds}

Return the corrected rules as a JSON array, keeping their ids:
```json
[
  {{"id": "rule_xxx", ...}}
]
```"""
