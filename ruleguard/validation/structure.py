"""
Structure check - fail-fast validation of a raw rule-set document.

Runs before any content check. Missing top-level sections are reported
as structural errors instead of surfacing later as attribute errors, and
shape errors from the model layer are converted into findings.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..script_schema.ruleset import RuleSet
from .errors import ErrorCode, ErrorLocation, RuleSetStructureError, ValidationError


# (path, human name) of every section a document must carry
REQUIRED_SECTIONS: list[tuple[tuple[str, ...], str]] = [
    (("script",), "script"),
    (("script", "rules"), "script.rules"),
    (("script", "layout"), "script.layout"),
    (("script", "layout", "objects"), "script.layout.objects"),
    (("assetPlan",), "assetPlan"),
    (("assetPlan", "objects"), "assetPlan.objects"),
]

_PYTHON_NAMES = {"assetPlan": "asset_plan"}


@dataclass
class LoadResult:
    """Outcome of loading a document: a RuleSet, or structural errors."""
    ruleset: RuleSet | None
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.ruleset is not None


def check_structure(document: Any) -> list[ValidationError]:
    """Report missing required sections of a raw document."""
    if not isinstance(document, dict):
        return [
            ValidationError.critical(
                ErrorCode.MALFORMED_RULESET,
                f"Rule-set must be a JSON object, got {type(document).__name__}",
                fix="Provide an object with 'script' and 'assetPlan' sections",
            )
        ]

    errors = []
    missing_parents: set[tuple[str, ...]] = set()
    for path, name in REQUIRED_SECTIONS:
        if any(path[: len(p)] == p for p in missing_parents):
            continue
        node: Any = document
        for key in path:
            node = node.get(key) if isinstance(node, dict) else None
        if node is None:
            missing_parents.add(path)
            errors.append(
                ValidationError.critical(
                    ErrorCode.MISSING_SECTION,
                    f"Required section '{name}' is missing",
                    fix=f"Add the '{name}' section",
                    location=ErrorLocation(
                        path=tuple(_PYTHON_NAMES.get(k, k) for k in path),
                        subject=name,
                    ),
                )
            )
    return errors


def load_ruleset(document: Any, raise_on_error: bool = False) -> LoadResult:
    """
    Turn a raw document into a RuleSet.

    Returns LoadResult with errors instead of raising, unless
    raise_on_error=True, in which case RuleSetStructureError is raised.
    """
    errors = check_structure(document)
    ruleset = None

    if not errors:
        try:
            ruleset = RuleSet.model_validate(document)
        except PydanticValidationError as e:
            for detail in e.errors():
                loc = tuple(detail.get("loc", ()))
                dotted = ".".join(str(p) for p in loc)
                errors.append(
                    ValidationError.critical(
                        ErrorCode.MALFORMED_RULESET,
                        f"Malformed field '{dotted}': {detail.get('msg', 'invalid value')}",
                        fix="Correct the field to match the rule-set schema",
                        location=ErrorLocation(subject=dotted),
                    )
                )

    if errors and raise_on_error:
        raise RuleSetStructureError(errors)
    return LoadResult(ruleset=ruleset, errors=errors)
