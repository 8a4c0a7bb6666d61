"""
Validation errors - coded, severity-tagged findings with structured locations.

Every finding carries an ErrorLocation (field path, rule id, subject) set
at creation time. The repair engine targets fixes through the location;
the message is for humans only and is never parsed.

Error codes are a stable catalogue; see ErrorCode.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """critical blocks acceptance; warning is advisory."""
    CRITICAL = "critical"
    WARNING = "warning"


class ErrorCode(str, Enum):
    """Stable error codes produced by the validators."""
    # Structure (fail-fast)
    MALFORMED_RULESET = "MALFORMED_RULESET"
    MISSING_SECTION = "MISSING_SECTION"

    # Vocabulary membership
    INVALID_CONDITION_TYPE = "INVALID_CONDITION_TYPE"
    INVALID_ACTION_TYPE = "INVALID_ACTION_TYPE"
    INVALID_PARAMETER_VALUE = "INVALID_PARAMETER_VALUE"

    # Parameter ranges
    INVALID_COORDINATES = "INVALID_COORDINATES"
    INVALID_SCALE = "INVALID_SCALE"
    EXTREME_SCALE = "EXTREME_SCALE"
    INVALID_SPEED = "INVALID_SPEED"
    UNUSUAL_SPEED = "UNUSUAL_SPEED"
    INVALID_TIME_SECONDS = "INVALID_TIME_SECONDS"
    INVALID_TIME_INTERVAL = "INVALID_TIME_INTERVAL"
    INVALID_VOLUME = "INVALID_VOLUME"
    INVALID_PROBABILITY = "INVALID_PROBABILITY"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_EFFECT_DURATION = "INVALID_EFFECT_DURATION"
    LONG_EFFECT_DURATION = "LONG_EFFECT_DURATION"
    INVALID_SCALE_AMOUNT = "INVALID_SCALE_AMOUNT"
    LARGE_SCALE_AMOUNT = "LARGE_SCALE_AMOUNT"
    NEGATIVE_POINTS = "NEGATIVE_POINTS"

    # Missing parameters
    MISSING_POINTS = "MISSING_POINTS"
    MISSING_PROBABILITY = "MISSING_PROBABILITY"
    MISSING_COUNTER_VALUE = "MISSING_COUNTER_VALUE"
    MISSING_COUNTER_NAME = "MISSING_COUNTER_NAME"
    MISSING_TARGET_ID = "MISSING_TARGET_ID"
    MISSING_SOUND_ID = "MISSING_SOUND_ID"
    MISSING_FLAG_ID = "MISSING_FLAG_ID"
    MISSING_FORCE = "MISSING_FORCE"
    MISSING_IMPULSE = "MISSING_IMPULSE"
    MISSING_ANIMATION_INDEX = "MISSING_ANIMATION_INDEX"

    # Identity / layout
    DUPLICATE_RULE_ID = "DUPLICATE_RULE_ID"
    DUPLICATE_LAYOUT_OBJECT = "DUPLICATE_LAYOUT_OBJECT"

    # Reference resolution
    INVALID_OBJECT_ID = "INVALID_OBJECT_ID"
    INVALID_COUNTER_NAME = "INVALID_COUNTER_NAME"
    UNDEFINED_SOUND_ID = "UNDEFINED_SOUND_ID"

    # Trivial outcomes
    INSTANT_WIN = "INSTANT_WIN"
    INSTANT_LOSE = "INSTANT_LOSE"
    AUTO_SUCCESS = "AUTO_SUCCESS"
    AUTO_FAILURE = "AUTO_FAILURE"
    NO_PLAYER_ACTION = "NO_PLAYER_ACTION"
    NO_SUCCESS = "NO_SUCCESS"
    NO_FAILURE = "NO_FAILURE"

    # Conflicts
    SUCCESS_FAILURE_CONFLICT = "SUCCESS_FAILURE_CONFLICT"
    SHOW_HIDE_CONFLICT = "SHOW_HIDE_CONFLICT"
    COUNTER_CONFLICT = "COUNTER_CONFLICT"
    SAME_RULE_SUCCESS_FAILURE = "SAME_RULE_SUCCESS_FAILURE"
    SAME_RULE_SHOW_HIDE = "SAME_RULE_SHOW_HIDE"

    # Counter usage and reachability
    UNUSED_COUNTER = "UNUSED_COUNTER"
    COUNTER_NEVER_CHECKED = "COUNTER_NEVER_CHECKED"
    COUNTER_NEVER_MODIFIED = "COUNTER_NEVER_MODIFIED"
    UNREACHABLE_SUCCESS = "UNREACHABLE_SUCCESS"
    UNREACHABLE_OBJECT_STATE = "UNREACHABLE_OBJECT_STATE"


@dataclass(frozen=True)
class ErrorLocation:
    """
    Where a finding applies.

    path: attribute/index path from the RuleSet root to the offending field,
        e.g. ("script", "rules", 2, "triggers", "conditions", 0, "seconds")
    rule_id: id of the implicated rule, if any
    subject: the identifier the finding is about (counter id, sound id, ...)
    """
    path: tuple[str | int, ...] = ()
    rule_id: str | None = None
    subject: str | None = None

    def describe(self) -> str:
        """Dotted path, e.g. script.rules[2].triggers.conditions[0].seconds"""
        out = ""
        for part in self.path:
            if isinstance(part, int):
                out += f"[{part}]"
            else:
                out += f".{part}" if out else part
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.describe(),
            "rule_id": self.rule_id,
            "subject": self.subject,
        }


@dataclass
class ValidationError:
    """A single validation finding."""
    severity: Severity
    code: ErrorCode
    message: str
    fix: str | None = None
    location: ErrorLocation = field(default_factory=ErrorLocation)

    @classmethod
    def critical(
        cls,
        code: ErrorCode,
        message: str,
        fix: str | None = None,
        location: ErrorLocation | None = None,
    ) -> ValidationError:
        return cls(Severity.CRITICAL, code, message, fix, location or ErrorLocation())

    @classmethod
    def warning(
        cls,
        code: ErrorCode,
        message: str,
        fix: str | None = None,
        location: ErrorLocation | None = None,
    ) -> ValidationError:
        return cls(Severity.WARNING, code, message, fix, location or ErrorLocation())

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    @property
    def rule_id(self) -> str | None:
        return self.location.rule_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code.value,
            "message": self.message,
            "fix": self.fix,
            "location": self.location.to_dict(),
        }


@dataclass
class ValidationResult:
    """Result of validation. valid is derived: no critical error present."""
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(e.is_critical for e in self.errors)

    @property
    def critical_errors(self) -> list[ValidationError]:
        return [e for e in self.errors if e.is_critical]

    @property
    def warnings(self) -> list[ValidationError]:
        return [e for e in self.errors if not e.is_critical]

    def codes(self) -> set[ErrorCode]:
        return {e.code for e in self.errors}

    def has(self, code: ErrorCode, severity: Severity | None = None) -> bool:
        return any(
            e.code == code and (severity is None or e.severity == severity)
            for e in self.errors
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }


class RuleSetStructureError(ValueError):
    """Raised by load_ruleset(raise_on_error=True) when structure is broken."""

    def __init__(self, errors: list[ValidationError]):
        self.errors = errors
        super().__init__(f"Rule-set structure invalid with {len(errors)} error(s)")
