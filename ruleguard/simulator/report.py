"""
Reachability report - what the simulator found, as plain dataclasses.

Every type exposes to_dict() producing JSON-ready values for callers that
log or transmit the report.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


class ConflictType(Enum):
    SIMULTANEOUS_TERMINATION = "simultaneous_termination"
    HIDDEN_TARGET = "hidden_target"


@dataclass
class SimulationStep:
    """One player move on a path: tap, drag or wait."""
    action: str
    target: str | None = None
    duration: float | None = None
    result: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"action": self.action, "result": self.result}
        if self.target is not None:
            out["target"] = self.target
        if self.duration is not None:
            out["duration"] = self.duration
        return out


@dataclass
class SimulationPath:
    steps: list[SimulationStep] = field(default_factory=list)
    total_taps: int = 0
    estimated_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "total_taps": self.total_taps,
            "estimated_time": self.estimated_time,
        }


@dataclass
class SuccessReport:
    """
    Whether success is reachable.

    required_taps and estimated_seconds are -1 when unreachable; blockers
    then name the missing ingredient for each success rule.
    """
    reachable: bool
    path: SimulationPath | None = None
    required_taps: int = -1
    estimated_seconds: float = -1.0
    blockers: list[str] = field(default_factory=list)

    @classmethod
    def blocked(cls, *blockers: str) -> SuccessReport:
        return cls(reachable=False, blockers=list(blockers))

    def to_dict(self) -> dict[str, Any]:
        return {
            "reachable": self.reachable,
            "path": self.path.to_dict() if self.path else None,
            "required_taps": self.required_taps,
            "estimated_seconds": self.estimated_seconds,
            "blockers": list(self.blockers),
        }


@dataclass
class FailureReport:
    """Advisory: ways the player can lose. Timeout is always one of them."""
    reachable: bool = True
    common_paths: list[SimulationPath] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reachable": self.reachable,
            "common_paths": [p.to_dict() for p in self.common_paths],
            "risks": list(self.risks),
        }


@dataclass
class ConflictReport:
    type: ConflictType
    description: str
    rules: list[str]
    severity: IssueSeverity

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "rules": list(self.rules),
            "severity": self.severity.value,
        }


@dataclass
class SimulationIssue:
    code: str
    message: str
    severity: IssueSeverity

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "severity": self.severity.value}


@dataclass
class Summary:
    playable: bool
    confidence: Confidence
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "playable": self.playable,
            "confidence": self.confidence.value,
            "reasoning": self.reasoning,
        }


@dataclass
class ReachabilityReport:
    success: SuccessReport
    failure: FailureReport
    conflicts: list[ConflictReport]
    issues: list[SimulationIssue]
    summary: Summary

    @property
    def reachable(self) -> bool:
        return self.success.reachable

    @property
    def required_taps(self) -> int:
        return self.success.required_taps

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success.to_dict(),
            "failure": self.failure.to_dict(),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "issues": [i.to_dict() for i in self.issues],
            "summary": self.summary.to_dict(),
        }
