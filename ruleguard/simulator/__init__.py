"""Reachability simulation - symbolic state, reducer and the simulator."""

from .state import Outcome, SimulationState
from .reducer import apply_rule
from .report import (
    Confidence,
    ConflictReport,
    ConflictType,
    FailureReport,
    IssueSeverity,
    ReachabilityReport,
    SimulationIssue,
    SimulationPath,
    SimulationStep,
    SuccessReport,
)
from .simulator import ReachabilitySimulator, simulate

__all__ = [
    "Outcome",
    "SimulationState",
    "apply_rule",
    "Confidence",
    "ConflictReport",
    "ConflictType",
    "FailureReport",
    "IssueSeverity",
    "ReachabilityReport",
    "SimulationIssue",
    "SimulationPath",
    "SimulationStep",
    "SuccessReport",
    "ReachabilitySimulator",
    "simulate",
]
