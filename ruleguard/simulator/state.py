"""
Simulation State - The symbolic game state the simulator steps through.

Design principles:
- Ephemeral: built fresh for every simulation run
- Value-copy clone: every speculative step works on its own copy, so an
  abandoned branch never leaks into the baseline
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..script_schema.ruleset import RuleSet


class Outcome(Enum):
    """Terminal outcome of a game."""
    NONE = "none"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class SimulationState:
    """
    Counters, flags and object visibility at a point in the game.

    counters: counter id -> value
    flags: flag id -> bool (unset flags read as False)
    visible / hidden: object id sets; an object is in at most one of them
    """
    counters: dict[str, float] = field(default_factory=dict)
    flags: dict[str, bool] = field(default_factory=dict)
    visible: set[str] = field(default_factory=set)
    hidden: set[str] = field(default_factory=set)
    elapsed: float = 0.0
    outcome: Outcome = Outcome.NONE

    @classmethod
    def initial(cls, ruleset: RuleSet) -> SimulationState:
        """Counters at their initial values, every laid-out object visible."""
        return cls(
            counters={c.id: c.initial_value for c in ruleset.counters},
            visible={o.object_id for o in ruleset.layout_objects},
        )

    @property
    def terminated(self) -> bool:
        return self.outcome != Outcome.NONE

    def counter(self, counter_id: str) -> float:
        return self.counters.get(counter_id, 0)

    def is_hidden(self, object_id: str | None) -> bool:
        return object_id is not None and object_id in self.hidden

    def hide(self, object_id: str) -> None:
        self.visible.discard(object_id)
        self.hidden.add(object_id)

    def show(self, object_id: str) -> None:
        self.hidden.discard(object_id)
        self.visible.add(object_id)

    def clone(self) -> SimulationState:
        """Explicit copy; the containers are flat so one level is enough."""
        return SimulationState(
            counters=dict(self.counters),
            flags=dict(self.flags),
            visible=set(self.visible),
            hidden=set(self.hidden),
            elapsed=self.elapsed,
            outcome=self.outcome,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "counters": dict(self.counters),
            "flags": dict(self.flags),
            "visible": sorted(self.visible),
            "hidden": sorted(self.hidden),
            "elapsed": self.elapsed,
            "outcome": self.outcome.value,
        }
