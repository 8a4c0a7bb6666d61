"""
Trigger conditions - one model per condition type.

Conditions form a discriminated union on `type`. Unrecognized types are
not rejected by the model layer: they load as UnknownCondition so the
feature validator can report them alongside every other defect.
"""

from __future__ import annotations
from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Discriminator, Tag

from .base import Number, Region, WireModel


class TouchCondition(WireModel):
    """Player touches an object (or the stage)."""
    type: Literal["touch"] = "touch"
    target: str | None = None
    touch_type: str | None = None


class TimeCondition(WireModel):
    """Elapsed game time reaches a moment, range or interval."""
    type: Literal["time"] = "time"
    time_type: str | None = None
    seconds: float | None = None
    interval: float | None = None


class CounterCondition(WireModel):
    """A counter compared against a threshold."""
    type: Literal["counter"] = "counter"
    counter_name: str | None = None
    comparison: str | None = None
    value: Number | None = None


class CollisionCondition(WireModel):
    type: Literal["collision"] = "collision"
    target: str | None = None
    collision_type: str | None = None
    check_mode: str | None = None


class FlagCondition(WireModel):
    type: Literal["flag"] = "flag"
    flag_id: str | None = None
    flag_state: str | None = None


class GameStateCondition(WireModel):
    type: Literal["gameState"] = "gameState"
    state: str | None = None


class PositionCondition(WireModel):
    """An object is inside / outside / crossing a stage region."""
    type: Literal["position"] = "position"
    target: str | None = None
    area: str | None = None
    region: Region | None = None


class AnimationCondition(WireModel):
    type: Literal["animation"] = "animation"
    target: str | None = None
    condition: str | None = None
    frame_number: int | None = None
    frame_range: list[int] | None = None
    loop_count: int | None = None


class RandomCondition(WireModel):
    type: Literal["random"] = "random"
    probability: float | None = None
    seed: str | None = None


class ObjectStateCondition(WireModel):
    """An object is currently visible or hidden."""
    type: Literal["objectState"] = "objectState"
    target: str | None = None
    state: str | None = None


class UnknownCondition(WireModel):
    """Any condition whose type the engine does not model; raw fields are kept."""
    model_config = ConfigDict(extra="allow")
    type: Any = None


CONDITION_MODELS: dict[str, type[WireModel]] = {
    "touch": TouchCondition,
    "time": TimeCondition,
    "counter": CounterCondition,
    "collision": CollisionCondition,
    "flag": FlagCondition,
    "gameState": GameStateCondition,
    "position": PositionCondition,
    "animation": AnimationCondition,
    "random": RandomCondition,
    "objectState": ObjectStateCondition,
}

# Condition kinds whose `target` field names an object
TARGETED_CONDITION_TYPES = frozenset({"touch", "collision", "position", "animation", "objectState"})


def _condition_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if isinstance(tag, str) and tag in CONDITION_MODELS:
        return tag
    return "unknown"


Condition = Annotated[
    Union[
        Annotated[TouchCondition, Tag("touch")],
        Annotated[TimeCondition, Tag("time")],
        Annotated[CounterCondition, Tag("counter")],
        Annotated[CollisionCondition, Tag("collision")],
        Annotated[FlagCondition, Tag("flag")],
        Annotated[GameStateCondition, Tag("gameState")],
        Annotated[PositionCondition, Tag("position")],
        Annotated[AnimationCondition, Tag("animation")],
        Annotated[RandomCondition, Tag("random")],
        Annotated[ObjectStateCondition, Tag("objectState")],
        Annotated[UnknownCondition, Tag("unknown")],
    ],
    Discriminator(_condition_tag),
]
