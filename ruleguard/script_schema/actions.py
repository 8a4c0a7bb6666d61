"""
Rule actions - one model per action type.

Like conditions, actions are a discriminated union on `type`, with an
UnknownAction fallback carrying the raw fields of unmodelled types.
"""

from __future__ import annotations
from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Discriminator, Field, Tag

from .base import Number, Point, WireModel


# ---------------------------------------------------------------------------
# Terminal outcomes
# ---------------------------------------------------------------------------

class SuccessAction(WireModel):
    type: Literal["success"] = "success"
    score: Number | None = None
    message: str | None = None


class FailureAction(WireModel):
    type: Literal["failure"] = "failure"
    score: Number | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Object visibility and motion
# ---------------------------------------------------------------------------

class HideAction(WireModel):
    type: Literal["hide"] = "hide"
    target_id: str | None = None
    fade_out: bool | None = None
    duration: float | None = None


class ShowAction(WireModel):
    type: Literal["show"] = "show"
    target_id: str | None = None
    fade_in: bool | None = None
    duration: float | None = None


class Movement(WireModel):
    """
    Movement parameters.

    `target` is either a stage point or the id of an object to move towards.
    """
    type: str | None = None
    target: Union[Point, str, None] = None
    speed: float | None = None
    duration: float | None = None
    direction: str | None = None


class MoveAction(WireModel):
    type: Literal["move"] = "move"
    target_id: str | None = None
    movement: Movement | None = None


class FollowDragAction(WireModel):
    """The target object tracks the player's finger while dragging."""
    type: Literal["followDrag"] = "followDrag"
    target_id: str | None = None
    constraint: str | None = None
    smooth: bool | None = None


class Vector(WireModel):
    x: float
    y: float


class ApplyForceAction(WireModel):
    type: Literal["applyForce"] = "applyForce"
    target_id: str | None = None
    force: Vector | None = None


class ApplyImpulseAction(WireModel):
    type: Literal["applyImpulse"] = "applyImpulse"
    target_id: str | None = None
    impulse: Vector | None = None


class SetGravityAction(WireModel):
    type: Literal["setGravity"] = "setGravity"
    target_id: str | None = None
    gravity: float | None = None


class SetPhysicsAction(WireModel):
    type: Literal["setPhysics"] = "setPhysics"
    target_id: str | None = None
    physics: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Counters, score and flags
# ---------------------------------------------------------------------------

class CounterAction(WireModel):
    """Mutates a counter: increment, decrement, add, subtract or set."""
    type: Literal["counter"] = "counter"
    counter_name: str | None = None
    operation: str | None = None
    value: Number | None = None


class AddScoreAction(WireModel):
    type: Literal["addScore"] = "addScore"
    points: Number | None = None


class SetFlagAction(WireModel):
    type: Literal["setFlag"] = "setFlag"
    flag_id: str | None = None
    value: bool | None = None


class ToggleFlagAction(WireModel):
    type: Literal["toggleFlag"] = "toggleFlag"
    flag_id: str | None = None


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

class EffectSpec(WireModel):
    type: str | None = None
    duration: float | None = None
    intensity: float | None = None
    scale_amount: float | None = None


class EffectAction(WireModel):
    type: Literal["effect"] = "effect"
    target_id: str | None = None
    effect: EffectSpec | None = None


class PlaySoundAction(WireModel):
    type: Literal["playSound"] = "playSound"
    sound_id: str | None = None
    volume: float | None = None


class StopSoundAction(WireModel):
    type: Literal["stopSound"] = "stopSound"
    sound_id: str | None = None


class PlayBGMAction(WireModel):
    type: Literal["playBGM"] = "playBGM"
    volume: float | None = None


class StopBGMAction(WireModel):
    type: Literal["stopBGM"] = "stopBGM"


class SwitchAnimationAction(WireModel):
    type: Literal["switchAnimation"] = "switchAnimation"
    target_id: str | None = None
    animation_index: int | None = None
    start_frame: int | None = None
    auto_play: bool | None = None
    loop: bool | None = None
    speed: float | None = None
    reverse: bool | None = None


class PlayAnimationAction(WireModel):
    type: Literal["playAnimation"] = "playAnimation"
    target_id: str | None = None
    play: bool | None = None


class SetAnimationSpeedAction(WireModel):
    type: Literal["setAnimationSpeed"] = "setAnimationSpeed"
    target_id: str | None = None
    speed: float | None = None


class SetAnimationFrameAction(WireModel):
    type: Literal["setAnimationFrame"] = "setAnimationFrame"
    target_id: str | None = None
    frame: int | None = None


class ShowMessageAction(WireModel):
    type: Literal["showMessage"] = "showMessage"
    message: str | None = None
    duration: float | None = None


class PauseAction(WireModel):
    type: Literal["pause"] = "pause"
    duration: float | None = None


class RestartAction(WireModel):
    type: Literal["restart"] = "restart"


# ---------------------------------------------------------------------------
# Composite
# ---------------------------------------------------------------------------

class RandomActionOption(WireModel):
    action: Action
    weight: float | None = None
    probability: float | None = None


class RandomAction(WireModel):
    """Fires one of several nested actions chosen at random."""
    type: Literal["randomAction"] = "randomAction"
    actions: list[RandomActionOption] = Field(default_factory=list)
    selection_mode: str | None = None
    weights: list[float] | None = None


class UnknownAction(WireModel):
    """Any action whose type the engine does not model; raw fields are kept."""
    model_config = ConfigDict(extra="allow")
    type: Any = None


ACTION_MODELS: dict[str, type[WireModel]] = {
    "success": SuccessAction,
    "failure": FailureAction,
    "hide": HideAction,
    "show": ShowAction,
    "move": MoveAction,
    "followDrag": FollowDragAction,
    "applyForce": ApplyForceAction,
    "applyImpulse": ApplyImpulseAction,
    "setGravity": SetGravityAction,
    "setPhysics": SetPhysicsAction,
    "counter": CounterAction,
    "addScore": AddScoreAction,
    "setFlag": SetFlagAction,
    "toggleFlag": ToggleFlagAction,
    "effect": EffectAction,
    "playSound": PlaySoundAction,
    "stopSound": StopSoundAction,
    "playBGM": PlayBGMAction,
    "stopBGM": StopBGMAction,
    "switchAnimation": SwitchAnimationAction,
    "playAnimation": PlayAnimationAction,
    "setAnimationSpeed": SetAnimationSpeedAction,
    "setAnimationFrame": SetAnimationFrameAction,
    "showMessage": ShowMessageAction,
    "pause": PauseAction,
    "restart": RestartAction,
    "randomAction": RandomAction,
}

# Action kinds that operate on an object and fall back to the rule's target
TARGETED_ACTION_TYPES = frozenset({
    "hide", "show", "move", "followDrag", "applyForce", "applyImpulse",
    "effect", "switchAnimation", "playAnimation",
})

COUNTER_INCREASE_OPERATIONS = frozenset({"increment", "add"})
COUNTER_DECREASE_OPERATIONS = frozenset({"decrement", "subtract"})


def _action_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if isinstance(tag, str) and tag in ACTION_MODELS:
        return tag
    return "unknown"


Action = Annotated[
    Union[
        Annotated[SuccessAction, Tag("success")],
        Annotated[FailureAction, Tag("failure")],
        Annotated[HideAction, Tag("hide")],
        Annotated[ShowAction, Tag("show")],
        Annotated[MoveAction, Tag("move")],
        Annotated[FollowDragAction, Tag("followDrag")],
        Annotated[ApplyForceAction, Tag("applyForce")],
        Annotated[ApplyImpulseAction, Tag("applyImpulse")],
        Annotated[SetGravityAction, Tag("setGravity")],
        Annotated[SetPhysicsAction, Tag("setPhysics")],
        Annotated[CounterAction, Tag("counter")],
        Annotated[AddScoreAction, Tag("addScore")],
        Annotated[SetFlagAction, Tag("setFlag")],
        Annotated[ToggleFlagAction, Tag("toggleFlag")],
        Annotated[EffectAction, Tag("effect")],
        Annotated[PlaySoundAction, Tag("playSound")],
        Annotated[StopSoundAction, Tag("stopSound")],
        Annotated[PlayBGMAction, Tag("playBGM")],
        Annotated[StopBGMAction, Tag("stopBGM")],
        Annotated[SwitchAnimationAction, Tag("switchAnimation")],
        Annotated[PlayAnimationAction, Tag("playAnimation")],
        Annotated[SetAnimationSpeedAction, Tag("setAnimationSpeed")],
        Annotated[SetAnimationFrameAction, Tag("setAnimationFrame")],
        Annotated[ShowMessageAction, Tag("showMessage")],
        Annotated[PauseAction, Tag("pause")],
        Annotated[RestartAction, Tag("restart")],
        Annotated[RandomAction, Tag("randomAction")],
        Annotated[UnknownAction, Tag("unknown")],
    ],
    Discriminator(_action_tag),
]

RandomActionOption.model_rebuild()
RandomAction.model_rebuild()
