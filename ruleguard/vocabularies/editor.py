"""
Editor capability profiles.

Each factory returns the Vocabulary of one deployment of the game editor
runtime. Callers choose a profile explicitly (or load their own table
with load_vocabulary) and pass it to the feature validator.
"""

from ..script_schema.vocabulary import Vocabulary


_SHARED_ENUMERATIONS: dict[str, frozenset[str]] = {
    "trigger.operator": frozenset({"AND", "OR"}),
    "condition.touch.touchType": frozenset({"down", "up", "hold", "drag", "swipe", "flick"}),
    "condition.time.timeType": frozenset({"exact", "range", "interval"}),
    "condition.counter.comparison": frozenset({
        "equals", "greaterOrEqual", "greater", "less", "lessOrEqual",
    }),
    "condition.collision.collisionType": frozenset({"enter", "stay", "exit"}),
    "condition.collision.checkMode": frozenset({"hitbox", "pixel"}),
    "condition.flag.flagState": frozenset({"ON", "OFF", "OFF_TO_ON", "ON_TO_OFF"}),
    "condition.gameState.state": frozenset({"playing", "success", "failure", "paused"}),
    "condition.position.area": frozenset({"inside", "outside", "crossing"}),
    "condition.animation.condition": frozenset({
        "playing", "stopped", "frame", "frameRange", "loop", "start", "end",
    }),
    "condition.objectState.state": frozenset({"visible", "hidden"}),
    "action.move.movement.type": frozenset({
        "straight", "teleport", "wander", "stop", "swap", "approach",
        "orbit", "bounce", "followDrag",
    }),
    "action.move.movement.direction": frozenset({"up", "down", "left", "right"}),
    "action.counter.operation": frozenset({"increment", "decrement", "set", "add", "subtract"}),
    "action.effect.effect.type": frozenset({"flash", "shake", "scale", "rotate", "particles"}),
    "action.randomAction.selectionMode": frozenset({"uniform", "probability", "weighted"}),
}


def create_editor_vocabulary() -> Vocabulary:
    """
    Full editor feature set.

    Every condition and action the editor runtime implements.
    """
    return Vocabulary(
        version="editor-2",
        condition_types=frozenset({
            "touch", "time", "counter", "collision", "flag", "gameState",
            "position", "animation", "random", "objectState",
        }),
        action_types=frozenset({
            "success", "failure", "hide", "show", "move", "counter", "addScore",
            "effect", "setFlag", "toggleFlag", "playSound", "stopSound",
            "playBGM", "stopBGM", "switchAnimation", "playAnimation",
            "setAnimationSpeed", "setAnimationFrame", "followDrag",
            "applyForce", "applyImpulse", "setGravity", "setPhysics",
            "randomAction", "showMessage", "pause", "restart",
        }),
        enumerations=dict(_SHARED_ENUMERATIONS),
    )


def create_verified_vocabulary() -> Vocabulary:
    """
    Conservative feature set: only types verified end-to-end on device.

    Position, animation and random conditions and the physics / animation /
    sound actions are excluded.
    """
    return Vocabulary(
        version="verified-1",
        condition_types=frozenset({
            "touch", "time", "counter", "collision", "flag", "gameState",
        }),
        action_types=frozenset({
            "success", "failure", "hide", "show", "move", "counter",
            "addScore", "effect", "setFlag", "toggleFlag",
        }),
        enumerations=dict(_SHARED_ENUMERATIONS),
    )
