"""
Reachability Simulator - Forward symbolic simulation of a rule-set.

Proves that success is reachable by constructing one witness path: for
each success rule (in rule-set order) it works out how often each
counter-mutating rule must fire, replays those rules on a private copy of
the state, and checks the success conditions hold at the end. An OR
trigger needs only one of its conditions, so each is tried on its own
path. A counter "set" counts as a one-shot mutator. The first
success rule with a constructible path wins; this is a single best-path
search, not an exhaustive exploration of the state space.

Usage:
    report = ReachabilitySimulator(config).simulate(ruleset)
    if not report.reachable:
        print(report.success.blockers)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from collections import defaultdict
import logging
import math
from typing import Any

from ..config import EngineConfig
from ..script_schema.ruleset import RESERVED_TARGETS, Rule, RuleSet
from ..script_schema.signatures import rule_signature
from ..validation.semantics import DEFAULT_COMPARISON, INSTANT_WIN_COMPARATORS
from .reducer import apply_rule, counter_delta
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
    Summary,
)
from .state import Outcome, SimulationState

logger = logging.getLogger(__name__)

MAX_COMMON_FAILURE_PATHS = 3
MEDIUM_CONFIDENCE_TAPS = 20
MEDIUM_CONFIDENCE_ISSUES = 2
STAGE_TARGETS = frozenset({"stage", "stageArea"})


class _Blocked(Exception):
    """Raised inside path construction when a success rule cannot be reached."""

    def __init__(self, blocker: str):
        self.blocker = blocker
        super().__init__(blocker)


@dataclass
class _PathBuilder:
    """Accumulates steps while replaying rules for one success rule."""
    state: SimulationState
    seconds_per_tap: float
    steps: list[SimulationStep] = field(default_factory=list)
    taps: int = 0
    wait: float = 0.0

    def interact(self, kind: str, target: str | None, result: str) -> None:
        self.steps.append(SimulationStep(action=kind, target=target, result=result))
        self.taps += 1

    def wait_for(self, seconds: float, result: str) -> None:
        self.steps.append(SimulationStep(action="wait", duration=seconds, result=result))
        self.wait = max(self.wait, seconds)

    @property
    def estimated_time(self) -> float:
        return max(self.taps * self.seconds_per_tap, self.wait)


class ReachabilitySimulator:
    """
    Simulates a rule-set without running the game.

    Stateless across calls; the RuleSet passed in is never modified.
    config defaults to EngineConfig.from_env().
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig.from_env()

    def simulate(self, ruleset: RuleSet) -> ReachabilityReport:
        issues: list[SimulationIssue] = []
        initial = SimulationState.initial(ruleset)

        success = self._find_success_path(ruleset, initial, issues)
        failure = self._find_failure_paths(ruleset)
        conflicts = self._detect_conflicts(ruleset)

        error_count = sum(1 for i in issues if i.severity == IssueSeverity.ERROR)
        summary = Summary(
            playable=success.reachable and error_count == 0,
            confidence=self._confidence(success, issues),
            reasoning=self._reasoning(success, conflicts, issues),
        )
        report = ReachabilityReport(success, failure, conflicts, issues, summary)

        logger.info(
            "Simulation completed: playable=%s confidence=%s reachable=%s taps=%d issues=%d conflicts=%d",
            summary.playable, summary.confidence.value, success.reachable,
            success.required_taps, len(issues), len(conflicts),
        )
        return report

    # ------------------------------------------------------------------
    # Success path
    # ------------------------------------------------------------------

    def _find_success_path(
        self, ruleset: RuleSet, initial: SimulationState, issues: list[SimulationIssue]
    ) -> SuccessReport:
        success_rules = [r for r in ruleset.rules if r.has_action("success")]
        if not success_rules:
            issues.append(SimulationIssue(
                "NO_SUCCESS_RULE", "No success rule found", IssueSeverity.ERROR,
            ))
            return SuccessReport.blocked("No success rule defined")

        attempt_blockers = []
        for rule in success_rules:
            try:
                report = self._simulate_to_success(ruleset, initial, rule)
            except _Blocked as blocked:
                attempt_blockers.append(blocked.blocker)
                continue
            if report.estimated_seconds > self.config.game_time_limit:
                issues.append(SimulationIssue(
                    "SUCCESS_AFTER_TIMEOUT",
                    f"Success path needs ~{report.estimated_seconds:.1f}s but the game "
                    f"ends after {self.config.game_time_limit:g}s",
                    IssueSeverity.WARNING,
                ))
            return report

        blockers = _identify_blockers(ruleset, success_rules, initial)
        for blocker in attempt_blockers:
            if blocker not in blockers:
                blockers.append(blocker)
        return SuccessReport(reachable=False, blockers=blockers)

    def _simulate_to_success(
        self, ruleset: RuleSet, initial: SimulationState, success_rule: Rule
    ) -> SuccessReport:
        """
        Build a witness path to one success rule; raises _Blocked if none.

        AND drives every condition on one path. OR tries each condition as
        its own witness and keeps the first one that can be built.
        """
        conditions = success_rule.conditions
        if success_rule.operator != "OR" or len(conditions) < 2:
            return self._witness(ruleset, initial, success_rule, conditions)

        blockers = []
        for condition in conditions:
            try:
                return self._witness(ruleset, initial, success_rule, [condition])
            except _Blocked as blocked:
                blockers.append(blocked.blocker)
        raise _Blocked("; ".join(blockers))

    def _witness(
        self,
        ruleset: RuleSet,
        initial: SimulationState,
        success_rule: Rule,
        conditions: list[Any],
    ) -> SuccessReport:
        """Drive all of conditions from the initial state, then re-check them."""
        builder = _PathBuilder(initial.clone(), self.config.seconds_per_tap)

        for condition in conditions:
            ctype = condition.type
            if ctype == "counter" and condition.counter_name:
                self._drive_counter(ruleset, builder, condition)
            elif ctype == "flag" and condition.flag_id:
                self._drive_flag(ruleset, builder, condition)
            elif ctype == "touch":
                target = success_rule.resolve_target(condition.target)
                if builder.state.is_hidden(target):
                    raise _Blocked(f'Touch target "{target}" is hidden before success')
                builder.interact("tap", target or "stage", f'Rule "{success_rule.id}" fires')
            elif ctype == "time":
                seconds = condition.seconds if condition.seconds is not None else condition.interval
                builder.wait_for(seconds or 0.0, "Time condition met")
            if builder.state.outcome == Outcome.SUCCESS:
                break

        for condition in conditions:
            if condition.type == "counter" and condition.counter_name:
                if not _holds(builder.state, condition):
                    value = builder.state.counter(condition.counter_name)
                    raise _Blocked(
                        f'Counter "{condition.counter_name}" ends at {value}, which does not satisfy '
                        f"{condition.comparison or DEFAULT_COMPARISON} {_target_value(condition)}"
                    )

        estimated = builder.estimated_time
        return SuccessReport(
            reachable=True,
            path=SimulationPath(builder.steps, builder.taps, estimated),
            required_taps=builder.taps,
            estimated_seconds=estimated,
        )

    def _drive_counter(self, ruleset: RuleSet, builder: _PathBuilder, condition: Any) -> None:
        """Replay the counter's mutating rule until the condition can hold."""
        name = condition.counter_name
        target_value = _target_value(condition)
        comparison = condition.comparison or DEFAULT_COMPARISON
        current = builder.state.counter(name)

        if comparison == "equals":
            gap = target_value - current
        elif comparison == "greaterOrEqual":
            gap = max(0, target_value - current)
        elif comparison == "greater":
            gap = max(0, target_value + 1 - current)
        elif comparison == "lessOrEqual":
            gap = min(0, target_value - current)
        elif comparison == "less":
            gap = min(0, target_value - 1 - current)
        else:
            raise _Blocked(f'Counter "{name}" uses unsupported comparison "{comparison}"')
        if gap == 0:
            return

        increasing = gap > 0
        mutator, per_fire = _find_mutator(ruleset, name, increasing)
        if mutator is not None:
            fires = math.ceil(abs(gap) / abs(per_fire))
            result = f"Counter {name} {per_fire:+g}"
        else:
            mutator, value = _find_setter(ruleset, condition)
            if mutator is None:
                direction = "increase" if increasing else "decrease"
                raise _Blocked(f'No rule to {direction} counter "{name}"')
            fires = 1
            result = f"Counter {name} set to {value:g}"

        tap_target = _find_tap_target(mutator)
        if tap_target is None:
            raise _Blocked(f'Cannot determine tap target for changing counter "{name}"')

        kind = _interaction_kind(mutator)
        for _ in range(fires):
            if builder.state.is_hidden(tap_target):
                raise _Blocked(
                    f'Target "{tap_target}" becomes hidden before counter "{name}" reaches {target_value}'
                )
            builder.interact(kind, tap_target, result)
            builder.state = apply_rule(builder.state, mutator)
            if builder.state.outcome == Outcome.FAILURE:
                raise _Blocked(f'Rule "{mutator.id}" ends the game in failure on the way to success')
            if builder.state.outcome == Outcome.SUCCESS:
                return

    def _drive_flag(self, ruleset: RuleSet, builder: _PathBuilder, condition: Any) -> None:
        """Fire one flag writer if the flag is not already in the wanted state."""
        flag_id = condition.flag_id
        wanted = (condition.flag_state or "ON") in ("ON", "OFF_TO_ON")
        if builder.state.flags.get(flag_id, False) == wanted:
            return
        for rule in ruleset.rules:
            after = apply_rule(builder.state, rule)
            if after.flags.get(flag_id, False) != wanted:
                continue
            if after.outcome == Outcome.FAILURE:
                continue
            target = _find_tap_target(rule)
            if target is None:
                continue
            if builder.state.is_hidden(target):
                raise _Blocked(f'Target "{target}" is hidden before flag "{flag_id}" can be set')
            builder.interact(_interaction_kind(rule), target, f"Flag {flag_id} {'ON' if wanted else 'OFF'}")
            builder.state = after
            return
        raise _Blocked(f'No player-triggered rule sets flag "{flag_id}"')

    # ------------------------------------------------------------------
    # Failure paths
    # ------------------------------------------------------------------

    def _find_failure_paths(self, ruleset: RuleSet) -> FailureReport:
        limit = self.config.game_time_limit
        paths = [SimulationPath(
            steps=[SimulationStep(action="wait", duration=limit, result="Timeout")],
            total_taps=0,
            estimated_time=limit,
        )]
        risks = ["Game timeout"]

        for rule in ruleset.rules:
            if not rule.has_action("failure"):
                continue
            for condition in rule.conditions:
                ctype = condition.type
                if ctype == "touch":
                    target = rule.resolve_target(condition.target) or "unknown"
                    risks.append(f"Tapping wrong object: {target}")
                    paths.append(SimulationPath(
                        steps=[SimulationStep(action="tap", target=target, result="Failure triggered")],
                        total_taps=1,
                        estimated_time=self.config.seconds_per_tap,
                    ))
                elif ctype == "counter":
                    risks.append(f"Counter {condition.counter_name} reaching {condition.value}")
                elif ctype == "collision":
                    risks.append(f"Collision with {rule.resolve_target(condition.target)}")

        # timeout is always reachable
        return FailureReport(
            reachable=True,
            common_paths=paths[:MAX_COMMON_FAILURE_PATHS],
            risks=risks,
        )

    # ------------------------------------------------------------------
    # Conflicts
    # ------------------------------------------------------------------

    def _detect_conflicts(self, ruleset: RuleSet) -> list[ConflictReport]:
        conflicts = []
        rules = ruleset.rules

        for i, first in enumerate(rules):
            signature = rule_signature(first)
            if not signature:
                continue
            for second in rules[i + 1:]:
                if rule_signature(second) != signature:
                    continue
                opposite = (
                    (first.has_action("success") and second.has_action("failure"))
                    or (first.has_action("failure") and second.has_action("success"))
                )
                if opposite:
                    conflicts.append(ConflictReport(
                        ConflictType.SIMULTANEOUS_TERMINATION,
                        "Success and failure can trigger with the same condition",
                        [first.id, second.id],
                        IssueSeverity.ERROR,
                    ))

        shown = {
            rule.action_target(a)
            for rule in rules for a in rule.iter_actions() if a.type == "show"
        }
        for rule in rules:
            for action in rule.iter_actions(nested=False):
                if action.type != "hide":
                    continue
                target = rule.action_target(action)
                if not target or target in shown:
                    continue
                dependents = [
                    other.id for other in rules
                    if other is not rule and _depends_on(other, target)
                ]
                if dependents:
                    conflicts.append(ConflictReport(
                        ConflictType.HIDDEN_TARGET,
                        f'Object "{target}" is hidden for good but other rules depend on it',
                        [rule.id, *dependents],
                        IssueSeverity.WARNING,
                    ))
        return conflicts

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    @staticmethod
    def _confidence(success: SuccessReport, issues: list[SimulationIssue]) -> Confidence:
        errors = sum(1 for i in issues if i.severity == IssueSeverity.ERROR)
        if not success.reachable or errors > 0:
            return Confidence.LOW
        if success.required_taps > MEDIUM_CONFIDENCE_TAPS or len(issues) > MEDIUM_CONFIDENCE_ISSUES:
            return Confidence.MEDIUM
        return Confidence.HIGH

    @staticmethod
    def _reasoning(
        success: SuccessReport,
        conflicts: list[ConflictReport],
        issues: list[SimulationIssue],
    ) -> str:
        parts = []
        if success.reachable:
            parts.append(
                f"Success reachable in {success.required_taps} taps (~{success.estimated_seconds:.1f}s)"
            )
        else:
            parts.append(f"Success NOT reachable: {', '.join(success.blockers)}")
        if conflicts:
            parts.append(f"{len(conflicts)} potential conflicts detected")
        if issues:
            errors = sum(1 for i in issues if i.severity == IssueSeverity.ERROR)
            parts.append(f"Issues: {errors} errors, {len(issues) - errors} warnings")
        return ". ".join(parts)


def simulate(ruleset: RuleSet, config: EngineConfig | None = None) -> ReachabilityReport:
    """Convenience wrapper around ReachabilitySimulator."""
    return ReachabilitySimulator(config).simulate(ruleset)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _target_value(condition: Any) -> float:
    return condition.value if condition.value is not None else 0


def _holds(state: SimulationState, condition: Any) -> bool:
    compare = INSTANT_WIN_COMPARATORS.get(condition.comparison or DEFAULT_COMPARISON)
    if compare is None:
        return False
    return compare(state.counter(condition.counter_name), _target_value(condition))


def _net_delta(rule: Rule, counter_name: str) -> float:
    total = 0
    for action in rule.iter_actions(nested=False):
        if action.type == "counter" and action.counter_name == counter_name:
            delta = counter_delta(action)
            if delta is not None:
                total += delta
    return total


def _find_mutator(ruleset: RuleSet, counter_name: str, increasing: bool) -> tuple[Rule | None, float]:
    """First rule moving the counter in the wanted direction, with its per-fire change."""
    for rule in ruleset.rules:
        delta = _net_delta(rule, counter_name)
        if (increasing and delta > 0) or (not increasing and delta < 0):
            return rule, delta
    return None, 0


def _find_setter(ruleset: RuleSet, condition: Any) -> tuple[Rule | None, float]:
    """First rule whose counter "set" lands on a value the condition accepts."""
    compare = INSTANT_WIN_COMPARATORS.get(condition.comparison or DEFAULT_COMPARISON)
    if compare is None:
        return None, 0
    target_value = _target_value(condition)
    for rule in ruleset.rules:
        for action in rule.iter_actions(nested=False):
            if (
                action.type == "counter"
                and action.counter_name == condition.counter_name
                and action.operation == "set"
            ):
                value = action.value if action.value is not None else 0
                if compare(value, target_value):
                    return rule, value
    return None, 0


def _find_tap_target(rule: Rule) -> str | None:
    """The object a player interacts with to fire rule; "stage" for tap-anywhere."""
    if rule.target_object_id:
        return rule.target_object_id
    stage = None
    for condition in rule.conditions:
        if condition.type in ("touch", "collision", "position"):
            target = condition.target
            if target and target not in RESERVED_TARGETS:
                return target
            if condition.type == "touch" and target in STAGE_TARGETS:
                stage = "stage"
    return stage


def _interaction_kind(rule: Rule) -> str:
    types = rule.condition_types()
    if "touch" not in types and types & {"collision", "position"}:
        return "drag"
    return "tap"


def _depends_on(rule: Rule, object_id: str) -> bool:
    if rule.target_object_id == object_id:
        return True
    return any(
        getattr(c, "target", None) == object_id for c in rule.conditions
    )


def _identify_blockers(
    ruleset: RuleSet, success_rules: list[Rule], initial: SimulationState
) -> list[str]:
    """Missing ingredients per success rule, independent of any replay."""
    writers: dict[str, list[Rule]] = defaultdict(list)
    for rule in ruleset.rules:
        for action in rule.iter_actions():
            if action.type == "counter" and action.counter_name:
                writers[action.counter_name].append(rule)

    blockers: list[str] = []
    for rule in success_rules:
        for condition in rule.conditions:
            if condition.type == "counter" and condition.counter_name:
                name = condition.counter_name
                if not writers.get(name):
                    _add(blockers, f'Counter "{name}" has no modifying rule')
                initial_value = initial.counter(name)
                target_value = _target_value(condition)
                if condition.comparison in ("less", "lessOrEqual") and initial_value > target_value:
                    if (
                        _find_mutator(ruleset, name, increasing=False)[0] is None
                        and _find_setter(ruleset, condition)[0] is None
                    ):
                        _add(blockers, f'Counter "{name}" starts too high ({initial_value} > {target_value})')
            elif condition.type == "touch":
                target = rule.resolve_target(condition.target)
                if target and target not in RESERVED_TARGETS and target not in initial.visible:
                    _add(blockers, f'Touch target "{target}" is not visible')
    return blockers


def _add(items: list[str], item: str) -> None:
    if item not in items:
        items.append(item)
