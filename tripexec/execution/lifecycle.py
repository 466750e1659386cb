"""Activity lifecycle state machine.

Every function here is pure: it takes an ``ActivityExecution`` plus the moment
of the change and returns a new record (or ``None`` when the trigger does not
apply). Callers own the records and swap them in.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from tripexec.domain.clock import elapsed_minutes
from tripexec.domain.constants import PENDING_THRESHOLD_MINUTES
from tripexec.domain.enums import ActivityState, CompletionType, TriggerKind
from tripexec.domain.models import ActivityExecution, DeferTarget
from tripexec.execution.triggers import (
    CheckOut,
    Defer,
    EndTimePassed,
    Extend,
    ExternalTrigger,
    Shorten,
    Skip,
    StartTimePassed,
    SystemReshuffle,
    TimeThreshold,
    Trigger,
)

S = ActivityState
T = TriggerKind

TRANSITIONS: dict[tuple[ActivityState, TriggerKind], ActivityState] = {
    (S.UPCOMING, T.TIME_THRESHOLD): S.PENDING,
    (S.UPCOMING, T.USER_CHECK_IN): S.IN_PROGRESS,
    (S.UPCOMING, T.LOCATION_DETECTED): S.ARRIVED,
    (S.UPCOMING, T.USER_SKIP): S.SKIPPED,
    (S.UPCOMING, T.USER_DEFER): S.DEFERRED,
    (S.UPCOMING, T.EXTERNAL_TRIGGER): S.SKIPPED,
    (S.UPCOMING, T.SYSTEM_RESHUFFLE): S.REPLACED,
    (S.PENDING, T.USER_DEPART): S.EN_ROUTE,
    (S.PENDING, T.START_TIME_PASSED): S.IN_PROGRESS,
    (S.PENDING, T.USER_CHECK_IN): S.IN_PROGRESS,
    (S.PENDING, T.LOCATION_DETECTED): S.ARRIVED,
    (S.PENDING, T.USER_SKIP): S.SKIPPED,
    (S.PENDING, T.USER_DEFER): S.DEFERRED,
    (S.PENDING, T.EXTERNAL_TRIGGER): S.SKIPPED,
    (S.PENDING, T.SYSTEM_RESHUFFLE): S.REPLACED,
    (S.EN_ROUTE, T.LOCATION_DETECTED): S.ARRIVED,
    (S.EN_ROUTE, T.START_TIME_PASSED): S.IN_PROGRESS,
    (S.EN_ROUTE, T.USER_CHECK_IN): S.IN_PROGRESS,
    (S.EN_ROUTE, T.USER_SKIP): S.SKIPPED,
    (S.EN_ROUTE, T.USER_DEFER): S.DEFERRED,
    (S.EN_ROUTE, T.EXTERNAL_TRIGGER): S.SKIPPED,
    (S.ARRIVED, T.USER_CHECK_IN): S.IN_PROGRESS,
    (S.ARRIVED, T.START_TIME_PASSED): S.IN_PROGRESS,
    (S.ARRIVED, T.USER_SKIP): S.SKIPPED,
    (S.ARRIVED, T.EXTERNAL_TRIGGER): S.SKIPPED,
    (S.IN_PROGRESS, T.USER_CHECK_OUT): S.COMPLETED,
    (S.IN_PROGRESS, T.USER_SHORTEN): S.COMPLETED,
    (S.IN_PROGRESS, T.USER_EXTEND): S.EXTENDED,
    (S.IN_PROGRESS, T.END_TIME_PASSED): S.EXTENDED,
    (S.IN_PROGRESS, T.EXTERNAL_TRIGGER): S.COMPLETED,
    (S.EXTENDED, T.USER_CHECK_OUT): S.COMPLETED,
    (S.EXTENDED, T.USER_SHORTEN): S.COMPLETED,
    (S.EXTENDED, T.USER_EXTEND): S.EXTENDED,
    (S.EXTENDED, T.END_TIME_PASSED): S.COMPLETED,
    (S.EXTENDED, T.EXTERNAL_TRIGGER): S.COMPLETED,
}

TERMINAL_STATES = frozenset({S.COMPLETED, S.SKIPPED, S.DEFERRED, S.REPLACED})
ACTIVE_STATES = frozenset({S.IN_PROGRESS, S.EXTENDED})
NOT_STARTED_STATES = frozenset({S.UPCOMING, S.PENDING, S.EN_ROUTE, S.ARRIVED})

STATE_LABELS = {
    S.UPCOMING: "Upcoming",
    S.PENDING: "Starting soon",
    S.EN_ROUTE: "On the way",
    S.ARRIVED: "Arrived",
    S.IN_PROGRESS: "In progress",
    S.EXTENDED: "Extended",
    S.COMPLETED: "Completed",
    S.SKIPPED: "Skipped",
    S.DEFERRED: "Deferred",
    S.REPLACED: "Replaced",
}


def is_terminal(state: ActivityState) -> bool:
    return state in TERMINAL_STATES


def is_active(state: ActivityState) -> bool:
    return state in ACTIVE_STATES


def next_state(state: ActivityState, kind: TriggerKind) -> Optional[ActivityState]:
    return TRANSITIONS.get((state, kind))


def available_triggers(state: ActivityState) -> list[TriggerKind]:
    return [kind for (source, kind) in TRANSITIONS if source == state]


def possible_next_states(state: ActivityState) -> list[ActivityState]:
    seen: list[ActivityState] = []
    for (source, _), target in TRANSITIONS.items():
        if source == state and target not in seen:
            seen.append(target)
    return seen


def transition_activity(
    execution: ActivityExecution,
    trigger: Trigger,
    *,
    at: dt.datetime,
) -> Optional[ActivityExecution]:
    """Apply ``trigger`` to ``execution``; ``None`` when the pair is not in the table."""
    target = next_state(execution.state, trigger.kind)
    if target is None:
        return None

    updates: dict[str, Any] = {"state": target}

    if target == S.EN_ROUTE:
        updates["departed_at"] = at
    elif target == S.ARRIVED:
        updates["arrived_at"] = at
    elif target in ACTIVE_STATES and execution.actual_start is None:
        updates["actual_start"] = at

    if target == S.EXTENDED:
        if isinstance(trigger, Extend):
            added = max(0, trigger.minutes)
        elif isinstance(trigger, EndTimePassed):
            added = max(0, trigger.overrun_minutes)
        else:
            added = 0
        updates["extended_by"] = execution.extended_by + added
    elif target == S.COMPLETED:
        updates["actual_end"] = at
        updates["completion_type"] = _completion_type(trigger)
        if isinstance(trigger, CheckOut):
            updates["rating"] = trigger.rating
            updates["notes"] = trigger.notes
        elif isinstance(trigger, Shorten):
            updates["shortened_by"] = execution.shortened_by + max(0, trigger.minutes)
        elif isinstance(trigger, ExternalTrigger) and trigger.reason:
            updates["notes"] = trigger.reason
    elif target == S.SKIPPED:
        if isinstance(trigger, Skip):
            updates["skip_reason"] = trigger.reason
        elif isinstance(trigger, ExternalTrigger):
            updates["skip_reason"] = trigger.reason or None
    elif target == S.DEFERRED and isinstance(trigger, Defer):
        updates["deferred_to"] = DeferTarget(day_number=trigger.day_number, slot_id=trigger.slot_id)
    elif target == S.REPLACED and isinstance(trigger, SystemReshuffle):
        updates["replaced_with"] = trigger.replaced_with

    return execution.model_copy(update=updates)


def _completion_type(trigger: Trigger) -> CompletionType:
    if isinstance(trigger, Shorten):
        return CompletionType.EARLY
    if isinstance(trigger, (EndTimePassed, ExternalTrigger)):
        return CompletionType.AUTO
    return CompletionType.NATURAL


def effective_end(execution: ActivityExecution) -> dt.datetime:
    return execution.scheduled_end + dt.timedelta(minutes=execution.extended_by)


def should_auto_transition(
    execution: ActivityExecution,
    now: dt.datetime,
    pending_threshold_minutes: int = PENDING_THRESHOLD_MINUTES,
) -> Optional[Trigger]:
    """Return the time-driven trigger due at ``now``, if any."""
    state = execution.state
    if state == S.UPCOMING:
        if now >= execution.scheduled_start - dt.timedelta(minutes=pending_threshold_minutes):
            return TimeThreshold()
        return None
    if state in (S.PENDING, S.EN_ROUTE, S.ARRIVED):
        return StartTimePassed() if now >= execution.scheduled_start else None
    if state in ACTIVE_STATES:
        return EndTimePassed() if now >= effective_end(execution) else None
    return None


def reschedule_activity(
    execution: ActivityExecution,
    start: dt.datetime,
    end: dt.datetime,
) -> ActivityExecution:
    return execution.model_copy(update={"scheduled_start": start, "scheduled_end": end})


def elapsed_time(execution: ActivityExecution, now: dt.datetime) -> int:
    if execution.actual_start is None:
        return 0
    return max(0, elapsed_minutes(execution.actual_start, execution.actual_end or now))


def remaining_time(execution: ActivityExecution, now: dt.datetime) -> int:
    if is_terminal(execution.state):
        return 0
    return max(0, elapsed_minutes(now, effective_end(execution)))


def scheduled_duration(execution: ActivityExecution) -> int:
    return elapsed_minutes(execution.scheduled_start, execution.scheduled_end)


def actual_duration(execution: ActivityExecution) -> Optional[int]:
    if execution.actual_start is None or execution.actual_end is None:
        return None
    return elapsed_minutes(execution.actual_start, execution.actual_end)


def is_running_over(execution: ActivityExecution, now: dt.datetime) -> bool:
    return is_active(execution.state) and now > execution.scheduled_end


def state_label(state: ActivityState) -> str:
    return STATE_LABELS.get(state, state.value)


__all__ = [
    "ACTIVE_STATES",
    "NOT_STARTED_STATES",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "actual_duration",
    "available_triggers",
    "effective_end",
    "elapsed_time",
    "is_active",
    "is_running_over",
    "is_terminal",
    "next_state",
    "possible_next_states",
    "remaining_time",
    "reschedule_activity",
    "scheduled_duration",
    "should_auto_transition",
    "state_label",
    "transition_activity",
]
