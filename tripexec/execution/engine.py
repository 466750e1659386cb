"""Execution engine: one session object per trip, driven by caller-supplied time."""

from __future__ import annotations

import datetime as dt
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from tripexec.config.settings import EngineSettings, resolve_engine_settings
from tripexec.domain.clock import at_time
from tripexec.domain.enums import ActivityState, ExecutionMode, GeofenceEventType, ScheduleStatus
from tripexec.domain.exceptions import SessionNotStarted
from tripexec.domain.models import ActivityExecution, Coordinates, Day, Geofence, GeofenceEvent
from tripexec.domain.slots import activity_name, build_executions
from tripexec.execution.events import (
    ActivityExtended,
    ActivitySkipped,
    ActivityStateChanged,
    BaseEvent,
    DelayDetected,
    EventChannel,
    ExecutionPaused,
    ExecutionResumed,
    ExecutionStopped,
    GeofenceDwelled,
    GeofenceEntered,
    GeofenceExited,
    ModeChanged,
    TripStarted,
)
from tripexec.execution.extension import ExtensionResult, apply_extension, calculate_extension_impact
from tripexec.execution.geofence import (
    GeofenceDwellTracker,
    create_geofences_for_day,
    detect_geofence_events,
    make_event,
)
from tripexec.execution.lifecycle import (
    effective_end,
    is_active,
    is_terminal,
    remaining_time,
    reschedule_activity,
    should_auto_transition,
    transition_activity,
)
from tripexec.execution.progress import (
    DayProgress,
    calculate_day_progress,
    calculate_delay_minutes,
    current_activity,
    next_activity,
    schedule_status,
)
from tripexec.execution.triggers import (
    CheckIn,
    CheckOut,
    Defer,
    Depart,
    Extend,
    ExternalTrigger,
    LocationDetected,
    Shorten,
    Skip,
    Trigger,
)
from tripexec.infrastructure.logging import StructuredLogger

# enough for upcoming -> pending -> in_progress -> extended -> completed in one tick
MAX_AUTO_STEPS = 6
ARRIVAL_STATES = frozenset({ActivityState.UPCOMING, ActivityState.PENDING, ActivityState.EN_ROUTE})


class CurrentActivityView(BaseModel):
    slot_id: str
    name: str
    state: ActivityState
    started_at: Optional[dt.datetime] = None
    expected_end: dt.datetime
    extended_by: int = 0
    remaining_minutes: int = 0


class NextActivityView(BaseModel):
    slot_id: str
    name: str
    scheduled_start: dt.datetime
    commute_minutes: int = 0
    leave_by: dt.datetime
    eta: dt.datetime


class ExecutionState(BaseModel):
    trip_id: str
    mode: ExecutionMode
    day_number: Optional[int] = None
    current_time: Optional[dt.datetime] = None
    current_activity: Optional[CurrentActivityView] = None
    next_activity: Optional[NextActivityView] = None
    progress: Optional[DayProgress] = None
    activities: list[ActivityExecution] = Field(default_factory=list)


class ExecutionEngine:
    """Owns the activity records, geofences and dwell state of one trip.

    Not internally locked; serialize calls per trip (see ``SessionRegistry``).
    """

    def __init__(
        self,
        trip_id: str,
        *,
        settings: Optional[EngineSettings] = None,
        channel: Optional[EventChannel] = None,
        log_output=None,
    ) -> None:
        self.trip_id = trip_id
        self.settings = settings or resolve_engine_settings()
        self.channel = channel or EventChannel(self.settings.event_history_limit)
        self.mode = ExecutionMode.IDLE
        self._log = StructuredLogger(trace_id=trip_id, output=log_output)
        self._day: Optional[Day] = None
        self._activities: dict[str, ActivityExecution] = {}
        self._geofences: list[Geofence] = []
        self._dwell = GeofenceDwellTracker(self.settings.dwell_threshold_seconds)
        self._last_location: Optional[Coordinates] = None
        self._last_tick: Optional[dt.datetime] = None
        self._reported_status = ScheduleStatus.ON_TRACK

    # ── session ──────────────────────────────────────

    @property
    def day(self) -> Optional[Day]:
        return self._day

    @property
    def activities(self) -> Mapping[str, ActivityExecution]:
        return MappingProxyType(self._activities)

    @property
    def geofences(self) -> list[Geofence]:
        return list(self._geofences)

    @property
    def last_tick(self) -> Optional[dt.datetime]:
        return self._last_tick

    def _require_day(self) -> Day:
        if self._day is None:
            raise SessionNotStarted(f"trip {self.trip_id} has no started day")
        return self._day

    def start(self, day: Day, now: dt.datetime) -> None:
        self._day = day
        self._activities = build_executions(day)
        self._geofences = create_geofences_for_day(day)
        self._dwell.reset()
        self._last_location = None
        self._last_tick = None
        self._reported_status = ScheduleStatus.ON_TRACK
        self.mode = ExecutionMode.ACTIVE
        self._log.session("start", day_number=day.day_number, activities=len(self._activities))
        self._publish(
            TripStarted(
                trip_id=self.trip_id,
                timestamp=now,
                day_number=day.day_number,
                activity_count=len(self._activities),
                geofence_count=len(self._geofences),
            )
        )

    def pause(self, now: dt.datetime, reason: Optional[str] = None) -> bool:
        if self.mode != ExecutionMode.ACTIVE:
            return False
        self.mode = ExecutionMode.PAUSED
        self._log.session("pause", reason=reason)
        self._publish(ExecutionPaused(trip_id=self.trip_id, timestamp=now, reason=reason))
        return True

    def resume(self, now: dt.datetime) -> bool:
        if self.mode != ExecutionMode.PAUSED:
            return False
        self.mode = ExecutionMode.ACTIVE
        self._log.session("resume")
        self._publish(ExecutionResumed(trip_id=self.trip_id, timestamp=now))
        self.tick(now)
        return True

    def stop(self, now: dt.datetime) -> None:
        done = sum(1 for item in self._activities.values() if is_terminal(item.state))
        self.mode = ExecutionMode.STOPPED
        self._dwell.reset()
        self._log.session("stop", completed=done, total=len(self._activities))
        self._publish(
            ExecutionStopped(
                trip_id=self.trip_id,
                timestamp=now,
                completed_activities=done,
                total_activities=len(self._activities),
            )
        )

    # ── activities ───────────────────────────────────

    def activity(self, slot_id: str) -> Optional[ActivityExecution]:
        return self._activities.get(slot_id)

    def _apply(self, slot_id: str, trigger: Trigger, now: dt.datetime) -> Optional[ActivityExecution]:
        self._require_day()
        execution = self._activities.get(slot_id)
        if execution is None:
            return None
        updated = transition_activity(execution, trigger, at=now)
        if updated is None:
            self._log.warning(
                "lifecycle",
                "transition not allowed",
                slot_id=slot_id,
                state=execution.state.value,
                trigger=trigger.kind.value,
            )
            return None
        self._activities[slot_id] = updated
        self._log.transition(slot_id, execution.state.value, updated.state.value, trigger.kind.value)
        self._publish(
            ActivityStateChanged(
                trip_id=self.trip_id,
                timestamp=now,
                slot_id=slot_id,
                from_state=execution.state,
                to_state=updated.state,
                trigger=trigger.kind,
            )
        )
        if updated.state == ActivityState.SKIPPED:
            self._publish(
                ActivitySkipped(trip_id=self.trip_id, timestamp=now, slot_id=slot_id, reason=updated.skip_reason)
            )
        return updated

    def depart(self, slot_id: str, now: dt.datetime) -> Optional[ActivityExecution]:
        return self._apply(slot_id, Depart(), now)

    def check_in(self, slot_id: str, now: dt.datetime) -> Optional[ActivityExecution]:
        return self._apply(slot_id, CheckIn(), now)

    def check_out(
        self,
        slot_id: str,
        now: dt.datetime,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Optional[ActivityExecution]:
        return self._apply(slot_id, CheckOut(rating=rating, notes=notes), now)

    def finish_early(self, slot_id: str, now: dt.datetime) -> Optional[ActivityExecution]:
        execution = self._activities.get(slot_id)
        if execution is None:
            return None
        return self._apply(slot_id, Shorten(minutes=remaining_time(execution, now)), now)

    def skip(self, slot_id: str, now: dt.datetime, reason: Optional[str] = None) -> Optional[ActivityExecution]:
        return self._apply(slot_id, Skip(reason=reason), now)

    def defer(
        self,
        slot_id: str,
        now: dt.datetime,
        day_number: int,
        target_slot_id: Optional[str] = None,
    ) -> Optional[ActivityExecution]:
        return self._apply(slot_id, Defer(day_number=day_number, slot_id=target_slot_id), now)

    def report_disruption(self, slot_id: str, now: dt.datetime, reason: str) -> Optional[ActivityExecution]:
        return self._apply(slot_id, ExternalTrigger(reason=reason), now)

    def preview_extension(self, slot_id: str, minutes: int) -> ExtensionResult:
        return calculate_extension_impact(self._require_day(), slot_id, minutes)

    def extend(
        self,
        slot_id: str,
        minutes: int,
        now: dt.datetime,
        *,
        accept_partial: bool = False,
    ) -> ExtensionResult:
        """Extend the running activity when fully achievable, or partially when accepted.

        Only in_progress and extended activities can be extended. Anything else, and a
        declined partial extension, returns ``success=False`` with the day left untouched.
        """
        day = self._require_day()
        result = calculate_extension_impact(day, slot_id, minutes)
        if not result.success:
            return result
        execution = self._activities.get(slot_id)
        if execution is None or not is_active(execution.state):
            state = execution.state.value if execution else "unknown"
            return result.model_copy(
                update={"success": False, "message": f"Cannot extend {slot_id} while it is {state}"}
            )
        if result.applied_extension < result.requested_minutes and not accept_partial:
            return result.model_copy(
                update={
                    "success": False,
                    "message": f"Only {result.applied_extension} of {result.requested_minutes} minutes fit; "
                    "accept the partial extension to apply it",
                }
            )

        self._apply(slot_id, Extend(minutes=result.applied_extension), now)

        retimed = {slot.slot_id: slot for slot in apply_extension(day, result)}
        self._day = day.model_copy(update={"slots": [retimed.get(slot.slot_id, slot) for slot in day.slots]})
        for other_id, slot in retimed.items():
            if other_id == slot_id:
                continue
            record = self._activities.get(other_id)
            if record is None or is_terminal(record.state):
                continue
            start = at_time(day.date, slot.time_range.start)
            end = at_time(day.date, slot.time_range.end)
            if (start, end) != (record.scheduled_start, record.scheduled_end):
                self._activities[other_id] = reschedule_activity(record, start, end)

        extended_name = execution.activity_name
        for skipped in result.impact.skipped:
            self._apply(skipped.slot_id, Skip(reason=f"Dropped to extend {extended_name}"), now)

        self._log.session(
            "extend",
            slot_id=slot_id,
            requested=result.requested_minutes,
            applied=result.applied_extension,
            bookings_at_risk=result.impact.bookings_at_risk,
        )
        self._publish(
            ActivityExtended(
                trip_id=self.trip_id,
                timestamp=now,
                slot_id=slot_id,
                requested_minutes=result.requested_minutes,
                applied_minutes=result.applied_extension,
                bookings_at_risk=result.impact.bookings_at_risk,
            )
        )
        return result

    # ── location ─────────────────────────────────────

    def update_location(self, location: Coordinates, now: dt.datetime) -> list[GeofenceEvent]:
        if self.mode != ExecutionMode.ACTIVE:
            return []
        self._require_day()
        previous = self._last_location
        self._last_location = location
        transitions = detect_geofence_events(previous, location, self._geofences)
        events: list[GeofenceEvent] = []

        for geofence in transitions.entered:
            events.append(make_event(GeofenceEventType.ENTER, geofence, now, location))
            slot_id = geofence.activity_slot_id
            if slot_id:
                record = self._activities.get(slot_id)
                if record is not None and record.state in ARRIVAL_STATES:
                    self._apply(slot_id, LocationDetected(geofence_id=geofence.id), now)
            self._publish(
                GeofenceEntered(trip_id=self.trip_id, timestamp=now, geofence_id=geofence.id, slot_id=slot_id)
            )

        for geofence in transitions.exited:
            events.append(make_event(GeofenceEventType.EXIT, geofence, now, location))
            self._publish(
                GeofenceExited(
                    trip_id=self.trip_id,
                    timestamp=now,
                    geofence_id=geofence.id,
                    slot_id=geofence.activity_slot_id,
                )
            )

        for event in self._dwell.update_location(location, self._geofences, now):
            events.append(event)
            slot_id = event.geofence.activity_slot_id
            if slot_id:
                record = self._activities.get(slot_id)
                if record is not None and record.state == ActivityState.ARRIVED:
                    self._apply(slot_id, CheckIn(), now)
            self._publish(
                GeofenceDwelled(
                    trip_id=self.trip_id,
                    timestamp=now,
                    geofence_id=event.geofence.id,
                    slot_id=slot_id,
                    dwell_seconds=event.dwell_seconds or 0.0,
                )
            )
        return events

    # ── time ─────────────────────────────────────────

    def tick(self, now: dt.datetime) -> int:
        """Run due auto-transitions and delay detection. Returns the number of transitions."""
        if self.mode not in (ExecutionMode.ACTIVE, ExecutionMode.WINDING_DOWN):
            return 0
        day = self._require_day()
        self._last_tick = now
        applied = 0
        for slot in day.slots:
            for _ in range(MAX_AUTO_STEPS):
                record = self._activities.get(slot.slot_id)
                if record is None or is_terminal(record.state):
                    break
                trigger = should_auto_transition(record, now, self.settings.pending_threshold_minutes)
                if trigger is None or self._apply(slot.slot_id, trigger, now) is None:
                    break
                applied += 1

        self._check_delay(day, now)
        if self.mode == ExecutionMode.ACTIVE and all(is_terminal(item.state) for item in self._activities.values()):
            self.mode = ExecutionMode.WINDING_DOWN
            self._publish(ModeChanged(trip_id=self.trip_id, timestamp=now, mode=self.mode))
        return applied

    def _check_delay(self, day: Day, now: dt.datetime) -> None:
        delay = calculate_delay_minutes(day, self._activities, now)
        if delay <= self.settings.delay_alert_minutes:
            self._reported_status = ScheduleStatus.ON_TRACK
            return
        status = schedule_status(delay)
        if status == self._reported_status:
            return
        self._reported_status = status
        active = current_activity(day, self._activities)
        self._log.warning("delay", "behind schedule", delay_minutes=delay, status=status.value)
        self._publish(
            DelayDetected(
                trip_id=self.trip_id,
                timestamp=now,
                delay_minutes=delay,
                status=status,
                slot_id=active.slot_id if active else None,
            )
        )

    # ── queries ──────────────────────────────────────

    def progress(self, now: dt.datetime) -> DayProgress:
        return calculate_day_progress(self._require_day(), self._activities, now)

    def get_state(self, now: dt.datetime) -> ExecutionState:
        if self._day is None:
            return ExecutionState(trip_id=self.trip_id, mode=self.mode, current_time=now)
        day = self._day
        state = ExecutionState(
            trip_id=self.trip_id,
            mode=self.mode,
            day_number=day.day_number,
            current_time=now,
            progress=calculate_day_progress(day, self._activities, now),
            activities=[self._activities[slot.slot_id] for slot in day.slots if slot.slot_id in self._activities],
        )
        running = current_activity(day, self._activities)
        if running is not None:
            record = self._activities[running.slot_id]
            state.current_activity = CurrentActivityView(
                slot_id=running.slot_id,
                name=record.activity_name,
                state=record.state,
                started_at=record.actual_start,
                expected_end=effective_end(record),
                extended_by=record.extended_by,
                remaining_minutes=remaining_time(record, now),
            )
        upcoming = next_activity(day, self._activities)
        if upcoming is not None:
            record = self._activities[upcoming.slot_id]
            commute = upcoming.commute_from_previous.duration if upcoming.commute_from_previous else 0
            leave_by = record.scheduled_start - dt.timedelta(minutes=commute)
            state.next_activity = NextActivityView(
                slot_id=upcoming.slot_id,
                name=activity_name(upcoming),
                scheduled_start=record.scheduled_start,
                commute_minutes=commute,
                leave_by=leave_by,
                eta=max(record.scheduled_start, now + dt.timedelta(minutes=commute)),
            )
        return state

    def _publish(self, event: BaseEvent) -> None:
        self.channel.publish(event)


__all__ = [
    "CurrentActivityView",
    "ExecutionEngine",
    "ExecutionState",
    "NextActivityView",
]
