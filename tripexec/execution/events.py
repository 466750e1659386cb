"""Execution events and the per-session publish/subscribe channel."""

from __future__ import annotations

import datetime as dt
import logging
from collections import deque
from typing import Annotated, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from tripexec.domain.enums import ActivityState, ExecutionMode, ScheduleStatus, TriggerKind

_logger = logging.getLogger("trip-exec.events")


class BaseEvent(BaseModel):
    trip_id: str
    timestamp: dt.datetime


class TripStarted(BaseEvent):
    type: Literal["trip_started"] = "trip_started"
    day_number: int
    activity_count: int
    geofence_count: int


class ExecutionPaused(BaseEvent):
    type: Literal["execution_paused"] = "execution_paused"
    reason: Optional[str] = None


class ExecutionResumed(BaseEvent):
    type: Literal["execution_resumed"] = "execution_resumed"


class ExecutionStopped(BaseEvent):
    type: Literal["execution_stopped"] = "execution_stopped"
    completed_activities: int = 0
    total_activities: int = 0


class ActivityStateChanged(BaseEvent):
    type: Literal["activity_state_changed"] = "activity_state_changed"
    slot_id: str
    from_state: ActivityState
    to_state: ActivityState
    trigger: TriggerKind


class ActivitySkipped(BaseEvent):
    type: Literal["activity_skipped"] = "activity_skipped"
    slot_id: str
    reason: Optional[str] = None


class ActivityExtended(BaseEvent):
    type: Literal["activity_extended"] = "activity_extended"
    slot_id: str
    requested_minutes: int
    applied_minutes: int
    bookings_at_risk: list[str] = Field(default_factory=list)


class GeofenceEntered(BaseEvent):
    type: Literal["geofence_entered"] = "geofence_entered"
    geofence_id: str
    slot_id: Optional[str] = None


class GeofenceExited(BaseEvent):
    type: Literal["geofence_exited"] = "geofence_exited"
    geofence_id: str
    slot_id: Optional[str] = None


class GeofenceDwelled(BaseEvent):
    type: Literal["geofence_dwelled"] = "geofence_dwelled"
    geofence_id: str
    slot_id: Optional[str] = None
    dwell_seconds: float


class DelayDetected(BaseEvent):
    type: Literal["delay_detected"] = "delay_detected"
    delay_minutes: int
    status: ScheduleStatus
    slot_id: Optional[str] = None


class ModeChanged(BaseEvent):
    type: Literal["mode_changed"] = "mode_changed"
    mode: ExecutionMode


ExecutionEvent = Annotated[
    Union[
        TripStarted,
        ExecutionPaused,
        ExecutionResumed,
        ExecutionStopped,
        ActivityStateChanged,
        ActivitySkipped,
        ActivityExtended,
        GeofenceEntered,
        GeofenceExited,
        GeofenceDwelled,
        DelayDetected,
        ModeChanged,
    ],
    Field(discriminator="type"),
]

event_adapter: TypeAdapter[ExecutionEvent] = TypeAdapter(ExecutionEvent)

Listener = Callable[[BaseEvent], None]


class EventChannel:
    """Ordered fan-out to listeners plus a bounded history for pull-based readers.

    A failing listener is logged and skipped; it never stops delivery to the rest.
    """

    def __init__(self, history_limit: int = 500) -> None:
        self._listeners: list[Listener] = []
        self._history: deque[BaseEvent] = deque(maxlen=history_limit)
        self._published = 0

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: BaseEvent) -> None:
        self._history.append(event)
        self._published += 1
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("listener failed for %s event", getattr(event, "type", "unknown"))

    def history(self, event_type: Optional[str] = None) -> list[BaseEvent]:
        if event_type is None:
            return list(self._history)
        return [event for event in self._history if getattr(event, "type", None) == event_type]

    @property
    def published_count(self) -> int:
        return self._published

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def clear_history(self) -> None:
        self._history.clear()


__all__ = [
    "ActivityExtended",
    "ActivitySkipped",
    "ActivityStateChanged",
    "BaseEvent",
    "DelayDetected",
    "EventChannel",
    "ExecutionEvent",
    "ExecutionPaused",
    "ExecutionResumed",
    "ExecutionStopped",
    "GeofenceDwelled",
    "GeofenceEntered",
    "GeofenceExited",
    "Listener",
    "ModeChanged",
    "TripStarted",
    "event_adapter",
]
