"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tripexec.domain.clock import parse_hhmm
from tripexec.domain.constants import (
    DEFAULT_ACTIVITY_RADIUS,
    MAX_DAILY_ACTIVITY_MINUTES,
    MAX_DAILY_WALKING_METERS,
    MIN_ACTIVITY_BUFFER_MINUTES,
    MIN_DEPARTURE_BUFFER_MINUTES,
)
from tripexec.domain.enums import (
    ActivityState,
    CommuteMethod,
    CompletionType,
    ConstraintLayer,
    DependencyType,
    DiversionType,
    GeofenceEventType,
    GeofenceType,
    Sensitivity,
    Severity,
    SlotBehavior,
    SlotType,
    TicketType,
)


class Coordinates(BaseModel):
    lat: float
    lng: float


class TimeRange(BaseModel):
    start: str
    end: str

    @model_validator(mode="after")
    def _check_format(self) -> "TimeRange":
        parse_hhmm(self.start)
        parse_hhmm(self.end)
        return self

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_hhmm(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


class Place(BaseModel):
    name: str = ""
    address: str = ""
    coordinates: Optional[Coordinates] = None


class Activity(BaseModel):
    name: str
    description: str = ""
    category: str = ""
    duration: Optional[int] = None
    place: Optional[Place] = None
    tags: list[str] = Field(default_factory=list)
    booking_url: Optional[str] = None


class ActivityOption(BaseModel):
    id: str
    rank: int = 1
    score: float = 0.0
    activity: Activity


class Fragility(BaseModel):
    weather_sensitivity: Sensitivity = Sensitivity.NONE
    crowd_sensitivity: Sensitivity = Sensitivity.NONE
    booking_required: bool = False
    booking_url: Optional[str] = None
    ticket_type: Optional[TicketType] = None
    peak_hours: list[str] = Field(default_factory=list)
    best_visit_time: Optional[str] = None


class SlotDependency(BaseModel):
    type: DependencyType
    target_slot_id: str
    reason: str = ""


class CommuteInfo(BaseModel):
    duration: int
    distance: float = 0.0
    method: CommuteMethod = CommuteMethod.WALK
    instructions: str = ""


class Slot(BaseModel):
    slot_id: str
    slot_type: SlotType
    time_range: TimeRange
    options: list[ActivityOption] = Field(default_factory=list)
    selected_option_id: Optional[str] = None
    behavior: Optional[SlotBehavior] = None
    rigidity_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    fragility: Optional[Fragility] = None
    dependencies: list[SlotDependency] = Field(default_factory=list)
    cluster_id: Optional[str] = None
    is_locked: bool = False
    commute_from_previous: Optional[CommuteInfo] = None


class CityTransition(BaseModel):
    from_city: str
    to_city: str
    method: str = "train"
    duration: int = 0
    departure_time: str
    arrival_time: Optional[str] = None
    train_name: Optional[str] = None
    flight_number: Optional[str] = None
    departure_station: Optional[str] = None
    arrival_station: Optional[str] = None
    commute_to_station: Optional[CommuteInfo] = None


class Day(BaseModel):
    day_number: int
    date: dt.date
    city: str = ""
    title: str = ""
    slots: list[Slot] = Field(default_factory=list)
    city_transition: Optional[CityTransition] = None


class Itinerary(BaseModel):
    trip_id: str
    destination: str = ""
    days: list[Day] = Field(default_factory=list)


class DeferTarget(BaseModel):
    day_number: int
    slot_id: Optional[str] = None


class ActivityExecution(BaseModel):
    """Runtime record for one slot. Replaced, never edited, by lifecycle functions."""

    model_config = ConfigDict(frozen=True)

    slot_id: str
    activity_name: str = ""
    state: ActivityState = ActivityState.UPCOMING
    scheduled_start: dt.datetime
    scheduled_end: dt.datetime
    actual_start: Optional[dt.datetime] = None
    actual_end: Optional[dt.datetime] = None
    departed_at: Optional[dt.datetime] = None
    arrived_at: Optional[dt.datetime] = None
    extended_by: int = 0
    shortened_by: int = 0
    skip_reason: Optional[str] = None
    deferred_to: Optional[DeferTarget] = None
    replaced_with: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
    completion_type: Optional[CompletionType] = None


class Geofence(BaseModel):
    id: str
    type: GeofenceType = GeofenceType.ACTIVITY
    center: Coordinates
    radius: float = DEFAULT_ACTIVITY_RADIUS
    activity_slot_id: Optional[str] = None
    name: str = ""


class GeofenceEvent(BaseModel):
    type: GeofenceEventType
    geofence: Geofence
    timestamp: dt.datetime
    location: Optional[Coordinates] = None
    dwell_seconds: Optional[float] = None


class ConstraintViolation(BaseModel):
    layer: ConstraintLayer
    severity: Severity
    message: str
    slot_id: Optional[str] = None
    day_number: Optional[int] = None
    resolution: Optional[str] = None


class FeasibilityAnalysis(BaseModel):
    feasible: bool
    violations: list[ConstraintViolation] = Field(default_factory=list)
    affected_layers: list[ConstraintLayer] = Field(default_factory=list)


class ConstraintConfig(BaseModel):
    strict_mode: bool = False
    respect_clusters: bool = True
    weather_aware: bool = True
    max_daily_walking_distance: float = MAX_DAILY_WALKING_METERS
    max_daily_activity_minutes: int = MAX_DAILY_ACTIVITY_MINUTES
    min_activity_buffer: int = MIN_ACTIVITY_BUFFER_MINUTES
    min_departure_buffer: int = MIN_DEPARTURE_BUFFER_MINUTES


class DiversionEvent(BaseModel):
    type: DiversionType
    slot_id: str
    activity_name: str = ""
    occurred_at: dt.datetime
    impact_minutes: int = 0
    description: str = ""


__all__ = [
    "Activity",
    "ActivityExecution",
    "ActivityOption",
    "CityTransition",
    "CommuteInfo",
    "ConstraintConfig",
    "ConstraintViolation",
    "Coordinates",
    "Day",
    "DeferTarget",
    "DiversionEvent",
    "FeasibilityAnalysis",
    "Fragility",
    "Geofence",
    "GeofenceEvent",
    "Itinerary",
    "Place",
    "Slot",
    "SlotDependency",
    "TimeRange",
]
