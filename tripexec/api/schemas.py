"""API request/response models."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, Field

from tripexec.domain.models import (
    ActivityExecution,
    ConstraintConfig,
    Day,
    FeasibilityAnalysis,
    GeofenceEvent,
    Itinerary,
)
from tripexec.execution.engine import ExecutionState


class ClockRequest(BaseModel):
    now: Optional[dt.datetime] = Field(default=None, description="caller time; server clock when omitted")


class StartRequest(ClockRequest):
    day: Day


class LocationRequest(ClockRequest):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class CheckOutRequest(ClockRequest):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = Field(default=None, max_length=2000)


class SkipRequest(ClockRequest):
    reason: Optional[str] = Field(default=None, max_length=500)


class DeferRequest(ClockRequest):
    day_number: int = Field(ge=1)
    target_slot_id: Optional[str] = None


class ExtendRequest(ClockRequest):
    minutes: int = Field(gt=0, le=240)
    accept_partial: bool = False


class PauseRequest(ClockRequest):
    reason: Optional[str] = Field(default=None, max_length=500)


class ValidateRequest(BaseModel):
    itinerary: Itinerary
    config: Optional[ConstraintConfig] = None


class CanMoveRequest(ValidateRequest):
    slot_id: str
    from_day: int
    to_day: Optional[int] = None
    target_index: Optional[int] = Field(default=None, ge=0)


class ActivityResponse(BaseModel):
    applied: bool
    activity: Optional[ActivityExecution] = None
    message: str = ""


class LocationResponse(BaseModel):
    events: list[GeofenceEvent] = Field(default_factory=list)


class TickResponse(BaseModel):
    transitions: int
    state: ExecutionState


class EventsResponse(BaseModel):
    events: list[dict[str, Any]] = Field(default_factory=list)


class ValidateResponse(BaseModel):
    analysis: FeasibilityAnalysis


class HealthResponse(BaseModel):
    status: str
    sessions: int = 0
    active_sessions: int = 0
