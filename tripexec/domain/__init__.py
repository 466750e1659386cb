"""Domain package exports."""

from tripexec.domain.enums import (
    ActivityState,
    ConstraintLayer,
    ExecutionMode,
    ScheduleStatus,
    Severity,
    SlotBehavior,
    SlotType,
    TriggerKind,
)
from tripexec.domain.exceptions import DomainError, InvalidTimeFormat, SessionNotFound, SessionNotStarted
from tripexec.domain.models import (
    ActivityExecution,
    ConstraintConfig,
    ConstraintViolation,
    Coordinates,
    Day,
    FeasibilityAnalysis,
    Geofence,
    GeofenceEvent,
    Itinerary,
    Slot,
)

__all__ = [
    "ActivityExecution",
    "ActivityState",
    "ConstraintConfig",
    "ConstraintLayer",
    "ConstraintViolation",
    "Coordinates",
    "Day",
    "DomainError",
    "ExecutionMode",
    "FeasibilityAnalysis",
    "Geofence",
    "GeofenceEvent",
    "InvalidTimeFormat",
    "Itinerary",
    "ScheduleStatus",
    "SessionNotFound",
    "SessionNotStarted",
    "Severity",
    "Slot",
    "SlotBehavior",
    "SlotType",
    "TriggerKind",
]
