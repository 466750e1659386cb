"""Lifecycle triggers: one frozen dataclass per trigger kind, carrying only its payload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from tripexec.domain.constants import OVERRUN_GRACE_MINUTES
from tripexec.domain.enums import TriggerKind


@dataclass(frozen=True)
class TimeThreshold:
    kind: ClassVar[TriggerKind] = TriggerKind.TIME_THRESHOLD


@dataclass(frozen=True)
class StartTimePassed:
    kind: ClassVar[TriggerKind] = TriggerKind.START_TIME_PASSED


@dataclass(frozen=True)
class EndTimePassed:
    kind: ClassVar[TriggerKind] = TriggerKind.END_TIME_PASSED
    overrun_minutes: int = OVERRUN_GRACE_MINUTES


@dataclass(frozen=True)
class LocationDetected:
    kind: ClassVar[TriggerKind] = TriggerKind.LOCATION_DETECTED
    geofence_id: Optional[str] = None


@dataclass(frozen=True)
class Depart:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_DEPART


@dataclass(frozen=True)
class CheckIn:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_CHECK_IN


@dataclass(frozen=True)
class CheckOut:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_CHECK_OUT
    rating: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Skip:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_SKIP
    reason: Optional[str] = None


@dataclass(frozen=True)
class Defer:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_DEFER
    day_number: int
    slot_id: Optional[str] = None


@dataclass(frozen=True)
class Extend:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_EXTEND
    minutes: int


@dataclass(frozen=True)
class Shorten:
    kind: ClassVar[TriggerKind] = TriggerKind.USER_SHORTEN
    minutes: int = 0


@dataclass(frozen=True)
class SystemReshuffle:
    kind: ClassVar[TriggerKind] = TriggerKind.SYSTEM_RESHUFFLE
    replaced_with: Optional[str] = None


@dataclass(frozen=True)
class ExternalTrigger:
    kind: ClassVar[TriggerKind] = TriggerKind.EXTERNAL_TRIGGER
    reason: str = ""


Trigger = Union[
    TimeThreshold,
    StartTimePassed,
    EndTimePassed,
    LocationDetected,
    Depart,
    CheckIn,
    CheckOut,
    Skip,
    Defer,
    Extend,
    Shorten,
    SystemReshuffle,
    ExternalTrigger,
]


__all__ = [
    "CheckIn",
    "CheckOut",
    "Defer",
    "Depart",
    "EndTimePassed",
    "Extend",
    "ExternalTrigger",
    "LocationDetected",
    "Shorten",
    "Skip",
    "StartTimePassed",
    "SystemReshuffle",
    "TimeThreshold",
    "Trigger",
]
