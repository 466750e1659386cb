"""Geofence creation, containment queries and dwell detection."""

from __future__ import annotations

import datetime as dt
import math
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional

from tripexec.domain.constants import (
    DEFAULT_ACTIVITY_RADIUS,
    DEFAULT_DWELL_SECONDS,
    HOTEL_RADIUS,
    TRANSIT_RADIUS,
)
from tripexec.domain.enums import GeofenceEventType, GeofenceType
from tripexec.domain.geo import WALKING_SPEED_MPS, angle_difference, bearing_degrees, distance_meters
from tripexec.domain.models import Coordinates, Day, Geofence, GeofenceEvent, Slot
from tripexec.domain.slots import activity_name, slot_coordinates

METERS_PER_DEGREE = 111000.0
HEADING_TOLERANCE_DEGREES = 45.0


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def create_slot_geofence(slot: Slot, radius: float = DEFAULT_ACTIVITY_RADIUS) -> Optional[Geofence]:
    center = slot_coordinates(slot)
    if center is None:
        return None
    return Geofence(
        id=f"geo-{slot.slot_id}",
        type=GeofenceType.ACTIVITY,
        center=center,
        radius=radius,
        activity_slot_id=slot.slot_id,
        name=activity_name(slot),
    )


def create_geofences_for_day(day: Day, radius: float = DEFAULT_ACTIVITY_RADIUS) -> list[Geofence]:
    geofences: list[Geofence] = []
    for slot in day.slots:
        geofence = create_slot_geofence(slot, radius)
        if geofence is not None:
            geofences.append(geofence)
    return geofences


def create_hotel_geofence(center: Coordinates, name: str = "Hotel", radius: float = HOTEL_RADIUS) -> Geofence:
    return Geofence(id=_new_id("hotel"), type=GeofenceType.HOTEL, center=center, radius=radius, name=name)


def create_transit_geofence(
    center: Coordinates,
    name: str = "Station",
    radius: float = TRANSIT_RADIUS,
) -> Geofence:
    return Geofence(
        id=_new_id("transit"),
        type=GeofenceType.TRANSIT_STATION,
        center=center,
        radius=radius,
        name=name,
    )


def create_custom_geofence(center: Coordinates, radius: float, name: str = "") -> Geofence:
    return Geofence(id=_new_id("custom"), type=GeofenceType.CUSTOM, center=center, radius=radius, name=name)


def distance_to_geofence(location: Coordinates, geofence: Geofence) -> float:
    return distance_meters(location, geofence.center)


def distance_to_geofence_edge(location: Coordinates, geofence: Geofence) -> float:
    """Negative while inside."""
    return distance_to_geofence(location, geofence) - geofence.radius


def is_inside_geofence(location: Coordinates, geofence: Geofence) -> bool:
    return distance_to_geofence(location, geofence) <= geofence.radius


def find_containing_geofences(location: Coordinates, geofences: Iterable[Geofence]) -> list[Geofence]:
    return [geofence for geofence in geofences if is_inside_geofence(location, geofence)]


def find_nearest_geofence(location: Coordinates, geofences: Iterable[Geofence]) -> Optional[Geofence]:
    candidates = list(geofences)
    if not candidates:
        return None
    return min(candidates, key=lambda geofence: distance_to_geofence(location, geofence))


def geofences_by_distance(location: Coordinates, geofences: Iterable[Geofence]) -> list[tuple[Geofence, float]]:
    ranked = [(geofence, distance_to_geofence(location, geofence)) for geofence in geofences]
    ranked.sort(key=lambda pair: pair[1])
    return ranked


def nearby_geofences(location: Coordinates, geofences: Iterable[Geofence], max_distance: float) -> list[Geofence]:
    return [geofence for geofence, distance in geofences_by_distance(location, geofences) if distance <= max_distance]


def find_geofence_for_slot(geofences: Iterable[Geofence], slot_id: str) -> Optional[Geofence]:
    for geofence in geofences:
        if geofence.activity_slot_id == slot_id:
            return geofence
    return None


def is_heading_toward(
    previous: Coordinates,
    current: Coordinates,
    geofence: Geofence,
    tolerance_degrees: float = HEADING_TOLERANCE_DEGREES,
) -> bool:
    if distance_meters(previous, current) == 0:
        return False
    heading = bearing_degrees(previous, current)
    target = bearing_degrees(current, geofence.center)
    return angle_difference(heading, target) <= tolerance_degrees


def estimate_minutes_to_geofence(
    location: Coordinates,
    geofence: Geofence,
    speed_mps: float = WALKING_SPEED_MPS,
) -> int:
    remaining = max(0.0, distance_to_geofence_edge(location, geofence))
    if speed_mps <= 0:
        return 0
    return int(round(remaining / speed_mps / 60))


def bounding_box(geofence: Geofence) -> tuple[float, float, float, float]:
    """(min_lat, min_lng, max_lat, max_lng); longitude degrees shrink with cos(lat)."""
    lat_delta = geofence.radius / METERS_PER_DEGREE
    # floor keeps the box finite at the poles
    lng_delta = lat_delta / max(math.cos(math.radians(geofence.center.lat)), 0.01)
    return (
        geofence.center.lat - lat_delta,
        geofence.center.lng - lng_delta,
        geofence.center.lat + lat_delta,
        geofence.center.lng + lng_delta,
    )


@dataclass
class GeofenceTransitions:
    entered: list[Geofence] = field(default_factory=list)
    exited: list[Geofence] = field(default_factory=list)


def detect_geofence_events(
    previous: Optional[Coordinates],
    current: Coordinates,
    geofences: Iterable[Geofence],
) -> GeofenceTransitions:
    """Set difference of containing geofences between two samples."""
    fences = list(geofences)
    now_inside = {geofence.id for geofence in find_containing_geofences(current, fences)}
    was_inside = set()
    if previous is not None:
        was_inside = {geofence.id for geofence in find_containing_geofences(previous, fences)}

    result = GeofenceTransitions()
    for geofence in fences:
        if geofence.id in now_inside and geofence.id not in was_inside:
            result.entered.append(geofence)
        elif geofence.id in was_inside and geofence.id not in now_inside:
            result.exited.append(geofence)
    return result


def make_event(
    event_type: GeofenceEventType,
    geofence: Geofence,
    timestamp: dt.datetime,
    location: Optional[Coordinates] = None,
    dwell_seconds: Optional[float] = None,
) -> GeofenceEvent:
    return GeofenceEvent(
        type=event_type,
        geofence=geofence,
        timestamp=timestamp,
        location=location,
        dwell_seconds=dwell_seconds,
    )


@dataclass
class DwellRecord:
    geofence_id: str
    entered_at: dt.datetime
    last_seen_at: dt.datetime


class GeofenceDwellTracker:
    """Per-session dwell state. Records exist only while the traveler is inside."""

    def __init__(self, threshold_seconds: float = DEFAULT_DWELL_SECONDS) -> None:
        self.threshold = dt.timedelta(seconds=threshold_seconds)
        self._records: dict[str, DwellRecord] = {}

    def update_location(
        self,
        location: Coordinates,
        geofences: Iterable[Geofence],
        now: dt.datetime,
    ) -> list[GeofenceEvent]:
        events: list[GeofenceEvent] = []
        inside: set[str] = set()

        for geofence in find_containing_geofences(location, geofences):
            inside.add(geofence.id)
            record = self._records.get(geofence.id)
            if record is None:
                self._records[geofence.id] = DwellRecord(geofence.id, entered_at=now, last_seen_at=now)
                continue
            crossing = record.entered_at + self.threshold
            # fire only on the sample that first reaches the threshold
            if record.last_seen_at < crossing <= now:
                dwell = (now - record.entered_at).total_seconds()
                events.append(make_event(GeofenceEventType.DWELL, geofence, now, location, dwell))
            record.last_seen_at = now

        for geofence_id in list(self._records):
            if geofence_id not in inside:
                del self._records[geofence_id]
        return events

    def dwell_time(self, geofence_id: str, now: dt.datetime) -> float:
        record = self._records.get(geofence_id)
        if record is None:
            return 0.0
        return max(0.0, (now - record.entered_at).total_seconds())

    def is_dwelling(self, geofence_id: str) -> bool:
        return geofence_id in self._records

    def reset(self) -> None:
        self._records.clear()


__all__ = [
    "DwellRecord",
    "GeofenceDwellTracker",
    "GeofenceTransitions",
    "bounding_box",
    "create_custom_geofence",
    "create_geofences_for_day",
    "create_hotel_geofence",
    "create_slot_geofence",
    "create_transit_geofence",
    "detect_geofence_events",
    "distance_to_geofence",
    "distance_to_geofence_edge",
    "estimate_minutes_to_geofence",
    "find_containing_geofences",
    "find_geofence_for_slot",
    "find_nearest_geofence",
    "geofences_by_distance",
    "is_heading_toward",
    "is_inside_geofence",
    "make_event",
    "nearby_geofences",
]
