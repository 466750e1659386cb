"""Deterministic sample day used by the CLI and the simulation tests."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from tripexec.domain.enums import CommuteMethod, Sensitivity, SlotBehavior, SlotType
from tripexec.domain.models import (
    Activity,
    ActivityOption,
    CommuteInfo,
    Coordinates,
    Day,
    Fragility,
    Place,
    Slot,
    TimeRange,
)

WALKING_METERS_PER_MINUTE = 80

# name, tags, lat, lng, start, end, slot type, commute minutes
TOKYO_STOPS = (
    ("Senso-ji Temple", ("temple", "cultural", "outdoor"), 35.7147, 139.7966, "09:00", "10:30", SlotType.MORNING, 0),
    ("Nakamise Shopping Street", ("market", "shopping"), 35.7126, 139.7966, "10:45", "11:30", SlotType.MORNING, 5),
    ("Asakusa Lunch", ("restaurant", "food"), 35.7100, 139.7950, "11:45", "12:45", SlotType.LUNCH, 10),
    ("Tokyo Skytree", ("viewpoint", "attraction"), 35.7101, 139.8107, "13:00", "14:30", SlotType.AFTERNOON, 15),
    ("Ueno Park", ("park", "nature", "outdoor"), 35.7146, 139.7732, "15:00", "16:00", SlotType.AFTERNOON, 20),
    ("Tokyo National Museum", ("museum", "cultural"), 35.7189, 139.7765, "16:15", "17:45", SlotType.AFTERNOON, 10),
    ("Dinner in Shibuya", ("restaurant", "food"), 35.6580, 139.7016, "18:30", "20:00", SlotType.DINNER, 30),
)


def _slot(index: int, stop: tuple, city: str) -> Slot:
    name, tags, lat, lng, start, end, slot_type, commute = stop
    time_range = TimeRange(start=start, end=end)
    return Slot(
        slot_id=f"slot-{index}",
        slot_type=slot_type,
        time_range=time_range,
        behavior=SlotBehavior.FLEX,
        fragility=Fragility(
            weather_sensitivity=Sensitivity.HIGH if "outdoor" in tags else Sensitivity.LOW,
            crowd_sensitivity=Sensitivity.MEDIUM,
        ),
        options=[
            ActivityOption(
                id=f"opt-{index}",
                rank=1,
                score=0.9,
                activity=Activity(
                    name=name,
                    description=f"Visit {name}",
                    category=tags[0],
                    duration=time_range.duration_minutes,
                    tags=list(tags),
                    place=Place(name=name, address=f"{name}, {city}", coordinates=Coordinates(lat=lat, lng=lng)),
                ),
            )
        ],
        commute_from_previous=(
            CommuteInfo(
                duration=commute,
                distance=commute * WALKING_METERS_PER_MINUTE,
                method=CommuteMethod.WALK,
                instructions=f"Walk to {name}",
            )
            if commute
            else None
        ),
    )


def generate_sample_day(city: str = "Tokyo", date: Optional[dt.date] = None) -> Day:
    return Day(
        day_number=1,
        date=date or dt.date.today(),
        city=city,
        title="Classic Tokyo Exploration",
        slots=[_slot(index, stop, city) for index, stop in enumerate(TOKYO_STOPS, start=1)],
    )


__all__ = ["TOKYO_STOPS", "generate_sample_day"]
