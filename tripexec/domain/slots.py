"""Read-only accessors over slots and days."""

from __future__ import annotations

from typing import Optional

from tripexec.domain.clock import at_time
from tripexec.domain.constants import (
    BEHAVIOR_RIGIDITY,
    BOOKING_TAGS,
    DEFAULT_RIGIDITY,
    MEAL_SLOT_TYPES,
)
from tripexec.domain.enums import SlotBehavior, TicketType
from tripexec.domain.models import ActivityExecution, ActivityOption, Coordinates, Day, Itinerary, Slot


def selected_option(slot: Slot) -> Optional[ActivityOption]:
    if slot.selected_option_id:
        for option in slot.options:
            if option.id == slot.selected_option_id:
                return option
    return slot.options[0] if slot.options else None


def activity_name(slot: Slot) -> str:
    option = selected_option(slot)
    return option.activity.name if option else slot.slot_id


def activity_category(slot: Slot) -> str:
    option = selected_option(slot)
    return option.activity.category.lower() if option else ""


def slot_coordinates(slot: Slot) -> Optional[Coordinates]:
    option = selected_option(slot)
    if option is None or option.activity.place is None:
        return None
    return option.activity.place.coordinates


def is_meal_slot(slot: Slot) -> bool:
    return slot.slot_type in MEAL_SLOT_TYPES or slot.behavior == SlotBehavior.MEAL


def is_booked_slot(slot: Slot) -> bool:
    """A slot whose timing is pinned by a reservation or timed ticket."""
    fragility = slot.fragility
    if fragility is not None:
        if fragility.booking_required or fragility.ticket_type == TicketType.TIMED:
            return True
    option = selected_option(slot)
    if option is None:
        return False
    return any(tag.lower() in BOOKING_TAGS for tag in option.activity.tags)


def infer_behavior(slot: Slot) -> SlotBehavior:
    if slot.behavior is not None:
        return slot.behavior
    if slot.is_locked:
        return SlotBehavior.ANCHOR
    if slot.slot_type in MEAL_SLOT_TYPES:
        return SlotBehavior.MEAL
    if not slot.options:
        return SlotBehavior.OPTIONAL
    if slot.fragility is not None and slot.fragility.booking_required:
        return SlotBehavior.ANCHOR
    return SlotBehavior.FLEX


def rigidity(slot: Slot) -> float:
    if slot.rigidity_score is not None:
        return slot.rigidity_score
    return BEHAVIOR_RIGIDITY.get(infer_behavior(slot), DEFAULT_RIGIDITY)


def find_slot_index(day: Day, slot_id: str) -> int:
    for index, slot in enumerate(day.slots):
        if slot.slot_id == slot_id:
            return index
    return -1


def find_slot(day: Day, slot_id: str) -> Optional[Slot]:
    index = find_slot_index(day, slot_id)
    return day.slots[index] if index >= 0 else None


def find_day(itinerary: Itinerary, day_number: int) -> Optional[Day]:
    for day in itinerary.days:
        if day.day_number == day_number:
            return day
    return None


def locate_slot(itinerary: Itinerary, slot_id: str) -> tuple[Optional[Day], Optional[Slot]]:
    for day in itinerary.days:
        slot = find_slot(day, slot_id)
        if slot is not None:
            return day, slot
    return None, None


def gap_after(day: Day, index: int) -> int:
    """Idle minutes between slot ``index`` and the next one, never negative."""
    if index + 1 >= len(day.slots):
        return 0
    gap = day.slots[index + 1].time_range.start_minutes - day.slots[index].time_range.end_minutes
    return max(0, gap)


def build_execution(day: Day, slot: Slot) -> ActivityExecution:
    return ActivityExecution(
        slot_id=slot.slot_id,
        activity_name=activity_name(slot),
        scheduled_start=at_time(day.date, slot.time_range.start),
        scheduled_end=at_time(day.date, slot.time_range.end),
    )


def build_executions(day: Day) -> dict[str, ActivityExecution]:
    return {slot.slot_id: build_execution(day, slot) for slot in day.slots}


__all__ = [
    "activity_category",
    "activity_name",
    "build_execution",
    "build_executions",
    "find_day",
    "find_slot",
    "find_slot_index",
    "gap_after",
    "infer_behavior",
    "is_booked_slot",
    "is_meal_slot",
    "locate_slot",
    "rigidity",
    "selected_option",
    "slot_coordinates",
]
