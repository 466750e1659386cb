"""Time-extension impact: what does "stay N more minutes" cost the rest of the day."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from tripexec.domain.clock import format_hhmm
from tripexec.domain.constants import (
    MAX_SINGLE_EXTENSION,
    MIN_ACTIVITY_DURATION,
    MIN_BOOKING_BUFFER,
    SUGGESTED_EXTENSIONS,
)
from tripexec.domain.enums import SlotBehavior
from tripexec.domain.models import Day, Slot, TimeRange
from tripexec.domain.slots import (
    activity_name,
    find_slot_index,
    gap_after,
    infer_behavior,
    is_booked_slot,
    is_meal_slot,
    selected_option,
)

EVENING_START_MINUTES = 17 * 60


class ShortenedSlot(BaseModel):
    slot_id: str
    activity_name: str
    minutes: int


class SkippedSlot(BaseModel):
    slot_id: str
    activity_name: str
    duration: int
    priority: int


class ExtensionImpact(BaseModel):
    next_activity_affected: bool = False
    next_activity_new_start: Optional[str] = None
    activities_shortened: list[str] = Field(default_factory=list)
    activities_skipped: list[str] = Field(default_factory=list)
    shortened: list[ShortenedSlot] = Field(default_factory=list)
    skipped: list[SkippedSlot] = Field(default_factory=list)
    bookings_at_risk: list[str] = Field(default_factory=list)


class ExtensionAlternatives(BaseModel):
    available_extension: int
    sacrifices: list[str] = Field(default_factory=list)


class ExtensionResult(BaseModel):
    slot_id: str
    success: bool
    requested_minutes: int
    applied_extension: int = 0
    buffer_used: int = 0
    shortened_minutes: int = 0
    skipped_minutes: int = 0
    impact: ExtensionImpact = Field(default_factory=ExtensionImpact)
    alternatives: Optional[ExtensionAlternatives] = None
    message: str = ""


def skip_priority(slot: Slot) -> int:
    """Lower means sacrificed first."""
    priority = 50
    if is_meal_slot(slot):
        priority += 30
    option = selected_option(slot)
    rank = option.rank if option else 1
    priority += max(0, 50 - rank * 10)
    if slot.time_range.start_minutes >= EVENING_START_MINUTES:
        priority -= 10
    behavior = infer_behavior(slot)
    if behavior == SlotBehavior.OPTIONAL:
        priority -= 20
    elif behavior == SlotBehavior.ANCHOR:
        priority += 40
    return priority


def is_adjustable(slot: Slot) -> bool:
    return not slot.is_locked and not is_booked_slot(slot)


def available_buffer(day: Day, index: int, needed: int) -> int:
    """Idle minutes from the slot at ``index`` forward, stopping once ``needed`` is reached."""
    total = 0
    for position in range(index, len(day.slots) - 1):
        total += gap_after(day, position)
        if total >= needed:
            break
    return total


def _shortenable(slot: Slot) -> int:
    return max(0, slot.time_range.duration_minutes - MIN_ACTIVITY_DURATION)


def _shortening_pass(candidates: list[Slot], needed: int) -> list[ShortenedSlot]:
    shortened: list[ShortenedSlot] = []
    remaining = needed
    for slot in candidates:
        if remaining <= 0:
            break
        take = min(_shortenable(slot), remaining)
        if take > 0:
            shortened.append(ShortenedSlot(slot_id=slot.slot_id, activity_name=activity_name(slot), minutes=take))
            remaining -= take
    return shortened


def _skipping_pass(candidates: list[Slot], needed: int) -> list[SkippedSlot]:
    order = {slot.slot_id: position for position, slot in enumerate(candidates)}
    ranked = sorted(candidates, key=lambda slot: (skip_priority(slot), order[slot.slot_id]))
    chosen: list[Slot] = []
    for slot in ranked:
        chosen_ids = {item.slot_id for item in chosen}
        freed = sum(item.time_range.duration_minutes for item in chosen)
        still_shortenable = sum(_shortenable(item) for item in candidates if item.slot_id not in chosen_ids)
        if freed + still_shortenable >= needed:
            break
        chosen.append(slot)
    return [
        SkippedSlot(
            slot_id=slot.slot_id,
            activity_name=activity_name(slot),
            duration=max(0, slot.time_range.duration_minutes),
            priority=skip_priority(slot),
        )
        for slot in chosen
    ]


def bookings_at_risk(day: Day, index: int, requested: int) -> list[str]:
    at_risk: list[str] = []
    delay = requested - gap_after(day, index)
    for position in range(index + 1, len(day.slots)):
        if delay <= 0:
            break
        slot = day.slots[position]
        if is_booked_slot(slot) and delay >= MIN_BOOKING_BUFFER:
            at_risk.append(activity_name(slot))
        delay -= gap_after(day, position)
    return at_risk


def _retimed(slot: Slot, start: int, end: int) -> Slot:
    return slot.model_copy(update={"time_range": TimeRange(start=format_hhmm(start), end=format_hhmm(end))})


def _shift_slots(
    day: Day,
    index: int,
    applied: int,
    shortened: dict[str, int],
    skipped: set[str],
) -> list[Slot]:
    slots = list(day.slots[:index])
    target = day.slots[index]
    previous_end = target.time_range.end_minutes + applied
    slots.append(_retimed(target, target.time_range.start_minutes, previous_end))
    for slot in day.slots[index + 1:]:
        if slot.slot_id in skipped:
            continue
        start = max(slot.time_range.start_minutes, previous_end)
        end = start + max(0, slot.time_range.duration_minutes - shortened.get(slot.slot_id, 0))
        slots.append(_retimed(slot, start, end))
        previous_end = end
    return slots


def _not_found(slot_id: str, minutes: int) -> ExtensionResult:
    return ExtensionResult(
        slot_id=slot_id,
        success=False,
        requested_minutes=minutes,
        message=f"Slot {slot_id} not found",
    )


def calculate_extension_impact(day: Day, slot_id: str, minutes: int) -> ExtensionResult:
    index = find_slot_index(day, slot_id)
    if index < 0:
        return _not_found(slot_id, minutes)
    if minutes <= 0:
        return ExtensionResult(
            slot_id=slot_id,
            success=False,
            requested_minutes=minutes,
            message="Extension must be a positive number of minutes",
        )

    requested = int(minutes)
    buffer_total = available_buffer(day, index, requested)
    buffer_used = min(buffer_total, requested)
    needed = requested - buffer_used

    shortened: list[ShortenedSlot] = []
    skipped: list[SkippedSlot] = []
    if needed > 0:
        candidates = [slot for slot in day.slots[index + 1:] if is_adjustable(slot)]
        shortened = _shortening_pass(candidates, needed)
        if sum(item.minutes for item in shortened) < needed:
            skipped = _skipping_pass(candidates, needed)
            skipped_ids = {item.slot_id for item in skipped}
            kept = [slot for slot in candidates if slot.slot_id not in skipped_ids]
            freed = sum(item.duration for item in skipped)
            shortened = _shortening_pass(kept, max(0, needed - freed))

    shortened_minutes = sum(item.minutes for item in shortened)
    skipped_total = sum(item.duration for item in skipped)
    skipped_used = min(skipped_total, max(0, needed - shortened_minutes))
    applied = buffer_used + shortened_minutes + skipped_used

    impact = ExtensionImpact(
        activities_shortened=[item.activity_name for item in shortened],
        activities_skipped=[item.activity_name for item in skipped],
        shortened=shortened,
        skipped=skipped,
        bookings_at_risk=bookings_at_risk(day, index, requested),
    )
    if index + 1 < len(day.slots):
        shifted = _shift_slots(
            day,
            index,
            applied,
            {item.slot_id: item.minutes for item in shortened},
            {item.slot_id for item in skipped},
        )
        if len(shifted) > index + 1:
            following = shifted[index + 1]
            original = day.slots[find_slot_index(day, following.slot_id)]
            impact.next_activity_new_start = following.time_range.start
            impact.next_activity_affected = (
                following.time_range.start != original.time_range.start or bool(skipped)
            )

    alternatives = None
    if applied < requested:
        sacrifices = [f"Shorten {item.activity_name} by {item.minutes} min" for item in shortened]
        sacrifices.extend(f"Skip {item.activity_name}" for item in skipped)
        alternatives = ExtensionAlternatives(available_extension=applied, sacrifices=sacrifices)

    return ExtensionResult(
        slot_id=slot_id,
        success=applied > 0,
        requested_minutes=requested,
        applied_extension=applied,
        buffer_used=buffer_used,
        shortened_minutes=shortened_minutes,
        skipped_minutes=skipped_used,
        impact=impact,
        alternatives=alternatives,
        message=_describe(requested, applied, impact),
    )


def _describe(requested: int, applied: int, impact: ExtensionImpact) -> str:
    if applied == 0:
        return "No time available to extend without moving fixed bookings"
    if applied < requested:
        text = f"Can extend by {applied} of {requested} min"
    else:
        text = f"Extended by {applied} min"
    if impact.activities_shortened:
        text += f"; shortens {', '.join(impact.activities_shortened)}"
    if impact.activities_skipped:
        text += f"; skips {', '.join(impact.activities_skipped)}"
    if impact.bookings_at_risk:
        text += f"; bookings at risk: {', '.join(impact.bookings_at_risk)}"
    return text


def apply_extension(day: Day, result: ExtensionResult) -> list[Slot]:
    """New slot list with the extension applied. ``day`` is left untouched."""
    index = find_slot_index(day, result.slot_id)
    if index < 0 or not result.success:
        return list(day.slots)
    return _shift_slots(
        day,
        index,
        result.applied_extension,
        {item.slot_id: item.minutes for item in result.impact.shortened},
        {item.slot_id for item in result.impact.skipped},
    )


def get_max_extension(day: Day, slot_id: str) -> int:
    """Largest extension (capped) that needs no skipped activity."""
    index = find_slot_index(day, slot_id)
    if index < 0:
        return 0
    buffer_total = available_buffer(day, index, MAX_SINGLE_EXTENSION)
    shortenable = sum(_shortenable(slot) for slot in day.slots[index + 1:] if is_adjustable(slot))
    return min(MAX_SINGLE_EXTENSION, buffer_total + shortenable)


def get_suggested_extensions(day: Day, slot_id: str) -> list[int]:
    ceiling = get_max_extension(day, slot_id)
    return [minutes for minutes in SUGGESTED_EXTENSIONS if minutes <= ceiling]


__all__ = [
    "ExtensionAlternatives",
    "ExtensionImpact",
    "ExtensionResult",
    "ShortenedSlot",
    "SkippedSlot",
    "apply_extension",
    "available_buffer",
    "bookings_at_risk",
    "calculate_extension_impact",
    "get_max_extension",
    "get_suggested_extensions",
    "is_adjustable",
    "skip_priority",
]
