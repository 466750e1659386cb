"""Unit tests for the time-extension impact calculator."""

from __future__ import annotations

import datetime as dt

from tripexec.domain.enums import SlotBehavior, SlotType
from tripexec.domain.models import Activity, ActivityOption, Day, Fragility, Slot, TimeRange
from tripexec.execution.extension import (
    apply_extension,
    available_buffer,
    bookings_at_risk,
    calculate_extension_impact,
    get_max_extension,
    get_suggested_extensions,
    is_adjustable,
    skip_priority,
)


def _slot(
    slot_id: str,
    start: str,
    end: str,
    *,
    slot_type: SlotType = SlotType.MORNING,
    behavior: SlotBehavior | None = None,
    booked: bool = False,
    locked: bool = False,
) -> Slot:
    return Slot(
        slot_id=slot_id,
        slot_type=slot_type,
        time_range=TimeRange(start=start, end=end),
        behavior=behavior,
        is_locked=locked,
        fragility=Fragility(booking_required=True) if booked else None,
        options=[ActivityOption(id=f"opt-{slot_id}", activity=Activity(name=slot_id.title()))],
    )


def _day(*slots: Slot) -> Day:
    return Day(day_number=1, date=dt.date(2025, 4, 1), slots=list(slots))


def _temple_and_booked_lunch() -> Day:
    return _day(
        _slot("temple", "09:00", "10:30"),
        _slot("lunch", "11:00", "12:30", slot_type=SlotType.LUNCH, booked=True),
    )


def _tight_day() -> Day:
    return _day(
        _slot("temple", "09:00", "10:00"),
        _slot("market", "10:15", "11:15"),
        _slot("museum", "11:15", "13:15"),
    )


def test_buffer_alone_covers_the_request():
    day = _day(_slot("temple", "09:00", "10:00"), _slot("market", "11:00", "12:00"))
    result = calculate_extension_impact(day, "temple", 30)
    assert result.success
    assert result.applied_extension == 30
    assert result.buffer_used == 30
    assert result.shortened_minutes == 0
    assert result.skipped_minutes == 0
    assert not result.impact.next_activity_affected
    assert result.impact.next_activity_new_start == "11:00"
    assert result.alternatives is None
    assert result.message == "Extended by 30 min"


def test_booked_lunch_caps_extension_and_is_at_risk():
    result = calculate_extension_impact(_temple_and_booked_lunch(), "temple", 45)
    assert result.success
    assert result.applied_extension == 30
    assert result.buffer_used == 30
    assert result.impact.activities_shortened == []
    assert result.impact.bookings_at_risk == ["Lunch"]
    assert not result.impact.next_activity_affected
    assert result.alternatives is not None
    assert result.alternatives.available_extension == 30
    assert "Can extend by 30 of 45 min" in result.message


def test_shortening_covers_what_buffer_cannot():
    result = calculate_extension_impact(_tight_day(), "temple", 45)
    assert result.applied_extension == 45
    assert result.buffer_used == 15
    assert result.shortened_minutes == 30
    assert [item.slot_id for item in result.impact.shortened] == ["market"]
    assert result.impact.activities_shortened == ["Market"]
    assert result.impact.next_activity_affected
    assert result.impact.next_activity_new_start == "10:45"


def test_skipping_lowest_priority_first():
    day = _day(
        _slot("temple", "09:00", "10:00"),
        _slot("cafe", "10:00", "10:30"),
        _slot("shrine", "10:30", "11:00", behavior=SlotBehavior.OPTIONAL),
        _slot("tour", "11:00", "12:00", locked=True),
    )
    result = calculate_extension_impact(day, "temple", 60)
    assert result.applied_extension == 60
    assert result.buffer_used == 0
    assert [item.slot_id for item in result.impact.skipped] == ["shrine", "cafe"]
    assert result.skipped_minutes == 60
    assert result.shortened_minutes == 0
    assert result.impact.next_activity_affected
    assert result.impact.next_activity_new_start == "11:00"


def test_conservation_of_applied_minutes():
    for minutes in (10, 20, 45, 60, 90, 200):
        result = calculate_extension_impact(_tight_day(), "temple", minutes)
        assert result.applied_extension <= minutes
        assert result.applied_extension == result.buffer_used + result.shortened_minutes + result.skipped_minutes


def test_unknown_slot_and_non_positive_request():
    missing = calculate_extension_impact(_tight_day(), "nowhere", 15)
    assert not missing.success
    assert missing.message == "Slot nowhere not found"

    zero = calculate_extension_impact(_tight_day(), "temple", 0)
    assert not zero.success
    assert zero.applied_extension == 0


def test_last_slot_has_nothing_to_absorb_the_extension():
    result = calculate_extension_impact(_tight_day(), "museum", 30)
    assert not result.success
    assert result.applied_extension == 0
    assert result.message.startswith("No time available")


def test_apply_extension_retimes_without_touching_day():
    day = _tight_day()
    result = calculate_extension_impact(day, "temple", 45)
    slots = apply_extension(day, result)
    assert [(slot.slot_id, slot.time_range.start, slot.time_range.end) for slot in slots] == [
        ("temple", "09:00", "10:45"),
        ("market", "10:45", "11:15"),
        ("museum", "11:15", "13:15"),
    ]
    assert day.slots[0].time_range.end == "10:00"


def test_apply_extension_drops_skipped_slots():
    day = _day(
        _slot("temple", "09:00", "10:00"),
        _slot("cafe", "10:00", "10:30", behavior=SlotBehavior.OPTIONAL),
        _slot("tour", "10:30", "11:30", locked=True),
    )
    result = calculate_extension_impact(day, "temple", 30)
    assert [item.slot_id for item in result.impact.skipped] == ["cafe"]
    assert [slot.slot_id for slot in apply_extension(day, result)] == ["temple", "tour"]


def test_failed_result_leaves_slots_alone():
    day = _tight_day()
    result = calculate_extension_impact(day, "museum", 30)
    assert apply_extension(day, result) == day.slots


def test_bookings_at_risk_absorbs_later_gaps():
    day = _day(
        _slot("temple", "09:00", "10:00"),
        _slot("walk", "10:00", "10:30", locked=True),
        _slot("show", "11:00", "12:00", booked=True),
    )
    # 40 min late into the walk; the 30 min gap before the show leaves only 10 min
    assert bookings_at_risk(day, 0, 40) == []
    assert bookings_at_risk(day, 0, 45) == ["Show"]


def test_max_and_suggested_extensions():
    assert get_max_extension(_tight_day(), "temple") == 60
    assert get_suggested_extensions(_tight_day(), "temple") == [15, 30, 45, 60]
    assert get_max_extension(_temple_and_booked_lunch(), "temple") == 30
    assert get_suggested_extensions(_temple_and_booked_lunch(), "temple") == [15, 30]
    assert get_max_extension(_tight_day(), "nowhere") == 0


def test_available_buffer_stops_once_enough_is_found():
    day = _day(
        _slot("a", "09:00", "10:00"),
        _slot("b", "10:20", "11:00"),
        _slot("c", "11:30", "12:00"),
    )
    assert available_buffer(day, 0, 15) == 20
    assert available_buffer(day, 0, 45) == 50
    assert available_buffer(day, 2, 15) == 0


def test_skip_priority_ordering():
    meal = _slot("lunch", "12:00", "13:00", slot_type=SlotType.LUNCH)
    flex = _slot("museum", "14:00", "15:00")
    optional = _slot("shop", "14:00", "15:00", behavior=SlotBehavior.OPTIONAL)
    evening = _slot("bar", "19:00", "20:00")
    anchor = _slot("show", "14:00", "15:00", behavior=SlotBehavior.ANCHOR)
    assert skip_priority(optional) < skip_priority(flex) < skip_priority(meal) < skip_priority(anchor)
    assert skip_priority(evening) == skip_priority(flex) - 10


def test_locked_and_booked_slots_are_not_adjustable():
    assert is_adjustable(_slot("free", "09:00", "10:00"))
    assert not is_adjustable(_slot("locked", "09:00", "10:00", locked=True))
    assert not is_adjustable(_slot("booked", "09:00", "10:00", booked=True))
