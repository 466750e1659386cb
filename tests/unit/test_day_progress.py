"""Unit tests for day progress and the local delay estimate."""

from __future__ import annotations

import datetime as dt

from tripexec.domain.enums import ActivityState, ScheduleStatus, SlotType
from tripexec.domain.models import Activity, ActivityOption, Day, Slot, TimeRange
from tripexec.domain.slots import build_executions
from tripexec.execution.progress import (
    activities_needing_attention,
    calculate_day_progress,
    calculate_delay_minutes,
    current_activity,
    minutes_until_next,
    next_activity,
    planned_minutes,
    progress_summary,
    schedule_status,
    upcoming_activities,
)

DATE = dt.date(2025, 4, 1)


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime.combine(DATE, dt.time(hour, minute))


def _slot(slot_id: str, start: str, end: str) -> Slot:
    return Slot(
        slot_id=slot_id,
        slot_type=SlotType.MORNING,
        time_range=TimeRange(start=start, end=end),
        options=[ActivityOption(id=f"opt-{slot_id}", activity=Activity(name=slot_id.title()))],
    )


def _day() -> Day:
    return Day(
        day_number=1,
        date=DATE,
        slots=[
            _slot("temple", "09:00", "10:00"),
            _slot("market", "10:30", "11:30"),
            _slot("museum", "13:00", "15:00"),
        ],
    )


def _with(activities: dict, slot_id: str, **updates) -> dict:
    activities = dict(activities)
    activities[slot_id] = activities[slot_id].model_copy(update=updates)
    return activities


def test_schedule_status_bands():
    assert schedule_status(-10) == ScheduleStatus.ON_TRACK
    assert schedule_status(5) == ScheduleStatus.ON_TRACK
    assert schedule_status(6) == ScheduleStatus.MINOR_DELAY
    assert schedule_status(15) == ScheduleStatus.MINOR_DELAY
    assert schedule_status(16) == ScheduleStatus.NEEDS_ATTENTION
    assert schedule_status(30) == ScheduleStatus.NEEDS_ATTENTION
    assert schedule_status(31) == ScheduleStatus.CRITICAL


def test_fresh_day_progress():
    day = _day()
    progress = calculate_day_progress(day, build_executions(day), _at(8))
    assert progress.total_activities == 3
    assert progress.completed_activities == 0
    assert progress.remaining_minutes == 240
    assert progress.percent_complete == 0
    assert progress.current_delay == 0
    assert progress.schedule_status == ScheduleStatus.ON_TRACK


def test_completed_uses_actual_minutes_and_skipped_counts_as_done():
    day = _day()
    activities = build_executions(day)
    activities = _with(
        activities,
        "temple",
        state=ActivityState.COMPLETED,
        actual_start=_at(9),
        actual_end=_at(10, 20),
    )
    activities = _with(activities, "market", state=ActivityState.SKIPPED)
    progress = calculate_day_progress(day, activities, _at(12))
    assert progress.completed_activities == 2
    assert progress.skipped_activities == 1
    assert progress.completed_minutes == 80
    assert progress.remaining_minutes == 120
    assert progress.percent_complete == 67


def test_progress_is_idempotent_and_leaves_records_alone():
    day = _day()
    activities = _with(
        build_executions(day),
        "temple",
        state=ActivityState.COMPLETED,
        actual_start=_at(9, 10),
        actual_end=_at(10, 15),
    )
    activities = _with(activities, "market", state=ActivityState.IN_PROGRESS, actual_start=_at(10, 50))
    snapshot = dict(activities)

    first = calculate_day_progress(day, activities, _at(11))
    second = calculate_day_progress(day, activities, _at(11))
    assert first == second
    assert first.current_delay == second.current_delay == 20
    assert activities == snapshot


def test_deferred_and_replaced_count_as_done():
    day = _day()
    activities = _with(build_executions(day), "temple", state=ActivityState.DEFERRED)
    activities = _with(activities, "market", state=ActivityState.REPLACED)
    progress = calculate_day_progress(day, activities, _at(12))
    assert progress.completed_activities == 2
    assert progress.skipped_activities == 2


def test_delay_when_current_slot_not_started():
    day = _day()
    activities = build_executions(day)
    assert calculate_delay_minutes(day, activities, _at(9, 20)) == 20

    pending = _with(activities, "temple", state=ActivityState.EN_ROUTE)
    assert calculate_delay_minutes(day, pending, _at(9, 20)) == 20


def test_overrun_into_a_gap_is_judged_on_the_next_slot():
    day = _day()
    activities = _with(
        build_executions(day),
        "temple",
        state=ActivityState.IN_PROGRESS,
        actual_start=_at(9),
    )
    assert calculate_delay_minutes(day, activities, _at(10)) == 0
    # 10:20 sits in the gap, so the market is the reference slot and it has not started yet
    assert calculate_delay_minutes(day, activities, _at(10, 20)) == 0
    # once the market's start passes with the temple still running, the market is late
    assert calculate_delay_minutes(day, activities, _at(10, 40)) == 10


def test_delay_from_late_actual_start():
    day = _day()
    activities = _with(
        build_executions(day),
        "temple",
        state=ActivityState.IN_PROGRESS,
        actual_start=_at(9, 25),
    )
    assert calculate_delay_minutes(day, activities, _at(9, 40)) == 25


def test_no_delay_after_the_last_slot():
    day = _day()
    assert calculate_delay_minutes(day, build_executions(day), _at(16)) == 0


def test_current_and_next_activity():
    day = _day()
    activities = _with(build_executions(day), "temple", state=ActivityState.COMPLETED)
    activities = _with(activities, "market", state=ActivityState.IN_PROGRESS, actual_start=_at(10, 30))
    assert current_activity(day, activities).slot_id == "market"
    assert next_activity(day, activities).slot_id == "museum"
    assert [slot.slot_id for slot in upcoming_activities(day, activities)] == ["museum"]
    assert minutes_until_next(day, activities, _at(12)) == 60


def test_activities_needing_attention():
    day = _day()
    activities = _with(build_executions(day), "temple", state=ActivityState.IN_PROGRESS, actual_start=_at(9))
    flagged = activities_needing_attention(day, activities, _at(10, 45))
    assert [slot.slot_id for slot in flagged] == ["temple", "market"]


def test_planned_minutes_and_summary():
    day = _day()
    activities = build_executions(day)
    assert planned_minutes(day) == 240
    summary = progress_summary(day, activities, _at(9, 20))
    assert summary.startswith("0/3 done (0%)")
    assert "20 min behind" in summary
    assert "next: Temple at 09:00" in summary
