"""Day progress and the local delay estimate."""

from __future__ import annotations

import datetime as dt
from typing import Mapping, Optional

from pydantic import BaseModel

from tripexec.domain.clock import elapsed_minutes, minute_of_day
from tripexec.domain.constants import STATUS_BANDS
from tripexec.domain.enums import ActivityState, ScheduleStatus
from tripexec.domain.models import ActivityExecution, Day, Slot
from tripexec.domain.slots import activity_name
from tripexec.execution.lifecycle import ACTIVE_STATES, NOT_STARTED_STATES, TERMINAL_STATES, is_terminal

Activities = Mapping[str, ActivityExecution]


class DayProgress(BaseModel):
    total_activities: int
    completed_activities: int
    skipped_activities: int
    completed_minutes: int
    remaining_minutes: int
    percent_complete: int
    current_delay: int
    schedule_status: ScheduleStatus


def schedule_status(delay_minutes: int) -> ScheduleStatus:
    for upper, status in STATUS_BANDS:
        if delay_minutes <= upper:
            return status
    return ScheduleStatus.CRITICAL


def _scheduled_minutes(slot: Slot) -> int:
    return max(0, slot.time_range.duration_minutes)


def calculate_day_progress(day: Day, activities: Activities, now: dt.datetime) -> DayProgress:
    total = len(day.slots)
    done = 0
    skipped = 0
    completed_minutes = 0
    remaining_minutes = 0

    for slot in day.slots:
        execution = activities.get(slot.slot_id)
        state = execution.state if execution else ActivityState.UPCOMING
        if state == ActivityState.COMPLETED:
            done += 1
            if execution.actual_start is not None and execution.actual_end is not None:
                completed_minutes += max(0, elapsed_minutes(execution.actual_start, execution.actual_end))
            else:
                completed_minutes += _scheduled_minutes(slot)
        elif state in TERMINAL_STATES:
            done += 1
            skipped += 1
        else:
            remaining_minutes += _scheduled_minutes(slot)

    delay = calculate_delay_minutes(day, activities, now)
    return DayProgress(
        total_activities=total,
        completed_activities=done,
        skipped_activities=skipped,
        completed_minutes=completed_minutes,
        remaining_minutes=remaining_minutes,
        percent_complete=round(done / total * 100) if total else 0,
        current_delay=delay,
        schedule_status=schedule_status(delay),
    )


def _reference_slot(day: Day, now_minutes: int) -> Optional[Slot]:
    for slot in day.slots:
        if slot.time_range.start_minutes <= now_minutes <= slot.time_range.end_minutes:
            return slot
    for slot in day.slots:
        if slot.time_range.start_minutes > now_minutes:
            return slot
    return None


def calculate_delay_minutes(day: Day, activities: Activities, now: dt.datetime) -> int:
    """Signed minutes behind plan (positive = late), judged on a single slot."""
    now_minutes = minute_of_day(now)
    slot = _reference_slot(day, now_minutes)
    if slot is None:
        return 0
    execution = activities.get(slot.slot_id)
    if execution is None:
        return 0

    start = slot.time_range.start_minutes
    end = slot.time_range.end_minutes
    if execution.state in NOT_STARTED_STATES and now_minutes > start:
        return now_minutes - start
    if execution.state in ACTIVE_STATES and now_minutes > end:
        return now_minutes - end
    if execution.actual_start is not None and minute_of_day(execution.actual_start) > start:
        return minute_of_day(execution.actual_start) - start
    return 0


def current_activity(day: Day, activities: Activities) -> Optional[Slot]:
    for slot in day.slots:
        execution = activities.get(slot.slot_id)
        if execution is not None and execution.state in ACTIVE_STATES:
            return slot
    return None


def next_activity(day: Day, activities: Activities) -> Optional[Slot]:
    upcoming = upcoming_activities(day, activities)
    return upcoming[0] if upcoming else None


def upcoming_activities(day: Day, activities: Activities) -> list[Slot]:
    result = []
    for slot in day.slots:
        execution = activities.get(slot.slot_id)
        if execution is None or execution.state in NOT_STARTED_STATES:
            result.append(slot)
    return result


def activities_needing_attention(day: Day, activities: Activities, now: dt.datetime) -> list[Slot]:
    """Not-started slots whose start has passed, and active ones past their end."""
    now_minutes = minute_of_day(now)
    flagged = []
    for slot in day.slots:
        execution = activities.get(slot.slot_id)
        if execution is None or is_terminal(execution.state):
            continue
        if execution.state in NOT_STARTED_STATES and now_minutes > slot.time_range.start_minutes:
            flagged.append(slot)
        elif execution.state in ACTIVE_STATES and now_minutes > slot.time_range.end_minutes:
            flagged.append(slot)
    return flagged


def minutes_until_next(day: Day, activities: Activities, now: dt.datetime) -> Optional[int]:
    slot = next_activity(day, activities)
    if slot is None:
        return None
    return slot.time_range.start_minutes - minute_of_day(now)


def planned_minutes(day: Day) -> int:
    return sum(_scheduled_minutes(slot) for slot in day.slots)


def progress_summary(day: Day, activities: Activities, now: dt.datetime) -> str:
    progress = calculate_day_progress(day, activities, now)
    parts = [f"{progress.completed_activities}/{progress.total_activities} done ({progress.percent_complete}%)"]
    if progress.current_delay > 0:
        parts.append(f"{progress.current_delay} min behind")
    elif progress.current_delay < 0:
        parts.append(f"{-progress.current_delay} min ahead")
    upcoming = next_activity(day, activities)
    if upcoming is not None:
        parts.append(f"next: {activity_name(upcoming)} at {upcoming.time_range.start}")
    return ", ".join(parts)


__all__ = [
    "DayProgress",
    "activities_needing_attention",
    "calculate_day_progress",
    "calculate_delay_minutes",
    "current_activity",
    "minutes_until_next",
    "next_activity",
    "planned_minutes",
    "progress_summary",
    "schedule_status",
    "upcoming_activities",
]
