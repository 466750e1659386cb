"""Wall-clock helpers. Times of day are minutes since midnight, no wraparound."""

from __future__ import annotations

import datetime as dt

from tripexec.domain.constants import LAST_MINUTE_OF_DAY
from tripexec.domain.exceptions import InvalidTimeFormat


def parse_hhmm(value: str) -> int:
    parts = str(value or "").strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise InvalidTimeFormat(f"expected HH:MM, got {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if hour > 23 or minute > 59:
        raise InvalidTimeFormat(f"expected HH:MM, got {value!r}")
    return hour * 60 + minute


def format_hhmm(minutes: int) -> str:
    clamped = max(0, min(int(minutes), LAST_MINUTE_OF_DAY))
    return f"{clamped // 60:02d}:{clamped % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    return format_hhmm(parse_hhmm(value) + minutes)


def minutes_between(start: str, end: str) -> int:
    return parse_hhmm(end) - parse_hhmm(start)


def minute_of_day(moment: dt.datetime) -> int:
    return moment.hour * 60 + moment.minute


def at_time(day: dt.date, value: str) -> dt.datetime:
    minutes = parse_hhmm(value)
    return dt.datetime.combine(day, dt.time(minutes // 60, minutes % 60))


def elapsed_minutes(start: dt.datetime, end: dt.datetime) -> int:
    """Whole minutes from start to end, negative when end precedes start."""
    return int((end - start).total_seconds() // 60)


__all__ = [
    "add_minutes",
    "at_time",
    "elapsed_minutes",
    "format_hhmm",
    "minute_of_day",
    "minutes_between",
    "parse_hhmm",
]
