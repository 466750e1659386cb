"""Pacing layer: daily activity time and walking budgets."""

from __future__ import annotations

from tripexec.domain.constants import CONSECUTIVE_WALK_LIMIT
from tripexec.domain.enums import CommuteMethod, ConstraintLayer, Severity
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Day, Itinerary
from tripexec.domain.slots import selected_option


def activity_minutes(day: Day) -> int:
    """Sum of the selected activities' own durations; slots without one add nothing."""
    total = 0
    for slot in day.slots:
        option = selected_option(slot)
        if option is not None and option.activity.duration:
            total += option.activity.duration
    return total


def walking_meters(day: Day) -> float:
    return sum(
        slot.commute_from_previous.distance
        for slot in day.slots
        if slot.commute_from_previous is not None and slot.commute_from_previous.method == CommuteMethod.WALK
    )


def longest_walk_streak(day: Day) -> int:
    longest = streak = 0
    for slot in day.slots:
        commute = slot.commute_from_previous
        if commute is not None and commute.method == CommuteMethod.WALK:
            streak += 1
            longest = max(longest, streak)
        elif commute is not None:
            streak = 0
    return longest


class PacingConstraint:
    layer = ConstraintLayer.PACING

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            total = activity_minutes(day)
            if total > config.max_daily_activity_minutes:
                issues.append(
                    ConstraintViolation(
                        layer=self.layer,
                        severity=Severity.WARNING,
                        day_number=day.day_number,
                        message=f"Day {day.day_number} packs {total} min of activities",
                        resolution="Drop an optional activity or add rest time",
                    )
                )
            walked = walking_meters(day)
            if walked > config.max_daily_walking_distance:
                issues.append(
                    ConstraintViolation(
                        layer=self.layer,
                        severity=Severity.WARNING,
                        day_number=day.day_number,
                        message=(
                            f"Day {day.day_number} walks {walked / 1000:.1f} km, "
                            f"over the {config.max_daily_walking_distance / 1000:.1f} km budget"
                        ),
                        resolution="Replace a walking leg with transit",
                    )
                )
            if longest_walk_streak(day) >= CONSECUTIVE_WALK_LIMIT:
                issues.append(
                    ConstraintViolation(
                        layer=self.layer,
                        severity=Severity.INFO,
                        day_number=day.day_number,
                        message=f"Day {day.day_number} has {CONSECUTIVE_WALK_LIMIT}+ walking legs in a row",
                    )
                )
        return issues


__all__ = ["PacingConstraint", "activity_minutes", "longest_walk_streak", "walking_meters"]
