"""Travel layer: commutes must fit the gap before each slot."""

from __future__ import annotations

from tripexec.domain.enums import ConstraintLayer, Severity
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary
from tripexec.domain.slots import activity_name


class TravelConstraint:
    layer = ConstraintLayer.TRAVEL

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            for previous, slot in zip(day.slots, day.slots[1:]):
                commute = slot.commute_from_previous
                if commute is None:
                    continue
                gap = slot.time_range.start_minutes - previous.time_range.end_minutes
                if commute.duration > gap:
                    issues.append(
                        ConstraintViolation(
                            layer=self.layer,
                            severity=Severity.ERROR,
                            slot_id=slot.slot_id,
                            day_number=day.day_number,
                            message=(
                                f"Commute to {activity_name(slot)} takes {commute.duration} min "
                                f"but only {gap} min are available"
                            ),
                            resolution=f"Leave {activity_name(previous)} {commute.duration - gap} min earlier",
                        )
                    )
                elif gap - commute.duration < config.min_activity_buffer:
                    issues.append(
                        ConstraintViolation(
                            layer=self.layer,
                            severity=Severity.INFO,
                            slot_id=slot.slot_id,
                            day_number=day.day_number,
                            message=f"Tight transition into {activity_name(slot)}",
                        )
                    )
        return issues


__all__ = ["TravelConstraint"]
