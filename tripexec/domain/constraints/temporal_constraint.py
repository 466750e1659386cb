"""Temporal layer: activities must fit their slot, and slots must not overlap."""

from __future__ import annotations

from tripexec.domain.enums import ConstraintLayer, Severity
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary
from tripexec.domain.slots import activity_name, selected_option


class TemporalConstraint:
    layer = ConstraintLayer.TEMPORAL

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            for slot in day.slots:
                option = selected_option(slot)
                if option is None or option.activity.duration is None:
                    continue
                available = slot.time_range.duration_minutes
                if option.activity.duration > available:
                    issues.append(
                        ConstraintViolation(
                            layer=self.layer,
                            severity=Severity.WARNING,
                            slot_id=slot.slot_id,
                            day_number=day.day_number,
                            message=(
                                f"{option.activity.name} needs {option.activity.duration} min "
                                f"but the slot is {available} min"
                            ),
                            resolution="Extend the slot or pick a shorter option",
                        )
                    )
            for previous, slot in zip(day.slots, day.slots[1:]):
                overlap = previous.time_range.end_minutes - slot.time_range.start_minutes
                if overlap > 0:
                    issues.append(
                        ConstraintViolation(
                            layer=self.layer,
                            severity=Severity.WARNING,
                            slot_id=slot.slot_id,
                            day_number=day.day_number,
                            message=f"{activity_name(slot)} starts {overlap} min before {activity_name(previous)} ends",
                        )
                    )
        return issues


__all__ = ["TemporalConstraint"]
