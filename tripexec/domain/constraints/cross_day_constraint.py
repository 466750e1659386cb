"""Cross-day layer: leave enough time before a city transition."""

from __future__ import annotations

from tripexec.domain.clock import parse_hhmm
from tripexec.domain.enums import ConstraintLayer, Severity
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary
from tripexec.domain.slots import activity_name


class CrossDayConstraint:
    layer = ConstraintLayer.CROSS_DAY

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            transition = day.city_transition
            if transition is None or not day.slots:
                continue
            departure = parse_hhmm(transition.departure_time)
            commute = transition.commute_to_station.duration if transition.commute_to_station else 0
            before = [slot for slot in day.slots if slot.time_range.start_minutes < departure]
            for slot in before:
                if slot.time_range.end_minutes > departure:
                    issues.append(
                        ConstraintViolation(
                            layer=self.layer,
                            severity=Severity.WARNING,
                            slot_id=slot.slot_id,
                            day_number=day.day_number,
                            message=(
                                f"{activity_name(slot)} runs past the {transition.departure_time} "
                                f"departure to {transition.to_city}"
                            ),
                            resolution="End the activity before leaving for the station",
                        )
                    )
            if not before:
                continue
            last = before[-1]
            buffer = departure - last.time_range.end_minutes - commute
            if last.time_range.end_minutes <= departure and buffer < config.min_departure_buffer:
                issues.append(
                    ConstraintViolation(
                        layer=self.layer,
                        severity=Severity.WARNING,
                        slot_id=last.slot_id,
                        day_number=day.day_number,
                        message=(
                            f"Only {buffer} min between {activity_name(last)} and the "
                            f"{transition.departure_time} departure to {transition.to_city}"
                        ),
                        resolution=f"Keep at least {config.min_departure_buffer} min before departure",
                    )
                )
        return issues


__all__ = ["CrossDayConstraint"]
