"""Fragility layer: weather, crowd and booking exposure."""

from __future__ import annotations

from tripexec.domain.clock import parse_hhmm
from tripexec.domain.enums import ConstraintLayer, Sensitivity, Severity
from tripexec.domain.exceptions import InvalidTimeFormat
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary, Slot
from tripexec.domain.slots import activity_name, selected_option


def _peak_window(text: str) -> tuple[int, int] | None:
    """Parse ``HH:MM-HH:MM``; unparseable windows are ignored."""
    parts = text.replace(" ", "").split("-")
    if len(parts) != 2:
        return None
    try:
        return parse_hhmm(parts[0]), parse_hhmm(parts[1])
    except InvalidTimeFormat:
        return None


def overlaps_peak(slot: Slot, peak_hours: list[str]) -> bool:
    start = slot.time_range.start_minutes
    end = slot.time_range.end_minutes
    for text in peak_hours:
        window = _peak_window(text)
        if window is not None and start < window[1] and window[0] < end:
            return True
    return False


class FragilityConstraint:
    layer = ConstraintLayer.FRAGILITY

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            for slot in day.slots:
                fragility = slot.fragility
                if fragility is None:
                    continue
                name = activity_name(slot)
                if config.weather_aware and fragility.weather_sensitivity == Sensitivity.HIGH:
                    issues.append(
                        self._violation(
                            Severity.INFO,
                            slot.slot_id,
                            day.day_number,
                            f"{name} depends on good weather",
                            "Keep an indoor backup in mind",
                        )
                    )
                if fragility.crowd_sensitivity == Sensitivity.HIGH and overlaps_peak(slot, fragility.peak_hours):
                    issues.append(
                        self._violation(
                            Severity.WARNING,
                            slot.slot_id,
                            day.day_number,
                            f"{name} is scheduled during peak hours",
                            f"Visit around {fragility.best_visit_time}" if fragility.best_visit_time else None,
                        )
                    )
                if fragility.booking_required:
                    option = selected_option(slot)
                    url = fragility.booking_url or (option.activity.booking_url if option else None)
                    issues.append(
                        self._violation(
                            Severity.WARNING,
                            slot.slot_id,
                            day.day_number,
                            f"{name} requires a booking",
                            f"Book at: {url}" if url else "Book ahead",
                        )
                    )
        return issues

    def _violation(
        self,
        severity: Severity,
        slot_id: str,
        day_number: int,
        message: str,
        resolution: str | None,
    ) -> ConstraintViolation:
        return ConstraintViolation(
            layer=self.layer,
            severity=severity,
            slot_id=slot_id,
            day_number=day_number,
            message=message,
            resolution=resolution,
        )


__all__ = ["FragilityConstraint", "overlaps_peak"]
