"""Constraint engine: run every layer and fold the results into a feasibility verdict."""

from __future__ import annotations

from typing import Iterable, Optional

from tripexec.domain.constants import IMMOVABLE_RIGIDITY
from tripexec.domain.constraints.base import Constraint
from tripexec.domain.constraints.clustering_constraint import ClusteringConstraint
from tripexec.domain.constraints.cross_day_constraint import CrossDayConstraint
from tripexec.domain.constraints.dependency_constraint import DependencyConstraint
from tripexec.domain.constraints.fragility_constraint import FragilityConstraint
from tripexec.domain.constraints.pacing_constraint import PacingConstraint
from tripexec.domain.constraints.temporal_constraint import TemporalConstraint
from tripexec.domain.constraints.travel_constraint import TravelConstraint
from tripexec.domain.enums import ConstraintLayer, Severity, TicketType
from tripexec.domain.models import (
    ConstraintConfig,
    ConstraintViolation,
    Day,
    FeasibilityAnalysis,
    Itinerary,
)
from tripexec.domain.slots import find_day, find_slot_index, rigidity

LAYER_ORDER = list(ConstraintLayer)


def analyze_feasibility(violations: Iterable[ConstraintViolation], *, strict_mode: bool = False) -> FeasibilityAnalysis:
    items = list(violations)
    blocking = {Severity.ERROR, Severity.WARNING} if strict_mode else {Severity.ERROR}
    layers = {item.layer for item in items}
    return FeasibilityAnalysis(
        feasible=not any(item.severity in blocking for item in items),
        violations=items,
        affected_layers=[layer for layer in LAYER_ORDER if layer in layers],
    )


def _rejection(layer: ConstraintLayer, message: str, slot_id: str, day_number: Optional[int] = None) -> FeasibilityAnalysis:
    violation = ConstraintViolation(
        layer=layer,
        severity=Severity.ERROR,
        slot_id=slot_id,
        day_number=day_number,
        message=message,
    )
    return FeasibilityAnalysis(feasible=False, violations=[violation], affected_layers=[layer])


class ConstraintEngine:
    def __init__(self, constraints: tuple[Constraint, ...], config: Optional[ConstraintConfig] = None) -> None:
        self._constraints = constraints
        self.config = config or ConstraintConfig()

    @classmethod
    def default(cls, config: Optional[ConstraintConfig] = None) -> "ConstraintEngine":
        return cls(
            (
                TemporalConstraint(),
                TravelConstraint(),
                ClusteringConstraint(),
                DependencyConstraint(),
                PacingConstraint(),
                FragilityConstraint(),
                CrossDayConstraint(),
            ),
            config,
        )

    def evaluate(self, itinerary: Itinerary) -> list[ConstraintViolation]:
        violations: list[ConstraintViolation] = []
        for item in self._constraints:
            violations.extend(item.check(itinerary, self.config))
        return violations

    def validate_itinerary(self, itinerary: Itinerary) -> FeasibilityAnalysis:
        return analyze_feasibility(self.evaluate(itinerary), strict_mode=self.config.strict_mode)

    def validate_day(self, day: Day, trip_id: str = "day") -> FeasibilityAnalysis:
        return self.validate_itinerary(Itinerary(trip_id=trip_id, days=[day]))

    def can_move_slot(
        self,
        itinerary: Itinerary,
        slot_id: str,
        from_day: int,
        to_day: Optional[int] = None,
        target_index: Optional[int] = None,
    ) -> FeasibilityAnalysis:
        """Validate the itinerary as it would look with the slot moved."""
        source = find_day(itinerary, from_day)
        index = find_slot_index(source, slot_id) if source is not None else -1
        if source is None or index < 0:
            return _rejection(ConstraintLayer.TEMPORAL, f"Slot {slot_id} not found on day {from_day}", slot_id, from_day)

        slot = source.slots[index]
        if slot.is_locked or rigidity(slot) >= IMMOVABLE_RIGIDITY:
            return _rejection(ConstraintLayer.TEMPORAL, f"Slot {slot_id} is locked in place", slot_id, from_day)
        if slot.fragility is not None and slot.fragility.ticket_type == TicketType.TIMED:
            return _rejection(ConstraintLayer.FRAGILITY, f"Slot {slot_id} has a timed ticket", slot_id, from_day)

        destination_number = from_day if to_day is None else to_day
        if find_day(itinerary, destination_number) is None:
            return _rejection(ConstraintLayer.CROSS_DAY, f"Day {destination_number} not found", slot_id, destination_number)

        days = []
        for day in itinerary.days:
            slots = [item for item in day.slots if item.slot_id != slot_id] if day.day_number == from_day else list(day.slots)
            if day.day_number == destination_number:
                if target_index is None:
                    position = next(
                        (i for i, item in enumerate(slots) if item.time_range.start_minutes > slot.time_range.start_minutes),
                        len(slots),
                    )
                else:
                    position = max(0, min(target_index, len(slots)))
                slots.insert(position, slot)
            days.append(day.model_copy(update={"slots": slots}))
        return self.validate_itinerary(itinerary.model_copy(update={"days": days}))


__all__ = ["ConstraintEngine", "LAYER_ORDER", "analyze_feasibility"]
