"""Dependency layer: ordering and same/different-day requirements between slots."""

from __future__ import annotations

from tripexec.domain.enums import ConstraintLayer, DependencyType, Severity
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary

# positions are (day order, slot order) so comparisons work across days
Position = tuple[int, int]


class DependencyConstraint:
    layer = ConstraintLayer.DEPENDENCIES

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        positions: dict[str, Position] = {}
        for day_index, day in enumerate(itinerary.days):
            for slot_index, slot in enumerate(day.slots):
                positions[slot.slot_id] = (day_index, slot_index)

        issues: list[ConstraintViolation] = []
        for day in itinerary.days:
            for slot in day.slots:
                for dependency in slot.dependencies:
                    target = positions.get(dependency.target_slot_id)
                    if target is None:
                        issues.append(
                            self._violation(
                                Severity.WARNING,
                                slot.slot_id,
                                day.day_number,
                                f"Dependency target {dependency.target_slot_id} not found",
                            )
                        )
                        continue
                    issue = self._evaluate(dependency.type, positions[slot.slot_id], target)
                    if issue is None:
                        continue
                    severity, text = issue
                    message = f"{slot.slot_id} {text} {dependency.target_slot_id}"
                    if dependency.reason:
                        message += f" ({dependency.reason})"
                    issues.append(self._violation(severity, slot.slot_id, day.day_number, message))
        return issues

    @staticmethod
    def _evaluate(kind: DependencyType, source: Position, target: Position) -> tuple[Severity, str] | None:
        if kind == DependencyType.MUST_BEFORE and source >= target:
            return Severity.ERROR, "must come before"
        if kind == DependencyType.MUST_AFTER and source <= target:
            return Severity.ERROR, "must come after"
        if kind == DependencyType.SAME_DAY and source[0] != target[0]:
            return Severity.ERROR, "must be on the same day as"
        if kind == DependencyType.DIFFERENT_DAY and source[0] == target[0]:
            return Severity.WARNING, "should be on a different day from"
        return None

    def _violation(self, severity: Severity, slot_id: str, day_number: int, message: str) -> ConstraintViolation:
        return ConstraintViolation(
            layer=self.layer,
            severity=severity,
            slot_id=slot_id,
            day_number=day_number,
            message=message,
        )


__all__ = ["DependencyConstraint"]
