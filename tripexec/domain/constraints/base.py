"""Base types for itinerary constraint layers."""

from __future__ import annotations

from typing import Protocol

from tripexec.domain.enums import ConstraintLayer
from tripexec.domain.models import ConstraintConfig, ConstraintViolation, Itinerary


class Constraint(Protocol):
    """Single-layer constraint contract."""

    layer: ConstraintLayer

    def check(self, itinerary: Itinerary, config: ConstraintConfig) -> list[ConstraintViolation]:
        ...


__all__ = ["Constraint"]
