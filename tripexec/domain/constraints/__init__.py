"""Seven-layer itinerary constraint validation."""

from tripexec.domain.constraints.engine import ConstraintEngine, analyze_feasibility

__all__ = ["ConstraintEngine", "analyze_feasibility"]
