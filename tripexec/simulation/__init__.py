"""Diversion simulation for stress-testing the execution runtime."""

from tripexec.simulation.sample_day import generate_sample_day
from tripexec.simulation.simulator import (
    ItinerarySimulator,
    SimulationResult,
    SimulatorConfig,
    run_multiple_simulations,
    run_simulation,
)

__all__ = [
    "ItinerarySimulator",
    "SimulationResult",
    "SimulatorConfig",
    "generate_sample_day",
    "run_multiple_simulations",
    "run_simulation",
]
