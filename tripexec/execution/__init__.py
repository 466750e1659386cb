"""Execution runtime: lifecycle, geofences, progress, extensions and the per-trip engine."""

from tripexec.execution.engine import ExecutionEngine, ExecutionState
from tripexec.execution.events import EventChannel
from tripexec.execution.extension import ExtensionResult, apply_extension, calculate_extension_impact
from tripexec.execution.lifecycle import should_auto_transition, transition_activity
from tripexec.execution.progress import DayProgress, calculate_day_progress, calculate_delay_minutes
from tripexec.execution.registry import SessionRegistry

__all__ = [
    "DayProgress",
    "EventChannel",
    "ExecutionEngine",
    "ExecutionState",
    "ExtensionResult",
    "SessionRegistry",
    "apply_extension",
    "calculate_day_progress",
    "calculate_delay_minutes",
    "calculate_extension_impact",
    "should_auto_transition",
    "transition_activity",
]
