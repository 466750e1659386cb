"""Seeded day simulator: replays a day with realistic diversions through the real lifecycle."""

from __future__ import annotations

import datetime as dt
import logging
from collections import Counter
from typing import Any, Optional

from pydantic import BaseModel, Field

from tripexec.domain.clock import at_time, elapsed_minutes
from tripexec.domain.enums import ActivityState, DiversionType, ExecutionMode, TimeOfDay, Weather
from tripexec.domain.models import ActivityExecution, Coordinates, Day, DiversionEvent, Geofence, Slot
from tripexec.domain.slots import activity_name, build_executions, selected_option, slot_coordinates
from tripexec.execution.geofence import create_geofences_for_day, detect_geofence_events
from tripexec.execution.lifecycle import transition_activity
from tripexec.execution.progress import calculate_delay_minutes
from tripexec.execution.triggers import (
    CheckIn,
    CheckOut,
    Depart,
    ExternalTrigger,
    LocationDetected,
    Skip,
    TimeThreshold,
    Trigger,
)
from tripexec.infrastructure.logging import StructuredLogger
from tripexec.simulation.diversions import (
    ACTIVITY_DIVERSIONS,
    COMMUTE_DIVERSIONS,
    DEFAULT_DIVERSIONS,
    DESCRIPTIONS,
    ENERGY_DROP,
    DiversionConfig,
    effective_probability,
    find_config,
)
from tripexec.simulation.prng import SeededRandom

_logger = logging.getLogger("trip-exec.simulation")

DEFAULT_START_LOCATION = Coordinates(lat=35.6762, lng=139.6503)
DEFAULT_COMMUTE_MINUTES = 10
MIN_SIMULATED_ACTIVITY_MINUTES = 10


class SimulatorConfig(BaseModel):
    seed: Optional[int] = None
    weather: Optional[Weather] = None
    traveler_energy: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    start_location: Coordinates = Field(default_factory=lambda: DEFAULT_START_LOCATION)
    verbose: bool = False


class SimulationEvent(BaseModel):
    type: str
    timestamp: dt.datetime
    details: str
    data: dict[str, Any] = Field(default_factory=dict)


class SimulationTick(BaseModel):
    time: dt.datetime
    location: Coordinates
    slot_id: Optional[str] = None
    state: Optional[ActivityState] = None
    mode: ExecutionMode
    cumulative_delay: int
    estimated_delay: int


class SimulationSummary(BaseModel):
    planned_duration_minutes: int
    actual_duration_minutes: int
    activities_planned: int
    activities_completed: int
    activities_skipped: int
    total_diversions: int
    total_delay_minutes: int
    total_time_saved_minutes: int
    average_activity_duration: int
    longest_delay: Optional[DiversionEvent] = None
    most_common_diversion: Optional[DiversionType] = None


class SimulationResult(BaseModel):
    day_number: int
    seed: int
    start_time: dt.datetime
    end_time: dt.datetime
    activities: list[ActivityExecution]
    events: list[SimulationEvent]
    ticks: list[SimulationTick]
    diversions: list[DiversionEvent]
    timeline: list[str]
    summary: SimulationSummary


class DiversionCount(BaseModel):
    type: DiversionType
    count: int


class AggregatedStats(BaseModel):
    runs: int
    avg_duration: int
    avg_diversions: float
    avg_delay: int
    completion_rate: int
    most_common_diversions: list[DiversionCount] = Field(default_factory=list)


class MultiRunResult(BaseModel):
    results: list[SimulationResult]
    aggregated: AggregatedStats


def time_of_day(moment: dt.datetime) -> TimeOfDay:
    if moment.hour < 12:
        return TimeOfDay.MORNING
    if moment.hour < 17:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def _matches_category(config: DiversionConfig, slot: Slot) -> bool:
    if not config.applicable_to:
        return True
    option = selected_option(slot)
    tags = [tag.lower() for tag in option.activity.tags] if option else []
    name = activity_name(slot).lower()
    return any(any(category in tag for tag in tags) or category in name for category in config.applicable_to)


class ItinerarySimulator:
    """Each ``simulate`` call rewinds the generator, so a run replays from ``seed``."""

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        diversions: tuple[DiversionConfig, ...] = DEFAULT_DIVERSIONS,
        log_output=None,
    ) -> None:
        self.config = config or SimulatorConfig()
        self.diversion_configs = diversions
        self.random = SeededRandom(self.config.seed)
        self.seed = self.random.initial_seed
        self._log = StructuredLogger(trace_id=f"sim-{self.seed}", output=log_output) if self.config.verbose else None
        self._reset(None)

    def _reset(self, day: Optional[Day]) -> None:
        self._day = day
        self.random.reset()
        self._energy = self.config.traveler_energy
        self._activities: dict[str, ActivityExecution] = build_executions(day) if day else {}
        self._geofences: list[Geofence] = create_geofences_for_day(day) if day else []
        self._location = self.config.start_location
        self._now = at_time(day.date, day.slots[0].time_range.start) if day and day.slots else dt.datetime.min
        self._mode = ExecutionMode.IDLE
        self._events: list[SimulationEvent] = []
        self._ticks: list[SimulationTick] = []
        self._diversions: list[DiversionEvent] = []
        self._timeline: list[str] = []
        self._cumulative_delay = 0

    def simulate(self, day: Day) -> SimulationResult:
        self._reset(day)
        if self._log is not None:
            self._log.span_start("simulate", day_number=day.day_number, seed=self.seed)
        start = self._now
        self._mode = ExecutionMode.ACTIVE

        if day.slots:
            late = self._roll(DiversionType.LATE_START, day.slots[0], TimeOfDay.MORNING)
            if late is not None:
                self._apply_diversion(late)
                self._advance(late.impact_minutes)
        self._record("day_started", f"Day started at {self._now:%H:%M}")

        for index, slot in enumerate(day.slots):
            closed = self._roll(DiversionType.ACTIVITY_CLOSED, slot)
            if closed is not None:
                self._apply_diversion(closed)
                self._transition(slot.slot_id, ExternalTrigger(reason=closed.description))
                self._record("activity_skipped", f"{activity_name(slot)} was closed")
                continue
            skipped = self._roll(DiversionType.SKIP_ACTIVITY, slot)
            if skipped is not None:
                self._apply_diversion(skipped)
                self._transition(slot.slot_id, Skip(reason=skipped.description))
                self._record("activity_skipped", f"Skipped: {activity_name(slot)}")
                continue
            self._simulate_commute(slot, is_first=index == 0)
            self._simulate_activity(slot)

        self._mode = ExecutionMode.WINDING_DOWN
        self._record("day_completed", f"Day completed at {self._now:%H:%M}")
        summary = self._summarize(day, start)
        if self._log is not None:
            self._log.summary(day_number=day.day_number, **summary.model_dump(exclude={"longest_delay"}))
            self._log.span_end("simulate", day_number=day.day_number)
        return SimulationResult(
            day_number=day.day_number,
            seed=self.seed,
            start_time=start,
            end_time=self._now,
            activities=[self._activities[slot.slot_id] for slot in day.slots],
            events=self._events,
            ticks=self._ticks,
            diversions=self._diversions,
            timeline=self._timeline,
            summary=summary,
        )

    def _simulate_commute(self, slot: Slot, *, is_first: bool) -> None:
        self._transition(slot.slot_id, TimeThreshold())
        minutes = slot.commute_from_previous.duration if slot.commute_from_previous else 0
        if minutes == 0 and not is_first:
            minutes = DEFAULT_COMMUTE_MINUTES
        if minutes == 0:
            return

        name = activity_name(slot)
        self._transition(slot.slot_id, Depart())
        self._record("commute_started", f"Heading to {name} ({minutes} min)")
        rolled = {kind: self._roll(kind, slot) for kind in COMMUTE_DIVERSIONS}
        for kind in COMMUTE_DIVERSIONS:
            diversion = rolled[kind]
            if diversion is not None:
                self._apply_diversion(diversion)
                minutes += diversion.impact_minutes
                break
        self._advance(max(0, minutes))

        target = slot_coordinates(slot)
        if target is not None:
            previous, self._location = self._location, target
            for geofence in detect_geofence_events(previous, target, self._geofences).entered:
                self._record("geofence_entered", f"Arrived at {geofence.name or 'location'}", geofence_id=geofence.id)
                if geofence.activity_slot_id == slot.slot_id:
                    self._transition(slot.slot_id, LocationDetected(geofence_id=geofence.id))
        self._record("commute_completed", f"Arrived at {name}")
        self._tick(slot.slot_id)

    def _simulate_activity(self, slot: Slot) -> None:
        name = activity_name(slot)
        planned = slot.time_range.duration_minutes
        self._transition(slot.slot_id, CheckIn())
        self._record("activity_started", f"Started: {name} (planned: {planned} min)")

        actual = planned
        moment = time_of_day(self._now)
        for kind in ACTIVITY_DIVERSIONS:
            diversion = self._roll(kind, slot, moment)
            if diversion is None:
                continue
            self._apply_diversion(diversion)
            actual += diversion.impact_minutes
            if kind == DiversionType.ENERGY_LOW and self._energy is not None:
                self._energy = max(0.0, self._energy - ENERGY_DROP)
        actual = max(MIN_SIMULATED_ACTIVITY_MINUTES, actual)
        self._advance(actual)

        self._transition(slot.slot_id, CheckOut())
        suffix = ""
        if actual != planned:
            suffix = f" (actual: {actual} min, {actual - planned:+d})"
        self._record("activity_completed", f"Completed: {name}{suffix}")
        self._tick(slot.slot_id)

    def _roll(self, kind: DiversionType, slot: Slot, moment: Optional[TimeOfDay] = None) -> Optional[DiversionEvent]:
        config = find_config(self.diversion_configs, kind)
        if config is None or not _matches_category(config, slot):
            return None
        probability = effective_probability(
            config,
            moment or time_of_day(self._now),
            self.config.weather,
            self._energy,
        )
        if self.random.next() > probability:
            return None
        impact = self.random.next_int(config.min_impact_minutes, config.max_impact_minutes)
        name = activity_name(slot)
        template = self.random.pick(DESCRIPTIONS.get(kind, (f"{kind.value} occurred",)))
        return DiversionEvent(
            type=kind,
            slot_id=slot.slot_id,
            activity_name=name,
            occurred_at=self._now,
            impact_minutes=impact,
            description=template.format(name=name, minutes=abs(impact)),
        )

    def _apply_diversion(self, diversion: DiversionEvent) -> None:
        self._diversions.append(diversion)
        if diversion.impact_minutes > 0:
            self._cumulative_delay += diversion.impact_minutes
            impact = f"+{diversion.impact_minutes} min"
        elif diversion.impact_minutes < 0:
            impact = f"{diversion.impact_minutes} min"
        else:
            impact = "no time impact"
        self._record(
            "diversion_occurred",
            f"{diversion.description} ({impact})",
            diversion_type=diversion.type.value,
            impact_minutes=diversion.impact_minutes,
        )

    def _transition(self, slot_id: str, trigger: Trigger) -> None:
        current = self._activities[slot_id]
        updated = transition_activity(current, trigger, at=self._now)
        if updated is None:
            _logger.debug("simulated %s ignored in state %s for %s", trigger.kind.value, current.state.value, slot_id)
            return
        self._activities[slot_id] = updated

    def _advance(self, minutes: int) -> None:
        self._now += dt.timedelta(minutes=minutes)

    def _record(self, kind: str, details: str, **data: Any) -> None:
        self._events.append(SimulationEvent(type=kind, timestamp=self._now, details=details, data=data))
        line = f"[{self._now:%H:%M}] {details}"
        self._timeline.append(line)
        if self._log is not None:
            self._log.session(kind, details=details, at=f"{self._now:%H:%M}", **data)

    def _tick(self, slot_id: Optional[str]) -> None:
        record = self._activities.get(slot_id) if slot_id else None
        self._ticks.append(
            SimulationTick(
                time=self._now,
                location=self._location,
                slot_id=slot_id,
                state=record.state if record else None,
                mode=self._mode,
                cumulative_delay=self._cumulative_delay,
                estimated_delay=calculate_delay_minutes(self._day, self._activities, self._now),
            )
        )

    def _summarize(self, day: Day, start: dt.datetime) -> SimulationSummary:
        planned = sum(slot.time_range.duration_minutes for slot in day.slots)
        planned += sum(slot.commute_from_previous.duration for slot in day.slots if slot.commute_from_previous)

        completed = skipped = 0
        activity_minutes = 0
        for record in self._activities.values():
            if record.state == ActivityState.COMPLETED:
                completed += 1
                if record.actual_start is not None and record.actual_end is not None:
                    activity_minutes += elapsed_minutes(record.actual_start, record.actual_end)
            elif record.state == ActivityState.SKIPPED:
                skipped += 1

        counts = Counter(item.type for item in self._diversions)
        delays = [item for item in self._diversions if item.impact_minutes > 0]
        return SimulationSummary(
            planned_duration_minutes=planned,
            actual_duration_minutes=elapsed_minutes(start, self._now),
            activities_planned=len(day.slots),
            activities_completed=completed,
            activities_skipped=skipped,
            total_diversions=len(self._diversions),
            total_delay_minutes=self._cumulative_delay,
            total_time_saved_minutes=sum(-item.impact_minutes for item in self._diversions if item.impact_minutes < 0),
            average_activity_duration=round(activity_minutes / completed) if completed else 0,
            longest_delay=max(delays, key=lambda item: item.impact_minutes) if delays else None,
            most_common_diversion=counts.most_common(1)[0][0] if counts else None,
        )


def run_simulation(day: Day, config: Optional[SimulatorConfig] = None) -> SimulationResult:
    return ItinerarySimulator(config).simulate(day)


def run_multiple_simulations(day: Day, runs: int = 10, config: Optional[SimulatorConfig] = None) -> MultiRunResult:
    """Run ``runs`` simulations with consecutive seeds and aggregate them."""
    base = config or SimulatorConfig()
    first_seed = base.seed if base.seed is not None else SeededRandom().initial_seed
    results = [
        ItinerarySimulator(base.model_copy(update={"seed": first_seed + offset, "verbose": False})).simulate(day)
        for offset in range(max(0, runs))
    ]
    if not results:
        return MultiRunResult(
            results=[],
            aggregated=AggregatedStats(runs=0, avg_duration=0, avg_diversions=0.0, avg_delay=0, completion_rate=0),
        )

    counts: Counter[DiversionType] = Counter()
    for result in results:
        counts.update(item.type for item in result.diversions)
    planned = sum(result.summary.activities_planned for result in results)
    completed = sum(result.summary.activities_completed for result in results)
    aggregated = AggregatedStats(
        runs=len(results),
        avg_duration=round(sum(result.summary.actual_duration_minutes for result in results) / len(results)),
        avg_diversions=round(sum(result.summary.total_diversions for result in results) / len(results), 1),
        avg_delay=round(sum(result.summary.total_delay_minutes for result in results) / len(results)),
        completion_rate=round(completed / planned * 100) if planned else 0,
        most_common_diversions=[DiversionCount(type=kind, count=count) for kind, count in counts.most_common(5)],
    )
    return MultiRunResult(results=results, aggregated=aggregated)


__all__ = [
    "AggregatedStats",
    "ItinerarySimulator",
    "MultiRunResult",
    "SimulationEvent",
    "SimulationResult",
    "SimulationSummary",
    "SimulationTick",
    "SimulatorConfig",
    "run_multiple_simulations",
    "run_simulation",
    "time_of_day",
]
