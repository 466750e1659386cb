"""Unit tests for the individual itinerary constraint layers."""

from __future__ import annotations

import datetime as dt

from tripexec.domain.constraints.clustering_constraint import ClusteringConstraint
from tripexec.domain.constraints.cross_day_constraint import CrossDayConstraint
from tripexec.domain.constraints.dependency_constraint import DependencyConstraint
from tripexec.domain.constraints.fragility_constraint import FragilityConstraint, overlaps_peak
from tripexec.domain.constraints.pacing_constraint import (
    PacingConstraint,
    activity_minutes,
    longest_walk_streak,
    walking_meters,
)
from tripexec.domain.constraints.temporal_constraint import TemporalConstraint
from tripexec.domain.constraints.travel_constraint import TravelConstraint
from tripexec.domain.enums import CommuteMethod, ConstraintLayer, DependencyType, Sensitivity, Severity, SlotType
from tripexec.domain.models import (
    Activity,
    ActivityOption,
    CityTransition,
    CommuteInfo,
    ConstraintConfig,
    Day,
    Fragility,
    Itinerary,
    Slot,
    SlotDependency,
    TimeRange,
)

CONFIG = ConstraintConfig()


def _slot(slot_id: str, start: str, end: str, **extra) -> Slot:
    duration = extra.pop("duration", None)
    booking_url = extra.pop("booking_url", None)
    return Slot(
        slot_id=slot_id,
        slot_type=extra.pop("slot_type", SlotType.MORNING),
        time_range=TimeRange(start=start, end=end),
        options=[
            ActivityOption(
                id=f"opt-{slot_id}",
                activity=Activity(name=slot_id.title(), duration=duration, booking_url=booking_url),
            )
        ],
        **extra,
    )


def _walk(minutes: int, meters: float = 0.0, method: CommuteMethod = CommuteMethod.WALK) -> CommuteInfo:
    return CommuteInfo(duration=minutes, distance=meters, method=method)


def _itinerary(*days: Day) -> Itinerary:
    return Itinerary(trip_id="trip-1", destination="Tokyo", days=list(days))


def _day(number: int, *slots: Slot, transition: CityTransition | None = None) -> Day:
    return Day(
        day_number=number,
        date=dt.date(2025, 4, number),
        city="Tokyo",
        slots=list(slots),
        city_transition=transition,
    )


# ── temporal ─────────────────────────────────────────

def test_temporal_flags_activity_longer_than_slot():
    itinerary = _itinerary(
        _day(1, _slot("museum", "10:00", "11:00", duration=90), _slot("park", "11:30", "12:30", duration=45))
    )
    issues = TemporalConstraint().check(itinerary, CONFIG)
    assert len(issues) == 1
    assert issues[0].slot_id == "museum"
    assert issues[0].severity == Severity.WARNING
    assert issues[0].layer == ConstraintLayer.TEMPORAL
    assert "90 min" in issues[0].message


# ── travel ───────────────────────────────────────────

def test_travel_errors_when_commute_exceeds_gap():
    itinerary = _itinerary(
        _day(1, _slot("temple", "09:00", "10:00"), _slot("tower", "10:15", "11:00", commute_from_previous=_walk(30)))
    )
    issues = TravelConstraint().check(itinerary, CONFIG)
    assert [(item.severity, item.slot_id) for item in issues] == [(Severity.ERROR, "tower")]
    assert issues[0].resolution == "Leave Temple 15 min earlier"


def test_travel_notes_tight_transitions():
    itinerary = _itinerary(
        _day(1, _slot("temple", "09:00", "10:00"), _slot("tower", "10:20", "11:00", commute_from_previous=_walk(10)))
    )
    issues = TravelConstraint().check(itinerary, CONFIG)
    assert [item.severity for item in issues] == [Severity.INFO]


def test_travel_is_quiet_with_enough_slack():
    itinerary = _itinerary(
        _day(1, _slot("temple", "09:00", "10:00"), _slot("tower", "10:45", "11:30", commute_from_previous=_walk(20)))
    )
    assert TravelConstraint().check(itinerary, CONFIG) == []


# ── clustering ───────────────────────────────────────

def test_clustering_flags_returning_to_an_area():
    itinerary = _itinerary(
        _day(
            1,
            _slot("a", "09:00", "10:00", cluster_id="asakusa"),
            _slot("b", "10:30", "11:00", cluster_id="asakusa"),
            _slot("c", "11:30", "12:00", cluster_id="ueno"),
            _slot("d", "12:30", "13:00", cluster_id="asakusa"),
        )
    )
    issues = ClusteringConstraint().check(itinerary, CONFIG)
    assert [item.slot_id for item in issues] == ["d"]
    assert ClusteringConstraint().check(itinerary, ConstraintConfig(respect_clusters=False)) == []


# ── dependencies ─────────────────────────────────────

def test_dependency_order_and_day_rules():
    ticket = _slot("ticket", "09:00", "09:30")
    show = _slot(
        "show",
        "10:00",
        "12:00",
        dependencies=[SlotDependency(type=DependencyType.MUST_AFTER, target_slot_id="ticket")],
    )
    early = _slot(
        "early",
        "13:00",
        "14:00",
        dependencies=[SlotDependency(type=DependencyType.MUST_BEFORE, target_slot_id="ticket", reason="needs pass")],
    )
    spa = _slot(
        "spa",
        "09:00",
        "10:00",
        dependencies=[
            SlotDependency(type=DependencyType.SAME_DAY, target_slot_id="show"),
            SlotDependency(type=DependencyType.DIFFERENT_DAY, target_slot_id="ghost"),
        ],
    )
    itinerary = _itinerary(_day(1, ticket, show, early), _day(2, spa))
    issues = DependencyConstraint().check(itinerary, CONFIG)
    by_slot = {(item.slot_id, item.severity): item.message for item in issues}

    assert ("show", Severity.ERROR) not in by_slot
    assert by_slot[("early", Severity.ERROR)] == "early must come before ticket (needs pass)"
    assert by_slot[("spa", Severity.ERROR)] == "spa must be on the same day as show"
    assert by_slot[("spa", Severity.WARNING)] == "Dependency target ghost not found"


def test_different_day_dependency_warns_on_same_day():
    itinerary = _itinerary(
        _day(
            1,
            _slot("a", "09:00", "10:00"),
            _slot(
                "b",
                "11:00",
                "12:00",
                dependencies=[SlotDependency(type=DependencyType.DIFFERENT_DAY, target_slot_id="a")],
            ),
        )
    )
    issues = DependencyConstraint().check(itinerary, CONFIG)
    assert [(item.slot_id, item.severity) for item in issues] == [("b", Severity.WARNING)]


# ── pacing ───────────────────────────────────────────

def test_pacing_helpers():
    day = _day(
        1,
        _slot("a", "09:00", "10:00", duration=45),
        _slot("b", "10:10", "11:00", duration=50, commute_from_previous=_walk(10, 800)),
        _slot("c", "11:10", "12:00", commute_from_previous=_walk(10, 5000, CommuteMethod.TRANSIT)),
        _slot("d", "12:10", "13:00", duration=30, commute_from_previous=_walk(10, 700)),
    )
    # activity durations count, not slot lengths; "c" has none
    assert activity_minutes(day) == 45 + 50 + 30
    assert walking_meters(day) == 1500
    assert longest_walk_streak(day) == 1


def test_pacing_warns_on_long_days_and_long_walks():
    day = _day(
        1,
        _slot("a", "08:00", "13:00", duration=300),
        _slot("b", "13:30", "19:30", duration=360, commute_from_previous=_walk(30, 16000)),
    )
    issues = PacingConstraint().check(_itinerary(day), CONFIG)
    assert [item.severity for item in issues] == [Severity.WARNING, Severity.WARNING]
    assert "660 min" in issues[0].message
    assert "16.0 km" in issues[1].message


def test_pacing_notes_consecutive_walks():
    slots = [_slot("s0", "09:00", "09:30")]
    for index in range(1, 5):
        start = f"{9 + index:02d}:00"
        end = f"{9 + index:02d}:30"
        slots.append(_slot(f"s{index}", start, end, commute_from_previous=_walk(10, 500)))
    issues = PacingConstraint().check(_itinerary(_day(1, *slots)), CONFIG)
    assert [item.severity for item in issues] == [Severity.INFO]


def test_walk_streak_only_breaks_on_another_commute_method():
    day = _day(
        1,
        _slot("a", "09:00", "09:30"),
        _slot("b", "10:00", "10:30", commute_from_previous=_walk(10, 500)),
        _slot("c", "11:00", "11:30"),
        _slot("d", "12:00", "12:30", commute_from_previous=_walk(10, 500)),
        _slot("e", "13:00", "13:30", commute_from_previous=_walk(10, 500, CommuteMethod.TRANSIT)),
        _slot("f", "14:00", "14:30", commute_from_previous=_walk(10, 500)),
    )
    assert longest_walk_streak(day) == 2


def test_long_slots_without_durations_do_not_count_as_packed():
    day = _day(1, _slot("a", "08:00", "13:00"), _slot("b", "13:30", "19:30"))
    assert activity_minutes(day) == 0
    assert PacingConstraint().check(_itinerary(day), CONFIG) == []


# ── fragility ────────────────────────────────────────

def test_overlaps_peak_ignores_garbage_windows():
    slot = _slot("tower", "11:00", "12:00")
    assert overlaps_peak(slot, ["11:30-13:00"])
    assert not overlaps_peak(slot, ["12:00-14:00"])
    assert not overlaps_peak(slot, ["noon", "25:00-26:00"])


def test_fragility_weather_crowd_and_booking():
    slot = _slot(
        "tower",
        "11:00",
        "12:00",
        booking_url="https://tickets.example/tower",
        fragility=Fragility(
            weather_sensitivity=Sensitivity.HIGH,
            crowd_sensitivity=Sensitivity.HIGH,
            booking_required=True,
            peak_hours=["10:00-14:00"],
            best_visit_time="09:00",
        ),
    )
    issues = FragilityConstraint().check(_itinerary(_day(1, slot)), CONFIG)
    assert [item.severity for item in issues] == [Severity.INFO, Severity.WARNING, Severity.WARNING]
    assert issues[1].resolution == "Visit around 09:00"
    assert issues[2].resolution == "Book at: https://tickets.example/tower"

    quiet = FragilityConstraint().check(_itinerary(_day(1, slot)), ConstraintConfig(weather_aware=False))
    assert Severity.INFO not in [item.severity for item in quiet]


def test_booking_without_url_suggests_booking_ahead():
    slot = _slot("lunch", "12:00", "13:00", fragility=Fragility(booking_required=True), is_locked=True)
    issues = FragilityConstraint().check(_itinerary(_day(1, slot)), CONFIG)
    assert [item.resolution for item in issues] == ["Book ahead"]


# ── cross-day ────────────────────────────────────────

def _transition(departure: str, commute: int = 0) -> CityTransition:
    return CityTransition(
        from_city="Tokyo",
        to_city="Kyoto",
        method="shinkansen",
        duration=135,
        departure_time=departure,
        commute_to_station=CommuteInfo(duration=commute, method=CommuteMethod.TRANSIT) if commute else None,
    )


def test_cross_day_warns_on_short_buffer():
    day = _day(1, _slot("a", "09:00", "10:00"), _slot("b", "10:30", "12:00"), transition=_transition("12:40", 20))
    issues = CrossDayConstraint().check(_itinerary(day), CONFIG)
    assert [(item.slot_id, item.severity) for item in issues] == [("b", Severity.WARNING)]
    assert issues[0].message.startswith("Only 20 min")


def test_cross_day_warns_when_activity_runs_past_departure():
    day = _day(1, _slot("a", "09:00", "10:00"), _slot("b", "10:30", "12:00"), transition=_transition("11:30"))
    issues = CrossDayConstraint().check(_itinerary(day), CONFIG)
    assert [item.slot_id for item in issues] == ["b"]
    assert "runs past" in issues[0].message


def test_cross_day_quiet_with_enough_buffer():
    day = _day(1, _slot("a", "09:00", "10:00"), _slot("b", "10:30", "12:00"), transition=_transition("14:00", 30))
    assert CrossDayConstraint().check(_itinerary(day), CONFIG) == []
