"""Unit tests for wall-clock and great-circle helpers."""

from __future__ import annotations

import datetime as dt

import pytest

from tripexec.domain.clock import (
    add_minutes,
    at_time,
    elapsed_minutes,
    format_hhmm,
    minute_of_day,
    minutes_between,
    parse_hhmm,
)
from tripexec.domain.exceptions import InvalidTimeFormat
from tripexec.domain.geo import angle_difference, bearing_degrees, distance_meters, haversine
from tripexec.domain.models import Coordinates, TimeRange


def test_parse_and_format_round_trip_common_times():
    assert parse_hhmm("00:00") == 0
    assert parse_hhmm("09:30") == 570
    assert parse_hhmm("23:59") == 1439
    assert format_hhmm(570) == "09:30"


@pytest.mark.parametrize("value", ["9", "24:00", "12:60", "ab:cd", "", "12:30:00"])
def test_parse_rejects_malformed_times(value):
    with pytest.raises(InvalidTimeFormat):
        parse_hhmm(value)


def test_invalid_time_is_also_a_value_error():
    with pytest.raises(ValueError):
        parse_hhmm("25:00")


def test_format_clamps_to_the_same_day():
    assert format_hhmm(-15) == "00:00"
    assert format_hhmm(24 * 60 + 30) == "23:59"


def test_add_minutes_and_minutes_between():
    assert add_minutes("10:30", 45) == "11:15"
    assert add_minutes("23:30", 90) == "23:59"
    assert minutes_between("09:00", "10:30") == 90
    assert minutes_between("10:30", "09:00") == -90


def test_datetime_helpers():
    day = dt.date(2025, 4, 1)
    moment = at_time(day, "14:05")
    assert moment == dt.datetime(2025, 4, 1, 14, 5)
    assert minute_of_day(moment) == 14 * 60 + 5
    assert elapsed_minutes(moment, moment + dt.timedelta(minutes=30, seconds=59)) == 30
    assert elapsed_minutes(moment, moment - dt.timedelta(minutes=10)) == -10


def test_time_range_validates_and_exposes_minutes():
    window = TimeRange(start="09:00", end="10:15")
    assert window.start_minutes == 540
    assert window.end_minutes == 615
    assert window.duration_minutes == 75
    with pytest.raises(ValueError):
        TimeRange(start="9am", end="10:00")


def test_haversine_known_distance():
    # Tokyo Station to Shinjuku Station is roughly 6.2 km
    meters = haversine(35.6812, 139.7671, 35.6896, 139.7006)
    assert 5900 < meters < 6300


def test_distance_is_zero_for_same_point():
    point = Coordinates(lat=35.0, lng=139.0)
    assert distance_meters(point, point) == 0


def test_bearing_and_angle_difference():
    origin = Coordinates(lat=0.0, lng=0.0)
    north = Coordinates(lat=1.0, lng=0.0)
    east = Coordinates(lat=0.0, lng=1.0)
    assert bearing_degrees(origin, north) == pytest.approx(0.0, abs=0.01)
    assert bearing_degrees(origin, east) == pytest.approx(90.0, abs=0.01)
    assert angle_difference(350.0, 10.0) == pytest.approx(20.0)
    assert angle_difference(90.0, 270.0) == pytest.approx(180.0)
