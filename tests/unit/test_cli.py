from __future__ import annotations

import datetime as dt
import json

import pytest

from tripexec.cli import main
from tripexec.domain.enums import SlotType
from tripexec.domain.models import Activity, ActivityOption, CommuteInfo, Day, Itinerary, Slot, TimeRange
from tripexec.simulation.sample_day import generate_sample_day


def _slot(slot_id: str, start: str, end: str, commute: int = 0) -> Slot:
    return Slot(
        slot_id=slot_id,
        slot_type=SlotType.MORNING,
        time_range=TimeRange(start=start, end=end),
        commute_from_previous=CommuteInfo(duration=commute) if commute else None,
        options=[ActivityOption(id=f"opt-{slot_id}", activity=Activity(name=slot_id.title()))],
    )


def _write_itinerary(tmp_path, second_start: str):
    itinerary = Itinerary(
        trip_id="trip-cli",
        days=[
            Day(
                day_number=1,
                date=dt.date(2025, 4, 1),
                slots=[_slot("temple", "09:00", "10:00"), _slot("market", second_start, "11:30", commute=20)],
            )
        ],
    )
    path = tmp_path / "itinerary.json"
    path.write_text(itinerary.model_dump_json(), encoding="utf-8")
    return str(path)


def test_simulate_prints_timeline_and_summary(capsys):
    assert main(["simulate", "--seed", "42"]) == 0
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert lines[0] == "Day 1 simulation (seed 42)"
    assert lines[1] == "=" * 50
    assert "Day completed at" in out
    assert '"activities_planned": 7' in out


def test_simulate_uses_seed_from_environment(monkeypatch, capsys):
    monkeypatch.setenv("TRIPEXEC_SIMULATION_SEED", "9")
    assert main(["simulate"]) == 0
    assert capsys.readouterr().out.startswith("Day 1 simulation (seed 9)")


def test_simulate_json_is_reproducible(capsys):
    main(["simulate", "--seed", "5", "--json", "--weather", "rainy"])
    first = json.loads(capsys.readouterr().out)
    main(["simulate", "--seed", "5", "--json", "--weather", "rainy"])
    second = json.loads(capsys.readouterr().out)
    assert first["timeline"] == second["timeline"]
    assert first["seed"] == 5


def test_simulate_many_runs_prints_aggregate(capsys):
    assert main(["simulate", "--seed", "3", "--runs", "4"]) == 0
    aggregated = json.loads(capsys.readouterr().out)
    assert aggregated["runs"] == 4


def test_simulate_reads_day_file(tmp_path, capsys):
    path = tmp_path / "day.json"
    path.write_text(generate_sample_day(city="Kyoto", date=dt.date(2025, 4, 2)).model_dump_json(), encoding="utf-8")
    assert main(["simulate", "--day", str(path), "--seed", "1", "--json"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["start_time"].startswith("2025-04-02")


def test_validate_exit_codes(tmp_path, capsys):
    assert main(["validate", _write_itinerary(tmp_path, "10:30")]) == 0
    assert json.loads(capsys.readouterr().out)["feasible"] is True

    assert main(["validate", _write_itinerary(tmp_path, "10:10")]) == 1
    analysis = json.loads(capsys.readouterr().out)
    assert analysis["feasible"] is False
    assert analysis["violations"][0]["layer"] == "travel"


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        main(["launch"])
