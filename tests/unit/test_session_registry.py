from __future__ import annotations

import datetime as dt
import io
import threading

import pytest

from tripexec.config.settings import EngineSettings
from tripexec.domain.enums import ExecutionMode
from tripexec.domain.exceptions import SessionNotFound
from tripexec.execution.registry import SessionRegistry
from tripexec.simulation.sample_day import generate_sample_day

NOW = dt.datetime(2025, 4, 1, 8, 0)


def _registry(max_sessions: int = 10) -> SessionRegistry:
    return SessionRegistry(EngineSettings(max_sessions=max_sessions), log_output=io.StringIO())


def test_open_is_idempotent_per_trip():
    registry = _registry()
    first = registry.open("trip-a")
    assert registry.open("trip-a") is first
    assert registry.get("trip-a") is first
    assert registry.exists("trip-a")
    assert len(registry) == 1


def test_unknown_trip_raises():
    registry = _registry()
    with pytest.raises(SessionNotFound):
        registry.get("missing")
    with pytest.raises(SessionNotFound):
        registry.run("missing", lambda engine: engine.mode)


def test_sessions_are_independent():
    registry = _registry()
    registry.open("trip-a").start(generate_sample_day(date=NOW.date()), NOW)
    registry.open("trip-b")
    assert registry.get("trip-a").mode == ExecutionMode.ACTIVE
    assert registry.get("trip-b").mode == ExecutionMode.IDLE
    assert registry.active_count() == 1


def test_run_returns_action_result():
    registry = _registry()
    registry.open("trip-a").start(generate_sample_day(date=NOW.date()), NOW)
    applied = registry.run("trip-a", lambda engine: engine.tick(NOW.replace(hour=9)))
    assert applied == 2


def test_close_removes_session():
    registry = _registry()
    registry.open("trip-a")
    assert registry.close("trip-a")
    assert not registry.close("trip-a")
    assert not registry.exists("trip-a")


def test_limit_evicts_stopped_sessions_first(caplog):
    registry = _registry(max_sessions=2)
    registry.open("trip-a")
    stopped = registry.open("trip-b")
    stopped.stop(NOW)
    registry.open("trip-a")
    registry.open("trip-c")
    assert len(registry) == 2
    assert registry.exists("trip-a")
    assert not registry.exists("trip-b")
    assert "evicted trip trip-b" in caplog.text


def test_concurrent_calls_on_one_trip_are_serialized():
    registry = _registry()
    registry.open("trip-a")
    counter = {"value": 0}

    def bump(_engine):
        current = counter["value"]
        counter["value"] = current + 1

    workers = [threading.Thread(target=lambda: [registry.run("trip-a", bump) for _ in range(200)]) for _ in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    assert counter["value"] == 1600
