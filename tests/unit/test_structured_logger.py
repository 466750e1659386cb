from __future__ import annotations

import io
import json

from tripexec.infrastructure.logging import StructuredLogger, get_logger


def _rows(buffer: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines()]


def test_each_call_is_one_json_line():
    buffer = io.StringIO()
    logger = StructuredLogger(trace_id="trip-9", output=buffer)
    logger.session("start", day_number=1)
    logger.transition("slot-1", "upcoming", "pending", "time_threshold")
    logger.warning("delay", "behind schedule", delay_minutes=20)

    rows = _rows(buffer)
    assert [row["event"] for row in rows] == ["session", "transition", "warning"]
    assert all(row["trace_id"] == "trip-9" for row in rows)
    assert rows[1]["from"] == "upcoming"
    assert rows[1]["to"] == "pending"
    assert rows[2]["delay_minutes"] == 20


def test_span_reports_duration():
    buffer = io.StringIO()
    logger = StructuredLogger(output=buffer)
    logger.span_start("simulate")
    logger.span_end("simulate", runs=3)

    start, end = _rows(buffer)
    assert start["span"] == end["span"] == "simulate"
    assert end["duration_ms"] >= 0
    assert end["runs"] == 3
    assert len(logger.trace_id) == 8


def test_get_logger_reuses_instance_per_trace():
    first = get_logger("trip-1")
    assert get_logger() is first
    assert get_logger("trip-1") is first
    assert get_logger("trip-2") is not first
