"""Structured logging: one JSON object per line."""

from __future__ import annotations

import json
import sys
import time
import uuid
from typing import Any, Optional


class StructuredLogger:
    """JSON line logger for session timelines, keyed by a trace id (usually the trip id)."""

    def __init__(self, trace_id: Optional[str] = None, output=None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output
        self._timers: dict[str, float] = {}

    def _emit(self, data: dict[str, Any]) -> None:
        data["trace_id"] = self.trace_id
        data["timestamp"] = time.time()
        line = json.dumps(data, ensure_ascii=False, default=str)
        stream = self._output if self._output is not None else sys.stderr
        stream.write(line + "\n")
        stream.flush()

    def span_start(self, name: str, **extra: Any) -> None:
        self._timers[name] = time.time()
        self._emit({"event": "span_start", "span": name, **extra})

    def span_end(self, name: str, **extra: Any) -> None:
        start = self._timers.pop(name, time.time())
        duration_ms = round((time.time() - start) * 1000, 1)
        self._emit({"event": "span_end", "span": name, "duration_ms": duration_ms, **extra})

    def session(self, action: str, **extra: Any) -> None:
        self._emit({"event": "session", "action": action, **extra})

    def transition(self, slot_id: str, from_state: str, to_state: str, trigger: str, **extra: Any) -> None:
        self._emit({
            "event": "transition",
            "slot_id": slot_id,
            "from": from_state,
            "to": to_state,
            "trigger": trigger,
            **extra,
        })

    def error(self, source: str, error: str, **extra: Any) -> None:
        self._emit({"event": "error", "source": source, "error": error, **extra})

    def warning(self, source: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "source": source, "message": message, **extra})

    def summary(self, **extra: Any) -> None:
        self._emit({"event": "summary", **extra})


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    global _logger
    if _logger is None or (trace_id and _logger.trace_id != trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger


__all__ = ["StructuredLogger", "get_logger"]
