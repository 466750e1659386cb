"""In-memory registry of execution sessions, one per trip id."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from tripexec.config.settings import EngineSettings, resolve_engine_settings
from tripexec.domain.enums import ExecutionMode
from tripexec.domain.exceptions import SessionNotFound
from tripexec.execution.engine import ExecutionEngine

_logger = logging.getLogger("trip-exec.registry")

R = TypeVar("R")


class _Entry:
    __slots__ = ("engine", "lock", "touched_at")

    def __init__(self, engine: ExecutionEngine) -> None:
        self.engine = engine
        self.lock = threading.Lock()
        self.touched_at = time.time()


class SessionRegistry:
    """Thread-safe session map. Calls on the same trip are serialized by a per-trip lock."""

    def __init__(self, settings: Optional[EngineSettings] = None, log_output=None) -> None:
        self.settings = settings or resolve_engine_settings()
        self._log_output = log_output
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def open(self, trip_id: str) -> ExecutionEngine:
        """Return the trip's session, creating it when missing."""
        with self._lock:
            entry = self._entries.get(trip_id)
            if entry is None:
                if len(self._entries) >= self.settings.max_sessions:
                    self._evict_oldest()
                entry = _Entry(ExecutionEngine(trip_id, settings=self.settings, log_output=self._log_output))
                self._entries[trip_id] = entry
            entry.touched_at = time.time()
            return entry.engine

    def get(self, trip_id: str) -> ExecutionEngine:
        with self._lock:
            entry = self._entries.get(trip_id)
            if entry is None:
                raise SessionNotFound(trip_id)
            return entry.engine

    def run(self, trip_id: str, action: Callable[[ExecutionEngine], R]) -> R:
        """Run ``action`` against the trip's session while holding its lock."""
        with self._lock:
            entry = self._entries.get(trip_id)
            if entry is None:
                raise SessionNotFound(trip_id)
            entry.touched_at = time.time()
        with entry.lock:
            return action(entry.engine)

    def close(self, trip_id: str) -> bool:
        with self._lock:
            return self._entries.pop(trip_id, None) is not None

    def exists(self, trip_id: str) -> bool:
        with self._lock:
            return trip_id in self._entries

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.engine.mode == ExecutionMode.ACTIVE)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_oldest(self) -> None:
        stopped = [key for key, entry in self._entries.items() if entry.engine.mode == ExecutionMode.STOPPED]
        candidates = stopped or list(self._entries)
        oldest = min(candidates, key=lambda key: self._entries[key].touched_at)
        del self._entries[oldest]
        _logger.warning("session limit reached; evicted trip %s", oldest)


__all__ = ["SessionRegistry"]
