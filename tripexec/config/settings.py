"""Engine settings resolved from the environment."""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from tripexec.domain.constants import (
    DEFAULT_DWELL_SECONDS,
    DELAY_ALERT_MINUTES,
    MAX_DAILY_WALKING_METERS,
    PENDING_THRESHOLD_MINUTES,
)
from tripexec.domain.models import ConstraintConfig

_TRUTHY = {"1", "true", "yes", "on"}
_PREFIX = "TRIPEXEC_"


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = str(os.getenv(_PREFIX + name) or "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def _env_float(name: str, default: float) -> float:
    raw = str(os.getenv(_PREFIX + name) or "").strip()
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_optional_int(name: str) -> Optional[int]:
    raw = str(os.getenv(_PREFIX + name) or "").strip()
    return int(raw) if raw.lstrip("-").isdigit() else None


class EngineSettings(BaseModel):
    dwell_threshold_seconds: int = Field(default=DEFAULT_DWELL_SECONDS)
    pending_threshold_minutes: int = Field(default=PENDING_THRESHOLD_MINUTES)
    delay_alert_minutes: int = Field(default=DELAY_ALERT_MINUTES)
    event_history_limit: int = Field(default=500)
    max_sessions: int = Field(default=1000)
    strict_constraints: bool = Field(default=False)
    max_walking_meters: float = Field(default=MAX_DAILY_WALKING_METERS)
    simulation_seed: Optional[int] = Field(default=None)


def resolve_engine_settings() -> EngineSettings:
    return EngineSettings(
        dwell_threshold_seconds=_env_int("DWELL_THRESHOLD_SECONDS", DEFAULT_DWELL_SECONDS),
        pending_threshold_minutes=_env_int("PENDING_THRESHOLD_MINUTES", PENDING_THRESHOLD_MINUTES),
        delay_alert_minutes=_env_int("DELAY_ALERT_MINUTES", DELAY_ALERT_MINUTES),
        event_history_limit=_env_int("EVENT_HISTORY_LIMIT", 500, minimum=1),
        max_sessions=_env_int("MAX_SESSIONS", 1000, minimum=1),
        strict_constraints=_is_enabled(os.getenv(_PREFIX + "STRICT_CONSTRAINTS")),
        max_walking_meters=_env_float("MAX_WALKING_METERS", MAX_DAILY_WALKING_METERS),
        simulation_seed=_env_optional_int("SIMULATION_SEED"),
    )


def resolve_constraint_config(settings: EngineSettings | None = None) -> ConstraintConfig:
    resolved = settings or resolve_engine_settings()
    return ConstraintConfig(
        strict_mode=resolved.strict_constraints,
        max_daily_walking_distance=resolved.max_walking_meters,
    )


__all__ = [
    "EngineSettings",
    "resolve_constraint_config",
    "resolve_engine_settings",
]
