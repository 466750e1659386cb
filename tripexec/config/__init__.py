"""Runtime configuration helpers."""

from tripexec.config.settings import EngineSettings, resolve_constraint_config, resolve_engine_settings

__all__ = ["EngineSettings", "resolve_constraint_config", "resolve_engine_settings"]
