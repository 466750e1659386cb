"""Infrastructure services and cross-cutting utilities."""

from tripexec.infrastructure.logging import StructuredLogger, get_logger

__all__ = ["StructuredLogger", "get_logger"]
