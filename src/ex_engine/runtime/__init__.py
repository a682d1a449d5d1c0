"""Runtime services: telemetry and engine configuration."""

from . import telemetry
from .config import EngineConfig

__all__ = ["EngineConfig", "telemetry"]
