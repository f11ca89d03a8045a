"""
Data Models Layer.

This package contains the Pydantic models and event types that define the core
data structures used throughout the launcher, such as the engine manifest,
run history records, and settings.
"""

from .doctor import CheckResult, DoctorReport
from .engine import (
    EngineCacheLayout,
    EngineManifest,
    EngineManifestInfo,
    EngineResolutionReport,
    EngineRunReport,
)
from .events import EngineEvent, RawEvent, StructuredEvent, TerminatedEvent
from .run import HistoryEntry, RunIndex, RunMode, StartRunResult
from .settings import LauncherSettings

__all__ = [
    "CheckResult",
    "DoctorReport",
    "EngineCacheLayout",
    "EngineEvent",
    "EngineManifest",
    "EngineManifestInfo",
    "EngineResolutionReport",
    "EngineRunReport",
    "HistoryEntry",
    "LauncherSettings",
    "RawEvent",
    "RunIndex",
    "RunMode",
    "StartRunResult",
    "StructuredEvent",
    "TerminatedEvent",
]
