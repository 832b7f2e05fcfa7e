"""Domain records, configuration and diagnostics shared by the scanner."""

from __future__ import annotations

from .config import ScannerConfig, SchedulerConfig
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .exceptions import (
    ConflictError,
    FetchError,
    InvalidTransitionError,
    PersistenceError,
    RenderError,
    ResourceExhaustionError,
    ScanCancelledError,
    ScanError,
)
from .models import (
    CharacterProbeResult,
    DiacriticalSupportSummary,
    FontAnalysisResult,
    FontDescriptor,
    ScanBatch,
    ScanStatus,
    ScanType,
)


__all__ = [
    "CharacterProbeResult",
    "ConflictError",
    "DiacriticalSupportSummary",
    "DiagnosticEmitter",
    "FetchError",
    "FontAnalysisResult",
    "FontDescriptor",
    "InvalidTransitionError",
    "LoggingEmitter",
    "NullEmitter",
    "PersistenceError",
    "RenderError",
    "ResourceExhaustionError",
    "ScanBatch",
    "ScanCancelledError",
    "ScanError",
    "ScanStatus",
    "ScanType",
    "ScannerConfig",
    "SchedulerConfig",
]
