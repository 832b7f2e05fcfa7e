"""Batch orchestration, run tracking and scheduling."""

from __future__ import annotations

from .orchestrator import BatchOrchestrator
from .scheduler import IncrementalScheduler
from .tracker import ScanRunTracker, default_engine_factory, summarize


__all__ = [
    "BatchOrchestrator",
    "IncrementalScheduler",
    "ScanRunTracker",
    "default_engine_factory",
    "summarize",
]
