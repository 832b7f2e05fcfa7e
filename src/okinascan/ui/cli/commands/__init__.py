"""CLI command implementations."""

from __future__ import annotations

from .scan import scan
from .schedule import schedule
from .status import status


__all__ = ["scan", "schedule", "status"]
