"""Diagnostic abstractions shared across the scanning pipeline."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc if self.debug_enabled else None)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


class RecordingEmitter:
    """Emitter that keeps every diagnostic in memory."""

    def __init__(self, *, debug_enabled: bool = False) -> None:
        self.debug_enabled = debug_enabled
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "catalog_fetch":
        count = data.get("count", 0)
        return f"Fetched {count} fonts from the catalog (offset {data.get('offset', 0)})"

    if name == "font_start":
        index = data.get("index")
        total = data.get("total")
        family = data.get("family") or "<unknown>"
        if index is not None and total:
            return f"Analyzing font {index}/{total}: {family}"
        return f"Analyzing font: {family}"

    if name == "font_done":
        family = data.get("family") or "<unknown>"
        verdict = "auto-approved" if data.get("approved") else "needs review"
        return f"Font {family}: distinction score {data.get('score')}, {verdict}"

    if name == "font_error":
        family = data.get("family") or "<unknown>"
        return f"Font {family} could not be analyzed: {data.get('error') or 'unknown error'}"

    if name == "batch_started":
        return (
            f"Batch {data.get('batch_number')} started "
            f"({data.get('scan_type')}, window {data.get('label')})"
        )

    if name == "batch_completed":
        return (
            f"Batch {data.get('batch_number')} completed: "
            f"{data.get('processed', 0)} processed, {data.get('approved', 0)} approved"
        )

    if name == "batch_failed":
        return f"Batch {data.get('batch_number')} failed: {data.get('error') or 'unknown error'}"

    if name == "schedule_skip":
        return f"Incremental scan skipped: {data.get('reason') or 'not due'}"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "RecordingEmitter",
    "format_event_message",
]
