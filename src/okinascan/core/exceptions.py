"""Exception hierarchy for the font scanning pipeline."""

from __future__ import annotations


class ScanError(RuntimeError):
    """Base exception for font scanning failures."""


class FetchError(ScanError):
    """Raised when the font catalog is unreachable or returns a malformed payload."""


class RenderError(ScanError):
    """Raised when a font's test content fails to render or cannot be captured."""


class ResourceExhaustionError(ScanError):
    """Raised when the shared rendering engine fails to start or becomes unusable."""


class ConflictError(ScanError):
    """Raised when a scan is requested while another batch is still running."""

    def __init__(self, running_batch_id: int, message: str | None = None) -> None:
        self.running_batch_id = running_batch_id
        super().__init__(message or f"A scan is already running (batch {running_batch_id}).")


class PersistenceError(ScanError):
    """Raised when a result or status update cannot be durably recorded."""


class InvalidTransitionError(ScanError):
    """Raised when a scan batch is moved to a state it cannot reach."""


class ScanCancelledError(ScanError):
    """Raised inside a running batch once shutdown has been requested."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


def describe_exception(exc: BaseException) -> str:
    """Return a non-empty, single-line description suitable for storage."""
    messages = exception_messages(exc)
    if messages:
        return messages[0]
    return exc.__class__.__name__


__all__ = [
    "ConflictError",
    "FetchError",
    "InvalidTransitionError",
    "PersistenceError",
    "RenderError",
    "ResourceExhaustionError",
    "ScanCancelledError",
    "ScanError",
    "describe_exception",
    "exception_hint",
    "exception_messages",
]
