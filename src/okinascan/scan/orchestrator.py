"""Sequence catalog fonts through the analysis pipeline for one window."""

from __future__ import annotations

from collections.abc import Callable
import logging
from threading import Event
from typing import TYPE_CHECKING

from okinascan.analysis.analyzer import FontAnalyzer
from okinascan.core.diagnostics import DiagnosticEmitter, NullEmitter
from okinascan.core.exceptions import (
    ResourceExhaustionError,
    ScanCancelledError,
    describe_exception,
)
from okinascan.core.models import FontAnalysisResult, batch_label


if TYPE_CHECKING:  # pragma: no cover - typing only
    from okinascan.adapters.catalog import FontCatalogSource
    from okinascan.adapters.rendering import RenderingEngine


logger = logging.getLogger(__name__)

ResultCallback = Callable[[FontAnalysisResult], None]
ProgressCallback = Callable[[int, int], None]

# Faults that mean the whole run cannot continue.
FATAL_ERRORS: tuple[type[BaseException], ...] = (ResourceExhaustionError, ScanCancelledError)


class BatchOrchestrator:
    """Analyse a bounded window of catalog fonts one at a time.

    A failing font is recorded as an errored result and the batch moves on;
    only catalog failures, rendering engine loss and cancellation end the
    batch early.
    """

    def __init__(
        self,
        catalog: FontCatalogSource,
        engine: RenderingEngine,
        analyzer: FontAnalyzer | None = None,
        *,
        font_delay: float = 0.1,
        emitter: DiagnosticEmitter | None = None,
        cancel_event: Event | None = None,
    ) -> None:
        self.catalog = catalog
        self.engine = engine
        self.analyzer = analyzer or FontAnalyzer()
        self.font_delay = font_delay
        self.emitter = emitter or NullEmitter()
        self.cancel_event = cancel_event or Event()

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ScanCancelledError("cancelled")

    def scan_batch(
        self,
        offset: int = 0,
        limit: int = 50,
        *,
        on_result: ResultCallback | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[FontAnalysisResult]:
        """Return one result per catalog font in ``[offset, offset + limit)``."""
        label = batch_label(offset, limit)
        fonts = self.catalog.fetch_fonts(offset, limit)
        self.emitter.event("catalog_fetch", {"count": len(fonts), "offset": offset})

        results: list[FontAnalysisResult] = []
        total = len(fonts)
        for index, font in enumerate(fonts, start=1):
            self._check_cancelled()
            self.emitter.event(
                "font_start", {"index": index, "total": total, "family": font.family}
            )
            try:
                result = self.analyzer.analyze(self.engine, font, batch_label=label)
            except FATAL_ERRORS:
                raise
            except Exception as exc:
                message = describe_exception(exc)
                logger.warning("Error analyzing font %s: %s", font.family, message)
                self.emitter.event("font_error", {"family": font.family, "error": message})
                result = FontAnalysisResult.failed(
                    font.family,
                    message,
                    batch_label=label,
                    font_metadata=font.to_metadata(),
                )
            else:
                self.emitter.event(
                    "font_done",
                    {
                        "family": font.family,
                        "score": result.distinction_score,
                        "approved": result.auto_approved,
                    },
                )

            results.append(result)
            if on_result is not None:
                on_result(result)
            if progress is not None:
                progress(index, total)

            if index < total and self.font_delay > 0:
                # Throttle between fonts; wakes early on cancellation.
                self.cancel_event.wait(self.font_delay)

        approved = sum(1 for result in results if result.auto_approved)
        logger.info("Batch %s analysed %d fonts, %d auto-approved", label, len(results), approved)
        return results


__all__ = ["BatchOrchestrator", "FATAL_ERRORS"]
