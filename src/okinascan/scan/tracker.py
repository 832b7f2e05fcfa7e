"""Run-exclusive batch execution with guaranteed terminal status.

A batch is created through the store's compare-and-set, which rejects the
request with :class:`ConflictError` while another batch is running. The
accepted batch then runs on a background thread that owns the rendering
engine for the whole run. Whatever happens inside the run, the thread ends
by moving the batch to ``completed`` or ``failed``.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime, timedelta
import logging
from threading import Event, Lock, Thread
from typing import Any

from okinascan.adapters.catalog import FontCatalogSource
from okinascan.adapters.export import ResultsExporter
from okinascan.adapters.store import ScanStore
from okinascan.analysis.analyzer import FontAnalyzer
from okinascan.core.config import ScannerConfig
from okinascan.core.diagnostics import DiagnosticEmitter, NullEmitter
from okinascan.core.exceptions import ScanError, describe_exception
from okinascan.core.models import FontAnalysisResult, ScanBatch, ScanType, utcnow
from okinascan.scan.orchestrator import BatchOrchestrator, ProgressCallback


logger = logging.getLogger(__name__)

EngineFactory = Callable[[], AbstractContextManager[Any]]


def default_engine_factory(config: ScannerConfig) -> EngineFactory:
    """Return a factory producing Playwright engines configured from ``config``."""

    def factory() -> AbstractContextManager[Any]:
        from okinascan.adapters.rendering import PlaywrightRenderingEngine
        from okinascan.core.user_dir import get_user_dir

        return PlaywrightRenderingEngine(
            headless=config.headless,
            browser_args=config.browser_args,
            max_sessions=config.max_sessions,
            browsers_path=get_user_dir().browsers_dir,
        )

    return factory


def summarize(results: list[FontAnalysisResult]) -> tuple[int, int]:
    """Return ``(processed, approved)`` counts for a finished result list."""
    processed = sum(1 for result in results if result.succeeded)
    approved = sum(1 for result in results if result.auto_approved)
    return processed, approved


class ScanRunTracker:
    """Start batches, run them in the background and record their outcome."""

    def __init__(
        self,
        store: ScanStore,
        catalog: FontCatalogSource,
        *,
        config: ScannerConfig | None = None,
        engine_factory: EngineFactory | None = None,
        emitter: DiagnosticEmitter | None = None,
        exporter: ResultsExporter | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.config = config or ScannerConfig()
        self.engine_factory = engine_factory or default_engine_factory(self.config)
        self.emitter = emitter or NullEmitter()
        self.exporter = exporter
        self.clock = clock
        self._cancel = Event()
        self._lock = Lock()
        self._threads: dict[int, Thread] = {}
        self._outcomes: dict[int, ScanBatch] = {}
        self._results: dict[int, list[FontAnalysisResult]] = {}
        self._closed = False

    # ------------------------------------------------------------------ state

    @property
    def active_batch_ids(self) -> list[int]:
        with self._lock:
            return [batch_id for batch_id, thread in self._threads.items() if thread.is_alive()]

    def outcome(self, batch_id: int) -> ScanBatch | None:
        """Return the terminal record of a batch run by this tracker, if finished."""
        with self._lock:
            return self._outcomes.get(batch_id)

    def results(self, batch_id: int) -> list[FontAnalysisResult]:
        with self._lock:
            return list(self._results.get(batch_id, ()))

    # ---------------------------------------------------------------- control

    def start_scan(
        self,
        scan_type: ScanType = ScanType.MANUAL,
        *,
        offset: int = 0,
        limit: int | None = None,
        pixel_threshold: int | None = None,
        progress: ProgressCallback | None = None,
    ) -> ScanBatch:
        """Create a running batch and process it in the background.

        Raises :class:`ConflictError` without creating anything while another
        batch is running.
        """
        if self._closed:
            raise ScanError("The scan tracker has been shut down.")
        config = self.config
        if pixel_threshold is not None:
            config = config.model_copy(update={"pixel_threshold": pixel_threshold})
        analyzer = FontAnalyzer.from_config(config)
        window = limit if limit is not None else config.batch_size

        batch = self.store.create_running_batch(
            ScanType(scan_type), offset, window, now=self.clock()
        )
        self.emitter.event(
            "batch_started",
            {
                "batch_id": batch.id,
                "batch_number": batch.batch_number,
                "scan_type": batch.scan_type.value,
                "label": f"{batch.offset}-{batch.window_end}",
            },
        )
        thread = Thread(
            target=self._run,
            args=(batch, analyzer, progress),
            name=f"okinascan-batch-{batch.id}",
            daemon=True,
        )
        with self._lock:
            self._threads[batch.id] = thread
        thread.start()
        return batch

    def wait(self, batch_id: int, timeout: float | None = None) -> ScanBatch | None:
        """Block until the batch thread ends and return the stored record."""
        with self._lock:
            thread = self._threads.get(batch_id)
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                return None
        return self.outcome(batch_id) or self.store.get_batch(batch_id)

    def shutdown(self, timeout: float | None = None) -> bool:
        """Cancel running batches and wait for their sessions to close.

        Returns ``True`` when every batch thread has ended.
        """
        self._closed = True
        self._cancel.set()
        with self._lock:
            threads = list(self._threads.values())
        for thread in threads:
            thread.join(timeout)
        finished = not any(thread.is_alive() for thread in threads)
        if not finished:
            logger.error("Scan threads still running after shutdown timeout")
        return finished

    def recover_stale(self, max_age: timedelta) -> list[int]:
        """Fail batches left running by a process that died mid-run."""
        fail_stale = getattr(self.store, "fail_stale_batches", None)
        if fail_stale is None:
            return []
        return fail_stale(self.clock() - max_age, "interrupted: scanner process exited")

    # -------------------------------------------------------------------- run

    def run_now(
        self,
        scan_type: ScanType = ScanType.MANUAL,
        *,
        offset: int = 0,
        limit: int | None = None,
        pixel_threshold: int | None = None,
        progress: ProgressCallback | None = None,
    ) -> ScanBatch:
        """Start a batch and block until it reaches a terminal state."""
        batch = self.start_scan(
            scan_type,
            offset=offset,
            limit=limit,
            pixel_threshold=pixel_threshold,
            progress=progress,
        )
        final = self.wait(batch.id)
        if final is None:
            raise ScanError(f"Batch {batch.id} has no recorded outcome.")
        return final

    def _run(
        self,
        batch: ScanBatch,
        analyzer: FontAnalyzer,
        progress: ProgressCallback | None,
    ) -> None:
        results: list[FontAnalysisResult] = []

        def collect(result: FontAnalysisResult) -> None:
            self.store.record_result(batch.id, result)
            results.append(result)

        final: ScanBatch = batch
        try:
            with self.engine_factory() as engine:
                orchestrator = BatchOrchestrator(
                    self.catalog,
                    engine,
                    analyzer,
                    font_delay=self.config.font_delay,
                    emitter=self.emitter,
                    cancel_event=self._cancel,
                )
                orchestrator.scan_batch(
                    batch.offset, batch.limit, on_result=collect, progress=progress
                )
            if self.exporter is not None:
                self.exporter.save(results, batch.batch_number)
            processed, approved = summarize(results)
            final = self.store.complete_batch(
                batch, processed=processed, approved=approved, now=self.clock()
            )
            self.emitter.event(
                "batch_completed",
                {
                    "batch_id": batch.id,
                    "batch_number": batch.batch_number,
                    "processed": processed,
                    "approved": approved,
                },
            )
        except BaseException as exc:
            final = self._fail(batch, exc)
            if not isinstance(exc, Exception):
                raise
        finally:
            with self._lock:
                self._outcomes[batch.id] = final
                self._results[batch.id] = results

    def _fail(self, batch: ScanBatch, exc: BaseException) -> ScanBatch:
        message = describe_exception(exc)
        logger.error("Batch %s failed: %s", batch.id, message)
        try:
            final = self.store.fail_batch(batch, message, now=self.clock())
        except Exception as persist_exc:
            # The batch stays running in storage; recover_stale() clears it later.
            self.emitter.error(
                f"Could not record failure of batch {batch.id}: "
                f"{describe_exception(persist_exc)}",
                persist_exc,
            )
            final = batch.fail(message, now=self.clock())
        self.emitter.event(
            "batch_failed",
            {"batch_id": batch.id, "batch_number": batch.batch_number, "error": message},
        )
        return final


__all__ = [
    "EngineFactory",
    "ScanRunTracker",
    "default_engine_factory",
    "summarize",
]
