"""Periodic trigger for incremental scans."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
import logging
from threading import Event, Thread
import time

from okinascan.adapters.store import ScanStore
from okinascan.core.config import SchedulerConfig
from okinascan.core.diagnostics import DiagnosticEmitter, NullEmitter
from okinascan.core.exceptions import ConflictError, ScanError, describe_exception
from okinascan.core.models import ScanBatch, ScanType, utcnow
from okinascan.scan.tracker import ScanRunTracker


logger = logging.getLogger(__name__)


class IncrementalScheduler:
    """Start an incremental batch whenever the minimum interval has elapsed.

    Elapsed time is measured against the stored start of the last incremental
    batch, so the interval holds across restarts. Within one process a
    monotonic clock additionally guards against wall-clock jumps.
    """

    def __init__(
        self,
        tracker: ScanRunTracker,
        store: ScanStore,
        config: SchedulerConfig | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
        clock: Callable[[], datetime] = utcnow,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.tracker = tracker
        self.store = store
        self.config = config or SchedulerConfig()
        self.emitter = emitter or NullEmitter()
        self.clock = clock
        self.monotonic = monotonic
        self._last_trigger: float | None = None
        self._stop = Event()
        self._thread: Thread | None = None

    def _skip(self, reason: str) -> None:
        logger.debug("Incremental scan skipped: %s", reason)
        self.emitter.event("schedule_skip", {"reason": reason})

    def next_offset(self) -> int:
        """Return the window start following the most recent completed batch.

        Scanning restarts at offset 0 when that batch found no fonts at all.
        Fonts that were found but failed to render still advance the window.
        """
        latest = self.store.latest_completed_batch()
        if latest is None:
            return 0
        if latest.fonts_processed == 0 and self.store.result_count(latest.id) == 0:
            return 0
        return latest.window_end

    def tick(self) -> ScanBatch | None:
        """Evaluate the schedule once; return the started batch, if any."""
        running = self.store.running_batch()
        if running is not None:
            self._skip(f"batch {running.batch_number} is running")
            return None

        interval = self.config.min_interval
        if self._last_trigger is not None:
            since = self.monotonic() - self._last_trigger
            if since < interval.total_seconds():
                self._skip(f"last incremental scan started {since:.0f}s ago in this process")
                return None

        last_started = self.store.last_started(ScanType.INCREMENTAL)
        if last_started is not None:
            elapsed = self.clock() - last_started
            if elapsed < interval:
                self._skip(f"last incremental scan started {elapsed} ago")
                return None

        try:
            batch = self.tracker.start_scan(
                ScanType.INCREMENTAL,
                offset=self.next_offset(),
                limit=self.config.batch_size,
            )
        except ConflictError as exc:
            self._skip(f"batch {exc.running_batch_id} is running")
            return None
        self._last_trigger = self.monotonic()
        logger.info("Started incremental batch %s", batch.batch_number)
        return batch

    def run_forever(self) -> None:
        """Evaluate the schedule every ``check_interval`` seconds until stopped."""
        while not self._stop.is_set():
            try:
                self.tick()
            except ScanError as exc:
                self.emitter.error(f"Scheduled scan failed: {describe_exception(exc)}", exc)
            self._stop.wait(self.config.check_interval)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self.run_forever, name="okinascan-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> bool:
        """Stop evaluating the schedule and shut the tracker down."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        return self.tracker.shutdown(timeout)


__all__ = ["IncrementalScheduler"]
