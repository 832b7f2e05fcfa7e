from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from fakes import RecordingTracker
from okinascan.adapters.store import SQLiteScanStore
from okinascan.core.config import SchedulerConfig
from okinascan.core.diagnostics import RecordingEmitter
from okinascan.core.models import FontAnalysisResult, ScanType
from okinascan.scan.scheduler import IncrementalScheduler


START = datetime(2024, 3, 1, tzinfo=timezone.utc)


class Clock:
    def __init__(self) -> None:
        self.now = START
        self.mono = 1000.0

    def advance(self, delta: timedelta, *, monotonic: bool = True) -> None:
        self.now += delta
        if monotonic:
            self.mono += delta.total_seconds()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store(tmp_path: Path) -> SQLiteScanStore:
    return SQLiteScanStore(tmp_path / "scans.sqlite3")


def _scheduler(store: SQLiteScanStore, clock: Clock, **kwargs: object):
    tracker = RecordingTracker(store, clock=lambda: clock.now)
    scheduler = IncrementalScheduler(
        tracker,  # type: ignore[arg-type]
        store,
        SchedulerConfig(min_interval=timedelta(days=14), batch_size=50),
        clock=lambda: clock.now,
        monotonic=lambda: clock.mono,
        **kwargs,  # type: ignore[arg-type]
    )
    return scheduler, tracker


def _finish_running(store: SQLiteScanStore, clock: Clock, processed: int = 50) -> None:
    running = store.running_batch()
    assert running is not None
    store.complete_batch(running, processed=processed, approved=0, now=clock.now)


def test_first_tick_starts_from_offset_zero(store: SQLiteScanStore, clock: Clock) -> None:
    scheduler, tracker = _scheduler(store, clock)

    batch = scheduler.tick()

    assert batch is not None
    assert tracker.calls == [(ScanType.INCREMENTAL, 0, 50)]


def test_skips_while_a_batch_is_running(store: SQLiteScanStore, clock: Clock) -> None:
    store.create_running_batch(ScanType.MANUAL, 0, 10, now=clock.now)
    emitter = RecordingEmitter()
    scheduler, tracker = _scheduler(store, clock, emitter=emitter)

    assert scheduler.tick() is None
    assert tracker.calls == []
    assert emitter.names() == ["schedule_skip"]


def test_interval_gates_the_next_batch(store: SQLiteScanStore, clock: Clock) -> None:
    scheduler, tracker = _scheduler(store, clock)
    scheduler.tick()
    _finish_running(store, clock)

    clock.advance(timedelta(days=3))
    assert scheduler.tick() is None

    clock.advance(timedelta(days=12))
    batch = scheduler.tick()
    assert batch is not None
    assert tracker.calls[-1] == (ScanType.INCREMENTAL, 50, 50)


def test_stored_history_gates_a_fresh_process(store: SQLiteScanStore, clock: Clock) -> None:
    recent = store.create_running_batch(
        ScanType.INCREMENTAL, 0, 50, now=clock.now - timedelta(days=5)
    )
    store.complete_batch(recent, processed=50, approved=4, now=clock.now)
    scheduler, tracker = _scheduler(store, clock)

    assert scheduler.tick() is None
    assert tracker.calls == []


def test_wall_clock_jump_does_not_retrigger(store: SQLiteScanStore, clock: Clock) -> None:
    scheduler, tracker = _scheduler(store, clock)
    scheduler.tick()
    _finish_running(store, clock)

    clock.advance(timedelta(days=30), monotonic=False)
    clock.mono += 10

    assert scheduler.tick() is None
    assert len(tracker.calls) == 1


def test_empty_previous_batch_restarts_at_zero(store: SQLiteScanStore, clock: Clock) -> None:
    scheduler, tracker = _scheduler(store, clock)
    old = store.create_running_batch(
        ScanType.INCREMENTAL, 1500, 50, now=clock.now - timedelta(days=20)
    )
    store.complete_batch(old, processed=0, approved=0, now=clock.now - timedelta(days=20))

    assert scheduler.next_offset() == 0
    scheduler.tick()
    assert tracker.calls == [(ScanType.INCREMENTAL, 0, 50)]


def test_batch_of_failed_fonts_still_advances_the_window(
    store: SQLiteScanStore, clock: Clock
) -> None:
    scheduler, tracker = _scheduler(store, clock)
    old = store.create_running_batch(
        ScanType.INCREMENTAL, 5, 5, now=clock.now - timedelta(days=20)
    )
    for family in ["A", "B", "C", "D", "E"]:
        store.record_result(
            old.id, FontAnalysisResult.failed(family, "stylesheet blocked", batch_label="5-10")
        )
    store.complete_batch(old, processed=0, approved=0, now=clock.now - timedelta(days=20))

    assert store.result_count(old.id) == 5
    assert scheduler.next_offset() == 10
    scheduler.tick()
    assert tracker.calls == [(ScanType.INCREMENTAL, 10, 50)]


def test_manual_batches_do_not_reset_the_interval(store: SQLiteScanStore, clock: Clock) -> None:
    manual = store.create_running_batch(ScanType.MANUAL, 0, 5, now=clock.now)
    store.complete_batch(manual, processed=5, approved=1, now=clock.now)
    scheduler, tracker = _scheduler(store, clock)

    assert scheduler.tick() is not None
    assert tracker.calls == [(ScanType.INCREMENTAL, 5, 50)]


def test_stop_shuts_the_tracker_down(store: SQLiteScanStore, clock: Clock) -> None:
    scheduler, tracker = _scheduler(store, clock)
    assert scheduler.stop(timeout=1) is True
    assert tracker.shutdown_called
