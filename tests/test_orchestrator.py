from __future__ import annotations

from threading import Event

import pytest

from fakes import FakeCatalog, FakeEngine, FontPlan, unreachable_catalog
from okinascan.core.diagnostics import RecordingEmitter
from okinascan.core.exceptions import (
    FetchError,
    RenderError,
    ResourceExhaustionError,
    ScanCancelledError,
)
from okinascan.scan.orchestrator import BatchOrchestrator


def _orchestrator(catalog: FakeCatalog, engine: FakeEngine, **kwargs: object) -> BatchOrchestrator:
    return BatchOrchestrator(catalog, engine, font_delay=0, **kwargs)


def test_one_result_per_font_even_when_one_fails() -> None:
    catalog = FakeCatalog(["A", "B", "C", "D"])
    engine = FakeEngine({"C": FontPlan(error=RenderError("snapshot failed"))})
    emitter = RecordingEmitter()

    results = _orchestrator(catalog, engine, emitter=emitter).scan_batch(0, 4)

    assert [result.font_family for result in results] == ["A", "B", "C", "D"]
    failed = [result for result in results if not result.succeeded]
    assert [result.font_family for result in failed] == ["C"]
    assert failed[0].error == "snapshot failed"
    assert failed[0].auto_approved is False
    assert "font_error" in emitter.names()
    assert engine.open_sessions == 0


def test_scores_and_approvals_per_font() -> None:
    catalog = FakeCatalog(["A", "B", "C"])
    engine = FakeEngine(
        {
            "A": FontPlan(okina_size=100, apostrophe_size=160),
            "B": FontPlan(okina_size=100, apostrophe_size=110),
            "C": FontPlan(okina_size=100, apostrophe_size=170),
        }
    )
    emitter = RecordingEmitter()

    results = _orchestrator(catalog, engine, emitter=emitter).scan_batch(0, 3)

    assert [result.distinction_score for result in results] == [60, 10, 70]
    assert [result.auto_approved for result in results] == [True, False, True]
    scores = [payload["score"] for name, payload in emitter.events if name == "font_done"]
    assert scores == [60, 10, 70]
    assert {result.batch_label for result in results} == {"0-3"}


def test_window_is_forwarded_to_catalog() -> None:
    catalog = FakeCatalog([f"F{index}" for index in range(10)])
    results = _orchestrator(catalog, FakeEngine()).scan_batch(4, 3)
    assert catalog.calls == [(4, 3)]
    assert [result.font_family for result in results] == ["F4", "F5", "F6"]


def test_callbacks_receive_each_result() -> None:
    catalog = FakeCatalog(["A", "B"])
    seen: list[str] = []
    progress: list[tuple[int, int]] = []

    _orchestrator(catalog, FakeEngine()).scan_batch(
        0,
        2,
        on_result=lambda result: seen.append(result.font_family),
        progress=lambda done, total: progress.append((done, total)),
    )

    assert seen == ["A", "B"]
    assert progress == [(1, 2), (2, 2)]


def test_catalog_failure_propagates() -> None:
    with pytest.raises(FetchError):
        _orchestrator(unreachable_catalog(), FakeEngine()).scan_batch(0, 50)


def test_engine_loss_ends_the_batch() -> None:
    catalog = FakeCatalog(["A", "B", "C"])
    engine = FakeEngine({"B": FontPlan(error=ResourceExhaustionError("browser crashed"))})
    seen: list[str] = []

    with pytest.raises(ResourceExhaustionError):
        _orchestrator(catalog, engine).scan_batch(
            0, 3, on_result=lambda result: seen.append(result.font_family)
        )
    assert seen == ["A"]
    assert engine.open_sessions == 0


def test_cancellation_stops_before_next_font() -> None:
    cancel = Event()
    catalog = FakeCatalog(["A", "B", "C"])
    seen: list[str] = []

    def record(result: object) -> None:
        seen.append(result.font_family)  # type: ignore[attr-defined]
        cancel.set()

    with pytest.raises(ScanCancelledError):
        _orchestrator(catalog, FakeEngine(), cancel_event=cancel).scan_batch(
            0, 3, on_result=record
        )
    assert seen == ["A"]


def test_empty_window_produces_no_results() -> None:
    assert _orchestrator(FakeCatalog(["A"]), FakeEngine()).scan_batch(5, 10) == []
