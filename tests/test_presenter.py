from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from rich.text import Text

from okinascan.core.models import FontAnalysisResult, ScanBatch, ScanStatus, ScanType
from okinascan.ui.cli import presenter
from okinascan.ui.cli.state import CLIState


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class DummyTable:
    def __init__(self, *args: object, **kwargs: object) -> None:
        self.rows: list[tuple[object, ...]] = []
        self.columns: list[object] = []
        self.title = kwargs.get("title")

    def add_column(self, *args: object, **kwargs: object) -> None:
        self.columns.append(args[0])

    def add_row(self, *cells: object) -> None:
        self.rows.append(cells)


@pytest.fixture
def rendered(monkeypatch: pytest.MonkeyPatch) -> tuple[CLIState, list[object]]:
    state = CLIState()
    output: list[object] = []
    console = SimpleNamespace(print=lambda obj: output.append(obj))
    monkeypatch.setattr(type(state), "console", property(lambda self: console))
    monkeypatch.setattr(presenter, "Table", DummyTable)
    return state, output


def test_batches_table_styles_status(rendered: tuple[CLIState, list[object]]) -> None:
    state, output = rendered
    batch = ScanBatch(
        id=1, batch_number=4, scan_type=ScanType.INCREMENTAL, offset=50, limit=50
    ).start(now=NOW).fail("cancelled", now=NOW)

    presenter.present_batch(state, batch)

    table = output[0]
    row = table.rows[0]
    assert row[0] == "4"
    assert row[2] == "50-100"
    assert isinstance(row[3], Text) and row[3].style == "red"
    assert row[4] == "2024-03-01 12:00:00"
    assert isinstance(output[1], Text) and "cancelled" in output[1].plain


def test_results_table_marks_errors(rendered: tuple[CLIState, list[object]]) -> None:
    state, output = rendered
    results = [
        FontAnalysisResult(
            font_family="Lora",
            scanned_at=NOW,
            batch_label="0-2",
            distinction_score=60,
            has_visual_distinction=True,
            auto_approved=True,
        ),
        FontAnalysisResult.failed("Broken", "snapshot failed", batch_label="0-2"),
    ]

    presenter.present_results(state, results)

    table = output[0]
    assert table.rows[0][:4] == ("Lora", "60", "yes", "-")
    assert "snapshot failed" in table.rows[1][4].plain


def test_empty_history_message(rendered: tuple[CLIState, list[object]]) -> None:
    state, output = rendered
    presenter.present_batches(state, [])
    assert output == ["No scan batches recorded yet."]
    assert ScanStatus.PENDING in presenter._STATUS_STYLES


def test_summary_counts_and_approved_list(rendered: tuple[CLIState, list[object]]) -> None:
    state, output = rendered
    results = [
        FontAnalysisResult(
            font_family="Lora",
            scanned_at=NOW,
            batch_label="0-3",
            distinction_score=60,
            has_visual_distinction=True,
            auto_approved=True,
        ),
        FontAnalysisResult(
            font_family="Mono",
            scanned_at=NOW,
            batch_label="0-3",
            distinction_score=10,
            has_visual_distinction=False,
        ),
        FontAnalysisResult.failed("Broken", "snapshot failed", batch_label="0-3"),
    ]

    presenter.present_summary(state, results)

    table = output[0]
    counts = {row[0]: row[1] for row in table.rows}
    assert counts["Analysed"] == "2"
    assert counts["Errors"] == "1"
    assert counts["Visually distinct ʻokina"] == "1"
    assert isinstance(counts["Auto-approved"], Text) and counts["Auto-approved"].plain == "1"
    assert output[1].plain == "Approved: Lora"
