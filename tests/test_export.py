from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path

import pytest

from okinascan.adapters.export import ResultsExporter
from okinascan.core.exceptions import PersistenceError
from okinascan.core.models import FontAnalysisResult


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_filename_uses_batch_number_and_millisecond_stamp(tmp_path: Path) -> None:
    exporter = ResultsExporter(tmp_path, clock=lambda: NOW)
    assert exporter.filename(3) == "scan-results-batch-3-1704067200000.json"


def test_save_writes_result_records(tmp_path: Path) -> None:
    exporter = ResultsExporter(tmp_path / "nested", clock=lambda: NOW)
    results = [
        FontAnalysisResult.failed("Broken Sans", "snapshot failed", batch_label="0-2"),
        FontAnalysisResult(
            font_family="ʻŌlelo Serif",
            scanned_at=NOW,
            batch_label="0-2",
            distinction_score=120,
            has_visual_distinction=True,
            phrase_preview=b"png",
            auto_approved=False,
        ),
    ]

    target = exporter.save(results, batch_number=7)

    assert target.name == "scan-results-batch-7-1704067200000.json"
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload[0]["error"] == "snapshot failed"
    assert payload[1]["fontFamily"] == "ʻŌlelo Serif"
    assert payload[1]["phrasePreview"] == "cG5n"


def test_unwritable_directory_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    exporter = ResultsExporter(blocker / "out", clock=lambda: NOW)
    with pytest.raises(PersistenceError):
        exporter.save([], batch_number=1)
