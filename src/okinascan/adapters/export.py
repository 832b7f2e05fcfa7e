"""Write batch results to JSON files."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
import json
import logging
from pathlib import Path

from okinascan.core.exceptions import PersistenceError
from okinascan.core.models import FontAnalysisResult, utcnow


logger = logging.getLogger(__name__)


class ResultsExporter:
    """Persist analysis results as ``scan-results-batch-<n>-<timestamp>.json``."""

    def __init__(self, directory: Path | str, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.directory = Path(directory)
        self._clock = clock

    def filename(self, batch_number: int) -> str:
        stamp = int(self._clock().timestamp() * 1000)
        return f"scan-results-batch-{batch_number}-{stamp}.json"

    def save(self, results: Sequence[FontAnalysisResult], batch_number: int = 0) -> Path:
        target = self.directory / self.filename(batch_number)
        payload = [result.to_mapping() for result in results]
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Could not write results to {target}: {exc}") from exc
        logger.info("Results saved to %s", target)
        return target


__all__ = ["ResultsExporter"]
