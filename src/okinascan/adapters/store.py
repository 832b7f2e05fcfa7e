"""Durable storage for scan batches and per-font analysis results.

The store owns the run-exclusivity rule: creating a running batch is a
compare-and-set executed inside an immediate SQLite transaction, and a
partial unique index rejects a second running row even if another writer
bypasses the check. Terminal transitions only apply to rows that are still
running, which keeps status changes monotonic across processes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
import json
import logging
from pathlib import Path
import sqlite3
from typing import Any, Protocol, runtime_checkable

from okinascan.core.exceptions import ConflictError, InvalidTransitionError, PersistenceError
from okinascan.core.models import (
    FontAnalysisResult,
    ScanBatch,
    ScanStatus,
    ScanType,
    utcnow,
)


logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS scan_batches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    batch_number INTEGER NOT NULL UNIQUE,
    scan_type TEXT NOT NULL,
    batch_offset INTEGER NOT NULL,
    batch_limit INTEGER NOT NULL,
    status TEXT NOT NULL,
    started_at TEXT,
    completed_at TEXT,
    fonts_processed INTEGER NOT NULL DEFAULT 0,
    fonts_approved INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    processing_notes TEXT
);
CREATE UNIQUE INDEX IF NOT EXISTS scan_batches_single_running
    ON scan_batches (status) WHERE status = 'running';
CREATE TABLE IF NOT EXISTS font_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    batch_id INTEGER NOT NULL REFERENCES scan_batches (id),
    font_family TEXT NOT NULL,
    batch_label TEXT NOT NULL,
    scanned_at TEXT NOT NULL,
    distinction_score INTEGER,
    has_visual_distinction INTEGER,
    all_diacriticals_supported INTEGER,
    diacritical_percentage REAL,
    auto_approved INTEGER NOT NULL,
    category TEXT,
    error TEXT,
    payload TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS font_results_batch ON font_results (batch_id);
"""


@runtime_checkable
class ScanStore(Protocol):
    """Persistence collaborator used by the run tracker."""

    def create_running_batch(
        self, scan_type: ScanType, offset: int, limit: int, *, now: datetime | None = None
    ) -> ScanBatch: ...

    def complete_batch(
        self, batch: ScanBatch, *, processed: int, approved: int, now: datetime | None = None
    ) -> ScanBatch: ...

    def fail_batch(
        self, batch: ScanBatch, message: str, *, now: datetime | None = None
    ) -> ScanBatch: ...

    def record_result(self, batch_id: int, result: FontAnalysisResult) -> None: ...

    def get_batch(self, batch_id: int) -> ScanBatch | None: ...

    def running_batch(self) -> ScanBatch | None: ...

    def last_started(self, scan_type: ScanType) -> datetime | None: ...

    def latest_completed_batch(self) -> ScanBatch | None: ...

    def result_count(self, batch_id: int) -> int: ...


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_text(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_batch(row: sqlite3.Row) -> ScanBatch:
    return ScanBatch(
        id=row["id"],
        batch_number=row["batch_number"],
        scan_type=ScanType(row["scan_type"]),
        offset=row["batch_offset"],
        limit=row["batch_limit"],
        status=ScanStatus(row["status"]),
        started_at=_from_text(row["started_at"]),
        completed_at=_from_text(row["completed_at"]),
        fonts_processed=row["fonts_processed"],
        fonts_approved=row["fonts_approved"],
        error_message=row["error_message"],
    )


def _optional_flag(value: bool | None) -> int | None:
    return None if value is None else int(bool(value))


class SQLiteScanStore:
    """SQLite implementation of :class:`ScanStore`."""

    def __init__(self, path: Path | str, *, timeout: float = 30.0) -> None:
        self.path = Path(path)
        self._timeout = timeout
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._initialise()

    def _initialise(self) -> None:
        try:
            conn = self._connect()
            try:
                conn.executescript(SCHEMA)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Scan database unavailable at {self.path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self, *, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Scan database unavailable at {self.path}: {exc}") from exc
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except BaseException as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            if isinstance(exc, sqlite3.Error):
                raise PersistenceError(f"Scan database error: {exc}") from exc
            raise
        finally:
            conn.close()

    # ---------------------------------------------------------------- batches

    def create_running_batch(
        self, scan_type: ScanType, offset: int, limit: int, *, now: datetime | None = None
    ) -> ScanBatch:
        """Atomically create a running batch unless another one is running."""
        if offset < 0 or limit < 1:
            raise ValueError("offset must be >= 0 and limit >= 1")
        with self._transaction(immediate=True) as conn:
            running = conn.execute(
                "SELECT id FROM scan_batches WHERE status = ? LIMIT 1",
                (ScanStatus.RUNNING.value,),
            ).fetchone()
            if running is not None:
                raise ConflictError(running["id"])
            next_number = conn.execute(
                "SELECT COALESCE(MAX(batch_number), 0) + 1 AS next FROM scan_batches"
            ).fetchone()["next"]
            pending = ScanBatch(
                id=0,
                batch_number=next_number,
                scan_type=ScanType(scan_type),
                offset=offset,
                limit=limit,
            )
            batch = pending.start(now=now)
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO scan_batches
                        (batch_number, scan_type, batch_offset, batch_limit, status, started_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        batch.batch_number,
                        batch.scan_type.value,
                        batch.offset,
                        batch.limit,
                        batch.status.value,
                        _to_text(batch.started_at),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                holder = conn.execute(
                    "SELECT id FROM scan_batches WHERE status = ? LIMIT 1",
                    (ScanStatus.RUNNING.value,),
                ).fetchone()
                if holder is None:
                    raise
                raise ConflictError(holder["id"]) from exc
            batch_id = cursor.lastrowid
        return replace(batch, id=batch_id)

    def complete_batch(
        self, batch: ScanBatch, *, processed: int, approved: int, now: datetime | None = None
    ) -> ScanBatch:
        completed = batch.complete(processed=processed, approved=approved, now=now)
        notes = f"Processed {processed} fonts, {approved} auto-approved"
        self._finish(
            completed,
            """
            UPDATE scan_batches
               SET status = ?, completed_at = ?, fonts_processed = ?, fonts_approved = ?,
                   processing_notes = ?
             WHERE id = ? AND status = 'running'
            """,
            (
                completed.status.value,
                _to_text(completed.completed_at),
                processed,
                approved,
                notes,
                completed.id,
            ),
        )
        return completed

    def fail_batch(
        self, batch: ScanBatch, message: str, *, now: datetime | None = None
    ) -> ScanBatch:
        failed = batch.fail(message, now=now)
        self._finish(
            failed,
            """
            UPDATE scan_batches
               SET status = ?, completed_at = ?, error_message = ?
             WHERE id = ? AND status = 'running'
            """,
            (failed.status.value, _to_text(failed.completed_at), message, failed.id),
        )
        return failed

    def _finish(self, batch: ScanBatch, statement: str, params: tuple[Any, ...]) -> None:
        with self._transaction(immediate=True) as conn:
            cursor = conn.execute(statement, params)
            if cursor.rowcount == 0:
                raise InvalidTransitionError(
                    f"Batch {batch.id} is no longer running; cannot mark it {batch.status.value}."
                )

    def fail_stale_batches(self, started_before: datetime, message: str) -> list[int]:
        """Fail running batches older than ``started_before`` and return their ids."""
        with self._transaction(immediate=True) as conn:
            rows = conn.execute(
                "SELECT id FROM scan_batches WHERE status = 'running' AND started_at < ?",
                (_to_text(started_before),),
            ).fetchall()
            ids = [row["id"] for row in rows]
            for batch_id in ids:
                conn.execute(
                    """
                    UPDATE scan_batches
                       SET status = 'failed', completed_at = ?, error_message = ?
                     WHERE id = ? AND status = 'running'
                    """,
                    (_to_text(utcnow()), message, batch_id),
                )
        if ids:
            logger.warning("Marked stale batches as failed: %s", ids)
        return ids

    def get_batch(self, batch_id: int) -> ScanBatch | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM scan_batches WHERE id = ?", (batch_id,)).fetchone()
        return _row_to_batch(row) if row is not None else None

    def recent_batches(self, limit: int = 10) -> list[ScanBatch]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM scan_batches ORDER BY started_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_batch(row) for row in rows]

    def running_batch(self) -> ScanBatch | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM scan_batches WHERE status = 'running' LIMIT 1"
            ).fetchone()
        return _row_to_batch(row) if row is not None else None

    def last_started(self, scan_type: ScanType) -> datetime | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT MAX(started_at) AS last FROM scan_batches WHERE scan_type = ?",
                (ScanType(scan_type).value,),
            ).fetchone()
        return _from_text(row["last"])

    def latest_completed_batch(self) -> ScanBatch | None:
        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT * FROM scan_batches WHERE status = 'completed'
                ORDER BY completed_at DESC, id DESC LIMIT 1
                """
            ).fetchone()
        return _row_to_batch(row) if row is not None else None

    # ---------------------------------------------------------------- results

    def record_result(self, batch_id: int, result: FontAnalysisResult) -> None:
        support = result.diacritical_support
        metadata = dict(result.font_metadata or {})
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO font_results (
                    batch_id, font_family, batch_label, scanned_at, distinction_score,
                    has_visual_distinction, all_diacriticals_supported, diacritical_percentage,
                    auto_approved, category, error, payload
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    batch_id,
                    result.font_family,
                    result.batch_label,
                    _to_text(result.scanned_at),
                    result.distinction_score,
                    _optional_flag(result.has_visual_distinction),
                    _optional_flag(support.all_supported if support else None),
                    support.percentage_supported if support else None,
                    int(result.auto_approved),
                    metadata.get("category"),
                    result.error,
                    json.dumps(result.to_mapping(), ensure_ascii=False),
                ),
            )

    def result_count(self, batch_id: int) -> int:
        """Return how many fonts were recorded for a batch, errored ones included."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS found FROM font_results WHERE batch_id = ?", (batch_id,)
            ).fetchone()
        return row["found"]

    def results_for_batch(self, batch_id: int) -> list[dict[str, Any]]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT payload FROM font_results WHERE batch_id = ? ORDER BY id",
                (batch_id,),
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]


__all__ = ["SCHEMA", "SQLiteScanStore", "ScanStore"]
