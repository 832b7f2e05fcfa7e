"""Construction of the scan services shared by CLI commands."""

from __future__ import annotations

from pathlib import Path

from okinascan.adapters.catalog import GoogleFontsCatalog
from okinascan.adapters.export import ResultsExporter
from okinascan.adapters.store import SQLiteScanStore
from okinascan.core.config import ScannerConfig
from okinascan.core.diagnostics import DiagnosticEmitter
from okinascan.core.user_dir import get_user_dir
from okinascan.scan.tracker import ScanRunTracker, default_engine_factory


def open_store(database: Path | None) -> SQLiteScanStore:
    """Open the scan database, defaulting to the user data directory."""
    return SQLiteScanStore(database or get_user_dir().database_path)


def build_catalog(config: ScannerConfig) -> GoogleFontsCatalog:
    return GoogleFontsCatalog(
        api_key=config.api_key,
        url=config.catalog_url,
        timeout=config.request_timeout,
    )


def build_tracker(
    config: ScannerConfig,
    store: SQLiteScanStore,
    catalog: GoogleFontsCatalog,
    *,
    emitter: DiagnosticEmitter,
    output_dir: Path | None = None,
) -> ScanRunTracker:
    """Wire the tracker with the Playwright engine and optional JSON export."""
    exporter = ResultsExporter(output_dir) if output_dir is not None else None
    return ScanRunTracker(
        store,
        catalog,
        config=config,
        engine_factory=default_engine_factory(config),
        emitter=emitter,
        exporter=exporter,
    )


__all__ = ["build_catalog", "build_tracker", "open_store"]
