"""Collaborators that reach outside the process: catalog, browser, storage."""

from __future__ import annotations

from .catalog import FontCatalogSource, GoogleFontsCatalog
from .export import ResultsExporter
from .store import ScanStore, SQLiteScanStore


__all__ = [
    "FontCatalogSource",
    "GoogleFontsCatalog",
    "ResultsExporter",
    "SQLiteScanStore",
    "ScanStore",
]
