"""Visual analysis of Hawaiian ʻokina and kahakō support in web fonts."""

from __future__ import annotations

from okinascan.adapters.catalog import FontCatalogSource, GoogleFontsCatalog
from okinascan.adapters.export import ResultsExporter
from okinascan.adapters.store import ScanStore, SQLiteScanStore
from okinascan.analysis import (
    CharacterRenderProbe,
    ClassificationPolicy,
    DifferenceScorer,
    FontAnalyzer,
    StrictApprovalPolicy,
    difference_score,
)
from okinascan.core import (
    CharacterProbeResult,
    ConflictError,
    DiacriticalSupportSummary,
    FetchError,
    FontAnalysisResult,
    FontDescriptor,
    PersistenceError,
    RenderError,
    ResourceExhaustionError,
    ScanBatch,
    ScanError,
    ScannerConfig,
    ScanStatus,
    ScanType,
    SchedulerConfig,
)
from okinascan.scan import BatchOrchestrator, IncrementalScheduler, ScanRunTracker
from okinascan.version import get_version


__version__ = get_version()

__all__ = [
    "BatchOrchestrator",
    "CharacterProbeResult",
    "CharacterRenderProbe",
    "ClassificationPolicy",
    "ConflictError",
    "DiacriticalSupportSummary",
    "DifferenceScorer",
    "FetchError",
    "FontAnalysisResult",
    "FontAnalyzer",
    "FontCatalogSource",
    "FontDescriptor",
    "GoogleFontsCatalog",
    "IncrementalScheduler",
    "PersistenceError",
    "RenderError",
    "ResourceExhaustionError",
    "ResultsExporter",
    "SQLiteScanStore",
    "ScanBatch",
    "ScanError",
    "ScanRunTracker",
    "ScanStatus",
    "ScanStore",
    "ScanType",
    "ScannerConfig",
    "SchedulerConfig",
    "StrictApprovalPolicy",
    "__version__",
    "difference_score",
    "get_version",
]
