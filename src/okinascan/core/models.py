"""Records exchanged between the scanner pipeline and its collaborators."""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from okinascan.core.exceptions import InvalidTransitionError


def utcnow() -> datetime:
    """Return an aware timestamp in UTC."""
    return datetime.now(timezone.utc)


class ScanType(str, Enum):
    """Origin of a scan batch."""

    MANUAL = "manual"
    INCREMENTAL = "incremental"


class ScanStatus(str, Enum):
    """Lifecycle states of a scan batch."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)

    def can_transition_to(self, target: ScanStatus) -> bool:
        """Return whether ``target`` is reachable in one step from this state."""
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[ScanStatus, frozenset[ScanStatus]] = {
    ScanStatus.PENDING: frozenset({ScanStatus.RUNNING}),
    ScanStatus.RUNNING: frozenset({ScanStatus.COMPLETED, ScanStatus.FAILED}),
    ScanStatus.COMPLETED: frozenset(),
    ScanStatus.FAILED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class FontDescriptor:
    """A font family entry as published by the font directory."""

    family: str
    variants: frozenset[str] = frozenset()
    subsets: frozenset[str] = frozenset()
    version: str | None = None
    last_modified: str | None = None
    files: Mapping[str, str] = field(default_factory=dict, hash=False)
    category: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FontDescriptor:
        """Build a descriptor from a Google Fonts ``webfonts`` item."""
        family = data["family"]
        if not isinstance(family, str) or not family.strip():
            raise ValueError("font descriptor is missing a family name")
        files = data.get("files") or {}
        return cls(
            family=family,
            variants=frozenset(data.get("variants") or ()),
            subsets=frozenset(data.get("subsets") or ()),
            version=data.get("version"),
            last_modified=data.get("lastModified"),
            files={str(key): str(value) for key, value in dict(files).items()},
            category=data.get("category"),
        )

    def to_metadata(self) -> dict[str, Any]:
        """Return the catalog metadata copied next to each analysis result."""
        return {
            "family": self.family,
            "variants": sorted(self.variants),
            "subsets": sorted(self.subsets),
            "version": self.version,
            "lastModified": self.last_modified,
            "files": dict(self.files),
            "category": self.category,
        }


@dataclass(frozen=True, slots=True)
class CharacterProbeResult:
    """Outcome of rendering one character in isolation."""

    character: str
    supported: bool
    width: float = 0.0

    @property
    def code_point(self) -> str:
        return f"U+{ord(self.character):04X}"

    @property
    def character_type(self) -> str:
        return "uppercase" if self.character.isupper() else "lowercase"


@dataclass(frozen=True, slots=True)
class DiacriticalSupportSummary:
    """Aggregated probe outcome over the diacritical character set."""

    individual: Mapping[str, bool] = field(default_factory=dict, hash=False)
    details: tuple[CharacterProbeResult, ...] = ()

    @classmethod
    def from_probes(cls, probes: Iterable[CharacterProbeResult]) -> DiacriticalSupportSummary:
        details = tuple(probes)
        return cls(
            individual={probe.character: probe.supported for probe in details},
            details=details,
        )

    @property
    def supported_count(self) -> int:
        return sum(1 for supported in self.individual.values() if supported)

    @property
    def total_count(self) -> int:
        return len(self.individual)

    @property
    def all_supported(self) -> bool:
        return self.supported_count == self.total_count

    @property
    def percentage_supported(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.supported_count / self.total_count * 100

    def to_mapping(self) -> dict[str, Any]:
        return {
            "individual": dict(self.individual),
            "supportedCount": self.supported_count,
            "totalCount": self.total_count,
            "allSupported": self.all_supported,
            "percentageSupported": self.percentage_supported,
            "characters": [
                {
                    "character": probe.character,
                    "unicodeCodePoint": probe.code_point,
                    "isSupported": probe.supported,
                    "characterType": probe.character_type,
                    "width": probe.width,
                }
                for probe in self.details
            ],
        }


@dataclass(frozen=True, slots=True)
class FontAnalysisResult:
    """Analysis outcome for one font within one batch run."""

    font_family: str
    scanned_at: datetime
    batch_label: str
    distinction_score: int | None = None
    has_visual_distinction: bool | None = None
    diacritical_support: DiacriticalSupportSummary | None = None
    phrase_preview: bytes | None = field(default=None, repr=False)
    auto_approved: bool = False
    error: str | None = None
    font_metadata: Mapping[str, Any] | None = field(default=None, hash=False, repr=False)

    @classmethod
    def failed(
        cls,
        font_family: str,
        error: str,
        *,
        batch_label: str,
        scanned_at: datetime | None = None,
        font_metadata: Mapping[str, Any] | None = None,
    ) -> FontAnalysisResult:
        """Return the record for a font whose analysis raised."""
        return cls(
            font_family=font_family,
            scanned_at=scanned_at or utcnow(),
            batch_label=batch_label,
            auto_approved=False,
            error=error or "unknown error",
            font_metadata=font_metadata,
        )

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_mapping(self) -> dict[str, Any]:
        """Return the external record shape, with the preview base64-encoded."""
        payload: dict[str, Any] = {
            "fontFamily": self.font_family,
            "autoApproved": self.auto_approved,
            "scannedAt": self.scanned_at.isoformat(),
            "batchLabel": self.batch_label,
        }
        if self.error is not None:
            payload["error"] = self.error
        else:
            payload["distinctionScore"] = self.distinction_score
            payload["hasVisualDistinction"] = self.has_visual_distinction
            payload["diacriticalSupport"] = (
                self.diacritical_support.to_mapping() if self.diacritical_support else None
            )
            payload["phrasePreview"] = (
                base64.b64encode(self.phrase_preview).decode("ascii")
                if self.phrase_preview is not None
                else None
            )
        if self.font_metadata is not None:
            payload["googleFontData"] = dict(self.font_metadata)
        return payload


@dataclass(frozen=True, slots=True)
class ScanBatch:
    """Durable record of one batch run."""

    id: int
    batch_number: int
    scan_type: ScanType
    offset: int
    limit: int
    status: ScanStatus = ScanStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    fonts_processed: int = 0
    fonts_approved: int = 0
    error_message: str | None = None

    @property
    def window_end(self) -> int:
        return self.offset + self.limit

    def _advance(self, target: ScanStatus, **changes: Any) -> ScanBatch:
        if not self.status.can_transition_to(target):
            raise InvalidTransitionError(
                f"Batch {self.id} cannot move from {self.status.value} to {target.value}."
            )
        return replace(self, status=target, **changes)

    def start(self, *, now: datetime | None = None) -> ScanBatch:
        return self._advance(ScanStatus.RUNNING, started_at=now or utcnow())

    def complete(
        self, *, processed: int, approved: int, now: datetime | None = None
    ) -> ScanBatch:
        return self._advance(
            ScanStatus.COMPLETED,
            completed_at=now or utcnow(),
            fonts_processed=processed,
            fonts_approved=approved,
        )

    def fail(self, message: str, *, now: datetime | None = None) -> ScanBatch:
        return self._advance(
            ScanStatus.FAILED,
            completed_at=now or utcnow(),
            error_message=message,
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "batchNumber": self.batch_number,
            "scanType": self.scan_type.value,
            "offset": self.offset,
            "limit": self.limit,
            "status": self.status.value,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "fontsProcessed": self.fonts_processed,
            "fontsApproved": self.fonts_approved,
            "errorMessage": self.error_message,
        }


def batch_label(offset: int, limit: int) -> str:
    """Return the label identifying a requested catalog window."""
    return f"{offset}-{offset + limit}"


__all__ = [
    "CharacterProbeResult",
    "DiacriticalSupportSummary",
    "FontAnalysisResult",
    "FontDescriptor",
    "ScanBatch",
    "ScanStatus",
    "ScanType",
    "batch_label",
    "utcnow",
]
