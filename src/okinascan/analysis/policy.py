"""Auto-approval decision for analysed fonts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from okinascan.core.models import DiacriticalSupportSummary


@runtime_checkable
class ClassificationPolicy(Protocol):
    """Decide whether a font qualifies for the catalog without human review."""

    def classify(
        self, has_visual_distinction: bool, diacritical_support: DiacriticalSupportSummary
    ) -> bool: ...


@dataclass(frozen=True, slots=True)
class StrictApprovalPolicy:
    """Approve fonts that distinguish the ʻokina and render every macron vowel."""

    def classify(
        self, has_visual_distinction: bool, diacritical_support: DiacriticalSupportSummary
    ) -> bool:
        return bool(has_visual_distinction) and diacritical_support.all_supported


__all__ = ["ClassificationPolicy", "StrictApprovalPolicy"]
