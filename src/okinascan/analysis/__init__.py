"""Glyph probes, scoring and classification for a single font."""

from __future__ import annotations

from .analyzer import FontAnalyzer
from .markup import DIACRITICAL_CHARACTERS, TEST_PHRASE, TestMarkup, build_test_markup
from .policy import ClassificationPolicy, StrictApprovalPolicy
from .probe import CharacterRenderProbe
from .scoring import DifferenceScorer, difference_score


__all__ = [
    "DIACRITICAL_CHARACTERS",
    "TEST_PHRASE",
    "CharacterRenderProbe",
    "ClassificationPolicy",
    "DifferenceScorer",
    "FontAnalyzer",
    "StrictApprovalPolicy",
    "TestMarkup",
    "build_test_markup",
    "difference_score",
]
