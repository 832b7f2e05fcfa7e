"""Per-font visual analysis inside one rendering session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import TYPE_CHECKING

from okinascan.analysis.markup import (
    APOSTROPHE_SELECTOR,
    DIACRITICAL_CHARACTERS,
    OKINA_SELECTOR,
    PHRASE_SELECTOR,
    build_test_markup,
)
from okinascan.analysis.policy import ClassificationPolicy, StrictApprovalPolicy
from okinascan.analysis.probe import CharacterRenderProbe
from okinascan.analysis.scoring import DifferenceScorer
from okinascan.core.config import ScannerConfig
from okinascan.core.models import FontAnalysisResult, FontDescriptor, utcnow


if TYPE_CHECKING:  # pragma: no cover - typing only
    from okinascan.adapters.rendering import RenderingEngine


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FontAnalyzer:
    """Render the test content for a font and derive its analysis record."""

    scorer: DifferenceScorer = field(default_factory=DifferenceScorer)
    probe: CharacterRenderProbe = field(default_factory=CharacterRenderProbe)
    policy: ClassificationPolicy = field(default_factory=StrictApprovalPolicy)
    asset_timeout_ms: int = 2000
    font_size: int = 48
    phrase_font_size: int = 24
    clock: Callable[[], datetime] = utcnow

    @classmethod
    def from_config(
        cls, config: ScannerConfig, *, policy: ClassificationPolicy | None = None
    ) -> FontAnalyzer:
        return cls(
            scorer=DifferenceScorer(pixel_threshold=config.pixel_threshold),
            probe=CharacterRenderProbe(
                min_width=config.min_glyph_width, font_size=config.font_size
            ),
            policy=policy or StrictApprovalPolicy(),
            asset_timeout_ms=config.asset_timeout_ms,
            font_size=config.font_size,
            phrase_font_size=config.phrase_font_size,
        )

    def analyze(
        self,
        engine: RenderingEngine,
        font: FontDescriptor,
        *,
        batch_label: str,
    ) -> FontAnalysisResult:
        """Analyse ``font``; any failure propagates to the caller."""
        markup = build_test_markup(
            font.family, font_size=self.font_size, phrase_font_size=self.phrase_font_size
        )
        with engine.session() as session:
            session.set_content(markup)
            if not session.await_asset_ready(self.asset_timeout_ms):
                logger.info("Font %s did not finish loading; using fallback glyphs", font.family)

            okina = session.capture_element(OKINA_SELECTOR)
            apostrophe = session.capture_element(APOSTROPHE_SELECTOR)
            score = self.scorer.score(okina, apostrophe)
            distinct = self.scorer.is_distinct(score)

            support = self.probe.probe_all(session, DIACRITICAL_CHARACTERS)
            preview = session.capture_element(PHRASE_SELECTOR)

        return FontAnalysisResult(
            font_family=font.family,
            scanned_at=self.clock(),
            batch_label=batch_label,
            distinction_score=score,
            has_visual_distinction=distinct,
            diacritical_support=support,
            phrase_preview=preview,
            auto_approved=self.policy.classify(distinct, support),
            font_metadata=font.to_metadata(),
        )


__all__ = ["FontAnalyzer"]
