"""Layout-based glyph presence probe.

Each character is rendered alone in an inline element sized like the glyph
tests and its occupied width is read back. Missing-glyph fallbacks tend to be
narrow, so a width above the threshold is taken as evidence of a real glyph.
This is a proxy: a font substituting a wide fallback box passes as well.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import math
from typing import TYPE_CHECKING

from okinascan.analysis.markup import CONTAINER_SELECTOR, DIACRITICAL_CHARACTERS
from okinascan.core.exceptions import RenderError
from okinascan.core.models import CharacterProbeResult, DiacriticalSupportSummary


if TYPE_CHECKING:  # pragma: no cover - typing only
    from okinascan.adapters.rendering import RenderingSession


MEASURE_WIDTH_SCRIPT = """
([character, fontSize, hostSelector]) => {
  const host = document.querySelector(hostSelector) || document.body;
  const span = document.createElement('span');
  span.style.fontSize = `${fontSize}px`;
  span.style.fontFamily = 'inherit';
  span.textContent = character;
  host.appendChild(span);
  const width = span.offsetWidth;
  host.removeChild(span);
  return width;
}
"""


@dataclass(frozen=True, slots=True)
class CharacterRenderProbe:
    """Measure whether characters render with a plausible glyph."""

    min_width: float = 10
    font_size: int = 48

    def measure(self, session: RenderingSession, character: str) -> float:
        if len(character) != 1:
            raise ValueError(f"expected a single code point, got {character!r}")
        raw = session.evaluate(
            MEASURE_WIDTH_SCRIPT, [character, self.font_size, CONTAINER_SELECTOR]
        )
        try:
            width = float(raw)
        except (TypeError, ValueError) as exc:
            raise RenderError(f"Width of {character!r} could not be measured: {raw!r}") from exc
        if math.isnan(width):
            raise RenderError(f"Width of {character!r} could not be measured: NaN")
        return width

    def probe(self, session: RenderingSession, character: str) -> CharacterProbeResult:
        width = self.measure(session, character)
        return CharacterProbeResult(
            character=character, supported=width > self.min_width, width=width
        )

    def probe_all(
        self,
        session: RenderingSession,
        characters: Iterable[str] = DIACRITICAL_CHARACTERS,
    ) -> DiacriticalSupportSummary:
        """Probe every character and aggregate the outcome."""
        return DiacriticalSupportSummary.from_probes(
            self.probe(session, character) for character in characters
        )


__all__ = ["CharacterRenderProbe", "MEASURE_WIDTH_SCRIPT"]
