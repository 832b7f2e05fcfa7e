from __future__ import annotations

from typing import Any

import pytest

from okinascan.analysis.markup import CONTAINER_SELECTOR, DIACRITICAL_CHARACTERS
from okinascan.analysis.probe import CharacterRenderProbe
from okinascan.core.exceptions import RenderError


class WidthSession:
    def __init__(self, widths: dict[str, Any], default: Any = 30.0) -> None:
        self.widths = widths
        self.default = default
        self.args: list[Any] = []

    def evaluate(self, script: str, arg: Any = None) -> Any:
        self.args.append(arg)
        return self.widths.get(arg[0], self.default)


def test_probe_marks_wide_glyphs_supported() -> None:
    session = WidthSession({"ā": 28.0, "Ā": 10.0, "ē": 0.0})
    probe = CharacterRenderProbe(min_width=10)

    assert probe.probe(session, "ā").supported is True
    assert probe.probe(session, "Ā").supported is False
    assert probe.probe(session, "ē").supported is False


def test_probe_all_covers_every_character() -> None:
    session = WidthSession({"Ū": 3.0})
    summary = CharacterRenderProbe().probe_all(session)

    assert summary.total_count == len(DIACRITICAL_CHARACTERS)
    assert summary.supported_count == len(DIACRITICAL_CHARACTERS) - 1
    assert summary.individual["Ū"] is False
    assert [detail.character for detail in summary.details] == list(DIACRITICAL_CHARACTERS)


def test_probe_renders_inside_test_container() -> None:
    session = WidthSession({})
    CharacterRenderProbe(font_size=48).measure(session, "ō")
    assert session.args == [["ō", 48, CONTAINER_SELECTOR]]


@pytest.mark.parametrize("raw", [None, "wide", float("nan")])
def test_unmeasurable_width_is_a_render_error(raw: Any) -> None:
    session = WidthSession({}, default=raw)
    with pytest.raises(RenderError):
        CharacterRenderProbe().probe(session, "ā")


def test_multi_character_input_is_rejected() -> None:
    with pytest.raises(ValueError):
        CharacterRenderProbe().measure(WidthSession({}), "āē")
