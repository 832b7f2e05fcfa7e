"""Test content rendered for every font under analysis."""

from __future__ import annotations

from dataclasses import dataclass
import html
from urllib.parse import quote


OKINA = "ʻ"
APOSTROPHE = "'"
LOWERCASE_VOWELS: tuple[str, ...] = ("ā", "ē", "ī", "ō", "ū")
UPPERCASE_VOWELS: tuple[str, ...] = ("Ā", "Ē", "Ī", "Ō", "Ū")
DIACRITICAL_CHARACTERS: tuple[str, ...] = LOWERCASE_VOWELS + UPPERCASE_VOWELS
TEST_PHRASE = "Ua mau ke ea o ka ʻĀina i ka pono"

GOOGLE_FONTS_CSS = "https://fonts.googleapis.com/css2?family={family}:wght@400&display=swap"

OKINA_SELECTOR = "#okina-test"
APOSTROPHE_SELECTOR = "#apostrophe-test"
PHRASE_SELECTOR = "#phrase-test"
CONTAINER_SELECTOR = ".test-container"

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <link href="{stylesheet}" rel="stylesheet">
  <style>
    body {{ margin: 0; padding: 20px; background: white; }}
    .test-container {{ font-family: {family_css}, sans-serif; font-size: {font_size}px; line-height: 1.2; }}
    .character-test {{ display: inline-block; margin: 10px; padding: 10px; border: 1px solid #ccc; }}
    .phrase-test {{ font-size: {phrase_font_size}px; margin: 20px 0; }}
  </style>
</head>
<body>
  <div class="test-container">
    <div id="okina-test" class="character-test">{okina}</div>
    <div id="apostrophe-test" class="character-test">{apostrophe}</div>
    <div id="lowercase-test" class="character-test">{lowercase}</div>
    <div id="uppercase-test" class="character-test">{uppercase}</div>
    <div id="phrase-test" class="phrase-test">{phrase}</div>
  </div>
</body>
</html>
"""


@dataclass(frozen=True, slots=True)
class TestMarkup:
    """Rendered HTML document plus the family it exercises."""

    __test__ = False

    font_family: str
    html: str
    font_size: int = 48


def stylesheet_url(font_family: str) -> str:
    return GOOGLE_FONTS_CSS.format(family=quote(font_family, safe=""))


def _css_family(font_family: str) -> str:
    escaped = font_family.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("<", "").replace(">", "")
    return f'"{escaped}"'


def build_test_markup(
    font_family: str, *, font_size: int = 48, phrase_font_size: int = 24
) -> TestMarkup:
    """Return the document pairing the ʻokina with an apostrophe for ``font_family``."""
    document = _TEMPLATE.format(
        stylesheet=html.escape(stylesheet_url(font_family), quote=True),
        family_css=_css_family(font_family),
        font_size=font_size,
        phrase_font_size=phrase_font_size,
        okina=OKINA,
        apostrophe=html.escape(APOSTROPHE),
        lowercase=" ".join(LOWERCASE_VOWELS),
        uppercase=" ".join(UPPERCASE_VOWELS),
        phrase=html.escape(TEST_PHRASE),
    )
    return TestMarkup(font_family=font_family, html=document, font_size=font_size)


__all__ = [
    "APOSTROPHE",
    "APOSTROPHE_SELECTOR",
    "CONTAINER_SELECTOR",
    "DIACRITICAL_CHARACTERS",
    "LOWERCASE_VOWELS",
    "OKINA",
    "OKINA_SELECTOR",
    "PHRASE_SELECTOR",
    "TEST_PHRASE",
    "TestMarkup",
    "UPPERCASE_VOWELS",
    "build_test_markup",
    "stylesheet_url",
]
