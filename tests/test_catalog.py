from __future__ import annotations

from typing import Any

import pytest
import requests

from okinascan.adapters.catalog import GoogleFontsCatalog, select_window
from okinascan.core.exceptions import FetchError
from okinascan.core.models import FontDescriptor


class DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, invalid: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._invalid = invalid

    def json(self) -> Any:
        if self._invalid:
            raise ValueError("not json")
        return self._payload


class DummySession:
    def __init__(self, response: DummyResponse | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> DummyResponse:
        self.requests.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


def _items(count: int) -> list[dict[str, Any]]:
    return [
        {"family": f"Font {index}", "category": "serif", "variants": ["regular"]}
        for index in range(count)
    ]


def test_fetch_returns_requested_window() -> None:
    session = DummySession(DummyResponse(payload={"items": _items(10)}))
    catalog = GoogleFontsCatalog(api_key="secret", session=session, timeout=5)

    fonts = catalog.fetch_fonts(offset=3, limit=4)

    assert [font.family for font in fonts] == ["Font 3", "Font 4", "Font 5", "Font 6"]
    (request,) = session.requests
    assert request["params"] == {"sort": "popularity", "key": "secret"}
    assert request["timeout"] == 5


def test_fetch_without_key_omits_parameter() -> None:
    session = DummySession(DummyResponse(payload={"items": _items(2)}))
    GoogleFontsCatalog(session=session).fetch_fonts()
    assert session.requests[0]["params"] == {"sort": "popularity"}


def test_window_past_catalog_end_is_empty() -> None:
    session = DummySession(DummyResponse(payload={"items": _items(3)}))
    assert GoogleFontsCatalog(session=session).fetch_fonts(offset=10, limit=5) == []


def test_short_final_window() -> None:
    session = DummySession(DummyResponse(payload={"items": _items(5)}))
    fonts = GoogleFontsCatalog(session=session).fetch_fonts(offset=3, limit=50)
    assert [font.family for font in fonts] == ["Font 3", "Font 4"]


@pytest.mark.parametrize(
    "session",
    [
        DummySession(error=requests.ConnectionError("refused")),
        DummySession(DummyResponse(status_code=403, payload={})),
        DummySession(DummyResponse(invalid=True)),
        DummySession(DummyResponse(payload={"kind": "webfonts#webfontList"})),
        DummySession(DummyResponse(payload={"items": [{"category": "serif"}]})),
    ],
    ids=["unreachable", "http-error", "not-json", "missing-items", "malformed-entry"],
)
def test_failures_surface_as_fetch_error(session: DummySession) -> None:
    with pytest.raises(FetchError):
        GoogleFontsCatalog(session=session).fetch_fonts(0, 10)


def test_close_releases_session() -> None:
    session = DummySession(DummyResponse(payload={"items": []}))
    catalog = GoogleFontsCatalog(session=session)
    catalog.close()
    assert session.closed is True


def test_select_window_validates_bounds() -> None:
    fonts = [FontDescriptor(family=name) for name in "ABC"]
    assert select_window(fonts, 1, None) == fonts[1:]
    assert select_window(fonts, 0, 0) == []
    with pytest.raises(ValueError):
        select_window(fonts, -1, 2)
    with pytest.raises(ValueError):
        select_window(fonts, 0, -2)
