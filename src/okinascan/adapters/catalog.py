"""Client for the Google Fonts developer API."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from threading import Lock
from typing import Any, Protocol, runtime_checkable

import requests

from okinascan.core.config import GOOGLE_FONTS_API_URL
from okinascan.core.exceptions import FetchError
from okinascan.core.models import FontDescriptor


logger = logging.getLogger(__name__)


@runtime_checkable
class FontCatalogSource(Protocol):
    """Source of font descriptors ordered by descending popularity."""

    def fetch_fonts(self, offset: int = 0, limit: int | None = None) -> list[FontDescriptor]: ...


def select_window(
    items: Sequence[FontDescriptor], offset: int, limit: int | None
) -> list[FontDescriptor]:
    """Return the contiguous window starting at ``offset`` holding at most ``limit`` items."""
    if offset < 0:
        raise ValueError("offset must be non-negative")
    if limit is not None and limit < 0:
        raise ValueError("limit must be non-negative")
    window = list(items[offset:])
    if limit is not None:
        window = window[:limit]
    return window


class GoogleFontsCatalog:
    """Fetch font descriptors from the ``webfonts`` endpoint sorted by popularity."""

    _DEFAULT_USER_AGENT = "okinascan-catalog-client"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        url: str = GOOGLE_FONTS_API_URL,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        user_agent: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._session_lock = Lock()
        self._session = session
        self._timeout = timeout
        self._user_agent = user_agent or self._DEFAULT_USER_AGENT

    def fetch_fonts(self, offset: int = 0, limit: int | None = None) -> list[FontDescriptor]:
        """Return the popularity-ordered window ``[offset, offset + limit)``.

        No retry is attempted; network failures, HTTP errors and malformed
        payloads all surface as :class:`FetchError`.
        """
        items = self._request_items()
        descriptors: list[FontDescriptor] = []
        for position, item in enumerate(items):
            try:
                descriptors.append(FontDescriptor.from_mapping(item))
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchError(f"Malformed catalog entry at position {position}: {exc}") from exc
        window = select_window(descriptors, offset, limit)
        logger.info("Fetched %d fonts from the catalog", len(window))
        return window

    def _request_items(self) -> list[Any]:
        params = {"sort": "popularity"}
        if self._api_key:
            params["key"] = self._api_key
        client = self._ensure_session()
        try:
            response = client.get(
                self._url,
                params=params,
                headers={"User-Agent": self._user_agent, "Accept": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise FetchError(f"Font catalog unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise FetchError(f"Font catalog request failed with HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError("Font catalog returned a non-JSON payload") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise FetchError("Font catalog payload does not contain an 'items' list")
        return payload["items"]

    def _ensure_session(self) -> requests.Session:
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
            return self._session

    def close(self) -> None:
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None


__all__ = ["FontCatalogSource", "GoogleFontsCatalog", "select_window"]
