"""Scoped rendering sessions backed by a headless Chromium instance.

The engine owns one browser process for the duration of a batch run. Each
font is analysed inside a :class:`RenderingSession`, a single page acquired
through :meth:`PlaywrightRenderingEngine.session`. The context manager closes
the page on every exit path and a bounded semaphore caps how many pages may
be open at once.

Playwright's synchronous API binds the browser to the thread that launched
it, so an engine must be started, used and closed on the same thread.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
import logging
import os
import subprocess
import sys
from threading import BoundedSemaphore, Lock
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from playwright.sync_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from okinascan.core.config import DEFAULT_BROWSER_ARGS
from okinascan.core.exceptions import RenderError, ResourceExhaustionError


if TYPE_CHECKING:  # pragma: no cover - typing only
    from okinascan.analysis.markup import TestMarkup


logger = logging.getLogger(__name__)

DEFAULT_ASSET_TIMEOUT_MS = 2000
_CONTENT_TIMEOUT_MS = 30_000
_VIEWPORT = {"width": 1280, "height": 800}

_FONT_READY_SCRIPT = """
async ([family, size, sample, timeoutMs]) => {
  const timeout = new Promise((resolve) => setTimeout(() => resolve(false), timeoutMs));
  const loaded = document.fonts
    .load(`${size}px "${family}"`, sample)
    .then((faces) => faces.length > 0, () => false);
  return Promise.race([loaded, timeout]);
}
"""


@runtime_checkable
class RenderingSession(Protocol):
    """One scoped rendering context (a page) inside the shared engine."""

    def set_content(self, markup: TestMarkup) -> None: ...

    def await_asset_ready(self, timeout_ms: int = DEFAULT_ASSET_TIMEOUT_MS) -> bool: ...

    def capture_element(self, selector: str) -> bytes: ...

    def evaluate(self, script: str, arg: Any = None) -> Any: ...

    def close(self) -> None: ...


@runtime_checkable
class RenderingEngine(Protocol):
    """Shared engine handing out rendering sessions."""

    def session(self) -> Any: ...

    def close(self) -> None: ...


def _playwright_install_hint() -> str:
    target = os.environ.get("PLAYWRIGHT_BROWSERS_PATH")
    prefix = f"PLAYWRIGHT_BROWSERS_PATH={target} " if target else ""
    return (
        "Install the Chromium build used by Playwright with "
        f"`{prefix}python -m playwright install --with-deps chromium`."
    )


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else exc.__class__.__name__


class PlaywrightRenderingSession:
    """Rendering session wrapping one Playwright page."""

    def __init__(self, page: Any) -> None:
        self._page = page
        self._markup: TestMarkup | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def set_content(self, markup: TestMarkup) -> None:
        self._markup = markup
        try:
            self._page.set_content(markup.html, wait_until="load", timeout=_CONTENT_TIMEOUT_MS)
        except PlaywrightError as exc:
            raise RenderError(
                f"Test content for '{markup.font_family}' failed to render: {_describe(exc)}"
            ) from exc

    def await_asset_ready(self, timeout_ms: int = DEFAULT_ASSET_TIMEOUT_MS) -> bool:
        """Wait up to ``timeout_ms`` for the web font; return whether it loaded.

        Expiry is not an error: rendering continues with whatever glyphs are
        available and fallback glyphs are judged downstream.
        """
        if self._markup is None:
            raise RenderError("Cannot wait for font assets before content is set.")
        markup = self._markup
        try:
            loaded = self._page.evaluate(
                _FONT_READY_SCRIPT,
                [markup.font_family, markup.font_size, "ʻāĀ", max(0, timeout_ms)],
            )
        except PlaywrightTimeoutError:
            loaded = False
        except PlaywrightError as exc:
            raise RenderError(
                f"Font loading for '{markup.font_family}' could not be observed: {_describe(exc)}"
            ) from exc
        if not loaded:
            logger.debug("Font %s not ready after %d ms", markup.font_family, timeout_ms)
        return bool(loaded)

    def capture_element(self, selector: str) -> bytes:
        try:
            element = self._page.query_selector(selector)
            if element is None:
                raise RenderError(f"Element '{selector}' is missing from the rendered page.")
            return element.screenshot(type="png")
        except PlaywrightError as exc:
            raise RenderError(f"Snapshot of '{selector}' failed: {_describe(exc)}") from exc

    def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return self._page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise RenderError(f"Script evaluation failed: {_describe(exc)}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._page.close()
        except PlaywrightError as exc:
            # A page of a crashed browser cannot be closed; the engine reports the crash.
            logger.debug("Ignoring page close failure: %s", _describe(exc))


class PlaywrightRenderingEngine:
    """Keep one headless Chromium alive across the fonts of a batch."""

    def __init__(
        self,
        *,
        headless: bool = True,
        browser_args: Sequence[str] = DEFAULT_BROWSER_ARGS,
        max_sessions: int = 1,
        browsers_path: os.PathLike[str] | str | None = None,
        auto_install: bool = True,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._headless = headless
        self._browser_args = list(browser_args)
        self._browsers_path = browsers_path
        self._auto_install = auto_install
        self._slots = BoundedSemaphore(max_sessions)
        self._lock = Lock()
        self._open_sessions: set[PlaywrightRenderingSession] = set()
        self._playwright: Any = None
        self._browser: Any = None

    @property
    def started(self) -> bool:
        return self._browser is not None

    @property
    def open_sessions(self) -> int:
        with self._lock:
            return len(self._open_sessions)

    def start(self) -> PlaywrightRenderingEngine:
        """Launch the browser; failures are fatal to the run."""
        if self._browser is not None:
            return self
        if self._browsers_path is not None:
            # Playwright reads PLAYWRIGHT_BROWSERS_PATH during startup, so set it before start().
            os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(self._browsers_path))
        try:
            self._playwright = sync_playwright().start()
        except PlaywrightError as exc:
            raise ResourceExhaustionError(
                f"Rendering engine could not start: {_describe(exc)}"
            ) from exc

        try:
            self._browser = self._launch()
        except PlaywrightError as exc:
            msg = str(exc)
            if self._auto_install and (
                "Executable doesn't exist" in msg or "Failed to launch" in msg
            ):
                logger.warning("Chromium missing, installing it through Playwright")
                try:
                    subprocess.run(
                        [sys.executable, "-m", "playwright", "install", "chromium"],
                        env=os.environ,
                        check=True,
                    )
                    self._browser = self._launch()
                except (PlaywrightError, subprocess.CalledProcessError, OSError) as retry_exc:
                    self._stop_playwright()
                    raise ResourceExhaustionError(
                        f"Rendering engine could not start: {_describe(retry_exc)}. "
                        f"{_playwright_install_hint()}"
                    ) from retry_exc
            else:
                self._stop_playwright()
                raise ResourceExhaustionError(
                    f"Rendering engine could not start: {_describe(exc)}. "
                    f"{_playwright_install_hint()}"
                ) from exc
        logger.info("Headless browser started")
        return self

    def _launch(self) -> Any:
        return self._playwright.chromium.launch(headless=self._headless, args=self._browser_args)

    def is_usable(self) -> bool:
        browser = self._browser
        if browser is None:
            return False
        try:
            return bool(browser.is_connected())
        except PlaywrightError:
            return False

    @contextmanager
    def session(self) -> Iterator[PlaywrightRenderingSession]:
        """Yield a fresh page, closing it on every exit path."""
        if not self.is_usable():
            raise ResourceExhaustionError("Rendering engine is not running or has crashed.")
        self._slots.acquire()
        try:
            try:
                page = self._browser.new_page(viewport=_VIEWPORT)
            except PlaywrightError as exc:
                if not self.is_usable():
                    raise ResourceExhaustionError(
                        f"Rendering engine became unusable: {_describe(exc)}"
                    ) from exc
                raise RenderError(f"Could not open a rendering page: {_describe(exc)}") from exc
            rendering_session = PlaywrightRenderingSession(page)
            with self._lock:
                self._open_sessions.add(rendering_session)
            try:
                yield rendering_session
            finally:
                rendering_session.close()
                with self._lock:
                    self._open_sessions.discard(rendering_session)
        finally:
            self._slots.release()

    def close(self) -> None:
        """Close any open page, then the browser and the Playwright driver."""
        with self._lock:
            leftovers = list(self._open_sessions)
            self._open_sessions.clear()
        for leftover in leftovers:
            leftover.close()
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as exc:
                logger.debug("Ignoring browser close failure: %s", _describe(exc))
            self._browser = None
        self._stop_playwright()
        logger.info("Headless browser closed")

    def _stop_playwright(self) -> None:
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError as exc:
                logger.debug("Ignoring Playwright stop failure: %s", _describe(exc))
            self._playwright = None

    def __enter__(self) -> PlaywrightRenderingEngine:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "DEFAULT_ASSET_TIMEOUT_MS",
    "PlaywrightRenderingEngine",
    "PlaywrightRenderingSession",
    "RenderingEngine",
    "RenderingSession",
]
