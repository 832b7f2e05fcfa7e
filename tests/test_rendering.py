from __future__ import annotations

from typing import Any

from playwright.sync_api import Error as PlaywrightError
import pytest

from okinascan.adapters import rendering
from okinascan.adapters.rendering import (
    PlaywrightRenderingEngine,
    PlaywrightRenderingSession,
    RenderingEngine,
    RenderingSession,
)
from okinascan.analysis.markup import build_test_markup
from okinascan.core.exceptions import RenderError, ResourceExhaustionError


class DummyElement:
    def screenshot(self, **kwargs: Any) -> bytes:
        return b"\x89PNG" + kwargs["type"].encode()


class DummyPage:
    def __init__(self, *, ready: Any = True) -> None:
        self.closed = False
        self.html: str | None = None
        self.ready = ready
        self.evaluations: list[Any] = []

    def set_content(self, html: str, **kwargs: Any) -> None:
        self.html = html

    def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluations.append(arg)
        return self.ready

    def query_selector(self, selector: str) -> DummyElement | None:
        return DummyElement() if selector == "#okina-test" else None

    def close(self) -> None:
        self.closed = True


class DummyBrowser:
    def __init__(self) -> None:
        self.pages: list[DummyPage] = []
        self.connected = True
        self.closed = False
        self.fail_new_page = False

    def new_page(self, **kwargs: Any) -> DummyPage:
        if self.fail_new_page:
            raise PlaywrightError("Target closed")
        page = DummyPage()
        self.pages.append(page)
        return page

    def is_connected(self) -> bool:
        return self.connected

    def close(self) -> None:
        self.closed = True
        self.connected = False


class DummyChromium:
    def __init__(self, browser: DummyBrowser, error: Exception | None = None) -> None:
        self.browser = browser
        self.error = error
        self.launch_kwargs: dict[str, Any] = {}

    def launch(self, **kwargs: Any) -> DummyBrowser:
        self.launch_kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.browser


class DummyPlaywright:
    def __init__(self, chromium: DummyChromium) -> None:
        self.chromium = chromium
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class DummyStarter:
    def __init__(self, driver: DummyPlaywright) -> None:
        self.driver = driver

    def start(self) -> DummyPlaywright:
        return self.driver


def _install_driver(monkeypatch: pytest.MonkeyPatch, driver: DummyPlaywright) -> None:
    monkeypatch.setattr(rendering, "sync_playwright", lambda: DummyStarter(driver))


@pytest.fixture
def browser(monkeypatch: pytest.MonkeyPatch) -> DummyBrowser:
    dummy = DummyBrowser()
    driver = DummyPlaywright(DummyChromium(dummy))
    _install_driver(monkeypatch, driver)
    dummy.driver = driver  # type: ignore[attr-defined]
    return dummy


def test_engine_launches_with_hardened_arguments(browser: DummyBrowser) -> None:
    engine = PlaywrightRenderingEngine(browser_args=["--no-sandbox"])
    with engine:
        assert engine.started
        assert isinstance(engine, RenderingEngine)
    launch = browser.driver.chromium.launch_kwargs  # type: ignore[attr-defined]
    assert launch == {"headless": True, "args": ["--no-sandbox"]}
    assert browser.closed
    assert browser.driver.stopped  # type: ignore[attr-defined]


def test_session_closes_page_on_error(browser: DummyBrowser) -> None:
    with PlaywrightRenderingEngine() as engine:
        with pytest.raises(RenderError):
            with engine.session() as session:
                assert isinstance(session, RenderingSession)
                session.capture_element("#missing")
        assert engine.open_sessions == 0
        assert browser.pages[0].closed

        # The slot was released, so a second session can be opened.
        with engine.session() as session:
            assert session.capture_element("#okina-test") == b"\x89PNGpng"
        assert browser.pages[1].closed


def test_session_on_crashed_browser_is_fatal(browser: DummyBrowser) -> None:
    with PlaywrightRenderingEngine() as engine:
        browser.connected = False
        with pytest.raises(ResourceExhaustionError):
            with engine.session():
                pass


def test_page_failure_on_live_browser_is_per_font(browser: DummyBrowser) -> None:
    with PlaywrightRenderingEngine() as engine:
        browser.fail_new_page = True
        with pytest.raises(RenderError) as excinfo:
            with engine.session():
                pass
        assert not isinstance(excinfo.value, ResourceExhaustionError)


def test_launch_failure_is_resource_exhaustion(monkeypatch: pytest.MonkeyPatch) -> None:
    driver = DummyPlaywright(DummyChromium(DummyBrowser(), error=PlaywrightError("no display")))
    _install_driver(monkeypatch, driver)

    with pytest.raises(ResourceExhaustionError):
        PlaywrightRenderingEngine(auto_install=False).start()
    assert driver.stopped


def test_asset_wait_reports_timeout_without_failing() -> None:
    page = DummyPage(ready=False)
    session = PlaywrightRenderingSession(page)
    session.set_content(build_test_markup("Noto Serif"))

    assert session.await_asset_ready(50) is False
    assert page.evaluations[-1][0] == "Noto Serif"
    assert page.evaluations[-1][-1] == 50


def test_asset_wait_requires_content() -> None:
    with pytest.raises(RenderError):
        PlaywrightRenderingSession(DummyPage()).await_asset_ready()


def test_session_close_is_idempotent() -> None:
    page = DummyPage()
    session = PlaywrightRenderingSession(page)
    session.close()
    session.close()
    assert page.closed and session.closed


def test_max_sessions_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PlaywrightRenderingEngine(max_sessions=0)
