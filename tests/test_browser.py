"""Playwright wrapper tests (page mocked)"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from screenshot_clip.browser import PageSession, browser_session, to_file_url
from screenshot_clip.errors import CaptureFailure, ContainerSelectorTimeout, DocumentLoadError, InvalidSelector
from screenshot_clip.geometry import Rect, ViewportDims


def test_to_file_url(tmp_path):
    url = to_file_url(tmp_path / "my card.html")
    assert url.startswith("file:///")
    assert url.endswith("/my%20card.html")
    assert "\\" not in url


class TestPageSession:
    @pytest.mark.asyncio
    async def test_load_waits_for_network_idle(self):
        page = AsyncMock()
        await PageSession(page, navigation_timeout_ms=1234).load("file:///tmp/a.html")
        page.goto.assert_awaited_once_with("file:///tmp/a.html", wait_until="networkidle", timeout=1234)

    @pytest.mark.asyncio
    async def test_load_error(self):
        page = AsyncMock()
        page.goto.side_effect = PlaywrightError("net::ERR_FILE_NOT_FOUND")
        with pytest.raises(DocumentLoadError):
            await PageSession(page).load("file:///tmp/a.html")

    @pytest.mark.asyncio
    async def test_selector_timeout_is_translated(self):
        page = AsyncMock()
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 5000ms exceeded")
        with pytest.raises(ContainerSelectorTimeout) as exc:
            await PageSession(page).wait_for_selector(".container", 5000)
        assert exc.value.timeout_ms == 5000
        page.wait_for_selector.assert_awaited_once_with(".container", timeout=5000)

    @pytest.mark.asyncio
    async def test_query_rects_passes_selector(self):
        page = AsyncMock()
        page.evaluate.return_value = None
        assert await PageSession(page).query_rects(".container") is None
        args = page.evaluate.await_args.args
        assert "getBoundingClientRect" in args[0]
        assert args[1] == ".container"

    @pytest.mark.asyncio
    async def test_set_viewport_and_wait(self):
        page = AsyncMock()
        session = PageSession(page)
        await session.set_viewport(ViewportDims(1000, 800))
        await session.wait(300)
        page.set_viewport_size.assert_awaited_once_with({"width": 1000, "height": 800})
        page.wait_for_timeout.assert_awaited_once_with(300)

    @pytest.mark.asyncio
    async def test_png_capture_ignores_quality(self):
        page = AsyncMock()
        await PageSession(page).capture_clip(Rect(0, 0, 10, 20), Path("/tmp/out.png"), quality=90)
        page.screenshot.assert_awaited_once_with(
            path="/tmp/out.png", clip={"x": 0, "y": 0, "width": 10, "height": 20})

    @pytest.mark.asyncio
    async def test_jpeg_capture_uses_quality(self):
        page = AsyncMock()
        await PageSession(page).capture_clip(Rect(1, 2, 10, 20), Path("/tmp/out.JPG"), quality=90)
        kwargs = page.screenshot.await_args.kwargs
        assert kwargs["type"] == "jpeg"
        assert kwargs["quality"] == 90

    @pytest.mark.asyncio
    async def test_capture_error(self):
        page = AsyncMock()
        page.screenshot.side_effect = PlaywrightError("Target closed")
        with pytest.raises(CaptureFailure):
            await PageSession(page).capture_clip(Rect(0, 0, 10, 10), Path("/tmp/out.png"))


class TestPageSessionErrors:
    @pytest.mark.asyncio
    async def test_malformed_selector(self):
        page = AsyncMock()
        page.wait_for_selector.side_effect = PlaywrightError("'[[' is not a valid selector")
        with pytest.raises(InvalidSelector) as exc:
            await PageSession(page).wait_for_selector("[[", 5000)
        assert exc.value.selector == "[["

    @pytest.mark.asyncio
    async def test_failed_measurement_reads_as_absent_container(self, caplog):
        page = AsyncMock()
        page.evaluate.side_effect = PlaywrightError("SyntaxError: '[[' is not a valid selector")
        assert await PageSession(page).query_rects("[[") is None
        assert "Could not measure" in caplog.text

    @pytest.mark.asyncio
    async def test_fonts_wait_on_crashed_page(self):
        page = AsyncMock()
        page.evaluate.side_effect = PlaywrightError("Target crashed")
        with pytest.raises(DocumentLoadError):
            await PageSession(page).wait_fonts_ready()

    @pytest.mark.asyncio
    async def test_resize_and_wait_on_closed_page(self):
        page = AsyncMock()
        page.set_viewport_size.side_effect = PlaywrightError("Target closed")
        page.wait_for_timeout.side_effect = PlaywrightError("Target closed")
        session = PageSession(page)
        with pytest.raises(CaptureFailure):
            await session.set_viewport(ViewportDims(1000, 800))
        with pytest.raises(CaptureFailure):
            await session.wait(500)


def _mock_playwright(monkeypatch):
    page = AsyncMock()
    browser = AsyncMock()
    browser.new_page.return_value = page
    p = MagicMock()
    p.chromium.launch = AsyncMock(return_value=browser)
    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=p)
    manager.__aexit__ = AsyncMock(return_value=False)
    monkeypatch.setattr("screenshot_clip.browser.async_playwright", lambda: manager)
    return p, browser, page


class TestBrowserSession:
    @pytest.mark.asyncio
    async def test_yields_session_and_closes(self, monkeypatch):
        p, browser, page = _mock_playwright(monkeypatch)

        async with browser_session(headless=True, navigation_timeout_ms=999) as session:
            assert session.page is page
            assert session.navigation_timeout_ms == 999

        assert p.chromium.launch.await_args.kwargs["headless"] is True
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closes_on_error(self, monkeypatch):
        _, browser, _ = _mock_playwright(monkeypatch)

        with pytest.raises(CaptureFailure):
            async with browser_session():
                raise CaptureFailure("boom")

        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure(self, monkeypatch):
        p, browser, _ = _mock_playwright(monkeypatch)
        p.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        with pytest.raises(DocumentLoadError, match="Could not launch Chromium"):
            async with browser_session():
                pass

        browser.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_page_failure_still_closes(self, monkeypatch):
        _, browser, _ = _mock_playwright(monkeypatch)
        browser.new_page.side_effect = PlaywrightError("Browser closed")

        with pytest.raises(DocumentLoadError):
            async with browser_session():
                pass

        browser.close.assert_awaited_once()
