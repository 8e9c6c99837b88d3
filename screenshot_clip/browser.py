import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .errors import CaptureFailure, ContainerSelectorTimeout, DocumentLoadError, InvalidSelector
from .geometry import Rect, ViewportDims

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
]

# Returns null when the container is missing, otherwise one DOMRect-like dict
# per descendant element.
_DESCENDANT_RECTS_JS = """
(selector) => {
    const container = document.querySelector(selector);
    if (!container) {
        return null;
    }
    return Array.from(container.querySelectorAll('*')).map(el => {
        const r = el.getBoundingClientRect();
        return {
            left: r.left, top: r.top, right: r.right, bottom: r.bottom,
            width: r.width, height: r.height
        };
    });
}
"""

_FONTS_READY_JS = "() => document.fonts.ready.then(() => true)"

JPEG_SUFFIXES = ('.jpg', '.jpeg')


def to_file_url(path: Path) -> str:
    """Address a local file by an absolute file:// URL with forward slashes."""
    return Path(path).resolve().as_uri()


class PageSession:
    """
    Thin wrapper around a Playwright page.

    Exposes only the operations the pipeline needs: loading the document,
    waiting for fonts and the container, reading element rectangles, resizing
    the viewport and taking a clipped screenshot.
    """

    def __init__(self, page, navigation_timeout_ms: int = 30000):
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms

    async def load(self, url: str):
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
        except PlaywrightError as e:
            raise DocumentLoadError(f"Could not load {url}: {e}") from e

    async def wait_fonts_ready(self):
        try:
            await self.page.evaluate(_FONTS_READY_JS)
        except PlaywrightError as e:
            raise DocumentLoadError(f"Page failed while waiting for fonts: {e}") from e

    async def wait_for_selector(self, selector: str, timeout_ms: int):
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ContainerSelectorTimeout(selector, timeout_ms) from e
        except PlaywrightError as e:
            # Playwright rejects malformed selectors immediately
            raise InvalidSelector(selector, str(e)) from e

    async def query_rects(self, selector: str) -> Optional[List[Dict[str, float]]]:
        """
        Rectangles of every descendant of ``selector``, or None if it is absent.

        A failed evaluation is treated like an absent container so the
        measurement falls back instead of aborting the run.
        """
        try:
            return await self.page.evaluate(_DESCENDANT_RECTS_JS, selector)
        except PlaywrightError as e:
            logger.warning("Could not measure '%s': %s", selector, e)
            return None

    async def set_viewport(self, dims: ViewportDims):
        try:
            await self.page.set_viewport_size(dims.to_viewport())
        except PlaywrightError as e:
            raise CaptureFailure(f"Could not resize viewport to {dims.width}x{dims.height}: {e}") from e

    async def wait(self, ms: int):
        try:
            await self.page.wait_for_timeout(ms)
        except PlaywrightError as e:
            raise CaptureFailure(f"Page closed while waiting for layout: {e}") from e

    async def capture_clip(self, rect: Rect, output_path: Path, quality: Optional[int] = None):
        options = {'path': str(output_path), 'clip': rect.to_clip()}
        if quality is not None and output_path.suffix.lower() in JPEG_SUFFIXES:
            options['type'] = 'jpeg'
            options['quality'] = quality
        try:
            await self.page.screenshot(**options)
        except PlaywrightError as e:
            raise CaptureFailure(f"Screenshot to {output_path} failed: {e}") from e


@asynccontextmanager
async def browser_session(headless: bool = True, navigation_timeout_ms: int = 30000) -> AsyncIterator[PageSession]:
    """
    Launch Chromium, open one page and yield it wrapped in a PageSession.

    The browser is closed when the block exits, whether it finished normally
    or raised.
    """
    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=headless, args=BROWSER_ARGS)
        except PlaywrightError as e:
            raise DocumentLoadError(f"Could not launch Chromium (run `playwright install chromium`?): {e}") from e
        try:
            try:
                page = await browser.new_page()
            except PlaywrightError as e:
                raise DocumentLoadError(f"Could not open a browser page: {e}") from e
            yield PageSession(page, navigation_timeout_ms=navigation_timeout_ms)
        finally:
            await browser.close()
            logger.debug("Browser closed")
