"""Shared pytest fixtures

- element(): builds a DOMRect-like dict
- FakeSession: in-memory stand-in for the Playwright page session
"""

import math
from contextlib import asynccontextmanager

import pytest
from PIL import Image

from screenshot_clip.config import Config
from screenshot_clip.errors import ContainerSelectorTimeout


def element(left, top, right, bottom):
    return {
        "left": left,
        "top": top,
        "right": right,
        "bottom": bottom,
        "width": right - left,
        "height": bottom - top,
    }


class FakeSession:
    """
    Records every call made by the pipeline.

    ``measurements`` is consumed one entry per query_rects() call; the last
    entry repeats once the list is exhausted. None means the container is absent.
    """

    def __init__(self, measurements, selector_timeout=False, capture_error=None, load_error=None):
        self.measurements = list(measurements)
        self.selector_timeout = selector_timeout
        self.capture_error = capture_error
        self.load_error = load_error
        self.loaded_url = None
        self.viewport = None
        self.waits = []
        self.query_count = 0
        self.captured = None
        self.closed = False

    async def load(self, url):
        self.loaded_url = url
        if self.load_error:
            raise self.load_error

    async def wait_fonts_ready(self):
        pass

    async def wait_for_selector(self, selector, timeout_ms):
        if self.selector_timeout:
            raise ContainerSelectorTimeout(selector, timeout_ms)

    async def query_rects(self, selector):
        self.query_count += 1
        if len(self.measurements) > 1:
            return self.measurements.pop(0)
        return self.measurements[0]

    async def set_viewport(self, dims):
        self.viewport = dims

    async def wait(self, ms):
        self.waits.append(ms)

    async def capture_clip(self, rect, output_path, quality=None):
        if self.capture_error:
            raise self.capture_error
        size = (max(1, math.ceil(rect.width)), max(1, math.ceil(rect.height)))
        Image.new("RGB", size, "white").save(output_path)
        self.captured = (rect, output_path, quality)


def make_factory(session):
    """Session factory with the same shape as browser_session()."""
    opened = []

    @asynccontextmanager
    async def factory(**kwargs):
        opened.append(kwargs)
        try:
            yield session
        finally:
            session.closed = True

    factory.opened = opened
    return factory


@pytest.fixture
def html_file(tmp_path):
    path = tmp_path / "card.html"
    path.write_text("<html><body><div class='container'><p>hi</p></div></body></html>", encoding="utf-8")
    return path


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def card_rects():
    """Container with a title and a body block, plus a zero-height marker."""
    return [
        element(100, 50, 300, 150),
        element(120, 160, 500, 400),
        element(0, 1000, 900, 1000),
    ]
