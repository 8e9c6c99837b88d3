"""
Screenshot Clip Module

Renders a local HTML file in headless Chromium with Playwright and captures a
screenshot cropped to the rendered extent of a content container, instead of
a fixed page size.

Key Features:
- Union of the rendered rectangles of every element inside the container
- Viewport sized from a first measurement, with minimum dimensions
- Bounded wait for the layout to settle after the resize
- Second measurement to correct for layout shift caused by the resize
- HTML card templates with a random background, rendered before capture

Usage:
    from screenshot_clip import ScreenshotProcessor

    processor = ScreenshotProcessor()
    await processor.run("card.html", "card.png")
"""

from .processor import ScreenshotProcessor, State, take_screenshot
from .analyzer import compute_bounding_box, finalize_clip
from .geometry import DEFAULT_RECT, PaddingConfig, Rect, ViewportDims, size_viewport
from .template import generate_card, generate_template, random_background, render_template

__all__ = [
    'ScreenshotProcessor', 'State', 'take_screenshot',
    'compute_bounding_box', 'finalize_clip',
    'DEFAULT_RECT', 'PaddingConfig', 'Rect', 'ViewportDims', 'size_viewport',
    'generate_card', 'generate_template', 'random_background', 'render_template',
]
