"""
Rectangles and viewport sizes used by the measurement passes.

Element rectangles arrive from the browser as dicts shaped like
DOMRect (left, top, right, bottom, width, height) in viewport coordinates.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from .errors import DegenerateMeasurement


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def to_clip(self) -> Dict[str, float]:
        """Return the dict accepted by Playwright's ``clip=`` argument."""
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    def with_clamped_origin(self) -> "Rect":
        return Rect(max(0.0, self.x), max(0.0, self.y), self.width, self.height)


@dataclass(frozen=True)
class ViewportDims:
    width: int
    height: int

    def to_viewport(self) -> Dict[str, int]:
        return {'width': self.width, 'height': self.height}


@dataclass(frozen=True)
class PaddingConfig:
    """
    Padding added around the measured content.

    The two passes use different values (15 and 20 by default). They are kept
    separate so either can be tuned on its own.
    """
    initial: float = 15
    final: float = 20


# Used when the container is missing from the document entirely
DEFAULT_RECT = Rect(x=0, y=0, width=800, height=600)

Bounds = Tuple[float, float, float, float]


def union_bounds(rects: Iterable[Dict[str, float]]) -> Bounds:
    """
    Union the rectangles of all elements with a positive area.

    Elements whose width or height is zero or negative are skipped. This
    drops collapsed and hidden elements, and zero-height layout markers too.

    Args:
        rects: Element rectangles with left/top/right/bottom/width/height keys

    Returns:
        Tuple of (min_x, min_y, max_x, max_y)

    Raises:
        DegenerateMeasurement: If no element qualifies or the bounds are not finite
    """
    min_x = min_y = math.inf
    max_x = max_y = -math.inf

    for rect in rects:
        if rect['width'] > 0 and rect['height'] > 0:
            min_x = min(min_x, rect['left'])
            min_y = min(min_y, rect['top'])
            max_x = max(max_x, rect['right'])
            max_y = max(max_y, rect['bottom'])

    bounds = (min_x, min_y, max_x, max_y)
    if not all(math.isfinite(value) for value in bounds):
        raise DegenerateMeasurement(f"No measurable elements (bounds: {bounds})")
    return bounds


def size_viewport(bbox: Rect, min_width: int = 1000, min_height: int = 800) -> ViewportDims:
    """
    Convert a bounding box into integer viewport dimensions.

    Each axis is rounded up and then raised to its floor independently.
    Resizing the page to these dimensions can reflow responsive layouts, so
    the result is only used to size the page, never as the capture region.
    """
    width = max(math.ceil(bbox.width), min_width)
    height = max(math.ceil(bbox.height), min_height)
    return ViewportDims(width=width, height=height)
