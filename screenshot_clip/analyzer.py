import logging
from typing import Dict, List, Optional

from .errors import DegenerateMeasurement
from .geometry import DEFAULT_RECT, Rect, union_bounds

logger = logging.getLogger(__name__)


def compute_bounding_box(rects: Optional[List[Dict[str, float]]], padding: float) -> Rect:
    """
    Union the descendant rectangles of the container and add padding.

    Args:
        rects: Descendant rectangles, or None when the container is absent
        padding: Margin added on every side

    Returns:
        The padded bounding box. The origin is not clamped and may be negative.
        DEFAULT_RECT (without padding) when the container is absent.

    Raises:
        DegenerateMeasurement: If the container has no element with a positive area
    """
    if rects is None:
        return DEFAULT_RECT

    min_x, min_y, max_x, max_y = union_bounds(rects)
    return Rect(
        x=min_x - padding,
        y=min_y - padding,
        width=(max_x - min_x) + 2 * padding,
        height=(max_y - min_y) + 2 * padding,
    )


async def measure_container(session, selector: str, padding: float) -> Rect:
    """Initial measurement pass, used to size the viewport."""
    rects = await session.query_rects(selector)
    if rects is None:
        logger.warning("Container '%s' not found, using default region %s", selector, DEFAULT_RECT)
        return DEFAULT_RECT

    try:
        bbox = compute_bounding_box(rects, padding)
    except DegenerateMeasurement as e:
        logger.warning("Initial measurement of '%s' failed (%s), using default region", selector, e)
        return DEFAULT_RECT

    logger.info("Initial bounding box: x=%.1f, y=%.1f, width=%.1f, height=%.1f",
                bbox.x, bbox.y, bbox.width, bbox.height)
    return bbox


def finalize_clip(rects: Optional[List[Dict[str, float]]], padding: float, initial: Rect) -> Rect:
    """
    Compute the clip region from a measurement taken after the resize.

    Only the origin is clamped to zero. Width and height keep the full padded
    extent and may exceed the viewport.

    Args:
        rects: Descendant rectangles, or None when the container is absent
        padding: Final-pass padding
        initial: Bounding box from the initial pass, used as the fallback

    Returns:
        The clip region, always with x >= 0 and y >= 0
    """
    if rects is None:
        return initial.with_clamped_origin()

    try:
        min_x, min_y, max_x, max_y = union_bounds(rects)
    except DegenerateMeasurement as e:
        logger.warning("Final measurement failed (%s), falling back to initial bounding box", e)
        return initial.with_clamped_origin()

    return Rect(
        x=max(0.0, min_x - padding),
        y=max(0.0, min_y - padding),
        width=(max_x - min_x) + 2 * padding,
        height=(max_y - min_y) + 2 * padding,
    )


async def measure_final_clip(session, selector: str, padding: float, initial: Rect) -> Rect:
    """Final measurement pass, run after the layout has settled."""
    rects = await session.query_rects(selector)
    if rects is None:
        logger.warning("Container '%s' not found for final pass, using initial bounding box", selector)
    clip = finalize_clip(rects, padding, initial)
    logger.info("Final clip region: x=%.1f, y=%.1f, width=%.1f, height=%.1f",
                clip.x, clip.y, clip.width, clip.height)
    return clip
