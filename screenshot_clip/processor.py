import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from PIL import Image
from playwright.async_api import Error as PlaywrightError

from .analyzer import measure_container, measure_final_clip
from .browser import browser_session, to_file_url
from .config import Config
from .config import config as default_config
from .errors import (CaptureFailure, ConfigurationError, ContainerSelectorTimeout, InputFileNotFound,
                     MissingArgument, ScreenshotError)
from .geometry import Rect, ViewportDims, size_viewport
from .stabilizer import StabilizationResult, StabilizationWaiter

logger = logging.getLogger(__name__)


class State(Enum):
    LOAD_DOCUMENT = "load_document"
    WAIT_FONTS_READY = "wait_fonts_ready"
    WAIT_CONTAINER_SELECTOR = "wait_container_selector"
    MEASURE_INITIAL = "measure_initial"
    SIZE_VIEWPORT = "size_viewport"
    APPLY_VIEWPORT = "apply_viewport"
    SETTLE_1 = "settle_1"
    SETTLE_2 = "settle_2"
    MEASURE_FINAL = "measure_final"
    CAPTURE_CLIP = "capture_clip"
    CLOSE = "close"


@dataclass(frozen=True)
class CaptureResult:
    output_path: Path
    initial_box: Rect
    viewport: ViewportDims
    clip: Rect
    stabilization: StabilizationResult
    image_size: tuple


def resolve_input(html_path: Optional[str]) -> Path:
    """
    Resolve the HTML path to an absolute path that exists.

    Raises:
        MissingArgument: If no path was given
        InputFileNotFound: If the resolved file does not exist
    """
    if not html_path:
        raise MissingArgument("html_path")
    resolved = Path(html_path).resolve()
    if not resolved.is_file():
        raise InputFileNotFound(resolved)
    return resolved


class ScreenshotProcessor:
    """
    Captures an HTML document cropped to the rendered extent of a container.

    - Measures the container once to size the viewport.
    - Lets the layout settle after the resize, then measures again.
    - Captures only the final clip region.

    Each call to run() walks the states in order and records them in
    ``history``. CLOSE is always the last state, also when a step fails.
    """

    def __init__(self, config: Optional[Config] = None, session_factory=None):
        self.config = config or default_config
        self.session_factory = session_factory
        self.history: List[State] = []

    def _enter(self, state: State):
        self.history.append(state)
        logger.debug("State: %s", state.name)

    async def run(self, html_path: Optional[str], output_path: Optional[str] = None,
                  quality: Optional[int] = None) -> CaptureResult:
        """
        Run the full pipeline for one document.

        Args:
            html_path: Path to the HTML file
            output_path: Image path (default from config, usually screenshot.png)
            quality: JPEG quality, ignored for PNG output

        Returns:
            CaptureResult describing what was measured and written
        """
        self.history = []
        # Settings and inputs are checked before any browser is launched
        try:
            self.config.validate_config(quality)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        html_file = resolve_input(html_path)
        output = Path(output_path or self.config.DEFAULT_OUTPUT).resolve()
        if quality is None:
            quality = self.config.DEFAULT_QUALITY

        factory = self.session_factory or browser_session
        try:
            async with factory(headless=self.config.HEADLESS,
                               navigation_timeout_ms=self.config.NAVIGATION_TIMEOUT_MS) as session:
                return await self._run_session(session, to_file_url(html_file), output, quality)
        finally:
            self._enter(State.CLOSE)

    async def _run_session(self, session, url: str, output: Path, quality: int) -> CaptureResult:
        cfg = self.config
        selector = cfg.CONTAINER_SELECTOR
        padding = cfg.padding
        waiter = StabilizationWaiter(
            first_window_ms=cfg.SETTLE_FIRST_MS,
            poll_interval_ms=cfg.SETTLE_SECOND_MS,
            max_attempts=cfg.STABILITY_MAX_ATTEMPTS,
        )

        self._enter(State.LOAD_DOCUMENT)
        logger.info("Loading: %s", url)
        await session.load(url)

        self._enter(State.WAIT_FONTS_READY)
        await session.wait_fonts_ready()

        self._enter(State.WAIT_CONTAINER_SELECTOR)
        try:
            await session.wait_for_selector(selector, cfg.SELECTOR_TIMEOUT_MS)
        except ContainerSelectorTimeout as e:
            logger.warning("%s, falling back to the whole page", e)

        self._enter(State.MEASURE_INITIAL)
        initial = await measure_container(session, selector, padding.initial)

        self._enter(State.SIZE_VIEWPORT)
        viewport = size_viewport(initial, cfg.MIN_VIEWPORT_WIDTH, cfg.MIN_VIEWPORT_HEIGHT)
        logger.info("Viewport size: width=%d, height=%d", viewport.width, viewport.height)

        self._enter(State.APPLY_VIEWPORT)
        await session.set_viewport(viewport)

        self._enter(State.SETTLE_1)
        await waiter.wait_first_window(session)

        self._enter(State.SETTLE_2)
        stabilization = await waiter.settle(session, selector)

        self._enter(State.MEASURE_FINAL)
        clip = await measure_final_clip(session, selector, padding.final, initial)

        self._enter(State.CAPTURE_CLIP)
        logger.info("Saving screenshot to: %s", output)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CaptureFailure(f"Cannot create output directory {output.parent}: {e}") from e
        await session.capture_clip(clip, output, quality)
        image_size = self._verify_output(output)

        return CaptureResult(
            output_path=output,
            initial_box=initial,
            viewport=viewport,
            clip=clip,
            stabilization=stabilization,
            image_size=image_size,
        )

    def _verify_output(self, output: Path) -> tuple:
        """Open the written image and return its pixel size."""
        try:
            with Image.open(output) as img:
                size = img.size
        except OSError as e:
            raise CaptureFailure(f"Screenshot was not written correctly to {output}: {e}") from e
        logger.info("Captured image: %dx%d px", size[0], size[1])
        return size


def take_screenshot(html_path: str, output_path: str, quality: int = 100,
                    config: Optional[Config] = None) -> bool:
    """
    Capture a screenshot and report success instead of raising.

    Intended for callers that only need to know whether the image was written.
    """
    processor = ScreenshotProcessor(config)
    try:
        result = asyncio.run(processor.run(html_path, output_path, quality=quality))
    except (ScreenshotError, PlaywrightError) as e:
        logger.error("Screenshot failed: %s", e)
        return False
    logger.info("Screenshot saved to: %s", result.output_path)
    return True


async def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        description='Screenshot an HTML file cropped to the rendered extent of a container')
    parser.add_argument('html_path', nargs='?', help='HTML file to render')
    parser.add_argument('output_path', nargs='?', help='Image file to write (default: screenshot.png)')
    parser.add_argument('--quality', type=int, help='JPEG quality 0-100 (ignored for PNG)')
    parser.add_argument('--selector', help='CSS selector of the content container')
    parser.add_argument('--config', type=Path, help='YAML file overriding configuration values')
    parser.add_argument('--log-level', help='Logging level (default from LOG_LEVEL)')
    args = parser.parse_args(argv)

    try:
        cfg = Config.from_yaml(args.config) if args.config else Config()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.selector:
        cfg.CONTAINER_SELECTOR = args.selector

    logging.basicConfig(level=(args.log_level or cfg.LOG_LEVEL).upper(),
                        format='%(levelname)s: %(message)s')

    processor = ScreenshotProcessor(cfg)
    try:
        result = await processor.run(args.html_path, args.output_path, quality=args.quality)
    except ScreenshotError as e:
        logger.error("Error: %s", e)
        return 1
    except PlaywrightError as e:
        logger.error("Browser error: %s", e)
        return 1

    logger.info("Screenshot complete: %s", result.output_path)
    return 0


def run_cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run_cli()
