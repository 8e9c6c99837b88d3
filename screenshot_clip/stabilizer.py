"""
Waits for the layout to stop moving after the viewport is resized.

There is no browser signal for "layout has settled" under arbitrary
animations or late font/image loads. A fixed first window is followed by a
bounded poll that re-measures the container until two successive
measurements agree or the attempt budget runs out.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import DegenerateMeasurement
from .geometry import Bounds, union_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StabilizationResult:
    stable: bool
    attempts: int


class StabilizationWaiter:

    def __init__(self, first_window_ms: int = 500, poll_interval_ms: int = 300, max_attempts: int = 5):
        if max_attempts < 2:
            raise ValueError("max_attempts must be at least 2 to compare measurements")
        self.first_window_ms = first_window_ms
        self.poll_interval_ms = poll_interval_ms
        self.max_attempts = max_attempts

    async def wait_first_window(self, session):
        await session.wait(self.first_window_ms)

    async def settle(self, session, selector: str) -> StabilizationResult:
        """
        Poll the container bounds until they stop changing.

        Each attempt waits one poll interval and measures. Returns as soon as
        a measurement equals the previous one. Running out of attempts is
        logged but does not fail the run.
        """
        previous = None
        for attempt in range(1, self.max_attempts + 1):
            await session.wait(self.poll_interval_ms)
            current = await self._snapshot(session, selector)
            if attempt > 1 and current == previous:
                logger.debug("Layout stable after %d measurements", attempt)
                return StabilizationResult(stable=True, attempts=attempt)
            previous = current

        logger.warning("Layout still changing after %d measurements, capturing anyway", self.max_attempts)
        return StabilizationResult(stable=False, attempts=self.max_attempts)

    async def _snapshot(self, session, selector: str) -> Optional[Bounds]:
        rects = await session.query_rects(selector)
        if rects is None:
            return None
        try:
            return union_bounds(rects)
        except DegenerateMeasurement:
            return None
