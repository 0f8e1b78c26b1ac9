"""Synthetic progress signal for in-flight submissions.

The real duration of a remote submission is unknown, so progress is
estimated: a ticker adds a random increment on a fixed interval and stops
at a cap. The last stretch up to 100 is only ever set by the state machine
when the submission actually completes.
"""

from __future__ import annotations

import asyncio
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from ocr_submit.utils.logging import get_logger

logger = get_logger("processor.progress")

ProgressObserver = Callable[[float], None]


class ProgressHandle:
    """A running (or finished) progress ticker."""

    def __init__(self) -> None:
        self.value: float = 0.0
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return (
            self._task is not None
            and not self._task.done()
            and not self._stopped
        )

    def stop(self) -> None:
        """Cancel the ticker. Safe to call any number of times."""
        if self.running:
            self._task.cancel()
            logger.debug("progress_stopped", value=round(self.value, 2))
        self._stopped = True


class ProgressEstimator:
    """
    Emits a monotonically increasing, capped progress value.

    Args:
        interval_seconds: Delay between ticks
        max_increment: Upper bound (exclusive) of each random step
        cap: Highest value the estimator will ever emit
        rng: Random source, injectable for deterministic tests
    """

    def __init__(
        self,
        interval_seconds: float = 0.5,
        max_increment: float = 15.0,
        cap: float = 90.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.interval_seconds = interval_seconds
        self.max_increment = max_increment
        self.cap = cap
        self._rng = rng or random.Random()

    def start(self, observer: ProgressObserver) -> ProgressHandle:
        """
        Start ticking on the running event loop.

        Args:
            observer: Called with each new progress value

        Returns:
            Handle used to stop the ticker
        """
        handle = ProgressHandle()
        handle._task = asyncio.get_running_loop().create_task(
            self._tick(handle, observer)
        )
        return handle

    def stop(self, handle: Optional[ProgressHandle]) -> None:
        if handle is not None:
            handle.stop()

    @asynccontextmanager
    async def track(self, observer: ProgressObserver) -> AsyncIterator[ProgressHandle]:
        """Run a ticker for the duration of the block; always stopped on exit."""
        handle = self.start(observer)
        try:
            yield handle
        finally:
            handle.stop()

    async def _tick(self, handle: ProgressHandle, observer: ProgressObserver) -> None:
        current = 0.0
        while True:
            await asyncio.sleep(self.interval_seconds)
            current += self._rng.random() * self.max_increment

            if current >= self.cap:
                handle.value = self.cap
                self._emit(observer, self.cap)
                logger.debug("progress_capped", cap=self.cap)
                return

            handle.value = current
            if not self._emit(observer, current):
                return

    def _emit(self, observer: ProgressObserver, value: float) -> bool:
        try:
            observer(value)
        except Exception as e:
            logger.error("progress_observer_failed", error=str(e), exc_info=True)
            return False
        return True
