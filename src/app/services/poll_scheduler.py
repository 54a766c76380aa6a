from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from src.app.services.feed_fetcher import CycleReport, FeedFetcher

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 20.0


@dataclass(slots=True)
class PollScheduler:
    """Drives fetch-and-merge cycles on a fixed period.

    - The first cycle runs as soon as the task starts.
    - Cycles never overlap: a request made while one is running is skipped.
    - Ticks missed because a cycle overran are dropped, not queued.
    - A failing cycle is logged and the schedule carries on.
    """

    fetcher: FeedFetcher
    interval_s: float = DEFAULT_POLL_INTERVAL_S

    last_report: CycleReport | None = field(default=None, init=False)
    skipped_cycles: int = field(default=0, init=False)
    failed_cycles: int = field(default=0, init=False)
    finished_cycles: int = field(default=0, init=False)

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ValueError(f"Poll interval must be positive: {self.interval_s}")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    async def _run_locked(self) -> CycleReport | None:
        try:
            report = await self.fetcher.run_cycle()
        except Exception:
            self.failed_cycles += 1
            logger.exception("Poll cycle failed")
            return None
        finally:
            self.finished_cycles += 1
        self.last_report = report
        return report

    async def run_once(self) -> CycleReport | None:
        """Run one cycle unless another is in flight.

        Returns the cycle report, or None when the cycle was skipped or failed.
        """

        if self._lock.locked():
            self.skipped_cycles += 1
            logger.info("Poll cycle still running; skipping this one")
            return None

        async with self._lock:
            return await self._run_locked()

    async def ensure_warm(self) -> None:
        """Make sure at least one cycle has populated the store, if possible.

        Waits for an in-flight cycle instead of skipping, so a cold-start read
        is served from the result of that cycle. Any cycle finishing while the
        caller waited counts, even a failed one: concurrent readers during an
        outage share one cycle instead of running one each.
        """

        if len(self.fetcher.store):
            return

        seen = self.finished_cycles
        async with self._lock:
            if len(self.fetcher.store) or self.finished_cycles != seen:
                return
            logger.info("Cache empty; running an initial poll cycle")
            await self._run_locked()

    async def run_forever(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            await self.run_once()

            next_at += self.interval_s
            now = loop.time()
            if next_at <= now:
                missed = int((now - next_at) // self.interval_s) + 1
                self.skipped_cycles += missed
                logger.warning("Poll cycle overran; dropping %d tick(s)", missed)
                next_at += missed * self.interval_s
            await asyncio.sleep(next_at - now)

    def start(self) -> None:
        if self.is_running:
            return
        logger.info("Starting vehicle poller (every %.1fs)", self.interval_s)
        self._task = asyncio.create_task(self.run_forever(), name="vehicle-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Vehicle poller stopped")
