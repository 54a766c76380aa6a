from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import httpx

from src.app.ports.output import IVehicleFeed
from src.app.services.vehicle_state_store import VehicleStateStore
from src.domain.exceptions import FeedError
from src.domain.models.feed import FetchWindow, RawRecord
from src.domain.models.vehicle import Rejection, RejectionReason, VehicleObservation
from src.domain.normalizer import normalize_record

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = timedelta(minutes=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CycleReport:
    started_at: datetime
    finished_at: datetime
    records_fetched: int
    accepted: int
    rejected: dict[RejectionReason, int]
    failed_feeds: tuple[str, ...]
    vehicle_count: int

    @property
    def rejected_total(self) -> int:
        return sum(self.rejected.values())


@dataclass(slots=True)
class FeedFetcher:
    """Fetches every feed for one cycle and merges the valid records.

    Feeds are queried concurrently. A feed that fails contributes no records
    for the cycle; the other feeds and the existing store contents are left
    untouched.
    """

    feeds: Sequence[IVehicleFeed]
    store: VehicleStateStore
    lookback: timedelta = DEFAULT_LOOKBACK
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False)

    async def _fetch_feed(
        self, feed: IVehicleFeed, window: FetchWindow
    ) -> tuple[RawRecord, ...] | None:
        try:
            return await feed.fetch_records(window)
        except (FeedError, httpx.HTTPError) as exc:
            logger.warning("Feed %s unavailable: %s", feed.name, exc)
            return None

    async def fetch_raw(
        self, window: FetchWindow
    ) -> tuple[list[RawRecord], tuple[str, ...]]:
        """Return all feeds' records concatenated in feed order, plus failed feed names.

        Unexpected errors are re-raised only after every request has settled.
        """

        results = await asyncio.gather(
            *(self._fetch_feed(feed, window) for feed in self.feeds),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        records: list[RawRecord] = []
        failed: list[str] = []
        for feed, result in zip(self.feeds, results):
            if result is None:
                failed.append(feed.name)
                continue
            records.extend(result)
        return records, tuple(failed)

    async def run_cycle(self) -> CycleReport:
        started_at = self.clock()
        window = FetchWindow.trailing(started_at, self.lookback)

        records, failed = await self.fetch_raw(window)

        observations: list[VehicleObservation] = []
        rejected: Counter[RejectionReason] = Counter()
        for raw in records:
            outcome = normalize_record(raw)
            if isinstance(outcome, Rejection):
                rejected[outcome.reason] += 1
                logger.debug(
                    "Dropped record (%s) %s", outcome.reason.value, outcome.detail
                )
                continue
            observations.append(outcome)

        vehicle_count = self.store.merge_all(observations)

        report = CycleReport(
            started_at=started_at,
            finished_at=self.clock(),
            records_fetched=len(records),
            accepted=len(observations),
            rejected=dict(rejected),
            failed_feeds=failed,
            vehicle_count=vehicle_count,
        )
        logger.info(
            "Cache updated: %d records, %d accepted, %d rejected, %d vehicles cached%s",
            report.records_fetched,
            report.accepted,
            report.rejected_total,
            report.vehicle_count,
            f" (failed feeds: {', '.join(failed)})" if failed else "",
        )
        return report
