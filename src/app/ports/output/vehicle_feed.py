from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models.feed import FetchWindow, RawRecord


class IVehicleFeed(ABC):
    """Port for an upstream GPS feed returning raw, feed-shaped records."""

    name: str

    @abstractmethod
    async def fetch_records(self, window: FetchWindow) -> tuple[RawRecord, ...]:
        """Fetch the feed's records.

        Feeds without a time filter ignore `window`. Failures are raised as
        `FeedError` or `httpx.HTTPError`.
        """

        raise NotImplementedError
