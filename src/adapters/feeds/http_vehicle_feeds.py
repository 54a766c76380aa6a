from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from src.adapters.runtime_config import DEFAULT_BRT_FEED_URL, DEFAULT_SPPO_FEED_URL
from src.app.ports.output import IVehicleFeed
from src.domain.exceptions import FeedUnavailable
from src.domain.models.feed import FetchWindow, RawRecord


def format_feed_datetime(
    value: datetime, *, tz: str | None = None, separator: str = " "
) -> str:
    """Format a timestamp the way the SPPO feed expects it.

    Aware datetimes are converted to `tz` (or the system's local zone when
    `tz` is None) and rendered as 'YYYY-MM-DD<sep>HH:MM:SS'.
    """

    local = value.astimezone(ZoneInfo(tz)) if tz else value.astimezone()
    return local.strftime(f"%Y-%m-%d{separator}%H:%M:%S")


@dataclass(slots=True)
class _HttpJsonFeed:
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)

    name = "feed"

    async def _get_json(self, params: dict[str, str] | None = None) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout_s, transport=self.transport
        ) as client:
            resp = await client.get(self.url, params=params, headers=self.headers)

        if not resp.is_success:
            raise FeedUnavailable(self.name, f"HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise FeedUnavailable(self.name, f"invalid JSON body: {exc}") from exc


@dataclass(slots=True)
class HttpBrtVehicleFeed(_HttpJsonFeed, IVehicleFeed):
    """BRT GPS feed: a fixed URL answering `{"veiculos": [...]}`."""

    url: str = DEFAULT_BRT_FEED_URL
    records_key: str = "veiculos"

    name = "brt"

    async def fetch_records(self, window: FetchWindow) -> tuple[RawRecord, ...]:
        payload = await self._get_json()
        if not isinstance(payload, dict):
            raise FeedUnavailable(
                self.name, f"expected a JSON object, got {type(payload).__name__}"
            )

        records = payload.get(self.records_key) or []
        if not isinstance(records, list):
            raise FeedUnavailable(self.name, f"'{self.records_key}' is not a list")
        return tuple(records)


@dataclass(slots=True)
class HttpSppoVehicleFeed(_HttpJsonFeed, IVehicleFeed):
    """SPPO GPS feed: queried with a time window, answers a JSON array.

    Notes:
      - `dataInicial`/`dataFinal` are local wall-clock times in `tz`.
      - The query string is form-encoded, so a space separator is sent as '+'.
    """

    url: str = DEFAULT_SPPO_FEED_URL
    tz: str | None = None
    datetime_separator: str = " "

    name = "sppo"

    def window_params(self, window: FetchWindow) -> dict[str, str]:
        return {
            "dataInicial": format_feed_datetime(
                window.start, tz=self.tz, separator=self.datetime_separator
            ),
            "dataFinal": format_feed_datetime(
                window.end, tz=self.tz, separator=self.datetime_separator
            ),
        }

    async def fetch_records(self, window: FetchWindow) -> tuple[RawRecord, ...]:
        payload = await self._get_json(self.window_params(window))
        if not isinstance(payload, list):
            raise FeedUnavailable(
                self.name, f"expected a JSON array, got {type(payload).__name__}"
            )
        return tuple(payload)
