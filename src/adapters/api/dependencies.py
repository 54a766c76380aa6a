from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from src.adapters.feeds.http_vehicle_feeds import (
    HttpBrtVehicleFeed,
    HttpSppoVehicleFeed,
)
from src.adapters.runtime_config import RuntimeConfig
from src.app.ports.output import IVehicleFeed
from src.app.services.feed_fetcher import FeedFetcher
from src.app.services.poll_scheduler import PollScheduler
from src.app.services.vehicle_state_store import VehicleStateStore

# The store and poller are process-wide: one writer, many readers.


@lru_cache(maxsize=1)
def get_runtime_config() -> RuntimeConfig:
    return RuntimeConfig.from_env()


def build_feeds(config: RuntimeConfig) -> tuple[IVehicleFeed, ...]:
    headers = dict(config.feed_headers)
    brt = HttpBrtVehicleFeed(
        url=config.brt_feed_url,
        headers=headers,
        timeout_s=config.feed_timeout_s,
    )
    sppo = HttpSppoVehicleFeed(
        url=config.sppo_feed_url,
        headers=headers,
        timeout_s=config.feed_timeout_s,
        tz=config.feed_timezone,
        datetime_separator=config.feed_datetime_separator,
    )
    return (brt, sppo)


@lru_cache(maxsize=1)
def get_vehicle_state_store() -> VehicleStateStore:
    return VehicleStateStore()


@lru_cache(maxsize=1)
def get_poll_scheduler() -> PollScheduler:
    config = get_runtime_config()
    fetcher = FeedFetcher(
        feeds=build_feeds(config),
        store=get_vehicle_state_store(),
        lookback=timedelta(seconds=config.feed_lookback_s),
    )
    return PollScheduler(fetcher=fetcher, interval_s=config.poll_interval_s)
