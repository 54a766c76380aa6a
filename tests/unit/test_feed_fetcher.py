from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.app.services.feed_fetcher import FeedFetcher
from src.app.services.vehicle_state_store import VehicleStateStore
from src.domain.exceptions import FeedUnavailable
from src.domain.models.feed import FetchWindow
from src.domain.models.vehicle import RejectionReason

NOW = datetime(2026, 10, 17, 15, 0, 0, tzinfo=timezone.utc)


@dataclass(slots=True)
class FakeFeed:
    name: str
    records: tuple = ()
    error: Exception | None = None
    windows: list[FetchWindow] = field(default_factory=list)

    async def fetch_records(self, window: FetchWindow) -> tuple:
        self.windows.append(window)
        if self.error is not None:
            raise self.error
        return self.records


def _record(vehicle_id: str, lat: str = "-22,90", lon: str = "-43,20") -> dict:
    return {
        "ordem": vehicle_id,
        "latitude": lat,
        "longitude": lon,
        "datahora": "1690000000000",
        "velocidade": "30",
    }


def _fetcher(
    *feeds: FakeFeed, store: VehicleStateStore | None = None
) -> FeedFetcher:
    if store is None:
        store = VehicleStateStore()
    return FeedFetcher(feeds=feeds, store=store, clock=lambda: NOW)


def test_single_brt_record_lands_in_store() -> None:
    brt = FakeFeed("brt", records=(_record("B123"),))
    fetcher = _fetcher(brt, FakeFeed("sppo"))

    report = asyncio.run(fetcher.run_cycle())

    snapshot = fetcher.store.snapshot()
    assert len(snapshot) == 1
    state = snapshot[0]
    assert state.vehicle_id == "B123"
    assert state.latitude == -22.90
    assert state.longitude == -43.20
    assert state.speed == 30
    assert state.heading is None
    assert report.accepted == 1
    assert report.failed_feeds == ()


def test_window_is_ten_minutes_ending_now() -> None:
    sppo = FakeFeed("sppo")
    fetcher = _fetcher(FakeFeed("brt"), sppo)

    asyncio.run(fetcher.run_cycle())

    assert sppo.windows == [FetchWindow(start=NOW - timedelta(minutes=10), end=NOW)]


@pytest.mark.parametrize(
    "error",
    [
        FeedUnavailable("sppo", "HTTP 503"),
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ],
)
def test_failed_feed_contributes_nothing_but_others_merge(error) -> None:
    store = VehicleStateStore()
    # Previously cached vehicle that neither feed reports this cycle.
    asyncio.run(_fetcher(FakeFeed("brt", (_record("OLD1"),)), store=store).run_cycle())

    brt = FakeFeed("brt", records=(_record("B1"), _record("B2"), _record("B3")))
    sppo = FakeFeed("sppo", error=error)
    report = asyncio.run(_fetcher(brt, sppo, store=store).run_cycle())

    assert report.failed_feeds == ("sppo",)
    assert report.accepted == 3
    assert {s.vehicle_id for s in store.snapshot()} == {"OLD1", "B1", "B2", "B3"}


def test_malformed_records_are_counted_and_dropped() -> None:
    brt = FakeFeed(
        "brt",
        records=(
            _record("B1"),
            {"latitude": "-22,9", "longitude": "-43,2"},
            _record("B2", lat="0"),
        ),
    )
    sppo = FakeFeed("sppo", records=("garbage",))
    fetcher = _fetcher(brt, sppo)

    report = asyncio.run(fetcher.run_cycle())

    assert report.records_fetched == 4
    assert report.accepted == 1
    assert report.rejected == {
        RejectionReason.MISSING_IDENTIFIER: 1,
        RejectionReason.ZERO_COORDINATES: 1,
        RejectionReason.NOT_A_RECORD: 1,
    }
    assert report.rejected_total == 3
    assert [s.vehicle_id for s in fetcher.store.snapshot()] == ["B1"]


def test_brt_records_merge_before_sppo_records() -> None:
    brt = FakeFeed("brt", records=(_record("X1", lat="-22,9000"),))
    sppo = FakeFeed("sppo", records=(_record("X1", lat="-22,9100"),))
    fetcher = _fetcher(brt, sppo)

    asyncio.run(fetcher.run_cycle())

    state = fetcher.store.get("X1")
    assert state is not None
    assert state.latitude == -22.91
    # Moved ~1.1 km south between the two records of the same cycle.
    assert state.heading == pytest.approx(180.0, abs=0.01)


def test_feeds_are_fetched_concurrently() -> None:
    started: list[str] = []
    release = asyncio.Event()

    @dataclass(slots=True)
    class BlockingFeed:
        name: str

        async def fetch_records(self, window: FetchWindow) -> tuple:
            started.append(self.name)
            if len(started) == 2:
                release.set()
            # Deadlocks unless both feeds are in flight at the same time.
            await asyncio.wait_for(release.wait(), timeout=1.0)
            return ()

    fetcher = _fetcher(BlockingFeed("brt"), BlockingFeed("sppo"))
    report = asyncio.run(fetcher.run_cycle())

    assert sorted(started) == ["brt", "sppo"]
    assert report.failed_feeds == ()


def test_unexpected_errors_propagate_to_the_caller() -> None:
    fetcher = _fetcher(FakeFeed("brt", error=KeyError("boom")), FakeFeed("sppo"))

    with pytest.raises(KeyError):
        asyncio.run(fetcher.run_cycle())


def test_unexpected_error_waits_for_sibling_feed_to_settle() -> None:
    finished: list[str] = []

    @dataclass(slots=True)
    class SlowFeed:
        name: str

        async def fetch_records(self, window: FetchWindow) -> tuple:
            await asyncio.sleep(0.02)
            finished.append(self.name)
            return (_record("S1"),)

    store = VehicleStateStore()
    fetcher = _fetcher(
        FakeFeed("brt", error=KeyError("boom")), SlowFeed("sppo"), store=store
    )

    with pytest.raises(KeyError):
        asyncio.run(fetcher.run_cycle())

    assert finished == ["sppo"]
    # The cycle aborted before merging anything.
    assert len(store) == 0
