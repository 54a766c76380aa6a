from __future__ import annotations

import pytest

from src.adapters.api.dependencies import build_feeds
from src.adapters.runtime_config import (
    DEFAULT_BRT_FEED_URL,
    RuntimeConfig,
    parse_headers,
)

_ENV_VARS = (
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "BRT_FEED_URL",
    "SPPO_FEED_URL",
    "FEED_HEADERS",
    "FEED_TIMEOUT_S",
    "FEED_LOOKBACK_S",
    "FEED_TIMEZONE",
    "FEED_DATETIME_SEPARATOR",
    "POLL_INTERVAL_S",
    "POLL_ENABLED",
    "VEHICLES_REVEAL_ERRORS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_need_no_environment() -> None:
    cfg = RuntimeConfig.from_env()

    assert cfg.port == 3000
    assert cfg.brt_feed_url == DEFAULT_BRT_FEED_URL
    assert cfg.poll_interval_s == 20.0
    assert cfg.feed_lookback_s == 600.0
    assert cfg.feed_timezone is None
    assert cfg.feed_datetime_separator == " "
    assert cfg.poll_enabled is True


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("POLL_INTERVAL_S", "10")
    monkeypatch.setenv("POLL_ENABLED", "no")
    monkeypatch.setenv("FEED_TIMEZONE", "America/Sao_Paulo")
    monkeypatch.setenv("FEED_DATETIME_SEPARATOR", "+")
    monkeypatch.setenv("FEED_HEADERS", "X-Api-Key: abc ; broken; Accept:application/json")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = RuntimeConfig.from_env()

    assert cfg.port == 8080
    assert cfg.poll_interval_s == 10.0
    assert cfg.poll_enabled is False
    assert cfg.feed_timezone == "America/Sao_Paulo"
    assert cfg.feed_datetime_separator == "+"
    assert dict(cfg.feed_headers) == {
        "X-Api-Key": "abc",
        "Accept": "application/json",
    }
    assert cfg.log_level == "DEBUG"


def test_parse_headers_ignores_malformed_parts() -> None:
    assert parse_headers(None) == {}
    assert parse_headers(" ; :v ; k:v:w ") == {"k": "v:w"}


def test_build_feeds_uses_config() -> None:
    cfg = RuntimeConfig(
        sppo_feed_url="https://feeds.test/sppo",
        feed_timeout_s=3.0,
        feed_timezone="UTC",
        feed_headers=(("X-Api-Key", "abc"),),
    )

    brt, sppo = build_feeds(cfg)

    assert brt.name == "brt"
    assert brt.url == DEFAULT_BRT_FEED_URL
    assert sppo.url == "https://feeds.test/sppo"
    assert sppo.timeout_s == 3.0
    assert sppo.tz == "UTC"
    assert sppo.headers == {"X-Api-Key": "abc"}
