from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BRT_FEED_URL = "https://dados.mobilidade.rio/gps/brt"
DEFAULT_SPPO_FEED_URL = "https://dados.mobilidade.rio/gps/sppo"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_str(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() or default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    return float(raw) if raw is not None else default


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse extra request headers given as 'Key:Value;Key2:Value2'."""

    raw = (raw or "").strip()
    if not raw:
        return {}
    headers: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part:
            continue
        if ":" not in part:
            continue
        k, v = part.split(":", 1)
        k = k.strip()
        v = v.strip()
        if k:
            headers[k] = v
    return headers


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Process configuration. Every setting is optional; PORT is the usual one."""

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    brt_feed_url: str = DEFAULT_BRT_FEED_URL
    sppo_feed_url: str = DEFAULT_SPPO_FEED_URL
    feed_headers: tuple[tuple[str, str], ...] = ()
    feed_timeout_s: float = 10.0
    feed_lookback_s: float = 600.0
    feed_timezone: str | None = None
    feed_datetime_separator: str = " "
    poll_interval_s: float = 20.0
    poll_enabled: bool = True
    reveal_errors: bool = False

    @staticmethod
    def from_env() -> "RuntimeConfig":
        separator = os.getenv("FEED_DATETIME_SEPARATOR")

        return RuntimeConfig(
            host=_env_str("HOST", "0.0.0.0") or "0.0.0.0",
            port=int(_env_str("PORT", "3000") or "3000"),
            log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
            brt_feed_url=_env_str("BRT_FEED_URL", DEFAULT_BRT_FEED_URL)
            or DEFAULT_BRT_FEED_URL,
            sppo_feed_url=_env_str("SPPO_FEED_URL", DEFAULT_SPPO_FEED_URL)
            or DEFAULT_SPPO_FEED_URL,
            feed_headers=tuple(parse_headers(os.getenv("FEED_HEADERS")).items()),
            feed_timeout_s=_env_float("FEED_TIMEOUT_S", 10.0),
            feed_lookback_s=_env_float("FEED_LOOKBACK_S", 600.0),
            feed_timezone=_env_str("FEED_TIMEZONE"),
            # Not stripped: the separator is usually a single space.
            feed_datetime_separator=separator if separator else " ",
            poll_interval_s=_env_float("POLL_INTERVAL_S", 20.0),
            poll_enabled=_env_bool("POLL_ENABLED", True),
            reveal_errors=_env_bool("VEHICLES_REVEAL_ERRORS", False),
        )
