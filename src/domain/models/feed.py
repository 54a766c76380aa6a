from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping

# Raw upstream record, as decoded from JSON. Field names vary per feed.
RawRecord = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class FetchWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Window starts after it ends: {self.start} > {self.end}")

    @staticmethod
    def trailing(end: datetime, lookback: timedelta) -> "FetchWindow":
        return FetchWindow(start=end - lookback, end=end)
