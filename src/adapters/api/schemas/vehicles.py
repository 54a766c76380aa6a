from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class VehicleStateSchema(BaseModel):
    """Wire shape consumed by the mobile client; field names are fixed."""

    codigo: str
    linha: str | None = None
    dataHora: int
    latitude: float
    longitude: float
    velocidade: int
    direcao: float | None = None
    sentido: str | None = None
    trajeto: str | None = None


class CycleReportSchema(BaseModel):
    started_at: datetime
    finished_at: datetime
    records_fetched: int
    accepted: int
    rejected: dict[str, int]
    failed_feeds: list[str]
    vehicle_count: int


class PollStatusSchema(BaseModel):
    vehicle_count: int
    poller_running: bool
    cycle_in_progress: bool
    skipped_cycles: int
    failed_cycles: int
    last_cycle: CycleReportSchema | None = None
