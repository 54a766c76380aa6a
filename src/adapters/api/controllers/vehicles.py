from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import PlainTextResponse

from src.adapters.api.dependencies import get_poll_scheduler, get_vehicle_state_store
from src.adapters.api.schemas.vehicles import (
    CycleReportSchema,
    PollStatusSchema,
    VehicleStateSchema,
)
from src.app.services.poll_scheduler import PollScheduler
from src.app.services.vehicle_state_store import VehicleStateStore
from src.domain.models.vehicle import VehicleState

router = APIRouter(prefix="/api", tags=["vehicles"])

CACHE_CONTROL = "s-maxage=20, stale-while-revalidate=40"


def _state_to_schema(state: VehicleState) -> VehicleStateSchema:
    return VehicleStateSchema(
        codigo=state.vehicle_id,
        linha=state.line,
        dataHora=state.timestamp,
        latitude=state.latitude,
        longitude=state.longitude,
        velocidade=state.speed,
        direcao=state.heading,
        sentido=state.direction_tag,
        trajeto=state.trajectory_tag,
    )


@router.get(
    "/vehicles",
    response_model=list[VehicleStateSchema],
    responses={200: {"content": {"text/plain": {}}}},
)
async def list_vehicles(
    response: Response,
    linha: list[str] | None = Query(default=None),
    source: str | None = Query(default=None),
    store: VehicleStateStore = Depends(get_vehicle_state_store),
    scheduler: PollScheduler = Depends(get_poll_scheduler),
):
    # External cron trigger: refresh only, no payload.
    if source == "cron":
        report = await scheduler.run_once()
        if report is None:
            return PlainTextResponse("Cache refresh skipped or failed.")
        return PlainTextResponse("Cache updated by cron.")

    if not len(store):
        await scheduler.ensure_warm()

    states = store.snapshot()
    if linha:
        lines = set(linha)
        states = tuple(s for s in states if s.line in lines)

    response.headers["Cache-Control"] = CACHE_CONTROL
    return [_state_to_schema(s) for s in states]


@router.get("/status", response_model=PollStatusSchema)
def poll_status(
    store: VehicleStateStore = Depends(get_vehicle_state_store),
    scheduler: PollScheduler = Depends(get_poll_scheduler),
) -> PollStatusSchema:
    report = scheduler.last_report
    return PollStatusSchema(
        vehicle_count=len(store),
        poller_running=scheduler.is_running,
        cycle_in_progress=scheduler.is_busy,
        skipped_cycles=scheduler.skipped_cycles,
        failed_cycles=scheduler.failed_cycles,
        last_cycle=(
            CycleReportSchema(
                started_at=report.started_at,
                finished_at=report.finished_at,
                records_fetched=report.records_fetched,
                accepted=report.accepted,
                rejected={r.value: n for r, n in report.rejected.items()},
                failed_feeds=list(report.failed_feeds),
                vehicle_count=report.vehicle_count,
            )
            if report is not None
            else None
        ),
    )
