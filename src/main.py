from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from src.adapters.api.controllers.vehicles import router as vehicles_router
from src.adapters.api.dependencies import (
    get_poll_scheduler,
    get_runtime_config,
    get_vehicle_state_store,
)
from src.app.services.vehicle_state_store import VehicleStateStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config = get_runtime_config()
    scheduler = get_poll_scheduler()
    if config.poll_enabled:
        # First cycle runs immediately, then every poll_interval_s.
        scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(title="Cadê o Ônibus", lifespan=lifespan)
app.include_router(vehicles_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so the mobile client can display them."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = get_runtime_config().reveal_errors

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/", response_class=PlainTextResponse)
def index(store: VehicleStateStore = Depends(get_vehicle_state_store)) -> str:
    return f"Cadê o Ônibus? server up. Vehicles in cache: {len(store)}"


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def run() -> None:
    config = get_runtime_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("Server listening on port %d", config.port)
    uvicorn.run(
        app, host=config.host, port=config.port, log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    run()
