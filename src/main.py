from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.directions import router as directions_router
from src.adapters.api.controllers.transit import router as transit_router
from src.adapters.api.dependencies import get_cache_service, get_runtime_config
from src.domain.exceptions import (
    NotFound,
    PlanningUnavailable,
    UpstreamPayloadError,
    UpstreamUnavailable,
    ValidationFailure,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    cache = get_cache_service()
    await cache.start()
    try:
        yield
    finally:
        await cache.aclose(timeout_s=get_runtime_config().cache_shutdown_timeout_s)


app = FastAPI(title="Transit Planner", lifespan=lifespan)
app.include_router(directions_router)
app.include_router(transit_router)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(
    request: Request, exc: ValidationFailure
) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UpstreamPayloadError)
async def upstream_payload_handler(
    request: Request, exc: UpstreamPayloadError
) -> JSONResponse:
    logger.error("Upstream returned an unexpected payload: %s", exc)
    return JSONResponse(status_code=502, content={"detail": "Bad upstream response"})


@app.exception_handler(UpstreamUnavailable)
async def upstream_unavailable_handler(
    request: Request, exc: UpstreamUnavailable
) -> JSONResponse:
    return JSONResponse(
        status_code=503, content={"detail": "Transit data temporarily unavailable"}
    )


@app.exception_handler(PlanningUnavailable)
async def planning_unavailable_handler(
    request: Request, exc: PlanningUnavailable
) -> JSONResponse:
    logging.getLogger("uvicorn.error").error("Route planning failed: %s", exc)
    return JSONResponse(
        status_code=503, content={"detail": "Could not calculate a route"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Keep 500s JSON so clients can always parse `detail`."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("TRANSIT_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, Any]:
    cfg = get_runtime_config()
    cache = get_cache_service()
    return {
        "status": "ok",
        "cache": {
            "backend": cfg.cache_backend,
            "available": cache.is_available,
            "last_error": cache.health.last_error,
        },
    }
