"""
Health check endpoint.

GET /health checks the challenge store and Redis.
Rules:
- Challenge store failure → "unhealthy" (503): challenges cannot be issued.
- Redis failure or absence → "degraded" (200): the process-local store cannot
  enforce single use across workers.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    service = request.app.state.challenge_service
    try:
        store_ok = await service.store.ping()
    except Exception:
        store_ok = False
    if store_ok:
        checks["challenge_store"] = service.store.backend
    else:
        checks["challenge_store"] = "error"
        overall = "unhealthy"

    redis = request.app.state.redis
    if redis is None:
        checks["redis"] = "not_configured"
        if overall == "healthy":
            overall = "degraded"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "error"
            if overall == "healthy":
                overall = "degraded"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
