"""
CodeVault Backend — Health Check Route
=======================================

What:  Liveness endpoint for Docker health checks and uptime monitors.
How:   Answers 200 as long as the process serves requests. It does not
       query the store or the third-party APIs; a missing API key only
       degrades the endpoint that needs it.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from codevault import __version__
from codevault.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )
