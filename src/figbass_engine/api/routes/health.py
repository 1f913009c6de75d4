"""GET /api/v1/health — server health check."""

from __future__ import annotations

from fastapi import APIRouter

from figbass_engine import __version__
from figbass_engine.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)
