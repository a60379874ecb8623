"""Service health endpoints."""

import logging

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from settlement_engine.api.dependencies import DbSession, Rounder
from settlement_engine.config import get_settings
from settlement_engine.models import Merchant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Settlement service health."""

    status: str
    database: str
    reporting_timezone: str
    rounding_slots: int


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession, rounder: Rounder) -> HealthResponse:
    """Check the settlement tables and report the rounder cache size."""
    database = "healthy"
    try:
        await db.execute(select(func.count()).select_from(Merchant))
    except (SQLAlchemyError, OSError):
        logger.warning("Settlement database check failed", exc_info=True)
        database = "unhealthy"

    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        database=database,
        reporting_timezone=get_settings().reporting_timezone,
        rounding_slots=rounder.cached_keys(),
    )


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
