"""Liveness and readiness checks."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from case_tracker import __version__
from case_tracker.core.database import get_session

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadyResponse(BaseModel):
    status: str
    database: str


@router.get("", response_model=HealthResponse, summary="Service health")
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=__version__)


@router.get("/ready", response_model=ReadyResponse, summary="Readiness check")
async def readiness_check(session: AsyncSession = Depends(get_session)) -> ReadyResponse:
    """Ready once the database answers a trivial query."""
    await session.execute(text("SELECT 1"))
    return ReadyResponse(status="ready", database="connected")


@router.get("/live", summary="Liveness check")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
