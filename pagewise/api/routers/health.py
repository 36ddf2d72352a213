"""
Health check API endpoints.

Routes:
- GET /health - Process liveness
- GET /health/db - Relational store reachability

Dependencies: fastapi, sqlalchemy, pagewise.boundary.db
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db import get_async_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    message: str


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", message="PageWise API is running")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(db: AsyncSession = Depends(get_async_db)) -> HealthResponse:
    """
    Run a trivial query against the configured database.

    Raises:
        HTTPException: 503 when the query fails
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"{__name__}:health_check_db - Database unreachable: {type(e).__name__}: {e}")
        raise HTTPException(status_code=503, detail="Database unreachable") from e
    return HealthResponse(status="healthy", message="Database reachable")
