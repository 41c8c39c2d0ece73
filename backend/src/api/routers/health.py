"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_auth_session


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    identity_database: str


async def _ping(db: AsyncSession, name: str) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("%s health check failed", name)
        return "unhealthy"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
    auth_db: AsyncSession = Depends(get_auth_session),
) -> HealthResponse:
    """Check application and both database connections."""
    db_status = await _ping(db, "Database")
    identity_status = await _ping(auth_db, "Identity database")
    healthy = db_status == identity_status == "healthy"
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        database=db_status,
        identity_database=identity_status,
    )
