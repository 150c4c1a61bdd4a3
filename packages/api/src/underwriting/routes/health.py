# This project was developed with assistance from AI tools.
"""Health check routes."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..core.config import settings

router = APIRouter()


@router.get("/")
async def health(db: DatabaseService = Depends(get_db_service)) -> JSONResponse:
    """Report API and database status. Returns 503 when the database is down."""
    healthy = await db.health_check()
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "name": settings.APP_NAME,
            "status": "healthy" if healthy else "degraded",
            "database": "up" if healthy else "down",
        },
    )
