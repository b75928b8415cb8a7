# This project was developed with assistance from AI tools.
"""Health check routes."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.config import settings

router = APIRouter()


@router.get("/")
async def health(db_service: DatabaseService = Depends(get_db_service)) -> JSONResponse:
    """Liveness plus database connectivity. 503 when the database is unreachable."""
    database = await db_service.health_check()
    healthy = database["status"] == "healthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "app": settings.APP_NAME,
            "database": database,
        },
    )
