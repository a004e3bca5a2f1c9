"""
Health endpoint
"""
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint with database status"""
    db_status = "healthy"
    db_error = None

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = "unhealthy"
        db_error = str(e)

    return {
        "success": True,
        "data": {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": settings.app_version,
            "environment": settings.environment,
            "database": {
                "status": db_status,
                "error": db_error
            }
        },
        "timestamp": time.time()
    }
