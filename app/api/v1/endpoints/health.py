from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_cache, get_db
from core.cache import Cache
from core.config import Settings

router = APIRouter()


@router.get("/health")
def health_check(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
):
    """
    Health check endpoint
    Checks connectivity to the database and the cache backend
    """
    health_status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "database": "unknown",
        "cache": "unknown"
    }

    # Check database connection
    try:
        db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["database"] = f"error: {str(e)}"

    # Check cache backend
    try:
        cache.ping()
        health_status["cache"] = f"connected ({settings.CACHE_BACKEND})"
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["cache"] = f"error: {str(e)}"

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status
