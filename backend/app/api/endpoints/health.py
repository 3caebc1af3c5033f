"""Health check endpoints for monitoring."""
import logging
from typing import Dict, Any

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.api.dependencies import get_database, get_image_store, get_settings
from app.core.config import Settings
from app.core.database import Database
from app.services.storage_service import ImageStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Basic health check endpoint (supports GET & HEAD)."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.VERSION,
    }


@router.get("/health/detailed")
async def detailed_health_check(
    database: Database = Depends(get_database),
    image_store: ImageStore = Depends(get_image_store),
) -> Dict[str, Any]:
    """Detailed health check with service status."""
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "services": {}
    }

    # Check database
    try:
        await database.ping()
        health_status["services"]["database"] = "healthy"
        health_status["database"] = database.debug_info()
    except Exception as e:
        logger.warning("database health probe failed: %s", e)
        health_status["services"]["database"] = "unhealthy"
        health_status["status"] = "degraded"

    # Check image storage
    try:
        await run_in_threadpool(image_store.probe)
        health_status["services"]["storage"] = "healthy"
    except Exception as e:
        logger.warning("storage health probe failed: %s", e)
        health_status["services"]["storage"] = "unhealthy"
        health_status["status"] = "degraded"

    return health_status
