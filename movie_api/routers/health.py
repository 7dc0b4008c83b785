# movie_api/routers/health.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError

from movie_api.database import ping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _database_status(request: Request) -> str:
    try:
        ping(request.app.state.engine)
    except SQLAlchemyError:
        logger.error("Database health check failed", exc_info=True)
        return "unavailable"
    return "connected"


@router.get("/health")
def health_check(request: Request) -> dict:
    """
    Basic liveness information. Database problems are reported, not raised.
    """
    return {
        "status": "healthy",
        "app_name": request.app.title,
        "version": request.app.version,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "database": _database_status(request),
        "storage": request.app.state.settings.STORAGE_BACKEND,
    }


@router.get("/health/ready")
def readiness_check(request: Request) -> dict:
    database = _database_status(request)
    return {
        "ready": database == "connected",
        "checks": {"database": "ok" if database == "connected" else "failed"},
    }
