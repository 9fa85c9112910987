# hms/routers/health.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError

from .. import schemas

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["Health Checks"],
)


@router.get("", response_model=schemas.HealthResponse)
def health_check(request: Request):
    """Liveness probe; also reports whether the database answers."""
    try:
        request.app.state.database.ping()
        database = "connected"
    except SQLAlchemyError as exc:
        logger.error(f"Health check could not reach the database: {exc}")
        database = "unavailable"
    return {
        "status": "OK",
        "message": "Hospital Management System API is running",
        "timestamp": datetime.now(timezone.utc),
        "database": database,
    }
