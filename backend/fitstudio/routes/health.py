# backend/fitstudio/routes/health.py
"""
Health check endpoints for monitoring and load balancer probes.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import __version__
from ..api.dependencies import get_db
from ..core.config import settings
from ..schemas.health import HealthLiteResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _database_ok(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Health check database ping failed: {str(e)}")
        return False


@router.get("", response_model=HealthResponse)
def health_check(response: Response, db: Session = Depends(get_db)) -> HealthResponse:
    """
    Health check endpoint.

    Reports service info and whether the database answers. Returns 503 when
    it does not, so load balancers take the instance out of rotation.
    """
    database_ok = _database_ok(db)
    if not database_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        service="fitstudio-booking-api",
        version=__version__,
        environment=settings.environment,
        database="ok" if database_ok else "unavailable",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@router.get("/lite", response_model=HealthLiteResponse)
def health_check_lite() -> HealthLiteResponse:
    """
    Lightweight health check that doesn't hit database.

    Use this for high-frequency health probes.
    """
    return HealthLiteResponse(status="ok")
