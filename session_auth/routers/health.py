from datetime import datetime, timezone
import logging
import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from session_auth.database import ping_db

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health() -> JSONResponse:
    started = time.perf_counter()
    payload = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {"status": "connected"},
    }
    try:
        ping_db()
    except (SQLAlchemyError, RuntimeError) as exc:
        LOGGER.error("Database health check failed: %s", exc)
        payload["status"] = "unhealthy"
        payload["database"] = {"status": "error", "error": str(exc)}
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload)
    payload["database"]["response_time_ms"] = round(
        (time.perf_counter() - started) * 1000, 2
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=payload)
