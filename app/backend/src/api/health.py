"""Health check and metrics endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.backend.src.core.errors import PersistenceError

from .deps import SessionDep, SettingsDep

LOGGER = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health/live")
def liveness() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health/ready")
def readiness(session: SessionDep, settings: SettingsDep) -> dict[str, str]:
    """Report readiness once the database answers a trivial query."""

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        LOGGER.error("readiness_check_failed", error=str(exc))
        raise PersistenceError("Database unavailable") from exc
    return {
        "status": "ready",
        "database": session.get_bind().dialect.name,
        "identityProvider": settings.identity_provider,
    }


@router.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus counters for account requests, provisioning and cash calls."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
