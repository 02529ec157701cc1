"""Append-only activity log writes and queries."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.backend.src.core.errors import PersistenceError
from app.backend.src.models import ActivityLog
from app.backend.src.services.metrics import activity_log_failures_total

LOGGER = structlog.get_logger(__name__)


def _jsonable(value: Any) -> Any:
    """Coerce ``value`` into something the JSON column accepts."""

    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    return value


def log_activity(
    session: Session,
    *,
    action: str,
    resource_type: str,
    resource_id: str,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> ActivityLog:
    """Insert an activity log entry and commit, raising on failure."""

    entry = ActivityLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id),
        details=_jsonable(details or {}),
    )
    try:
        session.add(entry)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError("Failed to write activity log") from exc
    return entry


def record_activity(
    session: Session,
    *,
    action: str,
    resource_type: str,
    resource_id: str,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> ActivityLog | None:
    """Best-effort variant of :func:`log_activity`.

    The primary mutation has already been committed when this runs; a failed
    log write is reported and swallowed.
    """

    try:
        return log_activity(
            session,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user_id,
            details=details,
        )
    except PersistenceError as exc:
        activity_log_failures_total.labels(action=action).inc()
        LOGGER.warning(
            "activity_log_write_failed",
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            error=str(exc.__cause__ or exc),
        )
        return None


def list_activity_logs(
    session: Session,
    *,
    resource_type: str | None = None,
    resource_id: str | None = None,
    user_id: str | None = None,
    action: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int | None = None,
) -> list[ActivityLog]:
    """Return activity log entries, newest first."""

    query = select(ActivityLog)
    if resource_type:
        query = query.where(ActivityLog.resource_type == resource_type)
    if resource_id:
        query = query.where(ActivityLog.resource_id == resource_id)
    if user_id:
        query = query.where(ActivityLog.user_id == user_id)
    if action:
        query = query.where(ActivityLog.action == action)
    if date_from:
        query = query.where(ActivityLog.created_at >= date_from)
    if date_to:
        query = query.where(ActivityLog.created_at <= date_to)
    query = query.order_by(ActivityLog.created_at.desc())
    if limit:
        query = query.limit(limit)
    return list(session.execute(query).scalars())


__all__ = ["list_activity_logs", "log_activity", "record_activity"]
