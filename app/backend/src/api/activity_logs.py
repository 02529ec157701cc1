"""Read-only access to the activity log."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query

from app.backend.src.models import ActivityLog
from app.backend.src.schemas.analytics import ActivityLogRead
from app.backend.src.services.activity_log import list_activity_logs

from .deps import SessionDep

router = APIRouter(prefix="/activity-logs", tags=["Activity Logs"])


@router.get("", response_model=list[ActivityLogRead])
def get_activity_logs(
    session: SessionDep,
    resource_type: str | None = Query(default=None, alias="resourceType"),
    resource_id: str | None = Query(default=None, alias="resourceId"),
    user_id: str | None = Query(default=None, alias="userId"),
    action: str | None = Query(default=None),
    date_from: datetime | None = Query(default=None, alias="dateFrom"),
    date_to: datetime | None = Query(default=None, alias="dateTo"),
    limit: int = Query(default=100, ge=1, le=1000),
) -> list[ActivityLog]:
    """Return activity log entries, newest first."""

    return list_activity_logs(
        session,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        action=action,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
