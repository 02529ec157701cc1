"""Dashboard summary queries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.backend.src.models import CashCall
from app.backend.src.models.enums import CashCallStatus
from app.backend.src.schemas.analytics import DashboardStats
from app.backend.src.services.activity_log import list_activity_logs

RECENT_ACTIVITY_LIMIT = 10
DEADLINE_WINDOW = timedelta(days=30)


def get_dashboard_stats(
    session: Session,
    user_id: str | None = None,
    *,
    now: datetime | None = None,
) -> DashboardStats:
    """Headline counts, recent activity and cash calls due within thirty days.

    When ``user_id`` is given the recent activity is limited to that user.
    """

    now = now or datetime.now(timezone.utc)

    total_cash_calls = session.scalar(select(func.count(CashCall.id))) or 0
    pending_approvals = (
        session.scalar(
            select(func.count(CashCall.id)).where(
                CashCall.status == CashCallStatus.UNDER_REVIEW.value
            )
        )
        or 0
    )
    total_amount = (
        session.scalar(
            select(func.coalesce(func.sum(CashCall.amount_requested), 0)).where(
                CashCall.status.in_(
                    [CashCallStatus.APPROVED.value, CashCallStatus.PAID.value]
                )
            )
        )
        or 0
    )

    recent_activities = list_activity_logs(
        session, user_id=user_id, limit=RECENT_ACTIVITY_LIMIT
    )
    upcoming_deadlines = list(
        session.execute(
            select(CashCall)
            .options(selectinload(CashCall.affiliate))
            .where(
                CashCall.due_date.is_not(None),
                CashCall.due_date >= now,
                CashCall.due_date <= now + DEADLINE_WINDOW,
            )
            .order_by(CashCall.due_date.asc())
        ).scalars()
    )

    return DashboardStats.model_validate(
        {
            "total_cash_calls": total_cash_calls,
            "pending_approvals": pending_approvals,
            "total_amount": round(float(total_amount), 2),
            "recent_activities": recent_activities,
            "upcoming_deadlines": upcoming_deadlines,
        }
    )


__all__ = ["get_dashboard_stats"]
