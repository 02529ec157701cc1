"""Analytics and dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from app.backend.src.schemas.analytics import AnalyticsReport, DashboardStats
from app.backend.src.services.access import get_cash_calls_by_access
from app.backend.src.services.analytics import build_analytics_report
from app.backend.src.services.dashboard import get_dashboard_stats

from .cash_calls import resolve_scope
from .deps import SessionDep

router = APIRouter(tags=["analytics"])


@router.get("/analytics/cash-calls", response_model=AnalyticsReport)
def cash_call_analytics(
    session: SessionDep,
    user_id: str | None = Query(default=None, alias="userId"),
    scope: str | None = Query(default=None),
    time_range: str = Query(default="all", alias="timeRange"),
) -> AnalyticsReport:
    """Aggregate the cash calls visible to the caller."""

    cash_calls = get_cash_calls_by_access(session, user_id, resolve_scope(session, user_id, scope))
    return build_analytics_report(cash_calls, time_range=time_range)


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(
    session: SessionDep,
    user_id: str | None = Query(default=None, alias="userId"),
) -> DashboardStats:
    return get_dashboard_stats(session, user_id)
