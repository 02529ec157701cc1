"""Analytics and dashboard schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .cash_call import CashCallRead


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class CashCallAnalytics(_CamelModel):
    """Aggregates derived from an in-memory set of cash calls."""

    total_amount: float
    approved_amount: float
    rejected_amount: float
    pending_amount: float
    approval_rate: int
    avg_amount: int
    anomalies: int
    avg_approval_time: int
    total_requests: int


class StatusBreakdown(_CamelModel):
    status: str
    count: int
    amount: float


class AffiliateBreakdown(_CamelModel):
    affiliate_id: str
    affiliate_name: str | None
    count: int
    total_amount: float
    approved_amount: float


class AnalyticsReport(_CamelModel):
    summary: CashCallAnalytics
    by_status: list[StatusBreakdown]
    by_affiliate: list[AffiliateBreakdown]


class ActivityLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any]
    created_at: datetime


class DashboardStats(BaseModel):
    total_cash_calls: int
    pending_approvals: int
    total_amount: float
    recent_activities: list[ActivityLogRead]
    upcoming_deadlines: list[CashCallRead]


__all__ = [
    "ActivityLogRead",
    "AffiliateBreakdown",
    "AnalyticsReport",
    "CashCallAnalytics",
    "DashboardStats",
    "StatusBreakdown",
]
