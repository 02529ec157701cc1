"""Aggregate figures derived from a set of cash calls.

Everything here is pure: callers load the records (already scoped to what the
user may see) and pass them in.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from app.backend.src.core.errors import ValidationError
from app.backend.src.models.enums import CashCallStatus
from app.backend.src.schemas.analytics import (
    AffiliateBreakdown,
    AnalyticsReport,
    CashCallAnalytics,
    StatusBreakdown,
)

TIME_RANGES: dict[str, timedelta | None] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
    "all": None,
}

APPROVED_STATUSES = {CashCallStatus.APPROVED.value, CashCallStatus.PAID.value}
SECONDS_PER_DAY = 86400


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""

    return int(math.floor(value + 0.5))


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite returns naive datetimes; they are stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _status(cash_call: Any) -> str:
    status = getattr(cash_call, "status", None)
    return getattr(status, "value", status)


def _amount(cash_call: Any) -> float:
    return float(getattr(cash_call, "amount_requested", 0) or 0)


def filter_by_time_range(
    cash_calls: Iterable[Any], time_range: str = "all", now: datetime | None = None
) -> list[Any]:
    """Keep the records created within ``time_range`` of ``now``."""

    if time_range not in TIME_RANGES:
        raise ValidationError("Invalid time range")
    window = TIME_RANGES[time_range]
    records = list(cash_calls)
    if window is None:
        return records
    cutoff = (_as_utc(now) or datetime.now(timezone.utc)) - window
    return [
        record
        for record in records
        if _as_utc(getattr(record, "created_at", None)) is not None
        and _as_utc(record.created_at) >= cutoff
    ]


def count_anomalies(amounts: Sequence[float]) -> int:
    """Count amounts further than two population standard deviations from the mean."""

    if not amounts:
        return 0
    mean = sum(amounts) / len(amounts)
    variance = sum((amount - mean) ** 2 for amount in amounts) / len(amounts)
    std_dev = math.sqrt(variance)
    if std_dev == 0:
        return 0
    return sum(1 for amount in amounts if abs(amount - mean) > 2 * std_dev)


def average_approval_days(cash_calls: Iterable[Any]) -> int:
    """Mean whole days between creation and approval, rounded."""

    durations: list[int] = []
    for cash_call in cash_calls:
        approved_at = _as_utc(getattr(cash_call, "approved_at", None))
        created_at = _as_utc(getattr(cash_call, "created_at", None))
        if approved_at is None or created_at is None:
            continue
        elapsed = (approved_at - created_at).total_seconds()
        durations.append(math.floor(elapsed / SECONDS_PER_DAY))
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def compute_cash_call_analytics(
    cash_calls: Iterable[Any],
    now: datetime | None = None,
    time_range: str = "all",
) -> CashCallAnalytics:
    """Summarize ``cash_calls`` into totals, rates and anomaly counts."""

    records = filter_by_time_range(cash_calls, time_range, now)
    amounts = [_amount(record) for record in records]
    count = len(records)

    total_amount = sum(amounts)
    approved = [record for record in records if _status(record) in APPROVED_STATUSES]
    approved_amount = sum(_amount(record) for record in approved)
    rejected_amount = sum(
        _amount(record) for record in records if _status(record) == CashCallStatus.REJECTED.value
    )
    pending_amount = sum(
        _amount(record)
        for record in records
        if _status(record) == CashCallStatus.UNDER_REVIEW.value
    )

    return CashCallAnalytics(
        total_amount=round(total_amount, 2),
        approved_amount=round(approved_amount, 2),
        rejected_amount=round(rejected_amount, 2),
        pending_amount=round(pending_amount, 2),
        approval_rate=round_half_up(len(approved) / count * 100) if count else 0,
        avg_amount=round_half_up(total_amount / count) if count else 0,
        anomalies=count_anomalies(amounts),
        avg_approval_time=average_approval_days(records),
        total_requests=count,
    )


def summarize_by_status(cash_calls: Iterable[Any]) -> list[StatusBreakdown]:
    """Count and total per status, in lifecycle order."""

    counts = {status.value: 0 for status in CashCallStatus}
    totals = {status.value: 0.0 for status in CashCallStatus}
    for cash_call in cash_calls:
        status = _status(cash_call)
        if status not in counts:
            continue
        counts[status] += 1
        totals[status] += _amount(cash_call)
    return [
        StatusBreakdown(status=status, count=counts[status], amount=round(totals[status], 2))
        for status in counts
    ]


def summarize_by_affiliate(
    cash_calls: Iterable[Any],
    affiliates: Mapping[str, str] | None = None,
) -> list[AffiliateBreakdown]:
    """Per-affiliate counts and totals, largest total first.

    ``affiliates`` maps affiliate ids to display names; when a name is missing
    the record's own ``affiliate_name`` is used.
    """

    affiliates = affiliates or {}
    grouped: dict[str, dict[str, Any]] = {}
    for cash_call in cash_calls:
        affiliate_id = getattr(cash_call, "affiliate_id", None)
        if not affiliate_id:
            continue
        entry = grouped.setdefault(
            affiliate_id,
            {
                "affiliate_name": affiliates.get(affiliate_id)
                or getattr(cash_call, "affiliate_name", None),
                "count": 0,
                "total_amount": 0.0,
                "approved_amount": 0.0,
            },
        )
        entry["count"] += 1
        entry["total_amount"] += _amount(cash_call)
        if _status(cash_call) in APPROVED_STATUSES:
            entry["approved_amount"] += _amount(cash_call)

    breakdown = [
        AffiliateBreakdown(
            affiliate_id=affiliate_id,
            affiliate_name=entry["affiliate_name"],
            count=entry["count"],
            total_amount=round(entry["total_amount"], 2),
            approved_amount=round(entry["approved_amount"], 2),
        )
        for affiliate_id, entry in grouped.items()
    ]
    breakdown.sort(key=lambda item: (-item.total_amount, item.affiliate_id))
    return breakdown


def build_analytics_report(
    cash_calls: Iterable[Any],
    now: datetime | None = None,
    time_range: str = "all",
) -> AnalyticsReport:
    records = filter_by_time_range(cash_calls, time_range, now)
    return AnalyticsReport(
        summary=compute_cash_call_analytics(records),
        by_status=summarize_by_status(records),
        by_affiliate=summarize_by_affiliate(records),
    )


__all__ = [
    "TIME_RANGES",
    "average_approval_days",
    "build_analytics_report",
    "compute_cash_call_analytics",
    "count_anomalies",
    "filter_by_time_range",
    "round_half_up",
    "summarize_by_affiliate",
    "summarize_by_status",
]
