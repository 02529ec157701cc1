"""Prometheus metric definitions for cash call workflows."""

from __future__ import annotations

from prometheus_client import Counter

account_requests_total = Counter(
    "account_requests_total",
    "Account request review actions by outcome.",
    labelnames=["outcome"],
)

users_provisioned_total = Counter(
    "users_provisioned_total",
    "Users provisioned from account requests by result.",
    labelnames=["result"],
)

cash_call_transitions_total = Counter(
    "cash_call_transitions_total",
    "Cash call status transitions.",
    labelnames=["from_status", "to_status"],
)

activity_log_failures_total = Counter(
    "activity_log_failures_total",
    "Best-effort activity log writes that failed.",
    labelnames=["action"],
)

notification_failures_total = Counter(
    "notification_failures_total",
    "Notifications that could not be dispatched.",
    labelnames=["kind"],
)

__all__ = [
    "account_requests_total",
    "activity_log_failures_total",
    "cash_call_transitions_total",
    "notification_failures_total",
    "users_provisioned_total",
]
