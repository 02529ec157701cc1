"""Public API routers exposed by the FastAPI application."""

from . import (
    account_requests,
    activity_logs,
    affiliates,
    analytics,
    cash_calls,
    health,
    users,
)

__all__ = [
    "account_requests",
    "activity_logs",
    "affiliates",
    "analytics",
    "cash_calls",
    "health",
    "users",
]
