"""Closed value sets shared by models, schemas and services."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """The single role enumeration used across the system."""

    ADMIN = "admin"
    FINANCE = "finance"
    VIEWER = "viewer"
    APPROVER = "approver"
    AFFILIATE = "affiliate"
    CFO = "cfo"


class AccountRequestStatus(str, Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class CashCallStatus(str, Enum):
    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class CashCallPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ComplianceStatus(str, Enum):
    PENDING = "pending"
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"


class AffiliateStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def values(enum_cls: type[Enum]) -> tuple[str, ...]:
    """Return the raw string values of ``enum_cls``."""

    return tuple(member.value for member in enum_cls)


def in_clause(column: str, enum_cls: type[Enum]) -> str:
    """Build the SQL body of a check constraint restricting ``column``."""

    allowed = ",".join(f"'{value}'" for value in values(enum_cls))
    return f"{column} IN ({allowed})"


__all__ = [
    "AccountRequestStatus",
    "AffiliateStatus",
    "CashCallPriority",
    "CashCallStatus",
    "ComplianceStatus",
    "RiskLevel",
    "UserRole",
    "in_clause",
    "values",
]
