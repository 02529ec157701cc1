"""Role-based visibility of cash calls."""

from __future__ import annotations

from enum import Enum

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.errors import ValidationError
from app.backend.src.models import CashCall, User
from app.backend.src.models.enums import UserRole

LOGGER = structlog.get_logger(__name__)


class AccessScope(str, Enum):
    MINE = "mine"
    AFFILIATE = "affiliate"
    ALL = "all"


def parse_scope(value: AccessScope | str | None) -> AccessScope:
    """Return the scope named by ``value`` or raise :class:`ValidationError`."""

    if isinstance(value, AccessScope):
        return value
    try:
        return AccessScope((value or "").strip().lower())
    except ValueError as exc:
        raise ValidationError("Invalid scope") from exc


def default_scope_for_role(role: str | None) -> AccessScope:
    """Affiliates see their own cash calls by default; everyone else sees all."""

    if (role or "").strip().lower() == UserRole.AFFILIATE.value:
        return AccessScope.MINE
    return AccessScope.ALL


def is_visible(
    cash_call: CashCall,
    scope: AccessScope,
    user_id: str,
    affiliate_id: str | None,
) -> bool:
    """Return whether ``cash_call`` falls inside ``scope`` for the caller."""

    if scope is AccessScope.ALL:
        return True
    if scope is AccessScope.MINE:
        return cash_call.created_by == user_id
    return affiliate_id is not None and cash_call.affiliate_id == affiliate_id


def get_cash_calls_by_access(
    session: Session,
    user_id: str | None,
    scope: AccessScope | str | None,
) -> list[CashCall]:
    """Return the cash calls visible to ``user_id`` under ``scope``, newest first.

    The caller's role is not checked here; callers decide which scopes a role
    may request.
    """

    if not user_id:
        raise ValidationError("userId is required")
    scope = parse_scope(scope)

    query = select(CashCall).options(selectinload(CashCall.affiliate))
    if scope is AccessScope.MINE:
        query = query.where(CashCall.created_by == user_id)
    elif scope is AccessScope.AFFILIATE:
        user = session.get(User, user_id)
        if user is None:
            LOGGER.warning("access_scope_user_missing", user_id=user_id)
            return []
        if not user.affiliate_company_id:
            return []
        query = query.where(CashCall.affiliate_id == user.affiliate_company_id)

    query = query.order_by(CashCall.created_at.desc())
    return list(session.execute(query).scalars())


__all__ = [
    "AccessScope",
    "default_scope_for_role",
    "get_cash_calls_by_access",
    "is_visible",
    "parse_scope",
]
