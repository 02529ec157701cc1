"""Service layer functions for user profiles."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.backend.src.models import Affiliate, User
from app.backend.src.models.base import new_id, utcnow
from app.backend.src.models.enums import UserRole
from app.backend.src.schemas.user import UserCreate
from app.backend.src.services.activity_log import record_activity

LOGGER = structlog.get_logger(__name__)

ALLOWED_ROLES: set[str] = {role.value for role in UserRole}
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"is_active", "department", "position", "phone", "role"}
)


def normalize_role(role: str | None) -> str:
    """Return the canonical lowercase role or raise :class:`ValidationError`."""

    normalized_role = (role or "").strip().lower()
    if not normalized_role:
        raise ValidationError("Role is required")
    if normalized_role not in ALLOWED_ROLES:
        raise ValidationError("Invalid role")
    return normalized_role


def _get_user_or_404(session: Session, user_id: str) -> User:
    user = session.query(User).filter(User.id == user_id).one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


def _commit(session: Session, user: User, failure_message: str) -> User:
    try:
        session.add(user)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if "email" in str(exc.orig).lower():
            raise InvalidStateError("A user with this email already exists") from exc
        LOGGER.error("user_constraint_violation", user_id=user.id, error=str(exc.orig))
        raise PersistenceError(f"{failure_message}: constraint violation") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("user_write_failed", user_id=user.id, error=str(exc))
        raise PersistenceError(failure_message) from exc
    session.refresh(user)
    return user


def get_user(session: Session, user_id: str) -> User:
    return _get_user_or_404(session, user_id)


def list_users_by_role(session: Session, role: str | None) -> list[User]:
    """Return users holding ``role``; the lookup ignores case."""

    normalized_role = normalize_role(role)
    return (
        session.query(User)
        .options(selectinload(User.affiliate))
        .filter(User.role == normalized_role)
        .order_by(User.full_name.asc())
        .all()
    )


def create_user(session: Session, payload: UserCreate) -> User:
    """Insert a profile directly, bypassing the account request flow."""

    if not payload.email or not (payload.full_name or "").strip() or not payload.role:
        raise ValidationError("Missing required fields")
    role = normalize_role(payload.role)
    email = str(payload.email).strip().lower()

    duplicate = (
        session.query(User.id).filter(func.lower(User.email) == email).one_or_none()
    )
    if duplicate is not None:
        raise InvalidStateError("A user with this email already exists")

    affiliate_id = payload.affiliate_company_id or None
    if affiliate_id and session.get(Affiliate, affiliate_id) is None:
        raise NotFoundError("Affiliate not found")

    user = User(
        id=payload.id or new_id(),
        email=email,
        full_name=payload.full_name.strip(),
        role=role,
        department=payload.department if payload.department is not None else "Finance",
        position=payload.position if payload.position is not None else "",
        phone=payload.phone if payload.phone is not None else "",
        affiliate_company_id=affiliate_id,
        is_active=True if payload.is_active is None else payload.is_active,
    )
    _commit(session, user, "Failed to create user")
    LOGGER.info("user_created", user_id=user.id, role=role)
    record_activity(
        session,
        action="user_created",
        resource_type="user",
        resource_id=user.id,
        details={"email": email, "role": role},
    )
    return user


def update_user(
    session: Session,
    user_id: str,
    updates: dict[str, Any],
    *,
    actor_id: str | None = None,
) -> tuple[User, dict[str, Any]]:
    """Apply allow-listed updates and return the user with the applied changes."""

    applied = {key: value for key, value in (updates or {}).items() if key in UPDATABLE_FIELDS}
    if not applied:
        raise ValidationError("No valid fields to update")
    if "role" in applied:
        applied["role"] = normalize_role(applied["role"])
    if "is_active" in applied and not isinstance(applied["is_active"], bool):
        raise ValidationError("is_active must be a boolean")

    user = _get_user_or_404(session, user_id)
    previous = {key: getattr(user, key) for key in applied}
    for key, value in applied.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    _commit(session, user, "Failed to update user")

    record_activity(
        session,
        action="user_updated",
        resource_type="user",
        resource_id=user.id,
        user_id=actor_id,
        details={"old": previous, "new": applied},
    )
    return user, applied


def deactivate_user(session: Session, user_id: str, *, actor_id: str | None = None) -> User:
    """Soft deactivate a user account."""

    user = _get_user_or_404(session, user_id)
    user.is_active = False
    _commit(session, user, "Failed to deactivate user")
    record_activity(
        session,
        action="user_deactivated",
        resource_type="user",
        resource_id=user.id,
        user_id=actor_id,
    )
    return user


__all__ = [
    "ALLOWED_ROLES",
    "UPDATABLE_FIELDS",
    "create_user",
    "deactivate_user",
    "get_user",
    "list_users_by_role",
    "normalize_role",
    "update_user",
]
