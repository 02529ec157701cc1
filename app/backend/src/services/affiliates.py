"""Affiliate company management."""

from __future__ import annotations

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.backend.src.core.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
)
from app.backend.src.models import Affiliate, CashCall
from app.backend.src.schemas.affiliate import AffiliateCreate, AffiliateUpdate
from app.backend.src.services.activity_log import record_activity

LOGGER = structlog.get_logger(__name__)


def _get_affiliate_or_404(session: Session, affiliate_id: str) -> Affiliate:
    affiliate = session.get(Affiliate, affiliate_id)
    if affiliate is None:
        raise NotFoundError("Affiliate not found")
    return affiliate


def _commit(session: Session, affiliate: Affiliate, failure_message: str) -> None:
    try:
        session.add(affiliate)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise InvalidStateError("Company code already exists") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("affiliate_write_failed", affiliate_id=affiliate.id, error=str(exc))
        raise PersistenceError(failure_message) from exc


def list_affiliates(session: Session) -> list[Affiliate]:
    """Return affiliates ordered by name."""

    return list(session.execute(select(Affiliate).order_by(Affiliate.name.asc())).scalars())


def get_affiliate(session: Session, affiliate_id: str) -> Affiliate:
    return _get_affiliate_or_404(session, affiliate_id)


def create_affiliate(
    session: Session, payload: AffiliateCreate, *, actor_id: str | None = None
) -> Affiliate:
    code = payload.company_code.strip().upper()
    existing = session.execute(
        select(Affiliate.id).where(func.upper(Affiliate.company_code) == code)
    ).first()
    if existing is not None:
        raise InvalidStateError("Company code already exists")

    data = payload.model_dump(mode="json")
    data["company_code"] = code
    data["name"] = payload.name.strip()
    affiliate = Affiliate(**data)
    _commit(session, affiliate, "Failed to create affiliate")

    LOGGER.info("affiliate_created", affiliate_id=affiliate.id, company_code=code)
    record_activity(
        session,
        action="affiliate_created",
        resource_type="affiliate",
        resource_id=affiliate.id,
        user_id=actor_id,
        details={"name": affiliate.name, "company_code": code},
    )
    return affiliate


def update_affiliate(
    session: Session,
    affiliate_id: str,
    payload: AffiliateUpdate,
    *,
    actor_id: str | None = None,
) -> Affiliate:
    affiliate = _get_affiliate_or_404(session, affiliate_id)
    changes = payload.model_dump(mode="json", exclude_unset=True)
    previous = {key: getattr(affiliate, key) for key in changes}
    for key, value in changes.items():
        setattr(affiliate, key, value)
    _commit(session, affiliate, "Failed to update affiliate")

    record_activity(
        session,
        action="affiliate_updated",
        resource_type="affiliate",
        resource_id=affiliate.id,
        user_id=actor_id,
        details={"old": previous, "new": changes},
    )
    return affiliate


def delete_affiliate(session: Session, affiliate_id: str, *, actor_id: str | None = None) -> None:
    """Delete an affiliate that no cash call references."""

    affiliate = _get_affiliate_or_404(session, affiliate_id)
    referencing = session.scalar(
        select(func.count(CashCall.id)).where(CashCall.affiliate_id == affiliate_id)
    )
    if referencing:
        raise InvalidStateError("Affiliate has cash calls and cannot be deleted")

    name = affiliate.name
    try:
        session.delete(affiliate)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("affiliate_delete_failed", affiliate_id=affiliate_id, error=str(exc))
        raise PersistenceError("Failed to delete affiliate") from exc

    record_activity(
        session,
        action="affiliate_deleted",
        resource_type="affiliate",
        resource_id=affiliate_id,
        user_id=actor_id,
        details={"name": name},
    )


__all__ = [
    "create_affiliate",
    "delete_affiliate",
    "get_affiliate",
    "list_affiliates",
    "update_affiliate",
]
