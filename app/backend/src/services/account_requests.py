"""Account request intake and review transitions."""

from __future__ import annotations

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.backend.src.models import AccountRequest, Affiliate, User
from app.backend.src.models.base import utcnow
from app.backend.src.models.enums import AccountRequestStatus
from app.backend.src.schemas.account_request import AccountRequestCreate
from app.backend.src.services import notifications
from app.backend.src.services.activity_log import record_activity
from app.backend.src.services.metrics import account_requests_total

LOGGER = structlog.get_logger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = (
    "email",
    "full_name",
    "position",
    "department",
    "reason_for_access",
    "manager_name",
    "manager_email",
)


def normalize_affiliate_reference(value: str | None) -> str | None:
    """Map the form's ``"none"`` sentinel and blanks to ``None``."""

    if value is None:
        return None
    stripped = value.strip()
    if not stripped or stripped.lower() == "none":
        return None
    return stripped


def _blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def get_account_request(session: Session, request_id: str) -> AccountRequest:
    """Return the request or raise :class:`NotFoundError`."""

    request = session.get(AccountRequest, request_id)
    if request is None:
        raise NotFoundError("Account request not found")
    return request


def submit_account_request(session: Session, payload: AccountRequestCreate) -> AccountRequest:
    """Create a ``pending`` request from a public submission."""

    if any(_blank(getattr(payload, field)) for field in REQUIRED_FIELDS):
        raise ValidationError("Missing required fields")

    email = str(payload.email).strip().lower()

    existing_user = session.execute(
        select(User.id).where(func.lower(User.email) == email)
    ).first()
    if existing_user is not None:
        account_requests_total.labels(outcome="duplicate_user").inc()
        raise ValidationError("An account with this email already exists")

    existing_request = session.execute(
        select(AccountRequest.id).where(
            func.lower(AccountRequest.email) == email,
            AccountRequest.status == AccountRequestStatus.PENDING.value,
        )
    ).first()
    if existing_request is not None:
        account_requests_total.labels(outcome="duplicate_request").inc()
        raise ValidationError("A pending request with this email already exists")

    affiliate_id = normalize_affiliate_reference(payload.affiliate_company_id)
    if affiliate_id is not None and session.get(Affiliate, affiliate_id) is None:
        raise NotFoundError("Affiliate not found")

    request = AccountRequest(
        email=email,
        full_name=payload.full_name.strip(),
        position=payload.position.strip(),
        department=payload.department.strip(),
        phone=(payload.phone or "").strip() or None,
        affiliate_company_id=affiliate_id,
        reason_for_access=payload.reason_for_access.strip(),
        manager_name=payload.manager_name.strip(),
        manager_email=str(payload.manager_email).strip().lower(),
        status=AccountRequestStatus.PENDING.value,
    )
    try:
        session.add(request)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("account_request_insert_failed", email=email, error=str(exc))
        raise PersistenceError("Failed to create account request") from exc

    account_requests_total.labels(outcome="submitted").inc()
    LOGGER.info("account_request_submitted", request_id=request.id, email=email)
    record_activity(
        session,
        action="account_request_submitted",
        resource_type="account_request",
        resource_id=request.id,
        details={"email": email, "affiliate_company_id": request.affiliate_company_id},
    )
    return request


def list_account_requests(session: Session, status: str | None = None) -> list[AccountRequest]:
    """Return requests newest first, with their affiliate loaded."""

    query = select(AccountRequest).options(selectinload(AccountRequest.affiliate))
    if status:
        if status not in {member.value for member in AccountRequestStatus}:
            raise ValidationError("Invalid status")
        query = query.where(AccountRequest.status == status)
    query = query.order_by(AccountRequest.created_at.desc())
    return list(session.execute(query).scalars())


def _ensure_reviewable(request: AccountRequest) -> None:
    if request.is_terminal:
        raise InvalidStateError(f"Account request is already {request.status}")


def _commit_review(session: Session, request: AccountRequest, failure_message: str) -> None:
    try:
        session.add(request)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("account_request_update_failed", request_id=request.id, error=str(exc))
        raise PersistenceError(failure_message) from exc


def reject_account_request(
    session: Session,
    request_id: str,
    reason: str | None,
    notes: str | None = None,
    *,
    notifier: notifications.Notifier | None = None,
    reviewer_id: str | None = None,
) -> AccountRequest:
    """Move a request to ``rejected`` and stamp the review time."""

    if _blank(reason):
        raise ValidationError("Rejection reason is required")
    reason = reason.strip()

    request = get_account_request(session, request_id)
    _ensure_reviewable(request)
    previous_status = request.status

    request.status = AccountRequestStatus.REJECTED.value
    request.reviewed_at = utcnow()
    request.review_notes = notes or f"Rejected: {reason}"
    _commit_review(session, request, "Failed to reject account request")

    account_requests_total.labels(outcome="rejected").inc()
    LOGGER.info("account_request_rejected", request_id=request.id)
    record_activity(
        session,
        action="account_request_rejected",
        resource_type="account_request",
        resource_id=request.id,
        user_id=reviewer_id,
        details={"reason": reason, "notes": notes, "previous_status": previous_status},
    )
    notifications.dispatch(
        notifier, notifications.rejection_email(request.email, reason=reason, notes=notes)
    )
    return request


def request_account_info(
    session: Session,
    request_id: str,
    message: str | None,
    *,
    notifier: notifications.Notifier | None = None,
    reviewer_id: str | None = None,
) -> AccountRequest:
    """Ask the applicant for more information; the request goes ``in_review``.

    ``reviewed_at`` is left untouched since this is not a final decision.
    """

    if _blank(message):
        raise ValidationError("Message is required")
    message = message.strip()

    request = get_account_request(session, request_id)
    _ensure_reviewable(request)
    previous_status = request.status

    request.status = AccountRequestStatus.IN_REVIEW.value
    request.review_notes = f"Information requested: {message}"
    _commit_review(session, request, "Failed to update account request")

    account_requests_total.labels(outcome="information_requested").inc()
    record_activity(
        session,
        action="information_requested",
        resource_type="account_request",
        resource_id=request.id,
        user_id=reviewer_id,
        details={"message": message, "previous_status": previous_status},
    )
    notifications.dispatch(
        notifier, notifications.information_request_email(request.email, message=message)
    )
    return request


def resume_account_request(
    session: Session,
    request_id: str,
    notes: str | None = None,
    *,
    reviewer_id: str | None = None,
) -> AccountRequest:
    """Return an ``in_review`` request to ``pending`` once the applicant replies."""

    request = get_account_request(session, request_id)
    if request.status != AccountRequestStatus.IN_REVIEW.value:
        raise InvalidStateError("Only requests awaiting information can be resumed")

    request.status = AccountRequestStatus.PENDING.value
    if notes:
        request.review_notes = notes
    _commit_review(session, request, "Failed to update account request")

    record_activity(
        session,
        action="account_request_resumed",
        resource_type="account_request",
        resource_id=request.id,
        user_id=reviewer_id,
        details={"notes": notes},
    )
    return request


__all__ = [
    "get_account_request",
    "list_account_requests",
    "normalize_affiliate_reference",
    "reject_account_request",
    "request_account_info",
    "resume_account_request",
    "submit_account_request",
]
