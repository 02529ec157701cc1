"""Turn an approved account request into a provisioned user.

The steps run in order and are not transactional across the identity
provider and the database:

1. create the authentication identity,
2. insert the user profile keyed by the identity id,
3. mark the account request approved,
4. write the ``account_created`` activity log,
5. optionally send the welcome email.

Failures in steps 1 and 2 abort the operation. Steps 3 to 5 are best-effort
and only logged, since the user already exists at that point.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.backend.src.core.errors import (
    AuthProviderError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.backend.src.core.identity import IdentityProvider
from app.backend.src.models import Affiliate, User
from app.backend.src.models.base import utcnow
from app.backend.src.models.enums import AccountRequestStatus
from app.backend.src.schemas.account_request import ProvisionUserPayload
from app.backend.src.services import notifications
from app.backend.src.services.account_requests import (
    get_account_request,
    normalize_affiliate_reference,
)
from app.backend.src.services.activity_log import record_activity
from app.backend.src.services.metrics import users_provisioned_total
from app.backend.src.services.users import normalize_role

LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProvisionedUser:
    user_id: str
    email: str


def provision_user(
    session: Session,
    identity_provider: IdentityProvider,
    notifier: notifications.Notifier | None,
    payload: ProvisionUserPayload,
    *,
    login_url: str,
    admin_id: str | None = None,
    rollback_identity_on_profile_failure: bool = False,
) -> ProvisionedUser:
    """Provision a user from a pending account request."""

    if not payload.request_id or not payload.role or not payload.temporary_password:
        raise ValidationError("Missing required fields")
    role = normalize_role(payload.role)

    request = get_account_request(session, payload.request_id)
    if request.status != AccountRequestStatus.PENDING.value:
        raise InvalidStateError("Account request is not pending")

    affiliate_id = normalize_affiliate_reference(payload.affiliate_company_id)
    if affiliate_id is not None and session.get(Affiliate, affiliate_id) is None:
        raise NotFoundError("Affiliate not found")

    log = LOGGER.bind(request_id=request.id, email=request.email)

    try:
        identity = identity_provider.create_identity(request.email, payload.temporary_password)
    except AuthProviderError:
        users_provisioned_total.labels(result="identity_failed").inc()
        log.warning("identity_creation_failed")
        raise

    user = User(
        id=identity.id,
        email=request.email,
        full_name=request.full_name,
        position=request.position,
        department=request.department,
        phone=request.phone,
        role=role,
        affiliate_company_id=affiliate_id,
        is_active=True,
    )
    try:
        session.add(user)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        users_provisioned_total.labels(result="profile_failed").inc()
        log.error("user_profile_insert_failed", identity_id=identity.id, error=str(exc))
        if rollback_identity_on_profile_failure:
            _delete_orphaned_identity(identity_provider, identity.id)
        else:
            log.warning("orphaned_identity_retained", identity_id=identity.id)
        message = "Failed to create user profile"
        if isinstance(exc, IntegrityError):
            message = "Failed to create user profile: constraint violation"
        raise PersistenceError(message) from exc

    user_id = user.id
    _mark_request_approved(session, request, role, payload.notes)

    record_activity(
        session,
        action="account_created",
        resource_type="user",
        resource_id=user_id,
        user_id=admin_id,
        details={
            "role": role,
            "affiliate_company_id": affiliate_id,
            "created_by_admin": True,
            "request_id": request.id,
        },
    )

    if payload.send_welcome_email:
        notifications.dispatch(
            notifier,
            notifications.welcome_email(
                request.email,
                full_name=request.full_name,
                temporary_password=payload.temporary_password,
                login_url=login_url,
            ),
        )

    users_provisioned_total.labels(result="created").inc()
    log.info("user_provisioned", user_id=user_id, role=role)
    return ProvisionedUser(user_id=user_id, email=request.email)


def _mark_request_approved(session: Session, request, role: str, notes: str | None) -> None:
    request.status = AccountRequestStatus.APPROVED.value
    request.reviewed_at = utcnow()
    request.assigned_role = role
    request.review_notes = notes or f"Approved and account created with role: {role}"
    try:
        session.add(request)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.warning(
            "account_request_approval_update_failed",
            request_id=request.id,
            error=str(exc),
        )


def _delete_orphaned_identity(identity_provider: IdentityProvider, identity_id: str) -> None:
    try:
        identity_provider.delete_identity(identity_id)
    except AuthProviderError as exc:
        LOGGER.error("orphaned_identity_cleanup_failed", identity_id=identity_id, error=exc.message)
        return
    LOGGER.info("orphaned_identity_deleted", identity_id=identity_id)


__all__ = ["ProvisionedUser", "provision_user"]
