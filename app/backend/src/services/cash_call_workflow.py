"""Cash call status transitions."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.orm import Session

from app.backend.src.core.errors import InvalidStateError, NotFoundError, ValidationError
from app.backend.src.models import CashCall, User
from app.backend.src.models.base import utcnow
from app.backend.src.models.enums import CashCallStatus, UserRole
from app.backend.src.services.activity_log import record_activity
from app.backend.src.services.cash_calls import get_cash_call, save_cash_call
from app.backend.src.services.metrics import cash_call_transitions_total

LOGGER = structlog.get_logger(__name__)

S = CashCallStatus
R = UserRole

TRANSITIONS: dict[tuple[CashCallStatus, CashCallStatus], frozenset[UserRole]] = {
    (S.DRAFT, S.UNDER_REVIEW): frozenset({R.AFFILIATE, R.FINANCE, R.ADMIN}),
    (S.UNDER_REVIEW, S.APPROVED): frozenset({R.APPROVER, R.CFO, R.FINANCE, R.ADMIN}),
    (S.UNDER_REVIEW, S.REJECTED): frozenset({R.APPROVER, R.CFO, R.FINANCE, R.ADMIN}),
    (S.UNDER_REVIEW, S.DRAFT): frozenset({R.AFFILIATE, R.FINANCE, R.ADMIN}),
    (S.REJECTED, S.DRAFT): frozenset({R.AFFILIATE, R.ADMIN}),
    (S.APPROVED, S.PAID): frozenset({R.FINANCE, R.CFO, R.ADMIN}),
}


@dataclass(frozen=True)
class Actor:
    """The user performing a transition."""

    user_id: str
    role: UserRole | None


def resolve_actor(session: Session, user_id: str | None) -> Actor:
    """Load the acting user's role; unknown users raise :class:`NotFoundError`."""

    if not user_id:
        raise ValidationError("userId is required")
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not user.is_active:
        raise InvalidStateError("User is not active")
    return Actor(user_id=user.id, role=UserRole(user.role))


def allowed_roles(current: CashCallStatus, target: CashCallStatus) -> frozenset[UserRole]:
    """Return the roles permitted to move a cash call from ``current`` to ``target``."""

    return TRANSITIONS.get((current, target), frozenset())


def check_transition(current: CashCallStatus, target: CashCallStatus, role: UserRole | None) -> None:
    """Raise :class:`InvalidStateError` unless the move is in the table for ``role``."""

    roles = allowed_roles(current, target)
    if not roles:
        raise InvalidStateError(
            f"Cannot change status from {current.value} to {target.value}"
        )
    if role not in roles:
        role_name = role.value if role else "unknown"
        raise InvalidStateError(
            f"Role {role_name} cannot change status from {current.value} to {target.value}"
        )


def _parse_status(value: CashCallStatus | str) -> CashCallStatus:
    try:
        return CashCallStatus(value)
    except ValueError as exc:
        raise ValidationError("Invalid status") from exc


def transition_cash_call(
    session: Session,
    cash_call_id: str,
    target_status: CashCallStatus | str,
    actor: Actor,
    reason: str | None = None,
    *,
    enforce: bool = True,
) -> CashCall:
    """Move a cash call to ``target_status`` and write one activity log entry.

    With ``enforce`` disabled any known status is accepted from any role.
    """

    target = _parse_status(target_status)
    cash_call = get_cash_call(session, cash_call_id)
    current = CashCallStatus(cash_call.status)

    if enforce:
        check_transition(current, target, actor.role)

    reason = (reason or "").strip() or None
    if target is CashCallStatus.REJECTED and enforce and not reason:
        raise ValidationError("Rejection reason is required")

    now = utcnow()
    cash_call.status = target.value
    if target is CashCallStatus.APPROVED:
        cash_call.approved_at = now
        cash_call.approved_by = actor.user_id
    elif target is CashCallStatus.PAID:
        cash_call.paid_at = now
    elif target is CashCallStatus.REJECTED:
        cash_call.rejection_reason = reason
    elif target is CashCallStatus.DRAFT:
        cash_call.rejection_reason = None
    cash_call.updated_at = now
    save_cash_call(session, cash_call, "Failed to update cash call status")

    cash_call_transitions_total.labels(from_status=current.value, to_status=target.value).inc()
    LOGGER.info(
        "cash_call_status_changed",
        cash_call_id=cash_call.id,
        from_status=current.value,
        to_status=target.value,
        user_id=actor.user_id,
    )
    details = {"old_status": current.value, "new_status": target.value}
    if reason:
        details["reason"] = reason
    record_activity(
        session,
        action="cash_call_status_changed",
        resource_type="cash_call",
        resource_id=cash_call.id,
        user_id=actor.user_id,
        details=details,
    )
    return cash_call


__all__ = [
    "Actor",
    "TRANSITIONS",
    "allowed_roles",
    "check_transition",
    "resolve_actor",
    "transition_cash_call",
]
