"""Cash call persistence operations."""

from __future__ import annotations

import csv
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from io import StringIO
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.backend.src.models import Affiliate, CashCall, Document, User
from app.backend.src.models.base import utcnow
from app.backend.src.models.enums import CashCallStatus
from app.backend.src.schemas.cash_call import CashCallCreate, CashCallUpdate, DocumentCreate
from app.backend.src.services.activity_log import record_activity

LOGGER = structlog.get_logger(__name__)

EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "justification",
        "amount_requested",
        "currency",
        "exchange_rate",
        "priority",
        "compliance_status",
        "due_date",
        "attachments",
    }
)
REQUIRED_ON_UPDATE: frozenset[str] = frozenset(
    {"amount_requested", "currency", "exchange_rate", "priority", "compliance_status", "attachments"}
)
DELETABLE_STATUSES = {CashCallStatus.DRAFT.value, CashCallStatus.REJECTED.value}
SEARCH_LIMIT = 10

EXPORT_COLUMNS: tuple[str, ...] = (
    "call_number",
    "title",
    "affiliate_name",
    "amount_requested",
    "currency",
    "exchange_rate",
    "status",
    "priority",
    "compliance_status",
    "created_by",
    "created_at",
    "due_date",
    "approved_at",
    "paid_at",
)


@dataclass
class CashCallFilters:
    """Optional filters accepted by :func:`list_cash_calls`."""

    status: list[str] = field(default_factory=list)
    affiliate_id: str | None = None
    priority: list[str] = field(default_factory=list)
    created_by: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int | None = None


def generate_call_number() -> str:
    """Return a call number of the form ``CC-<epoch ms>-<0..999>``."""

    return f"CC-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def _base_query():
    return select(CashCall).options(selectinload(CashCall.affiliate))


def get_cash_call(session: Session, cash_call_id: str) -> CashCall:
    cash_call = session.get(CashCall, cash_call_id)
    if cash_call is None:
        raise NotFoundError("Cash call not found")
    return cash_call


def save_cash_call(session: Session, cash_call: CashCall, failure_message: str) -> None:
    try:
        session.add(cash_call)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("cash_call_write_failed", cash_call_id=cash_call.id, error=str(exc))
        raise PersistenceError(failure_message) from exc


def create_cash_call(
    session: Session, payload: CashCallCreate, *, enforce_transitions: bool = True
) -> CashCall:
    """Insert a cash call, generating the call number when none is given.

    With ``enforce_transitions`` on, new cash calls always start as ``draft``;
    later statuses are reached through the workflow.
    """

    if not payload.created_by:
        raise ValidationError("created_by is required")
    if enforce_transitions and payload.status != CashCallStatus.DRAFT:
        raise InvalidStateError("New cash calls must start as draft")
    creator = session.get(User, payload.created_by)
    if creator is None:
        raise NotFoundError("Creator not found")
    if not creator.is_active:
        raise InvalidStateError("Creator is not active")
    if session.get(Affiliate, payload.affiliate_id) is None:
        raise NotFoundError("Affiliate not found")

    call_number = (payload.call_number or "").strip() or generate_call_number()
    duplicate = session.execute(
        select(CashCall.id).where(CashCall.call_number == call_number)
    ).first()
    if duplicate is not None:
        raise InvalidStateError("Call number already exists")

    cash_call = CashCall(
        call_number=call_number,
        title=payload.title,
        affiliate_id=payload.affiliate_id,
        amount_requested=payload.amount_requested,
        currency=payload.currency.upper(),
        exchange_rate=payload.exchange_rate,
        status=payload.status.value,
        priority=payload.priority.value,
        compliance_status=payload.compliance_status.value,
        description=payload.description,
        justification=payload.justification,
        attachments=list(payload.attachments),
        due_date=payload.due_date,
        created_by=payload.created_by,
    )
    try:
        session.add(cash_call)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise InvalidStateError("Call number already exists") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("cash_call_insert_failed", call_number=call_number, error=str(exc))
        raise PersistenceError("Failed to create cash call") from exc

    LOGGER.info("cash_call_created", cash_call_id=cash_call.id, call_number=call_number)
    record_activity(
        session,
        action="cash_call_created",
        resource_type="cash_call",
        resource_id=cash_call.id,
        user_id=payload.created_by,
        details={
            "call_number": call_number,
            "amount_requested": cash_call.amount_requested,
            "affiliate_id": cash_call.affiliate_id,
        },
    )
    return cash_call


def list_cash_calls(session: Session, filters: CashCallFilters | None = None) -> list[CashCall]:
    """Return cash calls matching ``filters``, newest first."""

    filters = filters or CashCallFilters()
    query = _base_query()
    if filters.status:
        query = query.where(CashCall.status.in_(filters.status))
    if filters.affiliate_id:
        query = query.where(CashCall.affiliate_id == filters.affiliate_id)
    if filters.priority:
        query = query.where(CashCall.priority.in_(filters.priority))
    if filters.created_by:
        query = query.where(CashCall.created_by == filters.created_by)
    if filters.date_from:
        query = query.where(CashCall.created_at >= filters.date_from)
    if filters.date_to:
        query = query.where(CashCall.created_at <= filters.date_to)
    query = query.order_by(CashCall.created_at.desc())
    if filters.limit:
        query = query.limit(filters.limit)
    return list(session.execute(query).scalars())


def search_cash_calls(session: Session, term: str | None) -> list[CashCall]:
    """Prefix search on call number and title, at most ten matches from each."""

    term = (term or "").strip()
    if not term:
        return []
    pattern = f"{term}%"
    matches: list[CashCall] = []
    for column in (CashCall.call_number, CashCall.title):
        query = (
            _base_query()
            .where(column.ilike(pattern))
            .order_by(CashCall.created_at.desc())
            .limit(SEARCH_LIMIT)
        )
        matches.extend(session.execute(query).scalars())

    seen: set[str] = set()
    results: list[CashCall] = []
    for cash_call in matches:
        if cash_call.id in seen:
            continue
        seen.add(cash_call.id)
        results.append(cash_call)
    return results


def _csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def export_cash_calls_csv(session: Session, filters: CashCallFilters | None = None) -> str:
    """Render the filtered cash calls as CSV text."""

    csv_buffer = StringIO()
    writer = csv.writer(csv_buffer)
    writer.writerow(EXPORT_COLUMNS)
    for cash_call in list_cash_calls(session, filters):
        writer.writerow([_csv_value(getattr(cash_call, column)) for column in EXPORT_COLUMNS])
    return csv_buffer.getvalue()


def update_cash_call(session: Session, cash_call_id: str, payload: CashCallUpdate) -> CashCall:
    """Apply editable field changes and log old and new values."""

    changes = payload.model_dump(exclude_unset=True, exclude={"user_id"})
    changes = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
    if not changes:
        raise ValidationError("No valid fields to update")
    cleared = sorted(key for key in REQUIRED_ON_UPDATE if key in changes and changes[key] is None)
    if cleared:
        raise ValidationError(f"Field '{cleared[0]}' cannot be null")

    cash_call = get_cash_call(session, cash_call_id)
    if cash_call.status == CashCallStatus.PAID.value:
        raise InvalidStateError("Paid cash calls cannot be edited")

    previous: dict[str, Any] = {}
    for key, value in changes.items():
        if hasattr(value, "value"):
            value = value.value
        if key == "currency" and value:
            value = value.upper()
        previous[key] = getattr(cash_call, key)
        setattr(cash_call, key, value)
        changes[key] = value
    cash_call.updated_at = utcnow()
    save_cash_call(session, cash_call, "Failed to update cash call")

    record_activity(
        session,
        action="cash_call_updated",
        resource_type="cash_call",
        resource_id=cash_call.id,
        user_id=payload.user_id,
        details={"old": previous, "new": changes},
    )
    return cash_call


def delete_cash_call(session: Session, cash_call_id: str, user_id: str | None) -> None:
    """Delete a cash call that is still a draft or was rejected."""

    if not user_id:
        raise ValidationError("userId is required")
    cash_call = get_cash_call(session, cash_call_id)
    if cash_call.status not in DELETABLE_STATUSES:
        raise InvalidStateError("Only draft or rejected cash calls can be deleted")

    call_number = cash_call.call_number
    try:
        session.delete(cash_call)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("cash_call_delete_failed", cash_call_id=cash_call_id, error=str(exc))
        raise PersistenceError("Failed to delete cash call") from exc

    record_activity(
        session,
        action="cash_call_deleted",
        resource_type="cash_call",
        resource_id=cash_call_id,
        user_id=user_id,
        details={"call_number": call_number},
    )


def assign_cash_call(
    session: Session,
    cash_call_id: str,
    assignee_user_id: str,
    admin_user_id: str | None,
) -> CashCall:
    """Assign a cash call to an active user."""

    cash_call = get_cash_call(session, cash_call_id)
    assignee = session.get(User, assignee_user_id)
    if assignee is None:
        raise NotFoundError("Assignee not found")
    if not assignee.is_active:
        raise InvalidStateError("Assignee is not active")

    previous_assignee = cash_call.assignee_user_id
    cash_call.assignee_user_id = assignee.id
    cash_call.assigned_by = admin_user_id
    cash_call.assigned_at = utcnow()
    save_cash_call(session, cash_call, "Failed to assign cash call")

    record_activity(
        session,
        action="cash_call_assigned",
        resource_type="cash_call",
        resource_id=cash_call.id,
        user_id=admin_user_id,
        details={"assignee_user_id": assignee.id, "previous_assignee_user_id": previous_assignee},
    )
    return cash_call


def unassign_cash_call(session: Session, cash_call_id: str, admin_user_id: str | None) -> CashCall:
    cash_call = get_cash_call(session, cash_call_id)
    previous_assignee = cash_call.assignee_user_id
    cash_call.assignee_user_id = None
    cash_call.assigned_by = None
    cash_call.assigned_at = None
    save_cash_call(session, cash_call, "Failed to unassign cash call")

    record_activity(
        session,
        action="cash_call_unassigned",
        resource_type="cash_call",
        resource_id=cash_call.id,
        user_id=admin_user_id,
        details={"previous_assignee_user_id": previous_assignee},
    )
    return cash_call


def add_document(session: Session, cash_call_id: str, payload: DocumentCreate) -> Document:
    """Attach document metadata to a cash call."""

    cash_call = get_cash_call(session, cash_call_id)
    document = Document(
        cash_call_id=cash_call.id,
        file_name=payload.file_name,
        content_type=payload.content_type,
        storage_path=payload.storage_path,
        uploaded_by=payload.uploaded_by,
    )
    try:
        session.add(document)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.error("document_insert_failed", cash_call_id=cash_call_id, error=str(exc))
        raise PersistenceError("Failed to save document") from exc

    record_activity(
        session,
        action="document_uploaded",
        resource_type="cash_call",
        resource_id=cash_call.id,
        user_id=payload.uploaded_by,
        details={"document_id": document.id, "file_name": document.file_name},
    )
    return document


def list_documents(session: Session, cash_call_id: str) -> list[Document]:
    get_cash_call(session, cash_call_id)
    return list(
        session.execute(
            select(Document)
            .where(Document.cash_call_id == cash_call_id)
            .order_by(Document.created_at.asc())
        ).scalars()
    )


__all__ = [
    "CashCallFilters",
    "EDITABLE_FIELDS",
    "add_document",
    "assign_cash_call",
    "create_cash_call",
    "delete_cash_call",
    "export_cash_calls_csv",
    "generate_call_number",
    "get_cash_call",
    "list_cash_calls",
    "list_documents",
    "save_cash_call",
    "search_cash_calls",
    "unassign_cash_call",
    "update_cash_call",
]
