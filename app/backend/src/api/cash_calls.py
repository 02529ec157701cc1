"""Cash call endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.orm import Session

from app.backend.src.core.errors import ValidationError
from app.backend.src.models import CashCall, Document, User
from app.backend.src.models.enums import UserRole
from app.backend.src.schemas.cash_call import (
    CashCallAssignment,
    CashCallCreate,
    CashCallRead,
    CashCallStatusChange,
    CashCallUpdate,
    DocumentCreate,
    DocumentRead,
)
from app.backend.src.services import cash_calls as cash_call_service
from app.backend.src.services.access import (
    AccessScope,
    default_scope_for_role,
    get_cash_calls_by_access,
)
from app.backend.src.services.cash_call_workflow import (
    Actor,
    resolve_actor,
    transition_cash_call,
)

from .deps import SessionDep, SettingsDep

router = APIRouter(prefix="/cash-calls", tags=["Cash Calls"])


def resolve_scope(session: Session, user_id: str | None, scope: str | None) -> str | AccessScope:
    """Use the explicit scope, or the default for the caller's role."""

    if scope:
        return scope
    if not user_id:
        raise ValidationError("userId is required")
    user = session.get(User, user_id)
    if user is None:
        return AccessScope.MINE
    return default_scope_for_role(user.role)


def _filters(
    status_values: list[str] | None,
    affiliate_id: str | None,
    priority: list[str] | None,
    created_by: str | None,
    date_from: datetime | None,
    date_to: datetime | None,
    limit: int | None,
) -> cash_call_service.CashCallFilters:
    return cash_call_service.CashCallFilters(
        status=status_values or [],
        affiliate_id=affiliate_id,
        priority=priority or [],
        created_by=created_by,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.get("", response_model=list[CashCallRead])
def list_cash_calls(
    session: SessionDep,
    user_id: str | None = Query(default=None, alias="userId"),
    scope: str | None = Query(default=None),
) -> list[CashCall]:
    """Return the cash calls the caller may see."""

    if not user_id:
        raise ValidationError("userId is required")
    return get_cash_calls_by_access(session, user_id, resolve_scope(session, user_id, scope))


@router.post("", response_model=CashCallRead, status_code=status.HTTP_201_CREATED)
def create_cash_call(
    payload: CashCallCreate, session: SessionDep, settings: SettingsDep
) -> CashCall:
    return cash_call_service.create_cash_call(
        session, payload, enforce_transitions=settings.enforce_cash_call_transitions
    )


@router.get("/search", response_model=list[CashCallRead])
def search_cash_calls(
    session: SessionDep,
    q: str | None = Query(default=None),
) -> list[CashCall]:
    """Prefix search on call number and title."""

    return cash_call_service.search_cash_calls(session, q)


@router.get("/export")
def export_cash_calls(
    session: SessionDep,
    status_values: list[str] | None = Query(default=None, alias="status"),
    affiliate_id: str | None = Query(default=None, alias="affiliateId"),
    priority: list[str] | None = Query(default=None),
    created_by: str | None = Query(default=None, alias="createdBy"),
    date_from: datetime | None = Query(default=None, alias="dateFrom"),
    date_to: datetime | None = Query(default=None, alias="dateTo"),
    limit: int | None = Query(default=None, ge=1),
) -> Response:
    """Download the filtered cash calls as CSV."""

    filters = _filters(status_values, affiliate_id, priority, created_by, date_from, date_to, limit)
    content = cash_call_service.export_cash_calls_csv(session, filters)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="cash_calls.csv"'},
    )


@router.get("/{cash_call_id}", response_model=CashCallRead)
def get_cash_call(cash_call_id: str, session: SessionDep) -> CashCall:
    return cash_call_service.get_cash_call(session, cash_call_id)


@router.patch("/{cash_call_id}", response_model=CashCallRead)
def update_cash_call(cash_call_id: str, payload: CashCallUpdate, session: SessionDep) -> CashCall:
    """Edit a cash call's details; status moves use ``/status``."""

    return cash_call_service.update_cash_call(session, cash_call_id, payload)


@router.delete("/{cash_call_id}")
def delete_cash_call(
    cash_call_id: str,
    session: SessionDep,
    user_id: str | None = Query(default=None, alias="userId"),
) -> dict[str, object]:
    cash_call_service.delete_cash_call(session, cash_call_id, user_id)
    return {"success": True}


@router.post("/{cash_call_id}/status", response_model=CashCallRead)
def change_status(
    cash_call_id: str,
    payload: CashCallStatusChange,
    session: SessionDep,
    settings: SettingsDep,
) -> CashCall:
    """Move a cash call through its lifecycle."""

    enforce = settings.enforce_cash_call_transitions
    if enforce:
        actor = resolve_actor(session, payload.user_id)
    else:
        user = session.get(User, payload.user_id)
        actor = Actor(user_id=payload.user_id, role=UserRole(user.role) if user else None)
    return transition_cash_call(
        session,
        cash_call_id,
        payload.status,
        actor,
        payload.reason,
        enforce=enforce,
    )


@router.patch("/{cash_call_id}/assign", response_model=CashCallRead)
def assign_cash_call(
    cash_call_id: str,
    payload: CashCallAssignment,
    session: SessionDep,
) -> CashCall:
    """Assign the cash call, or clear the assignment when no assignee is given."""

    if not payload.admin_user_id:
        raise ValidationError("adminUserId is required")
    if payload.assignee_user_id:
        return cash_call_service.assign_cash_call(
            session, cash_call_id, payload.assignee_user_id, payload.admin_user_id
        )
    return cash_call_service.unassign_cash_call(session, cash_call_id, payload.admin_user_id)


@router.get("/{cash_call_id}/documents", response_model=list[DocumentRead])
def list_documents(cash_call_id: str, session: SessionDep) -> list[Document]:
    return cash_call_service.list_documents(session, cash_call_id)


@router.post(
    "/{cash_call_id}/documents",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_document(cash_call_id: str, payload: DocumentCreate, session: SessionDep) -> Document:
    """Record metadata for a document stored elsewhere."""

    return cash_call_service.add_document(session, cash_call_id, payload)
