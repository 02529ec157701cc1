"""Account request intake and admin review endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from app.backend.src.models import AccountRequest
from app.backend.src.schemas.account_request import (
    AccountRequestCreate,
    AccountRequestList,
    AccountRequestRead,
    InformationRequestPayload,
    RejectionPayload,
    ResumePayload,
)
from app.backend.src.services import account_requests as account_request_service

from .deps import NotifierDep, SessionDep

router = APIRouter(prefix="/account-requests", tags=["Account Requests"])


@router.post("")
def submit_account_request(payload: AccountRequestCreate, session: SessionDep) -> dict[str, Any]:
    """Public submission of an access request."""

    request = account_request_service.submit_account_request(session, payload)
    return {"success": True, "requestId": request.id}


@router.get("", response_model=AccountRequestList)
def list_account_requests(
    session: SessionDep,
    status_filter: str | None = Query(default=None, alias="status"),
) -> dict[str, list[AccountRequest]]:
    return {"requests": account_request_service.list_account_requests(session, status_filter)}


@router.get("/{request_id}", response_model=AccountRequestRead)
def get_account_request(request_id: str, session: SessionDep) -> AccountRequest:
    return account_request_service.get_account_request(session, request_id)


@router.post("/{request_id}/reject", response_model=AccountRequestRead)
def reject_account_request(
    request_id: str,
    payload: RejectionPayload,
    session: SessionDep,
    notifier: NotifierDep,
) -> AccountRequest:
    """Reject a request and notify the applicant."""

    return account_request_service.reject_account_request(
        session, request_id, payload.reason, payload.notes, notifier=notifier
    )


@router.post("/{request_id}/request-info", response_model=AccountRequestRead)
def request_account_info(
    request_id: str,
    payload: InformationRequestPayload,
    session: SessionDep,
    notifier: NotifierDep,
) -> AccountRequest:
    """Ask the applicant for more details before deciding."""

    return account_request_service.request_account_info(
        session, request_id, payload.message, notifier=notifier
    )


@router.post("/{request_id}/resume", response_model=AccountRequestRead)
def resume_account_request(
    request_id: str,
    payload: ResumePayload,
    session: SessionDep,
) -> AccountRequest:
    """Return a request awaiting information to the pending queue."""

    return account_request_service.resume_account_request(session, request_id, payload.notes)
