"""Unit tests for account request intake and review."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

import pytest
from sqlalchemy import select

from app.backend.src.core.errors import InvalidStateError, NotFoundError, ValidationError
from app.backend.src.models import AccountRequest, ActivityLog
from app.backend.src.schemas.account_request import AccountRequestCreate
from app.backend.src.services import account_requests


def _payload(**overrides) -> AccountRequestCreate:  # type: ignore[no-untyped-def]
    data = {
        "email": "Jane.Doe@Example.com",
        "fullName": "Jane Doe",
        "position": "Controller",
        "department": "Finance",
        "phone": "555-0101",
        "affiliateCompanyId": "none",
        "reasonForAccess": "Review monthly cash calls",
        "managerName": "John Smith",
        "managerEmail": "john.smith@example.com",
    }
    data.update(overrides)
    return AccountRequestCreate.model_validate(data)


def _logs(session, action: str) -> list[ActivityLog]:  # type: ignore[no-untyped-def]
    return list(session.execute(select(ActivityLog).where(ActivityLog.action == action)).scalars())


def test_submit_creates_pending_request(session, seeded) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())

    assert request.status == "pending"
    assert request.email == "jane.doe@example.com"
    assert request.affiliate_company_id is None
    assert request.reviewed_at is None
    logs = _logs(session, "account_request_submitted")
    assert len(logs) == 1
    assert logs[0].resource_id == request.id


def test_submit_keeps_affiliate_reference(session, seeded) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(
        session, _payload(affiliateCompanyId=seeded["affiliate"])
    )

    assert request.affiliate_company_id == seeded["affiliate"]
    assert request.affiliate_name == "North Field Energy"


def test_submit_requires_all_fields(session) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError) as excinfo:
        account_requests.submit_account_request(session, _payload(managerName="  "))

    assert excinfo.value.message == "Missing required fields"
    assert session.execute(select(AccountRequest)).first() is None


def test_submit_rejects_existing_user_email(session, seeded) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError) as excinfo:
        account_requests.submit_account_request(session, _payload(email="FINANCE@example.com"))

    assert "already exists" in excinfo.value.message


def test_submit_rejects_second_pending_request(session) -> None:  # type: ignore[no-untyped-def]
    account_requests.submit_account_request(session, _payload())

    with pytest.raises(ValidationError) as excinfo:
        account_requests.submit_account_request(session, _payload())

    assert excinfo.value.message == "A pending request with this email already exists"
    assert len(account_requests.list_account_requests(session)) == 1


def test_submit_allows_new_request_after_rejection(session) -> None:  # type: ignore[no-untyped-def]
    first = account_requests.submit_account_request(session, _payload())
    account_requests.reject_account_request(session, first.id, "Incomplete")

    second = account_requests.submit_account_request(session, _payload())

    assert second.id != first.id
    assert second.status == "pending"


def test_list_filters_by_status(session) -> None:  # type: ignore[no-untyped-def]
    first = account_requests.submit_account_request(session, _payload())
    account_requests.submit_account_request(session, _payload(email="other@example.com"))
    account_requests.reject_account_request(session, first.id, "Duplicate")

    pending = account_requests.list_account_requests(session, "pending")
    rejected = account_requests.list_account_requests(session, "rejected")

    assert [item.email for item in pending] == ["other@example.com"]
    assert [item.id for item in rejected] == [first.id]
    with pytest.raises(ValidationError):
        account_requests.list_account_requests(session, "archived")


def test_reject_sets_notes_and_review_time(session, notifier) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())

    rejected = account_requests.reject_account_request(
        session, request.id, "Not an employee", notifier=notifier
    )

    assert rejected.status == "rejected"
    assert rejected.review_notes == "Rejected: Not an employee"
    assert rejected.reviewed_at is not None
    logs = _logs(session, "account_request_rejected")
    assert len(logs) == 1
    assert logs[0].details["reason"] == "Not an employee"
    assert [message.kind for message in notifier.messages] == ["rejection"]


def test_reject_prefers_explicit_notes(session) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())

    rejected = account_requests.reject_account_request(
        session, request.id, "Not an employee", "Contractor, reapply via vendor portal"
    )

    assert rejected.review_notes == "Contractor, reapply via vendor portal"


def test_reject_requires_reason(session) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())

    with pytest.raises(ValidationError):
        account_requests.reject_account_request(session, request.id, "")

    assert account_requests.get_account_request(session, request.id).status == "pending"


def test_reject_unknown_request(session) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(NotFoundError):
        account_requests.reject_account_request(session, "missing", "reason")


def test_reject_terminal_request_is_invalid(session) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())
    account_requests.reject_account_request(session, request.id, "first")

    with pytest.raises(InvalidStateError):
        account_requests.reject_account_request(session, request.id, "second")

    assert len(_logs(session, "account_request_rejected")) == 1


def test_request_info_moves_to_in_review(session, notifier) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())

    updated = account_requests.request_account_info(
        session, request.id, "Please confirm your cost centre", notifier=notifier
    )

    assert updated.status == "in_review"
    assert updated.review_notes == "Information requested: Please confirm your cost centre"
    assert updated.reviewed_at is None
    assert len(_logs(session, "information_requested")) == 1
    assert notifier.messages[0].kind == "information_request"


def test_request_info_requires_message(session) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())

    with pytest.raises(ValidationError) as excinfo:
        account_requests.request_account_info(session, request.id, None)

    assert excinfo.value.message == "Message is required"


def test_resume_returns_request_to_pending(session) -> None:  # type: ignore[no-untyped-def]
    request = account_requests.submit_account_request(session, _payload())
    account_requests.request_account_info(session, request.id, "Need manager approval")

    resumed = account_requests.resume_account_request(session, request.id, "Manager approved by email")

    assert resumed.status == "pending"
    with pytest.raises(InvalidStateError):
        account_requests.resume_account_request(session, request.id)


def test_notification_failure_does_not_fail_rejection(session, notifier) -> None:  # type: ignore[no-untyped-def]
    notifier.fail = True
    request = account_requests.submit_account_request(session, _payload())

    rejected = account_requests.reject_account_request(
        session, request.id, "Not eligible", notifier=notifier
    )

    assert rejected.status == "rejected"
    assert notifier.messages == []


def test_submit_rejects_unknown_affiliate(session, seeded) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(NotFoundError) as excinfo:
        account_requests.submit_account_request(
            session, _payload(affiliateCompanyId="does-not-exist")
        )

    assert excinfo.value.message == "Affiliate not found"
    assert session.execute(select(AccountRequest)).first() is None
