"""Tests for best-effort activity logging around committed changes."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.backend.src.core.errors import PersistenceError
from app.backend.src.models import AccountRequest, ActivityLog, CashCall, User
from app.backend.src.services import activity_log


def _failures(action: str) -> float:
    value = REGISTRY.get_sample_value("activity_log_failures_total", {"action": action})
    return value or 0.0


@pytest.fixture()
def failing_log(monkeypatch) -> list[str]:  # type: ignore[no-untyped-def]
    attempted: list[str] = []

    def _fail(session, *, action, **kwargs):  # type: ignore[no-untyped-def]
        attempted.append(action)
        raise PersistenceError("Failed to write activity log")

    monkeypatch.setattr(activity_log, "log_activity", _fail)
    return attempted


def test_log_activity_raises_when_insert_fails(session, seeded, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    def _fail_commit() -> None:
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(session, "commit", _fail_commit)

    with pytest.raises(PersistenceError):
        activity_log.log_activity(
            session, action="cash_call_created", resource_type="cash_call", resource_id="cc-1"
        )


def test_record_activity_swallows_insert_failure(session, seeded, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    before = _failures("cash_call_deleted")

    def _fail_commit() -> None:
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(session, "commit", _fail_commit)

    entry = activity_log.record_activity(
        session, action="cash_call_deleted", resource_type="cash_call", resource_id="cc-1"
    )

    monkeypatch.undo()
    assert entry is None
    assert _failures("cash_call_deleted") == before + 1
    assert session.execute(select(ActivityLog)).first() is None


def test_reject_succeeds_when_log_write_fails(client, database, pending_request, failing_log) -> None:  # type: ignore[no-untyped-def]
    before = _failures("account_request_rejected")

    response = client.post(
        f"/api/account-requests/{pending_request}/reject", json={"reason": "Unknown department"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert failing_log == ["account_request_rejected"]
    assert _failures("account_request_rejected") == before + 1
    with database.session_scope() as session:
        assert session.get(AccountRequest, pending_request).status == "rejected"


def test_provisioning_succeeds_when_log_write_fails(client, database, pending_request, failing_log) -> None:  # type: ignore[no-untyped-def]
    before = _failures("account_created")

    response = client.post(
        "/api/users/create",
        json={"requestId": pending_request, "role": "finance", "temporaryPassword": "secret123"},
    )

    assert response.status_code == 200
    assert "account_created" in failing_log
    assert _failures("account_created") == before + 1
    with database.session_scope() as session:
        assert session.get(User, response.json()["userId"]) is not None
        assert session.get(AccountRequest, pending_request).status == "approved"


def test_transition_succeeds_when_log_write_fails(client, database, seeded, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    created = client.post(
        "/api/cash-calls",
        json={"affiliate_id": seeded["affiliate"], "amount_requested": 100, "created_by": "affiliate-1"},
    ).json()
    attempted: list[str] = []

    def _fail(session, *, action, **kwargs):  # type: ignore[no-untyped-def]
        attempted.append(action)
        raise PersistenceError("Failed to write activity log")

    monkeypatch.setattr(activity_log, "log_activity", _fail)

    response = client.post(
        f"/api/cash-calls/{created['id']}/status",
        json={"status": "under_review", "userId": "affiliate-1"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "under_review"
    assert attempted
    with database.session_scope() as session:
        assert session.get(CashCall, created["id"]).status == "under_review"
