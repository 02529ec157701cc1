"""Unit tests for the user service layer."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

import pytest

from app.backend.src.core.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.backend.src.models import User
from app.backend.src.schemas.user import UserCreate
from app.backend.src.services import users


def test_list_users_by_role_ignores_case(session, seeded) -> None:  # type: ignore[no-untyped-def]
    finance = users.list_users_by_role(session, "FINANCE")

    assert {user.id for user in finance} == {"finance-1", "inactive-1"}
    assert all(user.role == "finance" for user in finance)


@pytest.mark.parametrize("role", [None, "", "superuser"])
def test_list_users_by_role_rejects_bad_roles(session, seeded, role) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError):
        users.list_users_by_role(session, role)


def test_get_user_missing(session) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(NotFoundError):
        users.get_user(session, "nobody")


def test_create_user_applies_defaults(session, seeded) -> None:  # type: ignore[no-untyped-def]
    user = users.create_user(
        session,
        UserCreate(email="cfo@example.com", full_name="Chief Financial", role="CFO"),
    )

    assert user.role == "cfo"
    assert user.department == "Finance"
    assert user.position == ""
    assert user.phone == ""
    assert user.is_active is True


def test_create_user_links_affiliate(session, seeded) -> None:  # type: ignore[no-untyped-def]
    user = users.create_user(
        session,
        UserCreate.model_validate(
            {
                "email": "ops@example.com",
                "full_name": "Ops Person",
                "role": "affiliate",
                "company_id": seeded["affiliate"],
            }
        ),
    )

    assert user.affiliate_company_id == seeded["affiliate"]
    assert user.affiliate_name == "North Field Energy"


def test_create_user_requires_role(session) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError):
        users.create_user(session, UserCreate(email="x@example.com", full_name="X"))


def test_create_user_duplicate_email(session, seeded) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(InvalidStateError):
        users.create_user(
            session,
            UserCreate(email="Admin@Example.com", full_name="Another Admin", role="admin"),
        )


def test_update_user_applies_allow_listed_fields_only(session, seeded) -> None:  # type: ignore[no-untyped-def]
    user, applied = users.update_user(
        session,
        "viewer-1",
        {"department": "Treasury", "email": "hijack@example.com", "full_name": "Changed"},
    )

    assert applied == {"department": "Treasury"}
    assert user.department == "Treasury"
    assert user.email == "viewer@example.com"
    assert user.full_name == "Vi Ewer"


def test_update_user_without_valid_fields(session, seeded) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError) as excinfo:
        users.update_user(session, "viewer-1", {"email": "hijack@example.com"})

    assert excinfo.value.message == "No valid fields to update"


def test_update_user_validates_role(session, seeded) -> None:  # type: ignore[no-untyped-def]
    user, applied = users.update_user(session, "viewer-1", {"role": "Approver"})
    assert applied["role"] == "approver"
    assert user.role == "approver"

    with pytest.raises(ValidationError):
        users.update_user(session, "viewer-1", {"role": "owner"})


def test_update_user_missing(session, seeded) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(NotFoundError):
        users.update_user(session, "nobody", {"phone": "555"})


def test_deactivate_user(session, seeded) -> None:  # type: ignore[no-untyped-def]
    user = users.deactivate_user(session, "finance-1")

    assert user.is_active is False


def test_commit_reports_duplicate_email(session, seeded) -> None:  # type: ignore[no-untyped-def]
    clash = User(id="clash-1", email="finance@example.com", full_name="Clash", role="viewer")

    with pytest.raises(InvalidStateError) as excinfo:
        users._commit(session, clash, "Failed to create user")

    assert excinfo.value.message == "A user with this email already exists"


def test_commit_reports_other_constraints_without_blaming_email(session, seeded) -> None:  # type: ignore[no-untyped-def]
    bad_role = User(id="bad-role", email="fresh@example.com", full_name="Fresh", role="superuser")

    with pytest.raises(PersistenceError) as excinfo:
        users._commit(session, bad_role, "Failed to create user")

    assert excinfo.value.message == "Failed to create user: constraint violation"
    assert session.get(User, "bad-role") is None
