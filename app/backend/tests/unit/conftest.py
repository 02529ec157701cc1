"""Shared fixtures: an in-memory database, fake collaborators and a test client."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

# Configure environment before application imports
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("IDENTITY_PROVIDER", "memory")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.backend.src.core.config import Settings
from app.backend.src.core.errors import AuthProviderError
from app.backend.src.core.identity import InMemoryIdentityProvider
from app.backend.src.db import Database
from app.backend.src.main import create_app
from app.backend.src.models import AccountRequest, Affiliate, User
from app.backend.src.services.notifications import EmailMessage


class RecordingNotifier:
    """Notifier that keeps sent messages and can be told to fail."""

    def __init__(self) -> None:
        self.messages: list[EmailMessage] = []
        self.fail = False

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.messages.append(message)


class FailingIdentityProvider(InMemoryIdentityProvider):
    """Identity provider whose create call always fails."""

    def create_identity(self, email: str, password: str):  # type: ignore[override]
        raise AuthProviderError("Failed to create user: provider unavailable")


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        identity_provider="memory",
        app_url="https://cashcalls.example.com",
        enforce_cash_call_transitions=True,
        rollback_identity_on_profile_failure=False,
    )


@pytest.fixture()
def database() -> Iterator[Database]:
    database = Database("sqlite:///:memory:")
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture()
def session(database: Database) -> Iterator[Session]:
    with database.get_session() as session:
        yield session


@pytest.fixture()
def identity_provider() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def failing_identity_provider() -> FailingIdentityProvider:
    return FailingIdentityProvider()


@pytest.fixture()
def app(settings, database, identity_provider, notifier):  # type: ignore[no-untyped-def]
    return create_app(
        settings,
        database=database,
        identity_provider=identity_provider,
        notifier=notifier,
    )


@pytest.fixture()
def client(app) -> TestClient:  # type: ignore[no-untyped-def]
    return TestClient(app)


@pytest.fixture()
def seeded(database: Database) -> dict[str, str]:
    """Seed one affiliate and a user per interesting role; returns their ids."""

    with database.session_scope() as session:
        affiliate = Affiliate(name="North Field Energy", company_code="NFE")
        other_affiliate = Affiliate(name="Delta Offshore", company_code="DOS")
        session.add_all([affiliate, other_affiliate])
        session.flush()

        users = [
            User(id="admin-1", email="admin@example.com", full_name="Ada Admin", role="admin"),
            User(
                id="finance-1",
                email="finance@example.com",
                full_name="Fin Ance",
                role="finance",
                department="Finance",
            ),
            User(
                id="affiliate-1",
                email="affiliate@example.com",
                full_name="Affi Liate",
                role="affiliate",
                affiliate_company_id=affiliate.id,
            ),
            User(id="approver-1", email="approver@example.com", full_name="Appro Ver", role="approver"),
            User(id="viewer-1", email="viewer@example.com", full_name="Vi Ewer", role="viewer"),
            User(
                id="inactive-1",
                email="inactive@example.com",
                full_name="In Active",
                role="finance",
                is_active=False,
            ),
        ]
        session.add_all(users)
        affiliate_id = affiliate.id
        other_affiliate_id = other_affiliate.id

    return {
        "affiliate": affiliate_id,
        "other_affiliate": other_affiliate_id,
        "admin": "admin-1",
        "finance": "finance-1",
        "affiliate_user": "affiliate-1",
        "approver": "approver-1",
        "viewer": "viewer-1",
        "inactive": "inactive-1",
    }


@pytest.fixture()
def pending_request(database: Database, seeded: dict[str, str]) -> str:
    with database.session_scope() as session:
        request = AccountRequest(
            email="newcomer@example.com",
            full_name="New Comer",
            position="Analyst",
            department="Treasury",
            phone="555-0100",
            affiliate_company_id=seeded["affiliate"],
            reason_for_access="Prepare cash calls",
            manager_name="Mana Ger",
            manager_email="manager@example.com",
        )
        session.add(request)
        session.flush()
        return request.id
