"""Utilities for seeding development data."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.backend.src.models import Affiliate, User
from app.backend.src.models.base import new_id

DEFAULT_AFFILIATE_NAME = "Demo Exploration Co"
DEFAULT_AFFILIATE_CODE = "DEMO"
DEFAULT_ADMIN_EMAIL = "admin@cashcalls.example"
DEFAULT_ADMIN_NAME = "Demo Admin"
DEFAULT_FINANCE_EMAIL = "finance@cashcalls.example"
DEFAULT_FINANCE_NAME = "Demo Finance"
DEFAULT_AFFILIATE_USER_EMAIL = "affiliate@cashcalls.example"
DEFAULT_AFFILIATE_USER_NAME = "Demo Affiliate"


@dataclass
class SeedResult:
    """Information about the seeded affiliate and users."""

    affiliate: Affiliate
    admin: User
    finance: User
    affiliate_user: User
    affiliate_created: bool
    users_created: int


def _ensure_user(
    session: Session,
    *,
    email: str,
    full_name: str,
    role: str,
    affiliate_id: str | None = None,
) -> tuple[User, bool]:
    user = session.query(User).filter(User.email == email).one_or_none()
    if user is None:
        user = User(
            id=new_id(),
            email=email,
            full_name=full_name,
            role=role,
            department="Finance",
            affiliate_company_id=affiliate_id,
        )
        session.add(user)
        session.flush()
        return user, True

    if user.role != role:
        user.role = role
    if user.affiliate_company_id != affiliate_id:
        user.affiliate_company_id = affiliate_id
    if not user.is_active:
        user.is_active = True
    return user, False


def seed_development_data(
    session: Session,
    *,
    affiliate_name: str = DEFAULT_AFFILIATE_NAME,
    affiliate_code: str = DEFAULT_AFFILIATE_CODE,
    admin_email: str = DEFAULT_ADMIN_EMAIL,
) -> SeedResult:
    """Ensure a demo affiliate plus admin, finance and affiliate users exist.

    Running it again is harmless: existing rows are matched by company code
    and email and brought back to the expected role and affiliate.
    """

    affiliate = (
        session.query(Affiliate)
        .filter(Affiliate.company_code == affiliate_code)
        .one_or_none()
    )
    affiliate_created = False
    if affiliate is None:
        affiliate = Affiliate(name=affiliate_name, company_code=affiliate_code)
        session.add(affiliate)
        session.flush()
        affiliate_created = True

    admin, admin_created = _ensure_user(
        session, email=admin_email, full_name=DEFAULT_ADMIN_NAME, role="admin"
    )
    finance, finance_created = _ensure_user(
        session, email=DEFAULT_FINANCE_EMAIL, full_name=DEFAULT_FINANCE_NAME, role="finance"
    )
    affiliate_user, affiliate_user_created = _ensure_user(
        session,
        email=DEFAULT_AFFILIATE_USER_EMAIL,
        full_name=DEFAULT_AFFILIATE_USER_NAME,
        role="affiliate",
        affiliate_id=affiliate.id,
    )

    return SeedResult(
        affiliate=affiliate,
        admin=admin,
        finance=finance,
        affiliate_user=affiliate_user,
        affiliate_created=affiliate_created,
        users_created=sum((admin_created, finance_created, affiliate_user_created)),
    )


__all__ = ["SeedResult", "seed_development_data"]
