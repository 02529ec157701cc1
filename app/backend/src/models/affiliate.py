"""Affiliate model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow
from .enums import AffiliateStatus, RiskLevel, in_clause


class Affiliate(Base):
    """Represents a partner company that originates cash calls."""

    __tablename__ = "affiliates"
    __table_args__ = (
        CheckConstraint(in_clause("status", AffiliateStatus), name="ck_affiliates_status_valid"),
        CheckConstraint(in_clause("risk_level", RiskLevel), name="ck_affiliates_risk_level_valid"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AffiliateStatus.ACTIVE.value
    )
    risk_level: Mapped[str] = mapped_column(
        String(16), nullable=False, default=RiskLevel.LOW.value
    )
    financial_rating: Mapped[str | None] = mapped_column(String(32), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    users: Mapped[list["User"]] = relationship("User", back_populates="affiliate")
    cash_calls: Mapped[list["CashCall"]] = relationship("CashCall", back_populates="affiliate")
    account_requests: Mapped[list["AccountRequest"]] = relationship(
        "AccountRequest", back_populates="affiliate"
    )
