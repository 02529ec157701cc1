"""Cash call model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow
from .enums import CashCallPriority, CashCallStatus, ComplianceStatus, in_clause


class CashCall(Base):
    """A funding request issued by or on behalf of an affiliate."""

    __tablename__ = "cash_calls"
    __table_args__ = (
        CheckConstraint(in_clause("status", CashCallStatus), name="ck_cash_calls_status_valid"),
        CheckConstraint(
            in_clause("priority", CashCallPriority), name="ck_cash_calls_priority_valid"
        ),
        CheckConstraint(
            in_clause("compliance_status", ComplianceStatus),
            name="ck_cash_calls_compliance_status_valid",
        ),
        CheckConstraint("amount_requested >= 0", name="ck_cash_calls_amount_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    call_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    affiliate_id: Mapped[str] = mapped_column(
        ForeignKey("affiliates.id"), nullable=False, index=True
    )
    amount_requested: Mapped[float] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=False
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    exchange_rate: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CashCallStatus.DRAFT.value, index=True
    )
    priority: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CashCallPriority.MEDIUM.value
    )
    compliance_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ComplianceStatus.PENDING.value
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    assignee_user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True
    )
    assigned_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    affiliate: Mapped["Affiliate"] = relationship("Affiliate", back_populates="cash_calls")
    assignee: Mapped["User | None"] = relationship("User")
    documents: Mapped[list["Document"]] = relationship(
        "Document",
        back_populates="cash_call",
        cascade="all, delete-orphan",
        order_by="Document.created_at",
    )

    @property
    def affiliate_name(self) -> str | None:
        return self.affiliate.name if self.affiliate else None
