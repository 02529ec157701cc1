"""Account request model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow
from .enums import AccountRequestStatus, in_clause


class AccountRequest(Base):
    """A public application for system access awaiting admin review."""

    __tablename__ = "account_requests"
    __table_args__ = (
        CheckConstraint(
            in_clause("status", AccountRequestStatus),
            name="ck_account_requests_status_valid",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    affiliate_company_id: Mapped[str | None] = mapped_column(
        ForeignKey("affiliates.id"), nullable=True, index=True
    )
    reason_for_access: Mapped[str] = mapped_column(Text, nullable=False)
    manager_name: Mapped[str] = mapped_column(String(255), nullable=False)
    manager_email: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=AccountRequestStatus.PENDING.value,
        index=True,
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_role: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    affiliate: Mapped["Affiliate | None"] = relationship(
        "Affiliate", back_populates="account_requests"
    )

    @property
    def affiliate_name(self) -> str | None:
        return self.affiliate.name if self.affiliate else None

    @property
    def is_terminal(self) -> bool:
        """Approved and rejected requests accept no further review actions."""

        return self.status in {
            AccountRequestStatus.APPROVED.value,
            AccountRequestStatus.REJECTED.value,
        }
