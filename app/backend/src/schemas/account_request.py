"""Account request schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AccountRequestCreate(BaseModel):
    """Public submission payload.

    Fields are optional at the schema level so the service can report missing
    values with a single, stable message.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, alias="fullName")
    position: str | None = None
    department: str | None = None
    phone: str | None = None
    affiliate_company_id: str | None = Field(default=None, alias="affiliateCompanyId")
    reason_for_access: str | None = Field(default=None, alias="reasonForAccess")
    manager_name: str | None = Field(default=None, alias="managerName")
    manager_email: EmailStr | None = Field(default=None, alias="managerEmail")


class AccountRequestRead(BaseModel):
    """Account request as returned to admins."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    position: str
    department: str
    phone: str | None
    affiliate_company_id: str | None
    affiliate_name: str | None
    reason_for_access: str
    manager_name: str
    manager_email: str
    status: str
    review_notes: str | None
    reviewed_at: datetime | None
    assigned_role: str | None
    created_at: datetime


class AccountRequestList(BaseModel):
    requests: list[AccountRequestRead]


class RejectionPayload(BaseModel):
    reason: str | None = None
    notes: str | None = None


class InformationRequestPayload(BaseModel):
    message: str | None = None


class ResumePayload(BaseModel):
    notes: str | None = None


class ProvisionUserPayload(BaseModel):
    """Admin payload converting a pending request into a user."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: str | None = Field(default=None, alias="requestId")
    role: str | None = None
    affiliate_company_id: str | None = Field(default=None, alias="affiliateCompanyId")
    notes: str | None = None
    send_welcome_email: bool = Field(default=False, alias="sendWelcomeEmail")
    temporary_password: str | None = Field(default=None, alias="temporaryPassword")


__all__ = [
    "AccountRequestCreate",
    "AccountRequestList",
    "AccountRequestRead",
    "InformationRequestPayload",
    "ProvisionUserPayload",
    "RejectionPayload",
    "ResumePayload",
]
