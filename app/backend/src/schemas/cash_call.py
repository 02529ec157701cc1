"""Cash call schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.backend.src.models.enums import CashCallPriority, CashCallStatus, ComplianceStatus


class CashCallCreate(BaseModel):
    """Payload for creating a cash call."""

    call_number: str | None = Field(default=None, max_length=64)
    title: str | None = None
    affiliate_id: str
    amount_requested: float = Field(ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    exchange_rate: float = Field(default=1.0, gt=0)
    status: CashCallStatus = CashCallStatus.DRAFT
    priority: CashCallPriority = CashCallPriority.MEDIUM
    compliance_status: ComplianceStatus = ComplianceStatus.PENDING
    description: str | None = None
    justification: str | None = None
    attachments: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    created_by: str


class CashCallUpdate(BaseModel):
    """Editable fields; status changes go through the workflow endpoint."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str | None = None
    description: str | None = None
    justification: str | None = None
    amount_requested: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    exchange_rate: float | None = Field(default=None, gt=0)
    priority: CashCallPriority | None = None
    compliance_status: ComplianceStatus | None = None
    due_date: datetime | None = None
    attachments: list[str] | None = None
    user_id: str = Field(alias="userId")


class CashCallStatusChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: CashCallStatus
    user_id: str = Field(alias="userId")
    reason: str | None = None


class CashCallAssignment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assignee_user_id: str | None = Field(default=None, alias="assigneeUserId")
    admin_user_id: str | None = Field(default=None, alias="adminUserId")


class CashCallRead(BaseModel):
    """Cash call as exposed via the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    call_number: str
    title: str | None
    affiliate_id: str
    affiliate_name: str | None = None
    amount_requested: float
    currency: str
    exchange_rate: float
    status: str
    priority: str
    compliance_status: str
    description: str | None
    justification: str | None
    rejection_reason: str | None
    attachments: list[str]
    created_by: str
    assignee_user_id: str | None
    assigned_by: str | None
    assigned_at: datetime | None
    approved_by: str | None
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime
    approved_at: datetime | None
    paid_at: datetime | None


class DocumentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(min_length=1, max_length=255)
    content_type: str = "application/octet-stream"
    storage_path: str = Field(min_length=1)
    uploaded_by: str = Field(alias="uploadedBy")


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cash_call_id: str
    file_name: str
    content_type: str
    storage_path: str
    uploaded_by: str
    created_at: datetime


__all__ = [
    "CashCallAssignment",
    "CashCallCreate",
    "CashCallRead",
    "CashCallStatusChange",
    "CashCallUpdate",
    "DocumentCreate",
    "DocumentRead",
]
