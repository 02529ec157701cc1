"""Pydantic schemas for users."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRead(BaseModel):
    """Public user representation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    role: str
    department: str | None
    position: str | None
    phone: str | None
    affiliate_company_id: str | None
    affiliate_name: str | None = None
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    """Schema for creating a user directly, without an account request."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    email: EmailStr | None = None
    full_name: str | None = None
    role: str | None = None
    department: str | None = None
    position: str | None = None
    phone: str | None = None
    affiliate_company_id: str | None = Field(default=None, alias="company_id")
    is_active: bool | None = None


class UserUpdateResult(BaseModel):
    message: str
    user_id: str = Field(serialization_alias="userId")
    updates: dict[str, object]


__all__ = ["UserCreate", "UserRead", "UserUpdateResult"]
