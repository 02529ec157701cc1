"""Affiliate schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.backend.src.models.enums import AffiliateStatus, RiskLevel


class AffiliateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    company_code: str = Field(min_length=1, max_length=64)
    legal_name: str | None = None
    status: AffiliateStatus = AffiliateStatus.ACTIVE
    risk_level: RiskLevel = RiskLevel.LOW
    financial_rating: str | None = None
    city: str | None = None
    country: str | None = None
    website: str | None = None
    contact_email: str | None = None


class AffiliateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    legal_name: str | None = None
    status: AffiliateStatus | None = None
    risk_level: RiskLevel | None = None
    financial_rating: str | None = None
    city: str | None = None
    country: str | None = None
    website: str | None = None
    contact_email: str | None = None


class AffiliateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    legal_name: str | None
    company_code: str
    status: str
    risk_level: str
    financial_rating: str | None
    city: str | None
    country: str | None
    website: str | None
    contact_email: str | None
    created_at: datetime
    updated_at: datetime


__all__ = ["AffiliateCreate", "AffiliateRead", "AffiliateUpdate"]
