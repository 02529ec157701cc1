"""Affiliate company endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from app.backend.src.models import Affiliate
from app.backend.src.schemas.affiliate import AffiliateCreate, AffiliateRead, AffiliateUpdate
from app.backend.src.services import affiliates as affiliate_service

from .deps import SessionDep

router = APIRouter(prefix="/affiliates", tags=["Affiliates"])


@router.get("", response_model=list[AffiliateRead])
def list_affiliates(session: SessionDep) -> list[Affiliate]:
    return affiliate_service.list_affiliates(session)


@router.post("", response_model=AffiliateRead, status_code=status.HTTP_201_CREATED)
def create_affiliate(payload: AffiliateCreate, session: SessionDep) -> Affiliate:
    return affiliate_service.create_affiliate(session, payload)


@router.get("/{affiliate_id}", response_model=AffiliateRead)
def get_affiliate(affiliate_id: str, session: SessionDep) -> Affiliate:
    return affiliate_service.get_affiliate(session, affiliate_id)


@router.patch("/{affiliate_id}", response_model=AffiliateRead)
def update_affiliate(affiliate_id: str, payload: AffiliateUpdate, session: SessionDep) -> Affiliate:
    return affiliate_service.update_affiliate(session, affiliate_id, payload)


@router.delete("/{affiliate_id}")
def delete_affiliate(affiliate_id: str, session: SessionDep) -> dict[str, object]:
    """Delete an affiliate with no cash calls."""

    affiliate_service.delete_affiliate(session, affiliate_id)
    return {"success": True}
