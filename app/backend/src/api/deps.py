"""Shared FastAPI dependencies reading the objects built by ``create_app``."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.backend.src.core.config import Settings
from app.backend.src.core.identity import IdentityProvider
from app.backend.src.db import get_session_dependency
from app.backend.src.services.notifications import Notifier


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


SessionDep = Annotated[Session, Depends(get_session_dependency)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
IdentityProviderDep = Annotated[IdentityProvider, Depends(get_identity_provider)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]


__all__ = [
    "IdentityProviderDep",
    "NotifierDep",
    "SessionDep",
    "SettingsDep",
    "get_app_settings",
    "get_identity_provider",
    "get_notifier",
]
