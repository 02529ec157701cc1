"""User provisioning and management endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Query, status

from app.backend.src.models import User
from app.backend.src.schemas.account_request import ProvisionUserPayload
from app.backend.src.schemas.user import UserCreate, UserRead, UserUpdateResult
from app.backend.src.services import users as user_service
from app.backend.src.services.provisioning import provision_user

from .deps import IdentityProviderDep, NotifierDep, SessionDep, SettingsDep

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/create")
def create_user_from_request(
    payload: ProvisionUserPayload,
    session: SessionDep,
    identity_provider: IdentityProviderDep,
    notifier: NotifierDep,
    settings: SettingsDep,
) -> dict[str, object | None]:
    """Provision an authenticated user from a pending account request."""

    provisioned = provision_user(
        session,
        identity_provider,
        notifier,
        payload,
        login_url=settings.login_url,
        rollback_identity_on_profile_failure=settings.rollback_identity_on_profile_failure,
    )
    return {"success": True, "userId": provisioned.user_id, "email": provisioned.email}


@router.get("", response_model=list[UserRead])
def list_users_by_role(
    session: SessionDep,
    role: str | None = Query(default=None),
) -> list[User]:
    """Return users with the given role."""

    return user_service.list_users_by_role(session, role)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, session: SessionDep) -> User:
    """Create a user profile directly."""

    return user_service.create_user(session, payload)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: str, session: SessionDep) -> User:
    return user_service.get_user(session, user_id)


@router.patch("/{user_id}", response_model=UserUpdateResult)
def update_user(
    user_id: str,
    session: SessionDep,
    updates: dict[str, Any] = Body(default_factory=dict),
) -> UserUpdateResult:
    """Apply allow-listed profile changes."""

    user, applied = user_service.update_user(session, user_id, updates)
    return UserUpdateResult(message="User updated successfully", user_id=user.id, updates=applied)


@router.post("/{user_id}/deactivate", response_model=UserRead)
def deactivate_user(
    user_id: str,
    session: SessionDep,
    actor_id: str | None = Query(default=None, alias="userId"),
) -> User:
    """Soft deactivate a user; the profile is kept."""

    return user_service.deactivate_user(session, user_id, actor_id=actor_id)
