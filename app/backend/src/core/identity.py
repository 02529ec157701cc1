"""Authentication identity providers.

New users are issued an identity (id + credentials) by an external provider
before their profile row is written. Production deployments talk to the
Supabase Auth admin API; development and tests use the in-memory provider.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from app.backend.src.core.config import Settings
from app.backend.src.core.errors import AuthProviderError

LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """An identity issued by the provider."""

    id: str
    email: str


class IdentityProvider(Protocol):
    """Minimal protocol for identity providers."""

    def create_identity(self, email: str, password: str) -> Identity:
        """Create an identity or raise :class:`AuthProviderError`."""

    def delete_identity(self, identity_id: str) -> None:
        """Remove a previously issued identity."""


class InMemoryIdentityProvider:
    """Process-local identity store for development and tests."""

    min_password_length = 6

    def __init__(self) -> None:
        self._identities: dict[str, Identity] = {}

    def create_identity(self, email: str, password: str) -> Identity:
        normalized = (email or "").strip().lower()
        if not normalized:
            raise AuthProviderError("Failed to create user: email is required")
        if len(password or "") < self.min_password_length:
            raise AuthProviderError(
                "Failed to create user: Password should be at least 6 characters"
            )
        if any(identity.email == normalized for identity in self._identities.values()):
            raise AuthProviderError(
                "Failed to create user: A user with this email address has already been registered"
            )
        identity = Identity(id=str(uuid.uuid4()), email=normalized)
        self._identities[identity.id] = identity
        return identity

    def delete_identity(self, identity_id: str) -> None:
        self._identities.pop(identity_id, None)

    def __contains__(self, identity_id: object) -> bool:
        return identity_id in self._identities


class SupabaseIdentityProvider:
    """Identity provider backed by the Supabase Auth admin API."""

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_role_key = service_role_key
        self._client = client or httpx.Client(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _provider_message(response: httpx.Response) -> str:
        try:
            payload: Any = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(payload, dict):
            for key in ("msg", "message", "error_description", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value:
                    return value
        return f"HTTP {response.status_code}"

    def create_identity(self, email: str, password: str) -> Identity:
        try:
            response = self._client.post(
                f"{self._base_url}/auth/v1/admin/users",
                headers=self._headers(),
                json={"email": email, "password": password, "email_confirm": True},
            )
        except httpx.HTTPError as exc:
            LOGGER.warning("identity_provider_unreachable", error=str(exc))
            raise AuthProviderError(f"Failed to create user: {exc}") from exc

        if response.status_code >= 400:
            message = self._provider_message(response)
            LOGGER.warning(
                "identity_creation_rejected",
                status_code=response.status_code,
                error=message,
            )
            raise AuthProviderError(f"Failed to create user: {message}")

        payload = response.json()
        user_payload = payload.get("user", payload) if isinstance(payload, dict) else {}
        identity_id = user_payload.get("id") if isinstance(user_payload, dict) else None
        if not identity_id:
            raise AuthProviderError("Failed to create user: provider returned no user id")
        return Identity(id=str(identity_id), email=email)

    def delete_identity(self, identity_id: str) -> None:
        try:
            response = self._client.delete(
                f"{self._base_url}/auth/v1/admin/users/{identity_id}",
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise AuthProviderError(f"Failed to delete user: {exc}") from exc
        if response.status_code >= 400 and response.status_code != 404:
            raise AuthProviderError(
                f"Failed to delete user: {self._provider_message(response)}"
            )

    def close(self) -> None:
        self._client.close()


def build_identity_provider(settings: Settings) -> IdentityProvider:
    """Return the identity provider selected by configuration."""

    if settings.identity_provider == "supabase":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the supabase identity provider"
            )
        return SupabaseIdentityProvider(
            settings.supabase_url,
            settings.supabase_service_role_key,
            timeout=settings.identity_timeout_seconds,
        )
    return InMemoryIdentityProvider()


__all__ = [
    "Identity",
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "SupabaseIdentityProvider",
    "build_identity_provider",
]
