"""Identity provider abstraction.

Supabase Auth owns credentials and sessions. The orchestrator only ever
sees a SessionContext and asks the provider who the bearer is, on every
call; there is no process-wide "current user".

Implementations:
- SupabaseIdentityProvider: production (supabase-py)
- tests provide an in-memory provider keyed by access token
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional, Protocol

from bhub_api.supabase_client import get_supabase_admin_client, get_supabase_client
from bhub_api.utils.sanitize import mask_email

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Raised when the identity provider rejects or fails an operation."""

    pass


@dataclass(frozen=True)
class UserIdentity:
    """An authenticated user as reported by the identity provider."""

    id: str
    email: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionContext:
    """Explicit per-call session handle.

    Attributes:
        access_token: Bearer token (None when the caller is anonymous)
        request_id: Correlation id for logs
    """

    access_token: Optional[str]
    request_id: str = ""


class IdentityProvider(Protocol):
    """Protocol for identity operations."""

    def get_user(self, access_token: str) -> Optional[UserIdentity]:
        """Resolve a bearer token to a user, or None if invalid/expired."""
        ...

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> UserIdentity:
        """Self-service registration."""
        ...

    def create_confirmed_user(
        self, email: str, password: str, metadata: Optional[dict[str, Any]] = None
    ) -> UserIdentity:
        """Admin-side creation of an already-confirmed user."""
        ...


def _to_identity(user: Any) -> UserIdentity:
    return UserIdentity(
        id=str(user.id),
        email=getattr(user, "email", None),
        metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


class SupabaseIdentityProvider:
    """Identity provider backed by Supabase Auth."""

    def get_user(self, access_token: str) -> Optional[UserIdentity]:
        try:
            response = get_supabase_client().auth.get_user(access_token)
        except Exception as e:
            # Expired / malformed JWTs surface as AuthApiError
            logger.warning(
                f"Session token rejected: {type(e).__name__}",
                extra={"event": "identity.token.rejected"},
            )
            return None

        if not response or not response.user:
            return None
        return _to_identity(response.user)

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> UserIdentity:
        try:
            response = get_supabase_client().auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata}}
            )
        except Exception as e:
            raise IdentityError(f"Sign-up failed: {e}") from e

        if not response or not response.user:
            raise IdentityError("Sign-up failed: no user returned")

        logger.info(
            "Identity created via sign-up",
            extra={
                "event": "identity.sign_up",
                "user_id": response.user.id,
                "email": mask_email(email),
            },
        )
        return _to_identity(response.user)

    def create_confirmed_user(
        self, email: str, password: str, metadata: Optional[dict[str, Any]] = None
    ) -> UserIdentity:
        try:
            response = get_supabase_admin_client().auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "email_confirm": True,
                    "user_metadata": metadata or {},
                }
            )
        except Exception as e:
            raise IdentityError(f"User creation failed: {e}") from e

        if not response or not response.user:
            raise IdentityError("User creation failed: no user returned")

        logger.info(
            "Confirmed identity created by admin",
            extra={
                "event": "identity.admin_create",
                "user_id": response.user.id,
                "email": mask_email(email),
            },
        )
        return _to_identity(response.user)


@lru_cache(maxsize=1)
def get_default_identity_provider() -> IdentityProvider:
    """Get the process-wide identity provider (Supabase)."""
    return SupabaseIdentityProvider()
