"""FastAPI dependencies that turn request credentials into a SessionContext.

Token validation happens inside the orchestrator (actor derivation), so a
missing or invalid token yields an `unauthenticated` result rather than an
exception raised here.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bhub_api.auth.identity import (
    IdentityProvider,
    SessionContext,
    get_default_identity_provider,
)
from bhub_api.context import request_id_var

session_security = HTTPBearer(auto_error=False, description="Supabase JWT Session Token")


def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(session_security),
) -> SessionContext:
    """Build the explicit session handle for this request."""
    token = credentials.credentials if credentials else None
    return SessionContext(access_token=token, request_id=request_id_var.get())


def get_identity_provider() -> IdentityProvider:
    """Dependency hook for the identity provider (overridden in tests)."""
    return get_default_identity_provider()
