"""Shared plumbing for orchestrator services: actor resolution and lookups."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from bhub_api.approvals.errors import NotFound, Unauthenticated, Unauthorized, ValidationFailed
from bhub_api.auth.identity import IdentityProvider, SessionContext
from bhub_api.context import actor_id_var
from bhub_api.db.models import Profile, UserRole
from bhub_api.db.repo_profiles import ProfileRepository
from bhub_api.notifications.dispatcher import EmailDispatcher

logger = logging.getLogger(__name__)


def require_reason(reason: Optional[str], what: str = "Rejection reason") -> str:
    """Return the trimmed reason, or raise ValidationFailed if blank."""
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationFailed(f"{what} is required")
    return cleaned


def _role_phrase(roles: tuple[UserRole, ...]) -> str:
    names = [r.value for r in roles]
    if len(names) == 1:
        return f"{names[0]}s"
    return " and ".join(f"{n}s" for n in names)


class OrchestratorBase:
    """Holds the DB session and collaborators for one unit of work.

    The actor is resolved from the SessionContext on every operation call.
    """

    def __init__(
        self,
        db: Session,
        identity: IdentityProvider,
        dispatcher: EmailDispatcher,
    ):
        self.db = db
        self.identity = identity
        self.dispatcher = dispatcher
        self.profiles = ProfileRepository(db)

    def _require_actor(self, session: Optional[SessionContext], *roles: UserRole) -> Profile:
        """Resolve and authorize the caller.

        Raises:
            Unauthenticated: no token, or the identity provider rejects it
            Unauthorized: no profile, inactive profile, or wrong role
        """
        if session is None or not session.access_token:
            raise Unauthenticated("Not authenticated")

        user = self.identity.get_user(session.access_token)
        if user is None:
            raise Unauthenticated("Invalid or expired session")

        profile = self.profiles.get_by_id(user.id)
        if profile is None:
            raise Unauthorized("No profile exists for this account")

        actor_id_var.set(profile.id)

        if roles and profile.role not in roles:
            raise Unauthorized(f"Only {_role_phrase(roles)} can perform this action")
        if not profile.is_active:
            raise Unauthorized("Account is not active")

        return profile

    def _contact(self, profile_id: str) -> tuple[Optional[str], Optional[str]]:
        """(email, display name) for notifications; never raises on a missing profile."""
        profile = self.profiles.get_by_id(profile_id)
        if profile is None:
            return None, None
        return profile.email, profile.full_name or profile.organization_name


def not_found(entity: str) -> NotFound:
    return NotFound(f"{entity} not found")
