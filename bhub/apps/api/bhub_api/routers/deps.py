"""Shared FastAPI dependencies for routers."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from bhub_api.approvals.orchestrator import ApprovalOrchestrator
from bhub_api.auth.identity import IdentityProvider
from bhub_api.auth.session_auth import get_identity_provider
from bhub_api.db.session import get_db
from bhub_api.matching.recommender import MatchRecommender
from bhub_api.notifications.dispatcher import EmailDispatcher, get_default_dispatcher
from bhub_api.onboarding import OnboardingService


@lru_cache(maxsize=1)
def _default_dispatcher() -> EmailDispatcher:
    return get_default_dispatcher()


def get_dispatcher() -> EmailDispatcher:
    """Dependency hook for the email dispatcher (overridden in tests)."""
    return _default_dispatcher()


def get_recommender() -> Optional[MatchRecommender]:
    """Dependency hook for the match recommender.

    None defers to the Anthropic-backed default, built on first use.
    """
    return None


def get_orchestrator(
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    dispatcher: EmailDispatcher = Depends(get_dispatcher),
    recommender: Optional[MatchRecommender] = Depends(get_recommender),
) -> ApprovalOrchestrator:
    return ApprovalOrchestrator(db, identity, dispatcher, recommender=recommender)


def get_onboarding(
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    dispatcher: EmailDispatcher = Depends(get_dispatcher),
) -> OnboardingService:
    return OnboardingService(db, identity, dispatcher)
