"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # => .../apps/api

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("BHUB_JSON_LOGS", "false")

from bhub_api.approvals.orchestrator import ApprovalOrchestrator  # noqa: E402
from bhub_api.auth.session_auth import get_identity_provider  # noqa: E402
from bhub_api.config.env import DonationApprovalMode  # noqa: E402
from bhub_api.db.engine import normalize_driver  # noqa: E402
from bhub_api.db.models import Base, UserRole, VerificationStatus  # noqa: E402
from bhub_api.db.session import get_db  # noqa: E402
from bhub_api.main import app  # noqa: E402
from bhub_api.onboarding import OnboardingService  # noqa: E402
from bhub_api.routers.deps import get_dispatcher, get_recommender  # noqa: E402
from tests.helpers import (  # noqa: E402
    Actor,
    FakeIdentityProvider,
    RecordingDispatcher,
    StaticRecommender,
    seed_donor,
    seed_profile,
    seed_school,
)

# Set DATABASE_URL to a PostgreSQL URL to run against a real database
TEST_DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep approval mode and email config deterministic per test."""
    monkeypatch.delenv("BHUB_DONATION_APPROVAL_MODE", raising=False)
    monkeypatch.delenv("EMAIL_TEST_RECIPIENT", raising=False)
    monkeypatch.setenv("BHUB_EMAIL_ENABLED", "false")


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Create a fresh database session for each test.

    Uses PostgreSQL if DATABASE_URL is set, otherwise in-memory SQLite.
    """
    if TEST_DATABASE_URL.startswith("postgres"):
        engine = create_engine(normalize_driver(TEST_DATABASE_URL))
    else:
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    try:
        yield session
        session.rollback()
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


# ============================================================================
# Collaborators
# ============================================================================


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def recommender() -> StaticRecommender:
    return StaticRecommender()


@pytest.fixture
def orchestrator(db_session, identity, dispatcher, recommender) -> ApprovalOrchestrator:
    """Two-stage orchestrator wired to the test doubles."""
    return ApprovalOrchestrator(
        db_session,
        identity,
        dispatcher,
        recommender=recommender,
        approval_mode=DonationApprovalMode.TWO_STAGE,
    )


@pytest.fixture
def single_stage_orchestrator(db_session, identity, dispatcher, recommender) -> ApprovalOrchestrator:
    return ApprovalOrchestrator(
        db_session,
        identity,
        dispatcher,
        recommender=recommender,
        approval_mode=DonationApprovalMode.SINGLE_STAGE,
    )


@pytest.fixture
def onboarding(db_session, identity, dispatcher) -> OnboardingService:
    return OnboardingService(db_session, identity, dispatcher)


# ============================================================================
# Seeded actors
# ============================================================================


@pytest.fixture
def admin(db_session, identity) -> Actor:
    return seed_profile(db_session, identity, UserRole.ADMIN, verification_status=VerificationStatus.APPROVED)


@pytest.fixture
def approver(db_session, identity) -> Actor:
    return seed_profile(db_session, identity, UserRole.APPROVER, verification_status=VerificationStatus.APPROVED)


@pytest.fixture
def verified_donor(db_session, identity) -> Actor:
    return seed_donor(db_session, identity, VerificationStatus.APPROVED)


@pytest.fixture
def pending_donor(db_session, identity) -> Actor:
    return seed_donor(db_session, identity, VerificationStatus.PENDING)


@pytest.fixture
def approved_school(db_session, identity) -> Actor:
    return seed_school(db_session, identity, VerificationStatus.APPROVED)


@pytest.fixture
def pending_school(db_session, identity) -> Actor:
    return seed_school(db_session, identity, VerificationStatus.PENDING, name="Kabwata Secondary")


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def test_client(db_session, identity, dispatcher, recommender):
    """TestClient with DB, identity, dispatcher and recommender overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close - db_session fixture handles it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_recommender] = lambda: recommender
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
