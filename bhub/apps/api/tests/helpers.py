"""Test doubles and seed helpers shared by the API tests."""

import uuid
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from bhub_api.auth.identity import IdentityError, SessionContext, UserIdentity
from bhub_api.db.models import (
    ApplicationStatus,
    Donation,
    DonationApprovalStatus,
    DonationMatch,
    DonationStatus,
    Donor,
    MatchStatus,
    Profile,
    ResourceApplication,
    School,
    UserRole,
    VerificationStatus,
)
from bhub_api.matching.recommender import MatchRecommendation
from bhub_api.notifications.dispatcher import EmailMessage


# ============================================================================
# Test doubles
# ============================================================================


class FakeIdentityProvider:
    """In-memory identity provider keyed by access token."""

    def __init__(self) -> None:
        self.tokens: dict[str, UserIdentity] = {}
        self.users_by_email: dict[str, UserIdentity] = {}
        self.fail_next: Optional[str] = None

    def issue_token(self, user: UserIdentity) -> str:
        token = f"token-{user.id}"
        self.tokens[token] = user
        return token

    def session_for(self, user_id: str, email: Optional[str] = None) -> SessionContext:
        token = self.issue_token(UserIdentity(id=user_id, email=email))
        return SessionContext(access_token=token, request_id=f"req-{user_id[:8]}")

    def get_user(self, access_token: str) -> Optional[UserIdentity]:
        return self.tokens.get(access_token)

    def _create(self, email: str, metadata: Optional[dict[str, Any]]) -> UserIdentity:
        if self.fail_next:
            message, self.fail_next = self.fail_next, None
            raise IdentityError(message)
        if email in self.users_by_email:
            raise IdentityError("User already registered")
        user = UserIdentity(id=str(uuid.uuid4()), email=email, metadata=dict(metadata or {}))
        self.users_by_email[email] = user
        return user

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> UserIdentity:
        return self._create(email, metadata)

    def create_confirmed_user(
        self, email: str, password: str, metadata: Optional[dict[str, Any]] = None
    ) -> UserIdentity:
        return self._create(email, metadata)


class RecordingDispatcher:
    """Collects messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    def send_email(self, message: EmailMessage) -> None:
        self.sent.append(message)

    @property
    def subjects(self) -> list[str]:
        return [m.subject for m in self.sent]


class StaticRecommender:
    """Returns a fixed recommendation list (or raises a preset error)."""

    def __init__(self, recommendations: Optional[list[MatchRecommendation]] = None) -> None:
        self.recommendations = recommendations or []
        self.error: Optional[Exception] = None
        self.calls: list[tuple[dict, list]] = []

    def recommend(self, donation: dict, candidates: list[dict]) -> list[MatchRecommendation]:
        self.calls.append((donation, candidates))
        if self.error is not None:
            raise self.error
        return list(self.recommendations)


@dataclass
class Actor:
    id: str
    email: str
    session: SessionContext


# ============================================================================
# Seed helpers
# ============================================================================


def seed_profile(
    db: Session,
    identity: FakeIdentityProvider,
    role: UserRole,
    *,
    is_active: bool = True,
    verification_status: Optional[VerificationStatus] = None,
    full_name: Optional[str] = None,
) -> Actor:
    user_id = str(uuid.uuid4())
    email = f"{role.value}-{user_id[:8]}@example.org"
    db.add(
        Profile(
            id=user_id,
            email=email,
            role=role,
            full_name=full_name or f"Test {role.value.title()}",
            is_active=is_active,
            is_verified=verification_status == VerificationStatus.APPROVED,
            verification_status=verification_status,
        )
    )
    db.commit()
    return Actor(id=user_id, email=email, session=identity.session_for(user_id, email))


def seed_donor(db: Session, identity: FakeIdentityProvider, status: VerificationStatus) -> Actor:
    approved = status == VerificationStatus.APPROVED
    actor = seed_profile(
        db, identity, UserRole.DONOR, is_active=approved, verification_status=status,
        full_name="Thandi Donor",
    )
    db.add(
        Donor(
            id=actor.id,
            full_name="Thandi Donor",
            phone_number="+27 82 000 0000",
            city="Lusaka",
            country="Zambia",
            is_verified=approved,
            verification_status=status,
        )
    )
    db.commit()
    return actor


def seed_school(
    db: Session,
    identity: FakeIdentityProvider,
    status: VerificationStatus,
    name: str = "Chilenje Primary",
) -> Actor:
    approved = status == VerificationStatus.APPROVED
    actor = seed_profile(
        db, identity, UserRole.SCHOOL, is_active=approved, verification_status=status,
        full_name=name,
    )
    db.add(
        School(
            id=actor.id,
            school_name=name,
            province="Lusaka",
            district="Lusaka",
            total_students=640,
            total_teachers=18,
            approval_status=status,
            is_verified=approved,
        )
    )
    db.commit()
    return actor


def seed_donation(
    db: Session,
    donor_id: str,
    *,
    status: DonationStatus = DonationStatus.PENDING,
    approval_status: DonationApprovalStatus = DonationApprovalStatus.PENDING,
    title: str = "200 exercise books",
    allocated_to: Optional[str] = None,
) -> Donation:
    donation = Donation(
        donor_id=donor_id,
        title=title,
        description="New A4 exercise books, 96 pages.",
        donation_type="stationery",
        items=[{"name": "Exercise book", "quantity": 200, "unit": "pcs"}],
        status=status,
        approval_status=approval_status,
        allocated_to=allocated_to,
    )
    db.add(donation)
    db.commit()
    return donation


def seed_application(
    db: Session,
    school_id: str,
    *,
    status: ApplicationStatus = ApplicationStatus.SUBMITTED,
    title: str = "Stationery for grade 5",
) -> ResourceApplication:
    application = ResourceApplication(
        school_id=school_id,
        application_title=title,
        application_type="stationery",
        priority_level="high",
        resources_needed=[{"category": "stationery", "item": "Exercise book", "quantity": 300}],
        current_situation="Pupils share one book between three.",
        expected_impact="Every grade 5 pupil gets their own book.",
        beneficiaries_count=120,
        status=status,
    )
    db.add(application)
    db.commit()
    return application


def seed_match(
    db: Session,
    donation: Donation,
    application: ResourceApplication,
    *,
    score: float = 80.0,
    rank: Optional[int] = 1,
    status: MatchStatus = MatchStatus.PENDING_ADMIN_ALLOCATION,
) -> DonationMatch:
    match = DonationMatch(
        donation_id=donation.id,
        application_id=application.id,
        school_id=application.school_id,
        match_score=score,
        match_justification="Needs exercise books for grade 5.",
        priority_rank=rank,
        status=status,
    )
    db.add(match)
    db.commit()
    return match


def auth_headers(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {actor.session.access_token}"}
