"""SQLAlchemy ORM models for Beneficiary Hub.

Every status column is a closed vocabulary (str Enum stored as TEXT).
Profile-keyed records (donors, schools) share the Supabase auth user id.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    BOOLEAN,
    DATE,
    FLOAT,
    INTEGER,
    JSON,
    TEXT,
    TIMESTAMP,
    Index,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Status vocabularies
# ============================================================================


class UserRole(str, Enum):
    ADMIN = "admin"
    APPROVER = "approver"
    DONOR = "donor"
    SCHOOL = "school"


class VerificationStatus(str, Enum):
    """Outcome of identity/eligibility review for donors and schools."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DonationStatus(str, Enum):
    """Lifecycle status; carries post-approval states approval_status does not."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ALLOCATED = "allocated"
    DELIVERED = "delivered"


class DonationApprovalStatus(str, Enum):
    """Content review outcome for a donation (two reviewers)."""

    PENDING = "pending"
    PENDING_FINAL_APPROVAL = "pending_final_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class MatchStatus(str, Enum):
    PENDING_ADMIN_ALLOCATION = "pending_admin_allocation"
    ALLOCATED_BY_ADMIN = "allocated_by_admin"
    APPROVED_BY_APPROVER = "approved_by_approver"
    REJECTED_BY_APPROVER = "rejected_by_approver"
    # Replaced by a newer recommendation run before allocation
    SUPERSEDED = "superseded"


def _enum_column(enum_cls: type[Enum]) -> SAEnum:
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


# ============================================================================
# Profile ledger
# ============================================================================


class Profile(TimestampMixin, Base):
    """One record per user: role plus activation/verification flags."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True)  # = Supabase auth user id
    email: Mapped[str] = mapped_column(TEXT, nullable=False)
    role: Mapped[UserRole] = mapped_column(_enum_column(UserRole), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    organization_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    # Gates dashboard access for donor/school roles
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    is_verified: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    verification_status: Mapped[Optional[VerificationStatus]] = mapped_column(
        _enum_column(VerificationStatus), nullable=True
    )
    verified_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (Index("idx_profiles_role", "role"),)

    @validates("role")
    def _validate_role(self, key: str, value: Any) -> UserRole:
        new_role = UserRole(value)
        current = self.__dict__.get("role")
        if current is not None and UserRole(current) != new_role:
            raise ValueError(f"Profile role is immutable (was {current}, got {new_role.value})")
        return new_role


# ============================================================================
# Role detail records
# ============================================================================


class Donor(TimestampMixin, Base):
    """Donor KYC record; verification mirrored into Profile."""

    __tablename__ = "donors"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True)  # = profiles.id
    full_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(DATE, nullable=True)
    occupation: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    country: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    id_type: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    id_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    organization_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    tax_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    preferred_contact_method: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    terms_accepted: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    terms_accepted_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    privacy_policy_accepted: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    privacy_policy_accepted_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    aml_acknowledgment: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    aml_acknowledged_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    is_verified: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    verification_status: Mapped[VerificationStatus] = mapped_column(
        _enum_column(VerificationStatus), nullable=False, default=VerificationStatus.PENDING
    )
    verified_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (Index("idx_donors_verification", "verification_status"),)


class School(TimestampMixin, Base):
    """School registration record; approval mirrored into Profile."""

    __tablename__ = "schools"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True)  # = profiles.id
    school_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    registration_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    school_type: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    province: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    district: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    physical_address: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    head_teacher_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    head_teacher_phone: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    head_teacher_email: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    total_students: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    total_teachers: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    has_electricity: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    has_running_water: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    has_library: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)

    approval_status: Mapped[VerificationStatus] = mapped_column(
        _enum_column(VerificationStatus), nullable=False, default=VerificationStatus.PENDING
    )
    is_verified: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    verified_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (Index("idx_schools_approval", "approval_status"),)


# ============================================================================
# Donations, applications, matches
# ============================================================================


class Donation(TimestampMixin, Base):
    """A listing created by a verified donor."""

    __tablename__ = "donations"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=new_id)
    donor_id: Mapped[str] = mapped_column(TEXT, nullable=False)  # FK to donors
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[str] = mapped_column(TEXT, nullable=False)
    donation_type: Mapped[str] = mapped_column(TEXT, nullable=False)
    condition: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    # [{"name": "Exercise books", "quantity": 200, "unit": "pcs"}]
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    available_quantity: Mapped[Optional[int]] = mapped_column(INTEGER, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    province: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    delivery_available: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)

    status: Mapped[DonationStatus] = mapped_column(
        _enum_column(DonationStatus), nullable=False, default=DonationStatus.PENDING
    )
    approval_status: Mapped[DonationApprovalStatus] = mapped_column(
        _enum_column(DonationApprovalStatus),
        nullable=False,
        default=DonationApprovalStatus.PENDING,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    # Stage 1 (admin screening)
    screened_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    screened_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    # Stage 2 (approver sign-off)
    approved_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    allocated_to: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)  # school id
    allocated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # Optimistic locking for state transitions
    version: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)

    __table_args__ = (
        Index("idx_donations_donor", "donor_id"),
        Index("idx_donations_approval_status", "approval_status"),
    )


class ResourceApplication(TimestampMixin, Base):
    """A need posted by an active school."""

    __tablename__ = "resource_applications"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(TEXT, nullable=False)  # FK to schools
    application_title: Mapped[str] = mapped_column(TEXT, nullable=False)
    application_type: Mapped[str] = mapped_column(TEXT, nullable=False)
    priority_level: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    # [{"category": "stationery", "item": "Exercise books", "quantity": 300, "description": "..."}]
    resources_needed: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    current_situation: Mapped[str] = mapped_column(TEXT, nullable=False)
    expected_impact: Mapped[str] = mapped_column(TEXT, nullable=False)
    beneficiaries_count: Mapped[Optional[int]] = mapped_column(INTEGER, nullable=True)
    needed_by_date: Mapped[Optional[date]] = mapped_column(DATE, nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        _enum_column(ApplicationStatus), nullable=False, default=ApplicationStatus.DRAFT
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    review_notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (
        Index("idx_applications_school", "school_id"),
        Index("idx_applications_status", "status"),
    )


class DonationMatch(TimestampMixin, Base):
    """Links a donation to a resource application with a score and priority."""

    __tablename__ = "donation_matches"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=new_id)
    donation_id: Mapped[str] = mapped_column(TEXT, nullable=False)
    application_id: Mapped[str] = mapped_column(TEXT, nullable=False)
    school_id: Mapped[str] = mapped_column(TEXT, nullable=False)
    match_score: Mapped[float] = mapped_column(FLOAT, nullable=False)
    match_justification: Mapped[str] = mapped_column(TEXT, nullable=False)
    # Lower rank = higher priority; NULL ranks sort last
    priority_rank: Mapped[Optional[int]] = mapped_column(INTEGER, nullable=True)

    status: Mapped[MatchStatus] = mapped_column(
        _enum_column(MatchStatus),
        nullable=False,
        default=MatchStatus.PENDING_ADMIN_ALLOCATION,
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    allocated_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    allocated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    approver_notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    version: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)

    __table_args__ = (
        Index("idx_matches_donation_status", "donation_id", "status"),
        Index("idx_matches_status", "status"),
    )
