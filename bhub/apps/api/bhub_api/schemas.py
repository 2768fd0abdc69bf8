"""Pydantic schemas for API requests/responses."""

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from bhub_api.db.models import (
    ApplicationStatus,
    DonationApprovalStatus,
    DonationStatus,
    MatchStatus,
    UserRole,
    VerificationStatus,
)


# ============================================================================
# Registration / enrollment
# ============================================================================


class DonorRegistration(BaseModel):
    """Request body for POST /v1/auth/register/donor."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    date_of_birth: Optional[date] = None
    occupation: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    organization_name: Optional[str] = None
    tax_id: Optional[str] = None
    preferred_contact_method: Optional[str] = None
    terms_accepted: bool = False
    privacy_policy_accepted: bool = False
    aml_acknowledgment: bool = False


class SchoolRegistration(BaseModel):
    """Request body for POST /v1/auth/register/school."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    school_name: str = Field(..., min_length=1)
    registration_number: Optional[str] = None
    school_type: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    physical_address: Optional[str] = None
    head_teacher_name: Optional[str] = None
    head_teacher_phone: Optional[str] = None
    total_students: int = Field(default=0, ge=0)
    total_teachers: int = Field(default=0, ge=0)
    has_electricity: bool = False
    has_running_water: bool = False
    has_library: bool = False


class StaffEnrollment(BaseModel):
    """Request body for POST /v1/admin/users (admin-created staff accounts)."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    role: Literal["admin", "approver"]
    phone_number: Optional[str] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


# ============================================================================
# Donations
# ============================================================================


class DonationItem(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    unit: Optional[str] = None


class DonationCreate(BaseModel):
    """Request body for POST /v1/donor/donations."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    donation_type: str = Field(..., min_length=1)
    condition: Optional[str] = None
    items: list[DonationItem] = Field(default_factory=list)
    available_quantity: Optional[int] = Field(None, ge=0)
    city: Optional[str] = None
    province: Optional[str] = None
    delivery_available: bool = False


class RejectionRequest(BaseModel):
    """Body for every reject endpoint. Blank reasons are refused downstream."""

    reason: str = ""


class OptionalReasonRequest(BaseModel):
    reason: Optional[str] = None


class AllocationRequest(BaseModel):
    admin_notes: Optional[str] = None


class MatchReviewRequest(BaseModel):
    approver_notes: Optional[str] = None


class MatchRejectionRequest(BaseModel):
    reason: str = ""
    approver_notes: Optional[str] = None


# ============================================================================
# Resource applications
# ============================================================================


class ResourceNeed(BaseModel):
    category: str = Field(..., min_length=1)
    item: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    description: Optional[str] = None


class ApplicationCreate(BaseModel):
    """Request body for POST /v1/school/applications."""

    application_title: str = Field(..., min_length=1, max_length=200)
    application_type: str = Field(..., min_length=1)
    priority_level: Optional[Literal["low", "medium", "high", "urgent"]] = None
    resources_needed: list[ResourceNeed] = Field(default_factory=list)
    current_situation: str = Field(..., min_length=1)
    expected_impact: str = Field(..., min_length=1)
    beneficiaries_count: Optional[int] = Field(None, ge=0)
    needed_by_date: Optional[date] = None


class ApplicationUpdate(BaseModel):
    """Partial update; only fields present in the request are written."""

    application_title: Optional[str] = Field(None, min_length=1, max_length=200)
    application_type: Optional[str] = Field(None, min_length=1)
    priority_level: Optional[Literal["low", "medium", "high", "urgent"]] = None
    resources_needed: Optional[list[ResourceNeed]] = None
    current_situation: Optional[str] = Field(None, min_length=1)
    expected_impact: Optional[str] = Field(None, min_length=1)
    beneficiaries_count: Optional[int] = Field(None, ge=0)
    needed_by_date: Optional[date] = None


class ApplicationReview(BaseModel):
    decision: Literal["under_review", "approved", "rejected"]
    notes: Optional[str] = None


# ============================================================================
# School settings
# ============================================================================


class SchoolInformationUpdate(BaseModel):
    """Partial update of a school's own details.

    Approval fields are not part of the model; unknown keys are refused.
    """

    model_config = ConfigDict(extra="forbid")

    school_name: Optional[str] = Field(None, min_length=1)
    registration_number: Optional[str] = None
    school_type: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    physical_address: Optional[str] = None
    total_students: Optional[int] = Field(None, ge=0)
    total_teachers: Optional[int] = Field(None, ge=0)
    has_electricity: Optional[bool] = None
    has_running_water: Optional[bool] = None
    has_library: Optional[bool] = None


class HeadTeacherProfileUpdate(BaseModel):
    """Request body for PUT /v1/school/settings/head-teacher."""

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(..., min_length=1)
    head_teacher_name: str = Field(..., min_length=1)
    head_teacher_email: EmailStr
    head_teacher_phone: str = Field(..., min_length=1)


# ============================================================================
# Read models
# ============================================================================


class _ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class ProfileOut(_ReadModel):
    id: str
    email: str
    role: UserRole
    full_name: Optional[str] = None
    is_active: bool
    is_verified: bool
    verification_status: Optional[VerificationStatus] = None
    created_at: datetime


class DonationOut(_ReadModel):
    id: str
    donor_id: str
    title: str
    description: str
    donation_type: str
    condition: Optional[str] = None
    items: list[dict[str, Any]]
    status: DonationStatus
    approval_status: DonationApprovalStatus
    rejection_reason: Optional[str] = None
    screened_by: Optional[str] = None
    screened_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    allocated_to: Optional[str] = None
    allocated_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime


class ApplicationOut(_ReadModel):
    id: str
    school_id: str
    application_title: str
    application_type: str
    priority_level: Optional[str] = None
    resources_needed: list[dict[str, Any]]
    current_situation: str
    expected_impact: str
    beneficiaries_count: Optional[int] = None
    needed_by_date: Optional[date] = None
    status: ApplicationStatus
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime


class SchoolOut(_ReadModel):
    id: str
    school_name: str
    registration_number: Optional[str] = None
    school_type: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    physical_address: Optional[str] = None
    head_teacher_name: Optional[str] = None
    head_teacher_email: Optional[str] = None
    head_teacher_phone: Optional[str] = None
    total_students: int
    total_teachers: int
    has_electricity: bool
    has_running_water: bool
    has_library: bool
    approval_status: VerificationStatus
    is_verified: bool
    rejection_reason: Optional[str] = None


class MatchOut(_ReadModel):
    id: str
    donation_id: str
    application_id: str
    school_id: str
    match_score: float
    match_justification: str
    priority_rank: Optional[int] = None
    status: MatchStatus
    admin_notes: Optional[str] = None
    allocated_by: Optional[str] = None
    allocated_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    approver_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime


# ============================================================================
# Errors
# ============================================================================


class ProblemDetail(BaseModel):
    """RFC 9457 Problem Details for HTTP API errors."""

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str | dict[str, Any] = Field(..., description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference identifying the occurrence")
    trace_id: Optional[str] = Field(None, description="Request correlation id")
