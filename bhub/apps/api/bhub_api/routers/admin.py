"""Admin endpoints: screening, verification, matching, application review, users.

All handlers require a bearer session; role checks happen in the
orchestrator, which derives the actor from the session on every call.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bhub_api.approvals.orchestrator import ApprovalOrchestrator
from bhub_api.auth.identity import SessionContext
from bhub_api.auth.session_auth import get_session_context
from bhub_api.onboarding import OnboardingService
from bhub_api.problems import result_response
from bhub_api.routers.deps import get_onboarding, get_orchestrator
from bhub_api.schemas import (
    AllocationRequest,
    ApplicationReview,
    OptionalReasonRequest,
    RejectionRequest,
    StaffEnrollment,
    UserStatusUpdate,
)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


# ============================================================================
# Donation screening (stage 1)
# ============================================================================


@router.get("/donations/review")
def list_donations_for_review(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.list_donations_for_review(session))


@router.post("/donations/{donation_id}/approve")
def approve_donation(
    donation_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.approve_donation(donation_id, session))


@router.post("/donations/{donation_id}/reject")
def reject_donation(
    donation_id: str,
    body: RejectionRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.reject_donation(donation_id, body.reason, session))


# ============================================================================
# Donor / school verification
# ============================================================================


@router.get("/registrations/pending")
def list_pending_registrations(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.list_pending_registrations(session))


@router.post("/donors/{donor_id}/approve")
def approve_donor(
    donor_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.approve_donor(donor_id, session))


@router.post("/donors/{donor_id}/reject")
def reject_donor(
    donor_id: str,
    body: RejectionRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.reject_donor(donor_id, body.reason, session))


@router.post("/schools/{school_id}/approve")
def approve_school(
    school_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.approve_school(school_id, session))


@router.post("/schools/{school_id}/reject")
def reject_school(
    school_id: str,
    body: OptionalReasonRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.reject_school(school_id, session, reason=body.reason))


# ============================================================================
# Matching / allocation
# ============================================================================


@router.post("/donations/{donation_id}/matches/generate")
def generate_match_recommendations(
    donation_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.generate_match_recommendations(donation_id, session),
        status.HTTP_201_CREATED,
    )


@router.get("/donations/{donation_id}/matches")
def get_match_recommendations(
    donation_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.get_match_recommendations(donation_id, session))


@router.post("/matches/{match_id}/allocate")
def allocate_match(
    match_id: str,
    body: AllocationRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.allocate_match(match_id, session, admin_notes=body.admin_notes)
    )


@router.post("/donations/{donation_id}/deliver")
def mark_donation_delivered(
    donation_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.mark_donation_delivered(donation_id, session))


# ============================================================================
# Resource application review
# ============================================================================


@router.get("/applications/review")
def list_applications_for_review(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.list_applications_for_review(session))


@router.get("/applications/{application_id}")
def get_application(
    application_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.get_application(application_id, session))


@router.post("/applications/{application_id}/review")
def review_application(
    application_id: str,
    body: ApplicationReview,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.review_application(application_id, body.decision, session, notes=body.notes)
    )


# ============================================================================
# User management
# ============================================================================


@router.get("/users")
def list_users(
    role: Optional[str] = None,
    session: SessionContext = Depends(get_session_context),
    onboarding: OnboardingService = Depends(get_onboarding),
) -> JSONResponse:
    return result_response(onboarding.list_users(session, role=role))


@router.post("/users")
def enroll_staff_user(
    body: StaffEnrollment,
    session: SessionContext = Depends(get_session_context),
    onboarding: OnboardingService = Depends(get_onboarding),
) -> JSONResponse:
    return result_response(onboarding.enroll_staff_user(body, session), status.HTTP_201_CREATED)


@router.put("/users/{user_id}/status")
def set_user_active(
    user_id: str,
    body: UserStatusUpdate,
    session: SessionContext = Depends(get_session_context),
    onboarding: OnboardingService = Depends(get_onboarding),
) -> JSONResponse:
    return result_response(onboarding.set_user_active(user_id, body.is_active, session))
