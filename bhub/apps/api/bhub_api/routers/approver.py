"""Approver endpoints: final donation sign-off and allocation review."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bhub_api.approvals.orchestrator import ApprovalOrchestrator
from bhub_api.auth.identity import SessionContext
from bhub_api.auth.session_auth import get_session_context
from bhub_api.problems import result_response
from bhub_api.routers.deps import get_orchestrator
from bhub_api.schemas import MatchRejectionRequest, MatchReviewRequest, RejectionRequest

router = APIRouter(prefix="/v1/approver", tags=["approver"])


@router.get("/donations/review")
def list_donations_for_final_approval(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.list_donations_for_review(session))


@router.post("/donations/{donation_id}/approve")
def final_approve_donation(
    donation_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.final_approve_donation(donation_id, session))


@router.post("/donations/{donation_id}/reject")
def final_reject_donation(
    donation_id: str,
    body: RejectionRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.final_reject_donation(donation_id, body.reason, session))


@router.get("/matches/pending")
def get_pending_matches(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.get_pending_matches(session))


@router.get("/matches/history")
def get_match_history(
    limit: int = 50,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.get_match_history(session, limit=min(max(limit, 1), 200)))


@router.post("/matches/{match_id}/approve")
def approve_match(
    match_id: str,
    body: MatchReviewRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.approve_match(match_id, session, approver_notes=body.approver_notes)
    )


@router.post("/matches/{match_id}/reject")
def reject_match(
    match_id: str,
    body: MatchRejectionRequest,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.reject_match(
            match_id, body.reason, session, approver_notes=body.approver_notes
        )
    )
