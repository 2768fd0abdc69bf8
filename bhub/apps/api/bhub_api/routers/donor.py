"""Donor endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bhub_api.approvals.orchestrator import ApprovalOrchestrator
from bhub_api.auth.identity import SessionContext
from bhub_api.auth.session_auth import get_session_context
from bhub_api.problems import result_response
from bhub_api.routers.deps import get_orchestrator
from bhub_api.schemas import DonationCreate

router = APIRouter(prefix="/v1/donor", tags=["donor"])


@router.post("/donations")
def create_donation(
    body: DonationCreate,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.create_donation(body, session), status.HTTP_201_CREATED)


@router.get("/donations")
def list_my_donations(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.list_my_donations(session))
