"""School endpoints: resource applications and school settings."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bhub_api.approvals.orchestrator import ApprovalOrchestrator
from bhub_api.auth.identity import SessionContext
from bhub_api.auth.session_auth import get_session_context
from bhub_api.problems import result_response
from bhub_api.routers.deps import get_orchestrator
from bhub_api.schemas import (
    ApplicationCreate,
    ApplicationUpdate,
    HeadTeacherProfileUpdate,
    SchoolInformationUpdate,
)

router = APIRouter(prefix="/v1/school", tags=["school"])


@router.post("/applications")
def create_application(
    body: ApplicationCreate,
    submit: bool = False,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.create_application(body, session, submit=submit), status.HTTP_201_CREATED
    )


@router.get("/applications")
def list_applications(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.list_applications(session))


@router.get("/applications/{application_id}")
def get_application(
    application_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.get_application(application_id, session))


@router.put("/applications/{application_id}")
def update_application(
    application_id: str,
    body: ApplicationUpdate,
    submit: bool = False,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(
        orchestrator.update_application(application_id, body, session, submit=submit)
    )


@router.delete("/applications/{application_id}")
def delete_application(
    application_id: str,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.delete_application(application_id, session))


@router.get("/settings")
def get_settings(
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.get_school_settings(None, session))


@router.put("/settings")
def update_settings(
    body: SchoolInformationUpdate,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.update_school_information(None, body, session))


@router.put("/settings/head-teacher")
def update_head_teacher(
    body: HeadTeacherProfileUpdate,
    session: SessionContext = Depends(get_session_context),
    orchestrator: ApprovalOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    return result_response(orchestrator.update_head_teacher_profile(None, body, session))
