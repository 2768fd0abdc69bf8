"""Self-service registration endpoints (no session required)."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bhub_api.onboarding import OnboardingService
from bhub_api.problems import result_response
from bhub_api.routers.deps import get_onboarding
from bhub_api.schemas import DonorRegistration, SchoolRegistration

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/register/donor")
def register_donor(
    body: DonorRegistration,
    onboarding: OnboardingService = Depends(get_onboarding),
) -> JSONResponse:
    return result_response(onboarding.register_donor(body), status.HTTP_201_CREATED)


@router.post("/register/school")
def register_school(
    body: SchoolRegistration,
    onboarding: OnboardingService = Depends(get_onboarding),
) -> JSONResponse:
    return result_response(onboarding.register_school(body), status.HTTP_201_CREATED)
