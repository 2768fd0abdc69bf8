"""RFC 9457 Problem Details helpers and OperationResult -> HTTP mapping."""

import uuid

from fastapi import status
from fastapi.responses import JSONResponse

from bhub_api.approvals.errors import ErrorKind
from bhub_api.approvals.results import OperationResult
from bhub_api.context import request_id_var
from bhub_api.schemas import ProblemDetail

PROBLEM_BASE_URL = "https://api.beneficiaryhub.org/problems"

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.PARTIAL_UPDATE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_title_for_status(status_code: int) -> str:
    """Get human-readable title for HTTP status code."""
    titles = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return titles.get(status_code, f"HTTP {status_code}")


def trace_instance() -> str:
    """Opaque occurrence identifier built from the request id."""
    request_id = request_id_var.get()
    return f"urn:beneficiaryhub:trace:{request_id or uuid.uuid4()}"


def problem_response(
    status_code: int,
    problem_type: str,
    detail: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    problem = ProblemDetail(
        type=f"{PROBLEM_BASE_URL}/{problem_type}",
        title=get_title_for_status(status_code),
        status=status_code,
        detail=detail,
        instance=trace_instance(),
        trace_id=request_id_var.get() or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=headers,
    )


def result_response(result: OperationResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Render an OperationResult: the result body on success, a problem otherwise."""
    if result.success:
        return JSONResponse(status_code=success_status, content=result.model_dump(mode="json"))

    kind = ErrorKind(result.error_kind or ErrorKind.UNEXPECTED)
    status_code = STATUS_BY_KIND[kind]
    headers = {"WWW-Authenticate": "Bearer"} if kind == ErrorKind.UNAUTHENTICATED else None
    return problem_response(
        status_code,
        kind.value.replace("_", "-"),
        result.error or get_title_for_status(status_code),
        headers=headers,
    )
