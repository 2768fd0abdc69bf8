"""Beneficiary Hub API - FastAPI Application Entry Point."""

import logging
import os
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bhub_api import __version__
from bhub_api.context import actor_id_var, operation_var, request_id_var
from bhub_api.problems import get_title_for_status, problem_response
from bhub_api.routers import admin, approver, auth, donor, health, school
from bhub_api.utils import configure_json_logging

app = FastAPI(
    title="Beneficiary Hub API",
    description="Donation matching with two-stage approval, donor/school verification and allocation review.",
    version=__version__,
    docs_url="/api-docs",
    redoc_url="/redoc",
)

# Set BHUB_JSON_LOGS=false to disable (defaults to true for production)
if os.getenv("BHUB_JSON_LOGS", "true").lower() != "false":
    configure_json_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))
    logger = logging.getLogger(__name__)
    logger.info("Structured JSON logging enabled")

# Credentials mode cannot use wildcard origins
cors_origins_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
if cors_origins_env:
    allowed_origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


# ============================================================================
# Request completion logging
# ============================================================================


@app.middleware("http")
async def http_completion_logging_middleware(request: Request, call_next):
    """Emit one "http.request.completed" log per request (500 on exceptions)."""
    actor_id_var.set("")
    operation_var.set("")

    start_time = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logging.getLogger(__name__).info(
            "http.request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        actor_id_var.set("")
        operation_var.set("")


# ============================================================================
# Request ID Middleware (MUST BE OUTERMOST)
# ============================================================================


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Accept or generate X-Request-ID, expose it to logs and the response.

    Registered last so it wraps every other middleware and the request id
    is set in the outermost async context.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request_id_var.set(request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# RFC 9457 Global Exception Handlers
# ============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else get_title_for_status(exc.status_code)
    return problem_response(exc.status_code, f"http-{exc.status_code}", detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 with the first failing field named in the detail."""
    first_error = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(loc) for loc in first_error.get("loc", []))
    msg = first_error.get("msg", "Validation error")
    return problem_response(422, "validation-error", f"Invalid field '{field}': {msg}")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.getLogger(__name__).error(f"Unhandled exception: {exc}", exc_info=True)
    return problem_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal-error",
        "An unexpected error occurred. Please try again later.",
    )


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(approver.router)
app.include_router(donor.router)
app.include_router(school.router)


@app.get("/")
async def root() -> dict[str, str]:
    return {"service": "beneficiary-hub-api", "version": __version__}
