"""
FastAPI application exposing the registration intake gateway.

Endpoints:
    - POST /api/register           Submit a registration (multipart or urlencoded form)
    - POST /api/register/validate  Report every invalid field without storing anything
    - GET  /api/register/rules     Field rule table for presentation layers
    - GET  /health                 Health check

Response Codes (POST /api/register):
    200 accepted, 400 invalid field, 429 rate limited, 500 store/internal failure.
    Body: {"success": bool, "message"?: str, "error"?: str}
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from intake_gateway.config import settings
from intake_gateway.errors import ClientError, IntakeError, RateLimitExceeded, ServerError
from intake_gateway.models import (
    SERVICE_OPTIONS_ORDER,
    FieldErrorsResponse,
    RateLimitResult,
    SubmissionResponse,
)
from intake_gateway.services.field_rules import FIELD_RULES
from intake_gateway.services.intake_service import IntakeService
from intake_gateway.services.rate_limiter import FixedWindowRateLimiter, get_client_id
from intake_gateway.services.validator import FormValues, collect_field_errors
from intake_gateway.storage.database import build_engine, build_session_factory, init_db
from intake_gateway.storage.store import InMemorySubmissionStore, SqlSubmissionStore

logger = logging.getLogger(__name__)

REPLACEMENT_CHARACTER = "\ufffd"

SECURITY_HEADERS = {
    "Content-Security-Policy": "; ".join([
        "default-src 'self'",
        "script-src 'self' 'unsafe-inline'",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data: blob:",
        "font-src 'self'",
        "connect-src 'self' https: ws: wss:",
        "form-action 'self'",
        "frame-ancestors 'none'",
        "base-uri 'self'",
        "object-src 'none'",
    ]),
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


# Store and gateway wiring
engine = build_engine(settings.database_url) if settings.store_backend == "database" else None

if engine is not None:
    store = SqlSubmissionStore(build_session_factory(engine))
else:
    store = InMemorySubmissionStore()

rate_limiter = FixedWindowRateLimiter(
    window_seconds=settings.rate_limit_window_seconds,
    max_requests=settings.rate_limit_max_requests,
    max_entries=settings.rate_limit_max_entries,
)
intake_service = IntakeService(store, rate_limiter)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: Create the submissions table
    Shutdown: Dispose of the connection pool
    """
    logger.info(f"[API] Starting intake gateway (store={settings.store_backend})")
    if engine is not None:
        await init_db(engine)
    logger.info("[API] Ready to handle requests")

    yield

    logger.info("[API] Shutting down")
    if engine is not None:
        await engine.dispose()


app = FastAPI(
    title="Registration Intake Gateway",
    description="Validates, sanitizes and rate limits registration submissions",
    version="1.0.0",
    lifespan=lifespan,
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the hardening headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


if settings.enable_security_headers:
    app.add_middleware(SecurityHeadersMiddleware)


def get_intake_service() -> IntakeService:
    """Dependency returning the process-wide gateway."""
    return intake_service


async def read_form(request: Request) -> FormValues:
    """
    Parse the request body into field name -> list of submitted strings.

    File parts are ignored; a malformed body is a client error. Urlencoded
    bodies with invalid UTF-8 decode to U+FFFD and are rejected.
    """
    try:
        form = await request.form()
    except StarletteHTTPException as e:
        raise ClientError("invalid form payload") from e

    values = {
        key: [value for value in form.getlist(key) if not isinstance(value, UploadFile)]
        for key in form.keys()
    }
    for key, items in values.items():
        if any(REPLACEMENT_CHARACTER in item for item in items):
            raise ClientError("invalid form payload: text must be UTF-8", field=key)
    return values


def error_response(exc: IntakeError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitExceeded) and exc.limit is not None:
        headers = RateLimitResult(
            allowed=False, remaining=0, limit=exc.limit, retry_after=exc.retry_after
        ).to_headers()
        if exc.retry_after is not None:
            headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        headers=headers,
        content=SubmissionResponse(success=False, error=exc.message).model_dump(exclude_none=True),
    )


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint (not rate limited)."""
    return {"status": "healthy", "service": "intake-gateway"}


@app.post("/api/register")
async def register(
    request: Request,
    service: IntakeService = Depends(get_intake_service),
):
    """
    Accept one registration submission.

    The client is rate limited before the body is parsed.
    """
    client_id = get_client_id(request.headers)

    try:
        result = await service.handle_submission(client_id, lambda: read_form(request))
    except IntakeError as e:
        return error_response(e)
    except Exception:
        logger.exception(f"[API] Unexpected error handling submission from {client_id}")
        return error_response(ServerError())

    return result.model_dump(exclude_none=True)


@app.post("/api/register/validate", response_model=FieldErrorsResponse)
async def validate_registration(request: Request):
    """
    Validate every field and report all errors at once.

    Nothing is stored and the rate limiter is not consulted.
    """
    try:
        form = await read_form(request)
    except ClientError as e:
        return error_response(e)

    errors = collect_field_errors(form)
    return FieldErrorsResponse(valid=not errors, errors=errors)


@app.get("/api/register/rules")
async def list_rules():
    """
    Publish the field rule table.

    Presentation layers mirror these constraints instead of duplicating them.
    """
    return {
        "fields": [rule.describe() for rule in FIELD_RULES],
        "service_options": list(SERVICE_OPTIONS_ORDER),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "intake_gateway.api:app",
        host=settings.api_host,
        port=settings.api_port,
    )
