"""ASGI application for the user and token API.

``create_app()`` wires logging, middleware, the error envelope, and the v1
routes. Every error leaves as ``{"error": {code, message, details}}``.

Observability lives here, not in the core: credential failures are logged
with their internal reason, store failures as warnings, anything unhandled
with a stack trace.
"""

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from userauth.api.v1.router import router as v1_router
from userauth.core.config import settings
from userauth.core.errors import (
    APIError,
    CredentialError,
    InputError,
    InternalError,
    PersistenceError,
)
from userauth.core.logging import configure_logging
from userauth.core.responses import ErrorDetail, ErrorResponse

logger = structlog.get_logger()

_API_PREFIX = "/api/v1"

_ALWAYS_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}
# Responses under /api/ may carry plaintext tokens.
_API_HEADERS = {"Cache-Control": "no-store, max-age=0"}
_PRODUCTION_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}

_CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
_CORS_HEADERS = ["Accept", "Authorization", "Content-Type", "X-CSRF-Token"]
_CORS_EXPOSE = ["Link"]
_CORS_MAX_AGE = 300


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp hardening headers onto every response.

    No-store caching applies to API paths; HSTS is sent only in production,
    where TLS terminates at the proxy.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        extra = dict(_ALWAYS_HEADERS)
        if request.url.path.startswith("/api/"):
            extra.update(_API_HEADERS)
        if settings.environment == "production":
            extra.update(_PRODUCTION_HEADERS)
        response.headers.update(extra)

        return response


def _error_response(
    status_code: int,
    detail: ErrorDetail,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(),
        headers=headers,
    )


def _log_api_error(request: Request, exc: APIError) -> None:
    """Record an API error at a level matching its family."""
    path = request.url.path
    if isinstance(exc, CredentialError | InputError):
        logger.info("Authentication rejected", reason=exc.reason, path=path)
    elif isinstance(exc, PersistenceError):
        logger.warning(
            "Credential store failure",
            code=exc.code,
            cause=repr(exc.__cause__),
            path=path,
        )
    elif exc.status_code >= 500:
        logger.error(
            "Server-side API error",
            code=exc.code,
            cause=repr(exc.__cause__),
            path=path,
        )


def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError; 401s carry a Bearer challenge."""
    _log_api_error(request, exc)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error_response(
        exc.status_code,
        ErrorDetail(code=exc.code, message=exc.message, details=exc.details),
        headers,
    )


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render body/query validation failures (including bad JSON) as 400.

    Args:
        _request: The incoming request.
        exc: Validation error raised by FastAPI.

    Returns:
        VALIDATION_ERROR envelope with one entry per failing field.
    """
    fields = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return _error_response(
        400,
        ErrorDetail(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details=fields,
        ),
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log anything unhandled and answer a bare 500."""
    logger.exception("Unhandled exception", exc_info=exc, path=request.url.path)
    fallback = InternalError()
    return _error_response(
        fallback.status_code,
        ErrorDetail(code=fallback.code, message=fallback.message),
    )


def _add_middleware(app: FastAPI) -> None:
    # Starlette runs the last-added middleware first; CORS has to see
    # preflight requests before anything else.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=_CORS_METHODS,
        allow_headers=_CORS_HEADERS,
        expose_headers=_CORS_EXPOSE,
        max_age=_CORS_MAX_AGE,
    )


def _add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)


def create_app() -> FastAPI:
    """Build the application.

    Returns:
        FastAPI app with middleware, error handlers, v1 routes and /health.
    """
    configure_logging(settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="User Auth API",
        description="User management with opaque bearer tokens",
        version="1.0.0",
    )
    _add_middleware(app)
    _add_exception_handlers(app)
    app.include_router(v1_router, prefix=_API_PREFIX)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe; does not touch the database."""
        return {"status": "healthy"}

    return app


# uvicorn userauth.main:app --port 8081
app = create_app()
