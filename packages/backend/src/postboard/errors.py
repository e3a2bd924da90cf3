"""Failure kinds and the terminal error handlers.

Gates, populators and services raise the AppError subclasses below and
never build responses themselves. The handlers registered by
install_error_handlers() are the only place where a failure becomes an
HTTP response:

    {"error": "not_found", "message": "Post not found"}

Validation failures add a "details" list of {"field", "message"} pairs.
Anything that is not an AppError is reported as a bare 500; the
traceback goes to the log, never to the client.
"""

import uuid
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from postboard.middleware.security import security_headers

logger = structlog.get_logger()


class AppError(Exception):
    """Base class for failures with a defined HTTP contract."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[list[dict]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Unauthorized(AppError):
    """Missing, malformed, invalid or expired credentials."""

    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ValidationError(AppError):
    """Request data violates a schema or store constraint."""

    status_code = 422
    code = "validation_error"
    default_message = "Validation failed"


class InternalError(AppError):
    """Unexpected store or runtime failure."""


_HTTP_CODES = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request.internal_error",
            path=request.url.path,
            method=request.method,
            error=exc.message,
        )
    else:
        logger.info(
            "request.rejected",
            path=request.url.path,
            method=request.method,
            error=exc.code,
            status=exc.status_code,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report pydantic request validation failures as ValidationError.

    A guarded route answers 401 before 422: a caller without a valid
    token learns nothing about the body.
    """
    from postboard.auth.gates import check_bearer

    try:
        check_bearer(request)
    except Unauthorized as e:
        return await app_error_handler(request, e)

    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return await app_error_handler(request, ValidationError(details=details))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Give framework-level errors (unknown route, bad method) the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": _HTTP_CODES.get(exc.status_code, "http_error"),
            "message": str(exc.detail),
        },
        headers=getattr(exc, "headers", None),
    )


def _outer_headers(request: Request) -> dict[str, str]:
    """Headers the middleware stack would have added.

    Unexpected exceptions are answered by Starlette's ServerErrorMiddleware,
    outside the request-id and security-header middleware.
    """
    request_id = (
        getattr(request.state, "request_id", None)
        or request.headers.get("X-Request-ID")
        or str(uuid.uuid4())
    )
    return {**security_headers(request), "X-Request-ID": request_id}


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request.unhandled_error",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content=InternalError().to_dict(),
        headers=_outer_headers(request),
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the terminal error handlers on an app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
