#!/usr/bin/env python3
"""
Error handlers for the web application.

Every error body has the shape ``{"ok": false, "error": <code>}``:

    InvalidBody          400  malformed, missing or inconsistent request fields
    UnauthorizedChannel  401  auth token rejected
    MethodNotAllowed     405  anything but POST on a push route
    RateLimited          429  slowapi limit exceeded
    InternalError        500  store or transport failure
"""

import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from push.exceptions import PushError, UnauthorizedChannelError

logger = logging.getLogger(__name__)

INVALID_BODY = "InvalidBody"
UNAUTHORIZED_CHANNEL = "UnauthorizedChannel"
METHOD_NOT_ALLOWED = "MethodNotAllowed"
RATE_LIMITED = "RateLimited"
INTERNAL_ERROR = "InternalError"

_HTTP_ERROR_CODES = {
    404: "NotFound",
    405: METHOD_NOT_ALLOWED,
}


def error_response(status_code: int, error: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": error},
        headers=headers
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Map request body validation failures to 400 InvalidBody.

    The details are logged, not returned.
    """
    logger.info(f"Invalid body for {request.url.path}: {len(exc.errors())} error(s)")
    return error_response(400, INVALID_BODY)


async def push_exception_handler(
    request: Request,
    exc: PushError
) -> JSONResponse:
    """
    Handle push pipeline exceptions.

    Args:
        request: The FastAPI request.
        exc: The push exception.

    Returns:
        JSONResponse with error code.
    """
    if isinstance(exc, UnauthorizedChannelError):
        return error_response(401, UNAUTHORIZED_CHANNEL)

    logger.error(f"Push error in {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, INTERNAL_ERROR)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle routing HTTP exceptions (404, 405) with the push error format.
    """
    error = _HTTP_ERROR_CODES.get(exc.status_code, str(exc.detail))
    return error_response(exc.status_code, error, headers=getattr(exc, "headers", None))


async def rate_limit_exception_handler(
    request: Request,
    exc: RateLimitExceeded
) -> JSONResponse:
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    return error_response(429, RATE_LIMITED)


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions (store unreachable, transport misconfigured).
    """
    logger.exception(f"Unexpected error in {request.url.path}")
    return error_response(500, INTERNAL_ERROR)
