"""
Exception handlers.

Domain errors become ``{"detail": ..., "error": <kind>}`` responses with the
status code carried by the exception, so a client can tell a full ride
(``capacity_exceeded``) from a forbidden action (``unauthorized``).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from unipool.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    RateLimitExceeded: _rate_limit_exceeded_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
