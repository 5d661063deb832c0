"""Global exception handlers: map SDK and route exceptions to HTTP status codes.

Routes raise ``NotFoundError`` for an unknown id and plain ``ValueError``
for other caller mistakes (bad filter combination, session misuse).  Rather
than catching these in every route, global handlers pick the status from
the exception type.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotFoundError(ValueError):
    """Raised by routes when the requested question, result or record does not exist."""


# Internal details stay in the server log; the client gets these.
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map ``NotFoundError`` to 404 and any other ``ValueError`` to 400.

    The raw message is logged but never sent to the client.
    """
    status = 404 if isinstance(exc, NotFoundError) else 400
    logger.warning("%s [%d] at %s: %s", type(exc).__name__, status, request.url, exc)
    return JSONResponse(
        status_code=status,
        content={"detail": _SAFE_MESSAGES[status]},
    )


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` from strict lookups to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": _SAFE_MESSAGES[404]})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
