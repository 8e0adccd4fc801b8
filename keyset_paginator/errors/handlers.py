"""Exception handlers mapping paginator errors to Problem Details responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse

from .problem_details import (
    PaginatorError,
    create_problem_response
)

logger = logging.getLogger(__name__)


async def paginator_exception_handler(
    request: Request,
    exc: PaginatorError
) -> JSONResponse:
    """Handle PaginatorError instances.

    Client errors (bad cursors, unknown sorts) are returned as-is. Server
    errors are logged with their diagnostics and replaced with a generic
    internal error, so sort configuration and row data never reach clients.
    """
    if exc.status >= 500:
        logger.error(
            f"Paginator server error: {type(exc).__name__} - {exc.detail}",
            extra={
                "path": str(request.url.path),
                "method": request.method,
                "info": exc.info
            },
            exc_info=exc
        )
        return create_problem_response(
            status=exc.status,
            title=exc.title,
            detail="An unexpected error occurred",
            request=request
        )

    logger.info(
        f"Paginator client error: {exc.status} - {exc.title}",
        extra={
            "status_code": exc.status,
            "path": str(request.url.path),
            "method": request.method,
            "detail": exc.detail
        }
    )
    return exc.to_response(request)


def register_exception_handlers(app):
    """Register the paginator exception handler with a FastAPI app."""
    app.add_exception_handler(PaginatorError, paginator_exception_handler)
