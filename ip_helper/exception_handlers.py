from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ip_helper.errors import MissingIdentityContextError, TemplateFetchError
from ip_helper.logger import logger
from ip_helper.models.response_models import ErrorResponse


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    content: dict[str, Any] = ErrorResponse(code=code, message=message).model_dump()
    return JSONResponse(status_code=status_code, content=content)


async def missing_identity_exception_handler(request: Request, exc: MissingIdentityContextError) -> JSONResponse:
    """The caller's identity could not be resolved for a route that needs it."""
    client_host = request.client.host if request.client else None
    logger.error(
        "No caller identity attached to request "
        f"path={request.url.path} method={request.method} client={client_host} error={exc}"
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "missing_identity", str(exc))


async def template_fetch_exception_handler(request: Request, exc: TemplateFetchError) -> JSONResponse:
    """The HTML template could not be loaded.

    This is fatal: the error is recorded on the app and the server is asked to
    stop, rather than keep serving without a page. The triggering request still
    gets a 500.
    """
    logger.critical(f"HTML template unavailable path={request.url.path} method={request.method} error={exc}")
    request.app.state.fatal_error = exc
    on_fatal_error = request.app.state.on_fatal_error
    if on_fatal_error is not None:
        on_fatal_error()
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "template_unavailable",
        "The page template could not be loaded.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors to return a structured 500 response."""
    logger.exception(
        f"Unhandled exception while processing request: {repr(exc)} path={request.url.path} method={request.method}"
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred while processing the request.",
    )
