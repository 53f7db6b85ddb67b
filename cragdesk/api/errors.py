"""Translate auth errors and request validation failures into JSON responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cragdesk.core.errors import AuthError, MalformedRequest

logger = logging.getLogger(__name__)


def _error_response(error: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == 401 else None
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message},
        headers=headers,
    )


def _field_names(exc: RequestValidationError) -> list[str]:
    names: list[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        name = ".".join(loc) or "body"
        if name not in names:
            names.append(name)
    return names


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so no stack trace or internal detail crosses the API boundary."""

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        log_fn(
            "%s on %s %s: status=%s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.status_code,
        )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Only field locations are reported; input values (passwords) are never echoed.
        fields = _field_names(exc)
        logger.info("Malformed request on %s %s: fields=%s", request.method, request.url.path, fields)
        return _error_response(MalformedRequest(f"Malformed request: invalid or missing {', '.join(fields)}"))
