"""
Origin/Referer check for state-changing requests.

This is defense in depth, not a complete CSRF defense. Requests carrying
neither Origin nor Referer (curl, server-to-server, native API clients) are let
through on purpose. The primary protection is the SameSite attribute on the
auth cookies.
"""

import logging
from collections.abc import Iterable

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from cragdesk.core.config import normalize_origin
from cragdesk.core.errors import OriginRejected

logger = logging.getLogger(__name__)

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def is_request_origin_allowed(
    method: str,
    origin: str | None,
    referer: str | None,
    allowed_origins: Iterable[str],
) -> bool:
    """Decide whether a request passes the guard. Origin wins over Referer when both are sent."""
    if method.upper() not in UNSAFE_METHODS:
        return True
    source = (origin or "").strip() or (referer or "").strip()
    if not source:
        return True
    candidate = normalize_origin(source)
    if candidate is None:
        return False
    return candidate in set(allowed_origins)


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Reject unsafe-method requests whose Origin/Referer is not allow-listed (403)."""

    def __init__(self, app: ASGIApp, allowed_origins: Iterable[str]) -> None:
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")
        referer = request.headers.get("referer")
        if not is_request_origin_allowed(request.method, origin, referer, self.allowed_origins):
            logger.warning(
                "Rejected cross-origin %s %s from origin=%r referer=%r",
                request.method,
                request.url.path,
                origin,
                referer,
            )
            error = OriginRejected()
            return JSONResponse(status_code=error.status_code, content={"detail": error.message})
        return await call_next(request)
