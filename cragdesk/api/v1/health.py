"""Health check endpoint with a database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from cragdesk.api.v1.auth import get_auth
from cragdesk.core.database import check_db_connected, get_db
from cragdesk.schemas.health import HealthResponse
from cragdesk.services import AuthComponents

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> HealthResponse:
    """Service status for load balancers. No auth required; degraded when the database is unreachable."""
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=auth.settings.APP_ENV,
        version=request.app.version,
        database="connected" if connected else "disconnected",
        recovery_enabled=auth.recovery.enabled,
    )
