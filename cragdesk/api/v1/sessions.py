"""Session enumeration and revocation for the caller (or any user, for admins)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from cragdesk.api.v1.auth import (
    clear_auth_cookies,
    get_auth,
    get_current_user,
    presented_refresh_secret,
)
from cragdesk.core.database import get_db
from cragdesk.schemas.auth import Claims, OkResponse
from cragdesk.schemas.sessions import RevokeAllResponse, SessionItem, SessionsResponse
from cragdesk.services import AuthComponents

router = APIRouter()


@router.get("", response_model=SessionsResponse)
def list_sessions(
    request: Request,
    current_user: Annotated[Claims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
    user_id: Annotated[int | None, Query(description="Another user's id (admin only)")] = None,
) -> SessionsResponse:
    """Active sessions, newest first. The session behind this browser's refresh cookie is flagged is_current."""
    views = auth.sessions.list(
        db,
        user_id if user_id is not None else current_user.user_id,
        current_user,
        current_secret=presented_refresh_secret(request, auth.settings),
    )
    return SessionsResponse(
        sessions=[
            SessionItem.model_validate(view.token).model_copy(update={"is_current": view.is_current})
            for view in views
        ]
    )


@router.delete("", response_model=RevokeAllResponse)
def revoke_all_sessions(
    response: Response,
    current_user: Annotated[Claims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> RevokeAllResponse:
    """Sign out everywhere: delete every session of the caller and clear this browser's cookies."""
    revoked = auth.sessions.revoke_all(db, current_user.user_id)
    clear_auth_cookies(response, auth.settings)
    return RevokeAllResponse(revoked=revoked)


@router.delete("/{session_id}", response_model=OkResponse)
def revoke_session(
    session_id: int,
    request: Request,
    response: Response,
    current_user: Annotated[Claims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> OkResponse:
    """
    Revoke one session (owner or admin). If it is the session behind this
    browser's refresh cookie, the cookies are cleared as well.
    """
    is_current = auth.sessions.revoke(
        db,
        session_id,
        current_user,
        current_secret=presented_refresh_secret(request, auth.settings),
    )
    if is_current:
        clear_auth_cookies(response, auth.settings)
    return OkResponse()
