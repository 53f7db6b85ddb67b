"""User administration: list/create/delete for admins, profile edits for owners."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cragdesk.api.v1.auth import get_auth, get_current_user, require_admin
from cragdesk.core.database import get_db
from cragdesk.core.errors import Forbidden, NotFound
from cragdesk.schemas.auth import Claims, UserEnvelope, UserOut
from cragdesk.schemas.users import UserCreateRequest, UsersListResponse, UserUpdateRequest
from cragdesk.services import AuthComponents

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[Claims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UsersListResponse:
    """List all users (admin only)."""
    return UsersListResponse(users=[UserOut.model_validate(u) for u in auth.users.list(db)])


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreateRequest,
    admin: Annotated[Claims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """Create a user (admin only). 409 if the username exists."""
    user = auth.users.create(
        db,
        body.username,
        body.password,
        full_name=body.full_name,
        is_global_admin=body.is_global_admin,
    )
    logger.info("User %s created by %s (admin=%s)", user.username, admin.username, user.is_global_admin)
    return UserEnvelope(user=UserOut.model_validate(user))


@router.patch("/{username}", response_model=UserEnvelope)
def update_user(
    username: str,
    body: UserUpdateRequest,
    current_user: Annotated[Claims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """
    Update a profile. Users may edit their own full_name; admins may edit anyone,
    toggle is_global_admin, and set a new password (which signs that user out everywhere).
    """
    target = auth.users.get_by_username(db, username)
    if target is None:
        raise NotFound("User not found")
    if target.id != current_user.user_id and not current_user.is_global_admin:
        raise Forbidden()
    if not current_user.is_global_admin and (body.is_global_admin is not None or body.password is not None):
        raise Forbidden("Only admins can change admin status or set passwords")

    auth.users.update(db, target, full_name=body.full_name, is_global_admin=body.is_global_admin)
    if body.password is not None:
        auth.users.set_password(db, target, body.password)
        auth.refresh_tokens.revoke_all_for_user(db, target.id)
    logger.info("User %s updated by %s", target.username, current_user.username)
    return UserEnvelope(user=UserOut.model_validate(target))


@router.delete("/{username}", response_model=UserEnvelope)
def delete_user(
    username: str,
    admin: Annotated[Claims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """Delete a user and all of their sessions (admin only)."""
    target = auth.users.get_by_username(db, username)
    if target is None:
        raise NotFound("User not found")
    removed = UserOut.model_validate(target)
    auth.users.delete(db, target)
    logger.info("User %s deleted by %s", removed.username, admin.username)
    return UserEnvelope(user=removed)
