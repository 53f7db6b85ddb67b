"""Schemas for admin user management."""

from pydantic import BaseModel, Field

from cragdesk.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from cragdesk.schemas.auth import UserOut


class UserCreateRequest(BaseModel):
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    full_name: str | None = Field(default=None, max_length=255)
    is_global_admin: bool = False


class UserUpdateRequest(BaseModel):
    """Partial update. is_global_admin and password are honoured for admins only."""

    full_name: str | None = Field(default=None, max_length=255)
    is_global_admin: bool | None = None
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UsersListResponse(BaseModel):
    users: list[UserOut]
