"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cragdesk.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)


class Claims(BaseModel):
    """Identity carried by an access token (and injected into routes)."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    is_global_admin: bool = False

    @classmethod
    def from_user(cls, user) -> "Claims":
        return cls(
            user_id=user.id,
            username=user.username,
            is_global_admin=bool(user.is_global_admin),
        )


class RegisterRequest(BaseModel):
    """Self-service account creation."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    full_name: str | None = Field(default=None, max_length=255)
    device_info: str | None = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Credentials for login. No minimum password length: legacy accounts may predate it."""

    username: str = Field(..., min_length=1, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    device_info: str | None = Field(default=None, max_length=255)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class RecoveryRequest(BaseModel):
    """
    Operator recovery of the admin account.

    recovery_token and new_password are optional here so the service can
    report a disabled endpoint (503) before judging their contents.
    """

    admin_username: str = Field(..., max_length=USERNAME_MAX_LEN)
    recovery_token: str | None = None
    new_password: str | None = Field(default=None, max_length=PASSWORD_MAX_LEN)


class RecoveryResponse(BaseModel):
    success: bool = True
    message: str


class UserOut(BaseModel):
    """Sanitized user: never includes password_hash or password_salt."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str | None = None
    is_global_admin: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserEnvelope(BaseModel):
    user: UserOut


class OkResponse(BaseModel):
    ok: bool = True
