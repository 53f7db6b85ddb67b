"""Pydantic request/response schemas."""

from cragdesk.schemas.auth import (
    ChangePasswordRequest,
    Claims,
    LoginRequest,
    OkResponse,
    RecoveryRequest,
    RecoveryResponse,
    RegisterRequest,
    UserEnvelope,
    UserOut,
)
from cragdesk.schemas.health import HealthResponse
from cragdesk.schemas.sessions import RevokeAllResponse, SessionItem, SessionsResponse
from cragdesk.schemas.users import UserCreateRequest, UsersListResponse, UserUpdateRequest

__all__ = [
    "ChangePasswordRequest",
    "Claims",
    "HealthResponse",
    "LoginRequest",
    "OkResponse",
    "RecoveryRequest",
    "RecoveryResponse",
    "RegisterRequest",
    "RevokeAllResponse",
    "SessionItem",
    "SessionsResponse",
    "UserCreateRequest",
    "UserEnvelope",
    "UserOut",
    "UserUpdateRequest",
    "UsersListResponse",
]
