"""Schemas for session (refresh token) enumeration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SessionItem(BaseModel):
    """One login session. The selector and token hash are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    created_at: datetime
    expires_at: datetime
    device_info: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    last_used_at: datetime | None = None
    is_current: bool = False


class SessionsResponse(BaseModel):
    sessions: list[SessionItem]


class RevokeAllResponse(BaseModel):
    ok: bool = True
    revoked: int
