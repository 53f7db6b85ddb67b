"""Health check payload."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = "ok"
    environment: Literal["dev", "prod"]
    version: str
    database: Literal["connected", "disconnected"]
    recovery_enabled: bool = Field(description="Whether POST /auth/recovery accepts requests")
