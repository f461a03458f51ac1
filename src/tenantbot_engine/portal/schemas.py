"""Pydantic schemas for the client self-service endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class ClientOverview(BaseModel):
    client_id: str
    name: str
    used_mb: float
    limit_mb: float
    percent_used: float
    retention_days: int
    has_api_key: bool


class ClientSettingsUpdate(BaseModel):
    """The only profile fields a client may change for itself."""
    retention_days: Optional[int] = Field(default=None, ge=0)
    api_key: Optional[str] = None
