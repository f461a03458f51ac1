"""Pydantic schemas for history endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    id: str
    client_id: str
    role: str
    content: str
    size: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClearHistoryRequest(BaseModel):
    mode: Literal["all", "older_than_days"]
    days: int = Field(default=0, ge=0)


class ClearHistoryResponse(BaseModel):
    success: bool = True
    deleted: int
