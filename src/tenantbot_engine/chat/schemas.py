"""Pydantic schemas for the chat endpoint."""

from typing import Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    client_id: Optional[str] = Field(default=None, alias="clientId")
    message: Optional[str] = None

    model_config = {"populate_by_name": True}


class ChatResponse(BaseModel):
    reply: str
    code: str
    history_saved: Optional[bool] = None
    storage_used_mb: Optional[float] = None
    storage_limit_mb: Optional[float] = None
    storage_full: Optional[bool] = None
