"""Pydantic schemas for client administration endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TenantCreate(BaseModel):
    name: str = Field(default="New Client", min_length=1, max_length=255)
    knowledge_text: str = ""
    fallback_text: Optional[str] = None
    storage_limit_mb: Optional[float] = Field(default=None, gt=0)
    retention_days: Optional[int] = Field(default=None, ge=0)
    bot_name: Optional[str] = None
    avatar: str = ""
    domain: str = ""


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    knowledge_text: Optional[str] = None
    fallback_text: Optional[str] = None
    storage_limit_mb: Optional[float] = Field(default=None, gt=0)
    retention_days: Optional[int] = Field(default=None, ge=0)
    bot_name: Optional[str] = None
    avatar: Optional[str] = None
    domain: Optional[str] = None
    api_key: Optional[str] = None


class TenantResponse(BaseModel):
    client_id: str
    name: str
    knowledge_text: str
    fallback_text: str
    storage_limit_mb: float
    retention_days: int
    bot_name: str
    avatar: str
    domain: str
    tokens: int
    has_api_key: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class TenantSummary(BaseModel):
    """Row of the client listing, with live storage figures."""
    client_id: str
    name: str
    domain: str
    storage_limit_mb: float
    storage_used_mb: float
    message_count: int
    tokens: int


class WidgetResponse(BaseModel):
    client_id: str
    widget_code: str


class TenantCreateResponse(TenantResponse):
    """Includes the raw client token — only returned once at creation time."""
    client_token: str


class ClientTokenResponse(BaseModel):
    client_id: str
    client_token: str
