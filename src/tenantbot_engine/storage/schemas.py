"""Pydantic schemas for the storage dashboard."""

from pydantic import BaseModel


class StorageReport(BaseModel):
    client_id: str
    used_mb: float
    limit_mb: float
    remaining_mb: float
    used_percent: float
    status: str
    history_paused: bool
    message_count: int
