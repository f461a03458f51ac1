"""Usage service: compute per-tenant storage consumption."""

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from tenantbot_engine.common.config import TenantbotSettings
from tenantbot_engine.messages.service import MessageService
from tenantbot_engine.storage.quota import (
    bytes_to_mb,
    is_storage_full,
    round_mb,
    storage_status,
    utf8_size,
)
from tenantbot_engine.tenants.models import TenantModel
from tenantbot_engine.tenants.service import TenantService


@dataclass(frozen=True)
class UsageSnapshot:
    """Storage consumed by one tenant at a point in time."""
    client_id: str
    message_bytes: int = 0
    profile_bytes: int = 0
    message_count: int = 0

    @property
    def used_bytes(self) -> int:
        return self.message_bytes + self.profile_bytes

    @property
    def used_mb(self) -> float:
        return bytes_to_mb(self.used_bytes)

    @property
    def used_mb_display(self) -> float:
        return round_mb(self.used_mb)


def profile_size(tenant: TenantModel, fields: Iterable[str]) -> int:
    """UTF-8 size of the quota-counted profile fields of a tenant."""
    return sum(utf8_size(getattr(tenant, field, "") or "") for field in fields)


class UsageService:
    """Storage accounting over message history and tenant profile fields."""

    def __init__(
        self,
        settings: TenantbotSettings,
        tenants: TenantService,
        messages: MessageService,
    ):
        self.settings = settings
        self.tenants = tenants
        self.messages = messages

    @property
    def quota_fields(self) -> list[str]:
        return self.settings.quota_fields

    async def get_usage(
        self,
        session: AsyncSession,
        client_id: str,
        tenant: TenantModel | None = None,
    ) -> UsageSnapshot:
        """Return current usage. An unknown tenant reports zero usage."""
        if tenant is None:
            tenant = await self.tenants.get_by_id(session, client_id)
        if tenant is None:
            return UsageSnapshot(client_id=client_id)

        message_bytes, message_count = await self.messages.sum_sizes(session, client_id)
        return UsageSnapshot(
            client_id=client_id,
            message_bytes=message_bytes,
            profile_bytes=profile_size(tenant, self.quota_fields),
            message_count=message_count,
        )

    async def get_storage_report(
        self, session: AsyncSession, client_id: str
    ) -> dict | None:
        """Dashboard view of a tenant's storage. None if the tenant is unknown."""
        tenant = await self.tenants.get_by_id(session, client_id)
        if tenant is None:
            return None

        usage = await self.get_usage(session, client_id, tenant=tenant)
        limit_mb = tenant.storage_limit_mb
        used_percent = round(usage.used_mb / limit_mb * 100, 1)

        return {
            "client_id": client_id,
            "used_mb": usage.used_mb_display,
            "limit_mb": limit_mb,
            "remaining_mb": round_mb(max(0.0, limit_mb - usage.used_mb)),
            "used_percent": used_percent,
            "status": storage_status(used_percent),
            "history_paused": is_storage_full(usage.used_bytes, limit_mb),
            "message_count": usage.message_count,
        }
