"""Tenant CRUD service with quota-gated profile edits."""

import hashlib
import hmac
import logging
import secrets
from typing import Any
from urllib.parse import quote

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantbot_engine.common.config import TenantbotSettings
from tenantbot_engine.common.exceptions import StorageLimitExceededError, TenantNotFoundError
from tenantbot_engine.messages.service import MessageService
from tenantbot_engine.storage.quota import bytes_to_mb, profile_update_exceeds, utf8_size
from tenantbot_engine.tenants.models import TenantModel

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "knowledge_text",
    "fallback_text",
    "storage_limit_mb",
    "retention_days",
    "bot_name",
    "avatar",
    "domain",
    "api_key",
)

_WIDGET_TEMPLATE = """
<script>
(function () {{
  try {{
    var allowedDomain = "{domain}";
    if (allowedDomain) {{
      if (
        location.hostname !== allowedDomain &&
        !location.hostname.endsWith("." + allowedDomain)
      ) {{
        return;
      }}
    }}

    if (document.getElementById("tenantbot-iframe")) return;

    var iframe = document.createElement("iframe");
    iframe.id = "tenantbot-iframe";
    iframe.src = "{base_url}/widget-ui.html?clientId={client_id}";
    iframe.style.position = "fixed";
    iframe.style.bottom = "20px";
    iframe.style.right = "20px";
    iframe.style.width = "360px";
    iframe.style.height = "520px";
    iframe.style.border = "none";
    iframe.style.borderRadius = "12px";
    iframe.style.zIndex = "999999";

    document.body.appendChild(iframe);
  }} catch (e) {{
    console.error("Chatbot widget error", e);
  }}
}})();
</script>
"""


def _hash_client_token(raw_token: str) -> str:
    """SHA-256 hash of a raw client token for storage."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


def _new_client_token() -> str:
    return f"tbc_{secrets.token_urlsafe(32)}"


def render_widget_code(client_id: str, domain: str, base_url: str) -> str:
    """Embed snippet that mounts the chat iframe on the tenant's allowed domain."""
    return _WIDGET_TEMPLATE.format(
        domain=domain.replace('"', ""),
        base_url=base_url.rstrip("/"),
        client_id=quote(client_id, safe=""),
    )


class TenantService:
    """Tenant management operations."""

    def __init__(self, settings: TenantbotSettings, messages: MessageService | None = None):
        self.settings = settings
        self.messages = messages or MessageService()

    async def create_tenant(
        self,
        session: AsyncSession,
        name: str = "New Client",
        **fields: Any,
    ) -> tuple[TenantModel, str]:
        """Create a tenant and issue its client token. Returns (model, raw_token).

        The initial profile is held to the same storage limit as later edits.
        """
        raw_token = _new_client_token()
        tenant = TenantModel(
            name=name,
            knowledge_text=fields.get("knowledge_text") or "",
            fallback_text=fields.get("fallback_text") or self.settings.default_fallback,
            storage_limit_mb=fields.get("storage_limit_mb") or self.settings.default_storage_limit_mb,
            retention_days=(
                fields["retention_days"]
                if fields.get("retention_days") is not None
                else self.settings.default_retention_days
            ),
            bot_name=fields.get("bot_name") or self.settings.default_bot_name,
            avatar=fields.get("avatar") or "",
            domain=fields.get("domain") or "",
            client_token_hash=_hash_client_token(raw_token),
        )
        self._enforce_limit(name, self._profile_bytes(tenant), tenant.storage_limit_mb)
        session.add(tenant)
        await session.flush()
        logger.info("Created client %s", tenant.client_id)
        return tenant, raw_token

    async def get_by_id(
        self, session: AsyncSession, client_id: str
    ) -> TenantModel | None:
        return await session.get(TenantModel, client_id)

    async def get_or_raise(self, session: AsyncSession, client_id: str) -> TenantModel:
        tenant = await self.get_by_id(session, client_id)
        if tenant is None:
            raise TenantNotFoundError()
        return tenant

    async def resolve_by_client_token(
        self, session: AsyncSession, client_id: str, raw_token: str
    ) -> TenantModel | None:
        """Return the tenant only if raw_token is its current client token."""
        tenant = await self.get_by_id(session, client_id)
        if tenant is None or not tenant.client_token_hash:
            return None
        if not hmac.compare_digest(tenant.client_token_hash, _hash_client_token(raw_token)):
            return None
        return tenant

    async def rotate_client_token(self, session: AsyncSession, client_id: str) -> str:
        """Issue a new client token, invalidating the old one."""
        tenant = await self.get_or_raise(session, client_id)
        raw_token = _new_client_token()
        await self._apply(session, tenant, {"client_token_hash": _hash_client_token(raw_token)})
        logger.info("Rotated client token for %s", client_id)
        return raw_token

    async def list_tenants(self, session: AsyncSession) -> list[TenantModel]:
        result = await session.execute(select(TenantModel).order_by(TenantModel.created_at))
        return list(result.scalars().all())

    async def update_tenant(
        self, session: AsyncSession, client_id: str, **updates: Any
    ) -> TenantModel | None:
        """
        Apply admin edits to a tenant profile.

        Edits to quota-counted fields are rejected with
        StorageLimitExceededError when they grow total usage past the
        (possibly also edited) storage limit. Edits that shrink usage always
        pass, so an over-limit tenant can be trimmed back under it.
        """
        tenant = await self.get_by_id(session, client_id)
        if tenant is None:
            return None

        changes = {
            field: updates[field]
            for field in UPDATABLE_FIELDS
            if field in updates and updates[field] is not None
        }
        await self._check_profile_quota(session, tenant, changes)
        await self._apply(session, tenant, changes)
        return tenant

    async def refresh_widget_code(
        self, session: AsyncSession, client_id: str
    ) -> TenantModel | None:
        """Regenerate and store the embed snippet, subject to the profile quota."""
        tenant = await self.get_by_id(session, client_id)
        if tenant is None:
            return None

        code = render_widget_code(tenant.client_id, tenant.domain, self.settings.widget_base_url)
        changes = {"widget_code": code}
        await self._check_profile_quota(session, tenant, changes)
        await self._apply(session, tenant, changes)
        return tenant

    async def delete_tenant(
        self, session: AsyncSession, client_id: str
    ) -> bool:
        """Delete a tenant; its message history goes with it via ON DELETE CASCADE."""
        tenant = await self.get_by_id(session, client_id)
        if tenant is None:
            return False
        await session.delete(tenant)
        await session.flush()
        logger.info("Deleted client %s", client_id)
        return True

    # ── Internals ──

    def _profile_bytes(self, tenant: TenantModel, changes: dict[str, Any] | None = None) -> int:
        changes = changes or {}
        return sum(
            utf8_size(changes[field] if field in changes else getattr(tenant, field, None))
            for field in self.settings.quota_fields
        )

    async def _check_profile_quota(
        self, session: AsyncSession, tenant: TenantModel, changes: dict[str, Any]
    ) -> None:
        if not any(field in self.settings.quota_fields for field in changes):
            return

        message_bytes, _ = await self.messages.sum_sizes(session, tenant.client_id)
        current = message_bytes + self._profile_bytes(tenant)
        prospective = message_bytes + self._profile_bytes(tenant, changes)
        if prospective <= current:
            return
        limit_mb = changes.get("storage_limit_mb", tenant.storage_limit_mb)
        self._enforce_limit(tenant.client_id, prospective, limit_mb)

    def _enforce_limit(self, label: str, prospective: int, limit_mb: float) -> None:
        if profile_update_exceeds(prospective, limit_mb):
            logger.info(
                "Rejected profile write for client %s: %d bytes against a %s MB limit",
                label, prospective, limit_mb,
            )
            raise StorageLimitExceededError(
                f"Update would use {bytes_to_mb(prospective):.2f} MB "
                f"of a {limit_mb} MB storage limit"
            )

    async def _apply(
        self, session: AsyncSession, tenant: TenantModel, changes: dict[str, Any]
    ) -> None:
        for field, value in changes.items():
            setattr(tenant, field, value)
        await session.flush()
