"""Message store: append, aggregate and prune conversation history."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantbot_engine.common.exceptions import InvalidHistoryModeError
from tenantbot_engine.common.models import utcnow
from tenantbot_engine.messages.models import ROLES, MessageModel
from tenantbot_engine.storage.quota import utf8_size

CLEAR_ALL = "all"
CLEAR_OLDER_THAN_DAYS = "older_than_days"


class MessageService:
    """Conversation history operations."""

    async def append_message(
        self,
        session: AsyncSession,
        client_id: str,
        role: str,
        content: str,
        retention_days: int | None = None,
        now: datetime | None = None,
    ) -> MessageModel:
        """Persist one turn. Size is the UTF-8 byte length of the content."""
        if role not in ROLES:
            raise ValueError(f"role must be one of {ROLES}, got {role!r}")
        created_at = now or utcnow()
        expires_at = None
        if retention_days:
            expires_at = created_at + timedelta(days=retention_days)

        message = MessageModel(
            client_id=client_id,
            role=role,
            content=content,
            size=utf8_size(content),
            created_at=created_at,
            expires_at=expires_at,
        )
        session.add(message)
        await session.flush()
        return message

    async def sum_sizes(self, session: AsyncSession, client_id: str) -> tuple[int, int]:
        """Return (total bytes, message count) for a tenant."""
        result = await session.execute(
            select(
                func.coalesce(func.sum(MessageModel.size), 0),
                func.count(MessageModel.id),
            ).where(MessageModel.client_id == client_id)
        )
        total, count = result.one()
        return int(total or 0), int(count or 0)

    async def list_recent(
        self, session: AsyncSession, client_id: str, limit: int = 200
    ) -> list[MessageModel]:
        result = await session.execute(
            select(MessageModel)
            .where(MessageModel.client_id == client_id)
            .order_by(MessageModel.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def clear_history(
        self,
        session: AsyncSession,
        client_id: str,
        mode: str,
        days: int = 0,
        now: datetime | None = None,
    ) -> int:
        """Bulk-delete a tenant's history. Returns the number of rows removed."""
        stmt = delete(MessageModel).where(MessageModel.client_id == client_id)
        if mode == CLEAR_OLDER_THAN_DAYS:
            cutoff = (now or utcnow()) - timedelta(days=days)
            stmt = stmt.where(MessageModel.created_at < cutoff)
        elif mode != CLEAR_ALL:
            raise InvalidHistoryModeError(f"Unknown history clear mode: {mode!r}")

        result = await session.execute(stmt)
        return result.rowcount or 0

    async def purge_expired(
        self, session: AsyncSession, now: datetime | None = None
    ) -> int:
        """Retention sweep across all tenants."""
        cutoff = now or datetime.now(timezone.utc)
        result = await session.execute(
            delete(MessageModel).where(
                MessageModel.expires_at.is_not(None),
                MessageModel.expires_at < cutoff,
            )
        )
        return result.rowcount or 0
