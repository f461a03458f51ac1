"""Reply resolution: answer a chat message and meter its history.

One request runs a linear pipeline:

    validate input → load tenant → normalize/split/match → pick reply
    → read usage → quota gate → persist (if admitted) → respond

Usage is read and the exchange is written without an atomic guard, so
concurrent requests for the same tenant can each see usage just under the
limit and all write. The overshoot is bounded by one exchange per concurrent
request. Setting ``serialize_tenant_writes`` wraps the read-then-write in a
per-tenant ``asyncio.Lock`` to close that gap within one process; requests
for different tenants never share a lock. Locks exist only for known tenants
and only while a request holds or waits on them.

Nothing escapes ``resolve_reply``: storage failures become the generic
server-error reply.
"""

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager, nullcontext
from dataclasses import asdict, dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tenantbot_engine.common.config import TenantbotSettings
from tenantbot_engine.common.database import DatabaseManager
from tenantbot_engine.matching.matcher import select_reply
from tenantbot_engine.messages.models import ROLE_BOT, ROLE_USER
from tenantbot_engine.messages.service import MessageService
from tenantbot_engine.storage.quota import (
    admit_history_write,
    bytes_to_mb,
    is_storage_full,
    round_mb,
    utf8_size,
)
from tenantbot_engine.storage.service import UsageService
from tenantbot_engine.tenants.models import TenantModel
from tenantbot_engine.tenants.service import TenantService

logger = logging.getLogger(__name__)

MISSING_CLIENT_ID_REPLY = "Client ID missing"
EMPTY_MESSAGE_REPLY = "No message received"
CLIENT_NOT_FOUND_REPLY = "Client not found"
SERVER_ERROR_REPLY = "Server error. Please try again."

CODE_REPLIED = "REPLIED"
CODE_MISSING_CLIENT_ID = "MISSING_CLIENT_ID"
CODE_EMPTY_MESSAGE = "EMPTY_MESSAGE"
CODE_CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
CODE_SERVER_ERROR = "SERVER_ERROR"


@dataclass
class ReplyResult:
    """Conversational reply plus storage metadata.

    Benign replies (missing input, unknown client, server error) carry only
    ``reply`` and ``code``; the storage fields stay None.
    """
    reply: str
    code: str = CODE_REPLIED
    history_saved: Optional[bool] = None
    storage_used_mb: Optional[float] = None
    storage_limit_mb: Optional[float] = None
    storage_full: Optional[bool] = None

    @property
    def has_metadata(self) -> bool:
        return self.history_saved is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ReplyEngine:
    """Answers chat messages from tenant knowledge under a storage quota."""

    def __init__(
        self,
        settings: TenantbotSettings,
        db: DatabaseManager,
        tenants: TenantService,
        messages: MessageService,
        usage: UsageService,
    ):
        self.settings = settings
        self.db = db
        self.tenants = tenants
        self.messages = messages
        self.usage = usage
        self._stop_words = settings.stop_word_set
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    async def resolve_reply(self, client_id: str | None, message: str | None) -> ReplyResult:
        if not client_id:
            return ReplyResult(MISSING_CLIENT_ID_REPLY, code=CODE_MISSING_CLIENT_ID)
        if not message or not message.strip():
            return ReplyResult(EMPTY_MESSAGE_REPLY, code=CODE_EMPTY_MESSAGE)

        try:
            async with self.db.get_session() as session:
                tenant = await self.tenants.get_by_id(session, client_id)
            if tenant is None:
                return ReplyResult(CLIENT_NOT_FOUND_REPLY, code=CODE_CLIENT_NOT_FOUND)

            # the lock covers the commit, so the next waiter reads settled usage
            async with self._tenant_guard(client_id):
                async with self.db.get_session() as session:
                    return await self._resolve(session, tenant, message)
        except Exception:
            logger.exception(
                "Reply resolution failed", extra={"client_id": client_id}
            )
            return ReplyResult(SERVER_ERROR_REPLY, code=CODE_SERVER_ERROR)

    def answer(self, knowledge_text: str, fallback: str, message: str) -> str:
        """Pick the reply text for a message. Pure; no storage access."""
        return select_reply(message, knowledge_text, fallback, self._stop_words)

    # ── Internals ──

    def _tenant_guard(self, client_id: str):
        if self.settings.serialize_tenant_writes:
            return self._hold_tenant_lock(client_id)
        return nullcontext()

    @asynccontextmanager
    async def _hold_tenant_lock(self, client_id: str):
        lock = self._locks.get(client_id)
        if lock is None:
            lock = self._locks[client_id] = asyncio.Lock()
        self._lock_users[client_id] += 1
        try:
            async with lock:
                yield lock
        finally:
            self._lock_users[client_id] -= 1
            if not self._lock_users[client_id]:
                del self._lock_users[client_id]
                del self._locks[client_id]

    async def _resolve(self, session: AsyncSession, tenant: TenantModel, message: str) -> ReplyResult:
        client_id = tenant.client_id
        reply = self.answer(tenant.knowledge_text or "", tenant.fallback_text, message)

        turns = [(ROLE_BOT, reply)]
        if self.settings.persist_user_messages:
            turns.insert(0, (ROLE_USER, message))
        incoming_bytes = sum(utf8_size(content) for _, content in turns)

        snapshot = await self.usage.get_usage(session, client_id, tenant=tenant)
        decision = admit_history_write(
            snapshot.used_bytes, incoming_bytes, tenant.storage_limit_mb
        )

        used_bytes = snapshot.used_bytes
        if decision.admitted:
            for role, content in turns:
                await self.messages.append_message(
                    session, client_id, role, content,
                    retention_days=tenant.retention_days,
                )
            used_bytes += incoming_bytes
        else:
            logger.info(
                "History paused at %.2f MB of %s MB",
                bytes_to_mb(snapshot.used_bytes), tenant.storage_limit_mb,
                extra={"client_id": client_id},
            )

        return ReplyResult(
            reply=reply,
            code=CODE_REPLIED,
            history_saved=decision.admitted,
            storage_used_mb=round_mb(bytes_to_mb(used_bytes)),
            storage_limit_mb=tenant.storage_limit_mb,
            storage_full=is_storage_full(used_bytes, tenant.storage_limit_mb),
        )
