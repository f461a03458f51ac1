"""Dependency injection singletons for Tenantbot-Engine."""

from tenantbot_engine.chat.service import ReplyEngine
from tenantbot_engine.common.config import get_settings
from tenantbot_engine.common.database import DatabaseManager
from tenantbot_engine.messages.service import MessageService
from tenantbot_engine.storage.service import UsageService
from tenantbot_engine.tenants.service import TenantService

_db: DatabaseManager | None = None
_messages: MessageService | None = None
_tenants: TenantService | None = None
_usage: UsageService | None = None
_engine: ReplyEngine | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_message_service() -> MessageService:
    global _messages
    if _messages is None:
        _messages = MessageService()
    return _messages


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService(get_settings(), get_message_service())
    return _tenants


def get_usage_service() -> UsageService:
    global _usage
    if _usage is None:
        _usage = UsageService(
            get_settings(), get_tenant_service(), get_message_service(),
        )
    return _usage


def get_reply_engine() -> ReplyEngine:
    global _engine
    if _engine is None:
        _engine = ReplyEngine(
            get_settings(),
            get_db(),
            get_tenant_service(),
            get_message_service(),
            get_usage_service(),
        )
    return _engine


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _messages, _tenants, _usage, _engine
    _db = None
    _messages = None
    _tenants = None
    _usage = None
    _engine = None
