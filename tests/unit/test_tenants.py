"""Tests for tenant service — CRUD, quota-gated profile edits, widget code."""

import pytest

from tenantbot_engine.common.config import TenantbotSettings
from tenantbot_engine.common.database import DatabaseManager
from tenantbot_engine.common.exceptions import StorageLimitExceededError, TenantNotFoundError
from tenantbot_engine.messages.service import MessageService
from tenantbot_engine.storage.quota import BYTES_PER_MB
from tenantbot_engine.tenants.service import TenantService, render_widget_code


def make_settings(**overrides) -> TenantbotSettings:
    defaults = {"db_url": "sqlite+aiosqlite://", "admin_token": "test-admin-token"}
    defaults.update(overrides)
    return TenantbotSettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def messages():
    return MessageService()


@pytest.fixture
def svc(messages):
    return TenantService(make_settings(widget_base_url="https://bot.example.com/"), messages)


class TestTenantCreate:
    async def test_defaults_from_settings(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="Acme")
            assert tenant.name == "Acme"
            assert tenant.client_id is not None
            assert tenant.fallback_text == "Sorry, I don't understand."
            assert tenant.storage_limit_mb == 1024.0
            assert tenant.retention_days == 30
            assert tenant.bot_name == "Chatbot"
            assert tenant.tokens == 0

    async def test_ids_are_unique(self, db, svc):
        async with db.get_session() as session:
            a, _ = await svc.create_tenant(session, name="A")
            b, _ = await svc.create_tenant(session, name="B")
            assert a.client_id != b.client_id

    async def test_custom_fields(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(
                session, name="Shop", knowledge_text="We sell hats.",
                fallback_text="Ask again", storage_limit_mb=5, retention_days=0,
            )
            assert tenant.knowledge_text == "We sell hats."
            assert tenant.fallback_text == "Ask again"
            assert tenant.storage_limit_mb == 5
            assert tenant.retention_days == 0

    async def test_initial_profile_over_limit_rejected(self, db, svc):
        with pytest.raises(StorageLimitExceededError):
            async with db.get_session() as session:
                await svc.create_tenant(
                    session, name="Big", knowledge_text="x" * 2_000_000, storage_limit_mb=1,
                )
        async with db.get_session() as session:
            assert await svc.list_tenants(session) == []

    async def test_initial_profile_landing_on_limit_allowed(self, db, svc):
        limit_bytes = 4096
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(
                session, name="Full", storage_limit_mb=limit_bytes / BYTES_PER_MB,
                knowledge_text="k" * (limit_bytes - len("Chatbot")),
            )
            assert tenant.client_id is not None


class TestTenantLookup:
    async def test_get_by_id(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="A")
        async with db.get_session() as session:
            found = await svc.get_by_id(session, tenant.client_id)
            assert found is not None
            assert found.name == "A"

    async def test_get_by_id_not_found(self, db, svc):
        async with db.get_session() as session:
            assert await svc.get_by_id(session, "nope") is None

    async def test_list_tenants(self, db, svc):
        async with db.get_session() as session:
            await svc.create_tenant(session, name="A")
            await svc.create_tenant(session, name="B")
        async with db.get_session() as session:
            tenants = await svc.list_tenants(session)
            assert len(tenants) == 2


class TestTenantUpdate:
    async def test_update_name(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="Old")
        async with db.get_session() as session:
            updated = await svc.update_tenant(session, tenant.client_id, name="New")
            assert updated.name == "New"

    async def test_update_not_found(self, db, svc):
        async with db.get_session() as session:
            assert await svc.update_tenant(session, "no-id", name="X") is None

    async def test_ignores_unknown_fields(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T")
        async with db.get_session() as session:
            updated = await svc.update_tenant(
                session, tenant.client_id, tokens=99, widget_code="<script/>",
            )
            assert updated.tokens == 0
            assert updated.widget_code == ""

    async def test_knowledge_within_limit(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T", storage_limit_mb=1)
        async with db.get_session() as session:
            updated = await svc.update_tenant(
                session, tenant.client_id, knowledge_text="x" * 1000,
            )
            assert len(updated.knowledge_text) == 1000

    async def test_knowledge_over_limit_rejected(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T", storage_limit_mb=0.001)
        with pytest.raises(StorageLimitExceededError):
            async with db.get_session() as session:
                await svc.update_tenant(
                    session, tenant.client_id, knowledge_text="x" * 2000,
                )
        async with db.get_session() as session:
            unchanged = await svc.get_by_id(session, tenant.client_id)
            assert unchanged.knowledge_text == ""

    async def test_history_counts_against_profile_edit(self, db, svc, messages):
        # 0.001 MB = 1048 bytes; bot name "Chatbot" = 7 bytes
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T", storage_limit_mb=0.001)
            await messages.append_message(session, tenant.client_id, "user", "y" * 1000)
        with pytest.raises(StorageLimitExceededError):
            async with db.get_session() as session:
                await svc.update_tenant(session, tenant.client_id, avatar="z" * 100)

    async def test_edit_landing_exactly_on_limit_allowed(self, db, svc):
        limit_bytes = 2048
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(
                session, name="T", storage_limit_mb=limit_bytes / BYTES_PER_MB,
            )
        async with db.get_session() as session:
            updated = await svc.update_tenant(
                session, tenant.client_id,
                knowledge_text="k" * (limit_bytes - len("Chatbot")),
            )
            assert updated is not None

    async def test_raising_limit_with_edit(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T", storage_limit_mb=0.001)
        async with db.get_session() as session:
            updated = await svc.update_tenant(
                session, tenant.client_id,
                knowledge_text="x" * 2000, storage_limit_mb=1,
            )
            assert updated.storage_limit_mb == 1

    async def test_non_quota_fields_skip_check(self, db, svc, messages):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T", storage_limit_mb=0.001)
            await messages.append_message(session, tenant.client_id, "user", "y" * 5000)
        async with db.get_session() as session:
            updated = await svc.update_tenant(
                session, tenant.client_id, fallback_text="Try later", domain="example.com",
            )
            assert updated.fallback_text == "Try later"

    async def test_shrinking_over_limit_tenant_allowed(self, db, svc, messages):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(
                session, name="T", storage_limit_mb=1, knowledge_text="x" * 1_000_000,
            )
            await messages.append_message(session, tenant.client_id, "bot", "y" * 1_000_000)
        async with db.get_session() as session:
            updated = await svc.update_tenant(
                session, tenant.client_id, knowledge_text="x" * 500_000,
            )
            assert len(updated.knowledge_text) == 500_000

    async def test_growing_over_limit_tenant_rejected(self, db, svc, messages):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(
                session, name="T", storage_limit_mb=1, knowledge_text="x" * 1_000_000,
            )
            await messages.append_message(session, tenant.client_id, "bot", "y" * 1_000_000)
        with pytest.raises(StorageLimitExceededError):
            async with db.get_session() as session:
                await svc.update_tenant(session, tenant.client_id, avatar="a.png")


class TestWidgetCode:
    def test_render_includes_client_and_domain(self):
        code = render_widget_code("abc 123", "shop.example.com", "https://bot.example.com/")
        assert 'var allowedDomain = "shop.example.com";' in code
        assert "https://bot.example.com/widget-ui.html?clientId=abc%20123" in code

    async def test_refresh_stores_code(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="W", domain="shop.example.com")
        async with db.get_session() as session:
            updated = await svc.refresh_widget_code(session, tenant.client_id)
            assert tenant.client_id in updated.widget_code
            assert "shop.example.com" in updated.widget_code

    async def test_refresh_respects_quota(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="W", storage_limit_mb=0.0001)
        with pytest.raises(StorageLimitExceededError):
            async with db.get_session() as session:
                await svc.refresh_widget_code(session, tenant.client_id)

    async def test_refresh_not_found(self, db, svc):
        async with db.get_session() as session:
            assert await svc.refresh_widget_code(session, "missing") is None


class TestTenantDelete:
    async def test_delete_cascades_history(self, db, svc, messages):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="D")
            await messages.append_message(session, tenant.client_id, "user", "hi")
        async with db.get_session() as session:
            assert await svc.delete_tenant(session, tenant.client_id) is True
        async with db.get_session() as session:
            assert await svc.get_by_id(session, tenant.client_id) is None
            assert await messages.sum_sizes(session, tenant.client_id) == (0, 0)

    async def test_delete_not_found(self, db, svc):
        async with db.get_session() as session:
            assert await svc.delete_tenant(session, "missing") is False


class TestClientToken:
    async def test_issued_at_create_and_stored_hashed(self, db, svc):
        async with db.get_session() as session:
            tenant, raw_token = await svc.create_tenant(session, name="T")
            assert raw_token.startswith("tbc_")
            assert tenant.client_token_hash
            assert raw_token not in tenant.client_token_hash

    async def test_resolve(self, db, svc):
        async with db.get_session() as session:
            tenant, raw_token = await svc.create_tenant(session, name="T")
        async with db.get_session() as session:
            found = await svc.resolve_by_client_token(session, tenant.client_id, raw_token)
            assert found is not None
            assert found.client_id == tenant.client_id

    async def test_resolve_wrong_token(self, db, svc):
        async with db.get_session() as session:
            tenant, _ = await svc.create_tenant(session, name="T")
        async with db.get_session() as session:
            assert await svc.resolve_by_client_token(session, tenant.client_id, "tbc_nope") is None

    async def test_token_is_bound_to_its_client(self, db, svc):
        async with db.get_session() as session:
            _, token_a = await svc.create_tenant(session, name="A")
            b, _ = await svc.create_tenant(session, name="B")
        async with db.get_session() as session:
            assert await svc.resolve_by_client_token(session, b.client_id, token_a) is None

    async def test_rotate_invalidates_old_token(self, db, svc):
        async with db.get_session() as session:
            tenant, old_token = await svc.create_tenant(session, name="T")
        async with db.get_session() as session:
            new_token = await svc.rotate_client_token(session, tenant.client_id)
        assert new_token != old_token
        async with db.get_session() as session:
            assert await svc.resolve_by_client_token(session, tenant.client_id, old_token) is None
            assert await svc.resolve_by_client_token(session, tenant.client_id, new_token) is not None

    async def test_rotate_unknown_client(self, db, svc):
        with pytest.raises(TenantNotFoundError):
            async with db.get_session() as session:
                await svc.rotate_client_token(session, "missing")

    async def test_get_or_raise(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(TenantNotFoundError) as exc_info:
                await svc.get_or_raise(session, "missing")
            assert exc_info.value.code == "NOT_FOUND"
