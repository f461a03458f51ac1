"""Shared test fixtures for Tenantbot-Engine."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


ADMIN_TOKEN = "test-admin-token"

KNOWLEDGE = (
    "We ship worldwide. Returns are accepted within 30 days. "
    "Support is available 24/7."
)
FALLBACK = "Sorry, I don't understand."


@pytest.fixture
def admin_token():
    return ADMIN_TOKEN


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["TENANTBOT_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["TENANTBOT_ADMIN_TOKEN"] = ADMIN_TOKEN

    # Clear caches and singletons so new env vars take effect
    from tenantbot_engine.common.config import get_settings
    get_settings.cache_clear()

    from tenantbot_engine.deps import reset_singletons
    reset_singletons()

    from tenantbot_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from tenantbot_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
async def shop_account(client, admin_headers):
    """A registered client with the shop knowledge base; returns the create response."""
    resp = await client.post("/clients", json={
        "name": "Shop",
        "knowledge_text": KNOWLEDGE,
        "fallback_text": FALLBACK,
    }, headers=admin_headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def shop_client(shop_account):
    return shop_account["client_id"]


@pytest.fixture
def shop_headers(shop_account):
    return {"X-Client-Token": shop_account["client_token"]}
