"""FastAPI application factory for Tenantbot-Engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tenantbot_engine.common.config import get_settings
from tenantbot_engine.common.logging import setup_logging
from tenantbot_engine.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from tenantbot_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from tenantbot_engine.chat.router import router as chat_router
    from tenantbot_engine.tenants.router import router as tenant_router
    from tenantbot_engine.messages.router import router as message_router
    from tenantbot_engine.storage.router import router as storage_router
    from tenantbot_engine.portal.router import router as portal_router

    prefix = settings.api_prefix
    app.include_router(chat_router, prefix=prefix, tags=["chat"])
    app.include_router(tenant_router, prefix=prefix)
    app.include_router(message_router, prefix=prefix)
    app.include_router(storage_router, prefix=prefix, tags=["storage"])
    app.include_router(portal_router, prefix=prefix)

    return app
