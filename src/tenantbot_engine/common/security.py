"""Token authentication dependencies."""

import hmac

from fastapi import Header, HTTPException


async def require_admin_token(
    x_admin_token: str = Header(..., alias="X-Admin-Token"),
) -> str:
    """FastAPI dependency that validates the admin token from header."""
    from tenantbot_engine.common.config import get_settings

    settings = get_settings()
    if not hmac.compare_digest(x_admin_token.encode(), settings.admin_token.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_admin_token


async def require_client_token(
    client_id: str,
    x_client_token: str = Header(..., alias="X-Client-Token"),
):
    """FastAPI dependency that resolves the tenant owning the path's client id.

    Unknown clients and wrong tokens get the same 403 so the endpoint does
    not reveal which client ids exist.
    """
    from tenantbot_engine.deps import get_db, get_tenant_service

    svc = get_tenant_service()
    db = get_db()
    async with db.get_session() as session:
        tenant = await svc.resolve_by_client_token(session, client_id, x_client_token)
    if tenant is None:
        raise HTTPException(status_code=403, detail="Invalid client token")
    return tenant
