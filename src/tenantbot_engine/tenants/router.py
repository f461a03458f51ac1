"""Client administration router — requires the admin token."""

from fastapi import APIRouter, Depends, HTTPException

from tenantbot_engine.common.exceptions import StorageLimitExceededError, TenantNotFoundError
from tenantbot_engine.common.security import require_admin_token
from tenantbot_engine.tenants.models import TenantModel
from tenantbot_engine.tenants.schemas import (
    ClientTokenResponse,
    TenantCreate,
    TenantCreateResponse,
    TenantResponse,
    TenantSummary,
    TenantUpdate,
    WidgetResponse,
)

router = APIRouter(prefix="/clients", tags=["clients"])


def _get_service():
    from tenantbot_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_usage_service():
    from tenantbot_engine.deps import get_usage_service
    return get_usage_service()


def _get_db():
    from tenantbot_engine.deps import get_db
    return get_db()


def _to_response(tenant: TenantModel) -> TenantResponse:
    return TenantResponse(
        client_id=tenant.client_id,
        name=tenant.name,
        knowledge_text=tenant.knowledge_text,
        fallback_text=tenant.fallback_text,
        storage_limit_mb=tenant.storage_limit_mb,
        retention_days=tenant.retention_days,
        bot_name=tenant.bot_name,
        avatar=tenant.avatar,
        domain=tenant.domain,
        tokens=tenant.tokens,
        has_api_key=bool(tenant.api_key),
        created_at=tenant.created_at,
    )


@router.post("", response_model=TenantCreateResponse, status_code=201)
async def create_tenant(body: TenantCreate, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant, raw_token = await svc.create_tenant(session, **body.model_dump())
            return TenantCreateResponse(
                **_to_response(tenant).model_dump(), client_token=raw_token,
            )
    except StorageLimitExceededError as e:
        raise HTTPException(status_code=413, detail=e.message)


@router.get("", response_model=list[TenantSummary])
async def list_tenants(_=Depends(require_admin_token)):
    svc = _get_service()
    usage_svc = _get_usage_service()
    db = _get_db()
    async with db.get_session() as session:
        tenants = await svc.list_tenants(session)
        summaries = []
        for t in tenants:
            usage = await usage_svc.get_usage(session, t.client_id, tenant=t)
            summaries.append(
                TenantSummary(
                    client_id=t.client_id, name=t.name, domain=t.domain,
                    storage_limit_mb=t.storage_limit_mb,
                    storage_used_mb=usage.used_mb_display,
                    message_count=usage.message_count,
                    tokens=t.tokens,
                )
            )
        return summaries


@router.get("/{client_id}", response_model=TenantResponse)
async def get_tenant(client_id: str, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get_by_id(session, client_id)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Client not found")
        return _to_response(tenant)


@router.patch("/{client_id}", response_model=TenantResponse)
async def update_tenant(
    client_id: str, body: TenantUpdate, _=Depends(require_admin_token)
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant = await svc.update_tenant(
                session, client_id, **body.model_dump(exclude_none=True)
            )
            if tenant is None:
                raise HTTPException(status_code=404, detail="Client not found")
            return _to_response(tenant)
    except StorageLimitExceededError as e:
        raise HTTPException(status_code=413, detail=e.message)


@router.delete("/{client_id}", status_code=204)
async def delete_tenant(client_id: str, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        deleted = await svc.delete_tenant(session, client_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Client not found")


@router.post("/{client_id}/widget", response_model=WidgetResponse)
async def generate_widget(client_id: str, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant = await svc.refresh_widget_code(session, client_id)
            if tenant is None:
                raise HTTPException(status_code=404, detail="Client not found")
            return WidgetResponse(client_id=tenant.client_id, widget_code=tenant.widget_code)
    except StorageLimitExceededError as e:
        raise HTTPException(status_code=413, detail=e.message)


@router.post("/{client_id}/token", response_model=ClientTokenResponse)
async def rotate_client_token(client_id: str, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            raw_token = await svc.rotate_client_token(session, client_id)
            return ClientTokenResponse(client_id=client_id, client_token=raw_token)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
