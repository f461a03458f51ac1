"""Client self-service router — authenticated by the per-client token."""

from fastapi import APIRouter, Depends, HTTPException

from tenantbot_engine.common.security import require_client_token
from tenantbot_engine.messages.schemas import ClearHistoryRequest, ClearHistoryResponse
from tenantbot_engine.portal.schemas import ClientOverview, ClientSettingsUpdate
from tenantbot_engine.storage.schemas import StorageReport
from tenantbot_engine.tenants.models import TenantModel
from tenantbot_engine.tenants.schemas import WidgetResponse
from tenantbot_engine.tenants.service import render_widget_code

router = APIRouter(prefix="/client/{client_id}", tags=["client"])


def _get_tenant_service():
    from tenantbot_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_usage_service():
    from tenantbot_engine.deps import get_usage_service
    return get_usage_service()


def _get_message_service():
    from tenantbot_engine.deps import get_message_service
    return get_message_service()


def _get_db():
    from tenantbot_engine.deps import get_db
    return get_db()


async def _report(session, client_id: str) -> dict:
    report = await _get_usage_service().get_storage_report(session, client_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return report


async def _overview(session, tenant: TenantModel) -> ClientOverview:
    report = await _report(session, tenant.client_id)
    return ClientOverview(
        client_id=tenant.client_id,
        name=tenant.name,
        used_mb=report["used_mb"],
        limit_mb=report["limit_mb"],
        percent_used=min(100.0, report["used_percent"]),
        retention_days=tenant.retention_days,
        has_api_key=bool(tenant.api_key),
    )


@router.get("/overview", response_model=ClientOverview)
async def get_overview(tenant: TenantModel = Depends(require_client_token)):
    db = _get_db()
    async with db.get_session() as session:
        return await _overview(session, tenant)


@router.put("/settings", response_model=ClientOverview)
async def update_settings(
    body: ClientSettingsUpdate, tenant: TenantModel = Depends(require_client_token)
):
    svc = _get_tenant_service()
    db = _get_db()
    async with db.get_session() as session:
        updated = await svc.update_tenant(
            session, tenant.client_id, **body.model_dump(exclude_none=True)
        )
        if updated is None:
            raise HTTPException(status_code=404, detail="Client not found")
        return await _overview(session, updated)


@router.post("/clear-history", response_model=ClearHistoryResponse)
async def clear_history(
    body: ClearHistoryRequest, tenant: TenantModel = Depends(require_client_token)
):
    svc = _get_message_service()
    db = _get_db()
    async with db.get_session() as session:
        deleted = await svc.clear_history(session, tenant.client_id, body.mode, days=body.days)
        return ClearHistoryResponse(deleted=deleted)


@router.get("/widget", response_model=WidgetResponse)
async def get_widget(tenant: TenantModel = Depends(require_client_token)):
    from tenantbot_engine.common.config import get_settings

    code = tenant.widget_code or render_widget_code(
        tenant.client_id, tenant.domain, get_settings().widget_base_url
    )
    return WidgetResponse(client_id=tenant.client_id, widget_code=code)


@router.get("/storage", response_model=StorageReport)
async def get_storage(tenant: TenantModel = Depends(require_client_token)):
    db = _get_db()
    async with db.get_session() as session:
        return await _report(session, tenant.client_id)
