"""Conversation history router — requires the admin token."""

from fastapi import APIRouter, Depends, HTTPException

from tenantbot_engine.common.exceptions import TenantNotFoundError
from tenantbot_engine.common.security import require_admin_token
from tenantbot_engine.messages.schemas import (
    ClearHistoryRequest,
    ClearHistoryResponse,
    MessageResponse,
)

router = APIRouter(prefix="/clients/{client_id}/messages", tags=["messages"])


def _get_service():
    from tenantbot_engine.deps import get_message_service
    return get_message_service()


def _get_tenant_service():
    from tenantbot_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from tenantbot_engine.deps import get_db
    return get_db()


def _get_settings():
    from tenantbot_engine.common.config import get_settings
    return get_settings()


@router.get("", response_model=list[MessageResponse])
async def list_messages(client_id: str, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            await _get_tenant_service().get_or_raise(session, client_id)
            messages = await svc.list_recent(
                session, client_id, limit=_get_settings().message_page_size
            )
            return [MessageResponse.model_validate(m) for m in messages]
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/clear", response_model=ClearHistoryResponse)
async def clear_messages(
    client_id: str, body: ClearHistoryRequest, _=Depends(require_admin_token)
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            await _get_tenant_service().get_or_raise(session, client_id)
            deleted = await svc.clear_history(session, client_id, body.mode, days=body.days)
            return ClearHistoryResponse(deleted=deleted)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
