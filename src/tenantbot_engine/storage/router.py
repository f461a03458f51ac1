"""Storage dashboard router."""

from fastapi import APIRouter, Depends, HTTPException

from tenantbot_engine.common.security import require_admin_token
from tenantbot_engine.storage.schemas import StorageReport

router = APIRouter()


def _get_service():
    from tenantbot_engine.deps import get_usage_service
    return get_usage_service()


def _get_db():
    from tenantbot_engine.deps import get_db
    return get_db()


@router.get("/clients/{client_id}/storage", response_model=StorageReport)
async def get_storage(client_id: str, _=Depends(require_admin_token)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        report = await svc.get_storage_report(session, client_id)
        if report is None:
            raise HTTPException(status_code=404, detail="Client not found")
        return report
