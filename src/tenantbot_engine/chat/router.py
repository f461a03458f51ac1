"""Chat API router."""

from fastapi import APIRouter

from tenantbot_engine.chat.schemas import ChatRequest, ChatResponse

router = APIRouter()


def _get_engine():
    from tenantbot_engine.deps import get_reply_engine
    return get_reply_engine()


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest):
    engine = _get_engine()
    result = await engine.resolve_reply(body.client_id, body.message)
    return ChatResponse(**result.to_dict())
