from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.api.deps import get_chat_service, get_current_user
from app.schemas.chat_schema import ChatRequest
from app.schemas.user_schema import UserRecord
from app.services.chat_service import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("")
async def chat(
    body: ChatRequest,
    current_user: UserRecord = Depends(get_current_user),
    chat_svc: ChatService = Depends(get_chat_service),
):
    reply = await chat_svc.start_reply(current_user, body.messages)
    return StreamingResponse(reply, media_type="text/plain; charset=utf-8")
