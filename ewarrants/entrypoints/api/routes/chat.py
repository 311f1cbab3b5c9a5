"""AI チャット API ルート

POST /api/chat  { message, history? } → 200 { response, data: [Warranty...] }
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ewarrants.entrypoints.api.deps import get_chat_service, get_current_uid
from ewarrants.entrypoints.api.schemas import WarrantyResponse, to_warranty_response
from ewarrants.services.chat import ChatService

router = APIRouter(tags=["chat"])


class ChatRequest(BaseModel):
    message: str = ""
    history: list[dict] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    data: list[WarrantyResponse]


@router.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    uid: str = Depends(get_current_uid),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """自然言語で保証レコードを問い合わせる"""
    reply = service.reply(uid, body.message, body.history)
    return ChatResponse(
        response=reply.response,
        data=[to_warranty_response(w) for w in reply.data],
    )
