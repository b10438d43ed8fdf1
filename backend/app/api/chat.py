from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.security import get_current_user
from app.models.chat import ChatHistoryResponse, ChatRequest, ChatResponse
from app.services.career_chat import (
    CareerChatService,
    ChatUnavailableError,
    InvalidMessageError,
    career_chat_service,
)

router = APIRouter(prefix="/api/chat", tags=["Career Chat"])


def get_chat_service() -> CareerChatService:
    return career_chat_service


@router.post("", response_model=ChatResponse)
def send_chat_message(
    payload: ChatRequest,
    current_user: dict = Depends(get_current_user),
    service: CareerChatService = Depends(get_chat_service),
) -> ChatResponse:
    thread_id = payload.threadId or str(uuid4())
    try:
        reply = service.reply(_memory_key(current_user, thread_id), payload.message)
    except InvalidMessageError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ChatUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return ChatResponse(threadId=thread_id, reply=reply)


@router.get("/{threadId}/history", response_model=ChatHistoryResponse)
def get_chat_history(
    threadId: str,
    current_user: dict = Depends(get_current_user),
    service: CareerChatService = Depends(get_chat_service),
) -> ChatHistoryResponse:
    return ChatHistoryResponse(threadId=threadId, messages=service.history(_memory_key(current_user, threadId)))


def _memory_key(current_user: dict, thread_id: str) -> str:
    # Threads are private to the user that created them.
    return f"{current_user['userId']}:{thread_id}"
