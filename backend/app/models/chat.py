from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class ChatRequest(BaseModel):
    message: str
    threadId: str | None = Field(default=None, min_length=1)


class ChatResponse(BaseModel):
    threadId: str
    reply: str


class ChatHistoryResponse(BaseModel):
    threadId: str
    messages: list[ChatMessage] = Field(default_factory=list)
