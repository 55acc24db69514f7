from datetime import datetime
from typing import List, Literal
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)


class ConversationRecord(BaseModel):
    id: int
    user_id: int
    messages: List[ChatMessage]
    created_at: datetime
