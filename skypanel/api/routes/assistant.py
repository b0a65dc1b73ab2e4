"""
skypanel.api.routes.assistant — AI chat pass-through
=====================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from skypanel.api.deps import get_assistant
from skypanel.errors import ValidationFailed
from skypanel.services.assistant import AssistantClient

router = APIRouter(tags=["assistant"])


class ChatRequest(BaseModel):
    question: str | None = None


@router.post("/ai-chat")
async def ai_chat(
    body: ChatRequest,
    assistant: AssistantClient = Depends(get_assistant),
):
    if not body.question:
        raise ValidationFailed("Question is required.")
    return {"answer": await assistant.ask(body.question)}
