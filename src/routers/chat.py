"""Chat router: model–tool loop endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from src.chat_orchestrator.db import ChatRepository, get_optional_repository
from src.chat_orchestrator.errors import HistoryDBError
from src.chat_orchestrator.llm import get_default_provider
from src.chat_orchestrator.loop import LoopOptions, run_loop
from src.chat_orchestrator.providers import LLMProvider
from src.chat_orchestrator.session_store import SessionStore, get_default_store
from src.chat_orchestrator.tools import ToolRegistry, get_default_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    """Request body for POST /chat."""

    message: str = Field(
        "",
        validation_alias=AliasChoices("message", "prompt"),
        description="User message",
    )
    session_id: str | None = Field(
        None,
        validation_alias=AliasChoices("sessionId", "session_id"),
        description="Optional session id to continue",
    )
    user_id: str | None = Field(
        None,
        validation_alias=AliasChoices("userId", "user_id"),
        description="Optional user id; selects the user's custom system instruction",
    )


class ChatResponse(BaseModel):
    """Response for POST /chat."""

    reply: str
    session_id: str = Field(..., serialization_alias="sessionId")


async def _custom_instruction(repository: ChatRepository | None, user_id: str | None) -> str | None:
    if repository is None or not user_id:
        return None
    try:
        return await repository.get_custom_instruction(user_id)
    except HistoryDBError as e:
        logger.warning("Chat: could not load preferences for %s, using the default persona: %s", user_id, e)
        return None


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    provider: LLMProvider = Depends(get_default_provider),
    store: SessionStore = Depends(get_default_store),
    registry: ToolRegistry = Depends(get_default_registry),
    repository: ChatRepository | None = Depends(get_optional_repository),
) -> ChatResponse:
    """Run the model–tool loop and return the assistant reply."""
    logger.info("[Session: %s] User: %s", request.session_id or "new", request.message)
    instruction = None
    if request.message.strip():
        instruction = await _custom_instruction(repository, request.user_id)
    opts = LoopOptions(system_instruction=instruction)
    result = await run_loop(
        request.message,
        request.session_id,
        store=store,
        registry=registry,
        provider=provider,
        options=opts,
    )
    return ChatResponse(reply=result.reply, session_id=result.session_id)
