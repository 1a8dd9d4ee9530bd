"""Preferences router: per-user custom system instruction."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.chat_orchestrator.config import MAX_CUSTOM_INSTRUCTION_LENGTH
from src.chat_orchestrator.db import ChatRepository, get_repository
from src.chat_orchestrator.errors import InvalidInput

router = APIRouter(prefix="/api/user/preferences", tags=["preferences"])


class Preferences(BaseModel):
    custom_system_instruction: str | None = Field(None, alias="customSystemInstruction")


class PreferencesUpdated(BaseModel):
    success: bool = True
    message: str
    custom_system_instruction: str | None = Field(None, alias="customSystemInstruction")


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise InvalidInput("missing userId", public_message="userId is required.")
    return user_id


@router.get("", response_model=Preferences, response_model_by_alias=True)
async def get_preferences(
    user_id: str | None = Query(None, alias="userId"),
    repository: ChatRepository = Depends(get_repository),
) -> Preferences:
    instruction = await repository.get_custom_instruction(_require_user(user_id))
    return Preferences(customSystemInstruction=instruction)


@router.put("", response_model=PreferencesUpdated, response_model_by_alias=True)
async def update_preferences(
    body: Preferences,
    user_id: str | None = Query(None, alias="userId"),
    repository: ChatRepository = Depends(get_repository),
) -> PreferencesUpdated:
    instruction = body.custom_system_instruction
    if instruction and len(instruction) > MAX_CUSTOM_INSTRUCTION_LENGTH:
        raise InvalidInput(
            "instruction too long",
            public_message=f"Instruction too long (maximum {MAX_CUSTOM_INSTRUCTION_LENGTH} characters).",
        )
    stored = await repository.set_custom_instruction(_require_user(user_id), instruction)
    return PreferencesUpdated(message="Personality saved successfully!", customSystemInstruction=stored)
