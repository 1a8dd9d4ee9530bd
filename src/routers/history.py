"""History router: saved conversations (list, save, rename, title suggestion, delete)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.chat_orchestrator.db import ChatRepository, get_repository
from src.chat_orchestrator.errors import InvalidInput, RecordNotFound
from src.chat_orchestrator.llm import get_default_provider, suggest_title
from src.chat_orchestrator.models import Part, Turn
from src.chat_orchestrator.providers import LLMProvider

router = APIRouter(prefix="/api/chat/histories", tags=["history"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryPart(BaseModel):
    text: str = ""


class HistoryMessage(BaseModel):
    """One stored message, in the shape the chat client keeps its history."""

    role: Literal["user", "model"]
    parts: list[HistoryPart] = Field(default_factory=list)

    def to_turn(self) -> Turn:
        return Turn(role=self.role, parts=tuple(Part.from_text(p.text) for p in self.parts))


class SaveHistoryRequest(_CamelModel):
    session_id: str
    bot_id: str
    messages: list[HistoryMessage] = Field(default_factory=list)
    user_id: str | None = None


class SaveHistoryResponse(BaseModel):
    message: str
    id: str


class RenameRequest(BaseModel):
    title: str = Field("", validation_alias=AliasChoices("title", "titulo"))


class HistoryRecord(_CamelModel):
    id: str
    session_id: str
    bot_id: str
    user_id: str | None = None
    title: str | None = None
    start_time: datetime
    logged_at: datetime
    messages: list[HistoryMessage] = Field(default_factory=list)


class TitleSuggestion(_CamelModel):
    suggested_title: str


class MessageResponse(BaseModel):
    message: str


def _record(doc: dict[str, Any]) -> HistoryRecord:
    return HistoryRecord.model_validate(doc)


@router.get("", response_model=list[HistoryRecord], response_model_by_alias=True)
async def list_histories(
    user_id: str | None = Query(None, alias="userId"),
    repository: ChatRepository = Depends(get_repository),
) -> list[HistoryRecord]:
    """A user's saved conversations, newest first."""
    if not user_id:
        raise InvalidInput("missing userId", public_message="userId is required to fetch histories.")
    return [_record(d) for d in await repository.list_histories(user_id)]


@router.post("", response_model=SaveHistoryResponse, status_code=status.HTTP_201_CREATED)
async def save_history(
    body: SaveHistoryRequest,
    repository: ChatRepository = Depends(get_repository),
) -> SaveHistoryResponse:
    record_id = await repository.save_history(
        session_id=body.session_id,
        bot_id=body.bot_id,
        messages=[m.model_dump() for m in body.messages],
        user_id=body.user_id,
    )
    return SaveHistoryResponse(message="History saved.", id=record_id)


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_history(
    record_id: str,
    repository: ChatRepository = Depends(get_repository),
) -> MessageResponse:
    if not await repository.delete_history(record_id):
        raise RecordNotFound(record_id, public_message="History not found.")
    return MessageResponse(message="History deleted.")


@router.put("/{record_id}", response_model=HistoryRecord, response_model_by_alias=True)
async def rename_history(
    record_id: str,
    body: RenameRequest,
    repository: ChatRepository = Depends(get_repository),
) -> HistoryRecord:
    title = body.title.strip()
    if not title:
        raise InvalidInput("empty title", public_message="Title not provided.")
    doc = await repository.update_title(record_id, title)
    if doc is None:
        raise RecordNotFound(record_id, public_message="History not found.")
    return _record(doc)


@router.post("/{record_id}/title-suggestion", response_model=TitleSuggestion, response_model_by_alias=True)
async def suggest_history_title(
    record_id: str,
    repository: ChatRepository = Depends(get_repository),
    provider: LLMProvider = Depends(get_default_provider),
) -> TitleSuggestion:
    """Ask the model for a short title based on the stored conversation."""
    doc = await repository.get_history(record_id)
    if doc is None:
        raise RecordNotFound(record_id, public_message="History not found.")
    record = _record(doc)
    title = await suggest_title([m.to_turn() for m in record.messages], provider=provider)
    return TitleSuggestion(suggested_title=title)


# Paths used by the original browser client.
legacy_router = APIRouter(prefix="/api/chat", tags=["history"], include_in_schema=False)
legacy_router.add_api_route(
    "/historicos", list_histories, methods=["GET"], response_model=list[HistoryRecord], response_model_by_alias=True
)
legacy_router.add_api_route(
    "/salvar-historico",
    save_history,
    methods=["POST"],
    response_model=SaveHistoryResponse,
    status_code=status.HTTP_201_CREATED,
)
legacy_router.add_api_route("/historicos/{record_id}", delete_history, methods=["DELETE"], response_model=MessageResponse)
legacy_router.add_api_route(
    "/historicos/{record_id}", rename_history, methods=["PUT"], response_model=HistoryRecord, response_model_by_alias=True
)


@legacy_router.post("/historicos/{record_id}/gerar-titulo")
async def suggest_history_title_legacy(
    record_id: str,
    repository: ChatRepository = Depends(get_repository),
    provider: LLMProvider = Depends(get_default_provider),
) -> dict[str, str]:
    suggestion = await suggest_history_title(record_id, repository=repository, provider=provider)
    return {"tituloSugerido": suggestion.suggested_title}
