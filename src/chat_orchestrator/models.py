"""Data models for turns, sessions, tools and replies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------


class FunctionCall(BaseModel):
    """A model-initiated request to run a named tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class FunctionResponse(BaseModel):
    """The payload a tool produced, sent back to the model."""

    model_config = ConfigDict(frozen=True)

    name: str
    response: dict[str, Any] = Field(default_factory=dict)


class Part(BaseModel):
    """One piece of turn content: text, a function call, or a function response."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    # Opaque provider token that must travel back with function-call parts.
    thought_signature: bytes | None = None

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> Part:
        kinds = [k for k in (self.text, self.function_call, self.function_response) if k is not None]
        if len(kinds) != 1:
            raise ValueError("a part holds exactly one of text, function_call, function_response")
        return self

    @classmethod
    def from_text(cls, text: str) -> Part:
        return cls(text=text)

    @classmethod
    def from_function_response(cls, name: str, response: dict[str, Any]) -> Part:
        return cls(function_response=FunctionResponse(name=name, response=response))


class Turn(BaseModel):
    """A single role-tagged entry in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    parts: tuple[Part, ...] = ()

    @classmethod
    def user_text(cls, text: str) -> Turn:
        return cls(role="user", parts=(Part.from_text(text),))

    @classmethod
    def model_text(cls, text: str) -> Turn:
        return cls(role="model", parts=(Part.from_text(text),))

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if p.text)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionData(BaseModel):
    """Immutable snapshot of a conversation session.

    ``append`` returns a new snapshot; a snapshot obtained from the store can
    be read freely while another request builds the next one.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    turns: tuple[Turn, ...] = ()
    system_instruction: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def append(self, *turns: Turn) -> SessionData:
        """Return a new snapshot with ``turns`` added at the end."""
        return self.model_copy(update={"turns": self.turns + turns, "updated_at": _utc_now()})


# ---------------------------------------------------------------------------
# Model responses
# ---------------------------------------------------------------------------


class ModelResponse(BaseModel):
    """Provider-neutral view of one generation result."""

    parts: list[Part] = Field(default_factory=list)
    block_reason: str | None = None

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [p.function_call for p in self.parts if p.function_call is not None]

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if p.text)

    def to_turn(self) -> Turn:
        return Turn(role="model", parts=tuple(self.parts))


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@dataclass
class ToolResult:
    """Result of a single tool execution: either an ok payload or an error reason."""

    ok: dict[str, Any] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.ok is None) == (self.error is None):
            raise ValueError("ToolResult needs exactly one of ok or error")

    @classmethod
    def success(cls, **payload: Any) -> ToolResult:
        return cls(ok=dict(payload))

    @classmethod
    def failure(cls, reason: str) -> ToolResult:
        return cls(error=reason)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_payload(self) -> dict[str, Any]:
        """Payload sent to the model as the function response."""
        if self.error is not None:
            return {"error": self.error}
        return dict(self.ok or {})


@dataclass
class ToolDef:
    """Tool declaration sent to the model."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema

    def to_declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


@dataclass
class FinalReply:
    """What one chat request produces."""

    reply: str
    session_id: str
    tool_turns: int = 0
