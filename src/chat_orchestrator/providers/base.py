"""Abstract LLM provider interface for the chat orchestrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..models import ModelResponse, Turn


class LLMProvider(ABC):
    """
    Abstract remote generation service.

    The orchestrator only depends on this interface. Implementations translate
    transport and API failures into ``ProviderError`` subclasses.
    """

    @abstractmethod
    async def generate(
        self,
        turns: Sequence[Turn],
        *,
        tools: list[dict[str, Any]] | None = None,
        system_instruction: str | None = None,
    ) -> ModelResponse:
        """
        Generate the next model turn for ``turns``.

        tools: function declarations, each {"name", "description", "parameters"}.
        """
        ...

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """One-shot text generation without tools or history."""
        ...
