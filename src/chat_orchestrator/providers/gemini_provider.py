"""Google Gemini LLM provider implementation for the orchestrator."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from ..config import (
    DEFAULT_MODEL,
    GEMINI_API_KEY,
    MAX_OUTPUT_TOKENS,
    TEMPERATURE,
    TOP_K,
    TOP_P,
)
from ..errors import (
    ProviderError,
    ProviderOverloaded,
    ProviderRateLimited,
    ProviderUnavailable,
)
from ..models import FunctionCall, ModelResponse, Part, Turn
from .base import LLMProvider

logger = logging.getLogger(__name__)

_SAFETY_CATEGORIES = (
    genai_types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    genai_types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    genai_types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    genai_types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)

# Candidate finish reasons that mean the content was withheld.
_BLOCKING_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}


def _enum_name(value: Any) -> str | None:
    if value is None:
        return None
    return getattr(value, "name", None) or str(value)


class GeminiProvider(LLMProvider):
    """Gemini provider using the google-genai SDK."""

    def __init__(
        self,
        default_model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.default_model = default_model
        self.api_key = api_key or GEMINI_API_KEY
        self._client: Any | None = client

    def _get_client(self) -> Any:
        if not self._client:
            if not self.api_key:
                raise ProviderUnavailable("GEMINI_API_KEY is not set")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    @staticmethod
    def _to_gemini_part(part: Part) -> genai_types.Part:
        if part.function_call is not None:
            return genai_types.Part(
                function_call=genai_types.FunctionCall(
                    name=part.function_call.name,
                    args=dict(part.function_call.args),
                ),
                thought_signature=part.thought_signature,
            )
        if part.function_response is not None:
            return genai_types.Part(
                function_response=genai_types.FunctionResponse(
                    name=part.function_response.name,
                    response=dict(part.function_response.response),
                )
            )
        return genai_types.Part(text=part.text)

    @classmethod
    def _to_gemini_contents(cls, turns: Sequence[Turn]) -> list[genai_types.Content]:
        """Convert internal turns into Gemini contents, skipping empty turns."""
        contents: list[genai_types.Content] = []
        for turn in turns:
            parts = [cls._to_gemini_part(p) for p in turn.parts]
            if parts:
                contents.append(genai_types.Content(role=turn.role, parts=parts))
        return contents

    @staticmethod
    def _to_gemini_tools(tools: list[dict[str, Any]] | None) -> list[genai_types.Tool] | None:
        """Convert function declarations into Gemini Tool declarations."""
        if not tools:
            return None
        function_declarations: list[genai_types.FunctionDeclaration] = []
        for t in tools:
            name = t.get("name")
            if not name:
                continue
            params = t.get("parameters") or {}
            function_declarations.append(
                genai_types.FunctionDeclaration(
                    name=name,
                    description=t.get("description", ""),
                    # Gemini rejects OBJECT schemas without properties.
                    parameters=params if params.get("properties") else None,
                )
            )
        if not function_declarations:
            return None
        return [genai_types.Tool(function_declarations=function_declarations)]

    def _build_config(
        self,
        tools: list[dict[str, Any]] | None,
        system_instruction: str | None,
    ) -> genai_types.GenerateContentConfig:
        config_args: dict[str, Any] = {
            "temperature": TEMPERATURE,
            "top_k": TOP_K,
            "top_p": TOP_P,
            "max_output_tokens": MAX_OUTPUT_TOKENS,
            "safety_settings": [
                genai_types.SafetySetting(
                    category=category,
                    threshold=genai_types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                )
                for category in _SAFETY_CATEGORIES
            ],
        }
        gemini_tools = self._to_gemini_tools(tools)
        if gemini_tools:
            config_args["tools"] = gemini_tools
            config_args["tool_config"] = genai_types.ToolConfig(
                function_calling_config=genai_types.FunctionCallingConfig(
                    mode=genai_types.FunctionCallingConfigMode.AUTO
                )
            )
        if system_instruction:
            config_args["system_instruction"] = system_instruction
        return genai_types.GenerateContentConfig(**config_args)

    @staticmethod
    def _from_gemini_response(resp: Any) -> ModelResponse:
        """Read parts and block reason from the first candidate."""
        parts: list[Part] = []
        block_reason: str | None = None

        feedback = getattr(resp, "prompt_feedback", None)
        if feedback is not None:
            block_reason = _enum_name(getattr(feedback, "block_reason", None))

        candidates = getattr(resp, "candidates", None) or []
        if candidates:
            cand = candidates[0]
            content = getattr(cand, "content", None)
            for part in getattr(content, "parts", None) or []:
                fc = getattr(part, "function_call", None)
                if fc is not None and fc.name:
                    parts.append(
                        Part(
                            function_call=FunctionCall(name=fc.name, args=dict(fc.args or {})),
                            thought_signature=getattr(part, "thought_signature", None),
                        )
                    )
                elif getattr(part, "text", None) and not getattr(part, "thought", False):
                    parts.append(Part(text=part.text))
            finish = _enum_name(getattr(cand, "finish_reason", None))
            if block_reason is None and finish in _BLOCKING_FINISH_REASONS:
                block_reason = finish

        return ModelResponse(parts=parts, block_reason=block_reason)

    @staticmethod
    def _map_error(exc: Exception) -> ProviderError:
        if isinstance(exc, genai_errors.APIError):
            if exc.code == 429:
                return ProviderRateLimited(f"Gemini rate limit: {exc}")
            if exc.code == 503:
                return ProviderOverloaded(f"Gemini overloaded: {exc}")
            return ProviderUnavailable(f"Gemini API error {exc.code}: {exc}")
        return ProviderUnavailable(f"Gemini request failed: {exc}")

    async def _generate_content(self, contents: Any, config: genai_types.GenerateContentConfig) -> Any:
        client = self._get_client()
        try:
            return await client.aio.models.generate_content(
                model=self.default_model,
                contents=contents,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError, OSError) as e:
            raise self._map_error(e) from e

    async def generate(
        self,
        turns: Sequence[Turn],
        *,
        tools: list[dict[str, Any]] | None = None,
        system_instruction: str | None = None,
    ) -> ModelResponse:
        """Non-streaming generation using Gemini generate_content."""
        contents = self._to_gemini_contents(turns)
        config = self._build_config(tools, system_instruction)
        resp = await self._generate_content(contents, config)
        return self._from_gemini_response(resp)

    async def generate_text(self, prompt: str) -> str:
        config = self._build_config(None, None)
        resp = await self._generate_content(prompt, config)
        return self._from_gemini_response(resp).text
