"""LLM providers: pluggable backends for the chat orchestrator."""

from .base import LLMProvider
from .gemini_provider import GeminiProvider

__all__ = [
    "LLMProvider",
    "GeminiProvider",
]
