"""LLM facade: default provider and convenience helpers built on it."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Turn
from .providers import GeminiProvider, LLMProvider

_default_provider: LLMProvider | None = None

TITLE_PROMPT = "Based on this conversation, suggest a short, concise title of at most 5 words:\n\n{transcript}"


def get_default_provider() -> LLMProvider:
    """Return the default LLM provider (Gemini)."""
    global _default_provider
    if _default_provider is None:
        _default_provider = GeminiProvider()
    return _default_provider


def set_default_provider(provider: LLMProvider) -> None:
    """Replace the default LLM provider."""
    global _default_provider
    _default_provider = provider


def format_transcript(turns: Iterable[Turn]) -> str:
    """One ``role: text`` line per turn that carries text."""
    return "\n".join(f"{t.role}: {t.text}" for t in turns if t.text)


async def suggest_title(turns: Iterable[Turn], provider: LLMProvider | None = None) -> str:
    """Ask the model for a short conversation title, stripped of quotes."""
    p = provider or get_default_provider()
    text = await p.generate_text(TITLE_PROMPT.format(transcript=format_transcript(turns)))
    return text.replace('"', "").strip()
