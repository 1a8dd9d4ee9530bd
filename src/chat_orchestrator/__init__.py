"""Chat orchestrator: model–tool loop with session storage and reply finalization."""

from .errors import (
    ChatError,
    InvalidInput,
    ProviderError,
    ProviderOverloaded,
    ProviderRateLimited,
    ProviderUnavailable,
)
from .finalizer import finalize_reply
from .llm import get_default_provider, set_default_provider
from .loop import LoopOptions, run_loop
from .models import FinalReply, ModelResponse, Part, SessionData, ToolResult, Turn
from .providers import GeminiProvider, LLMProvider
from .session_store import InMemorySessionStore, SessionStore, get_default_store
from .tools import ToolRegistry, get_default_registry

__all__ = [
    "run_loop",
    "LoopOptions",
    "finalize_reply",
    "ChatError",
    "InvalidInput",
    "ProviderError",
    "ProviderOverloaded",
    "ProviderRateLimited",
    "ProviderUnavailable",
    "FinalReply",
    "ModelResponse",
    "Part",
    "SessionData",
    "ToolResult",
    "Turn",
    "LLMProvider",
    "GeminiProvider",
    "SessionStore",
    "InMemorySessionStore",
    "get_default_store",
    "ToolRegistry",
    "get_default_registry",
    "get_default_provider",
    "set_default_provider",
]
