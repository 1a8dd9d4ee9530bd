"""HTTP routers for the chat backend."""

from .chat import router as chat_router
from .errors import register_exception_handlers
from .history import legacy_router as legacy_history_router
from .history import router as history_router
from .preferences import router as preferences_router

__all__ = [
    "chat_router",
    "history_router",
    "legacy_history_router",
    "preferences_router",
    "register_exception_handlers",
]
