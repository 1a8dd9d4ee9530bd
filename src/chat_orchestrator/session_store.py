"""Conversation session storage.

Sessions are immutable ``SessionData`` snapshots keyed by a uuid4 string. The
in-memory store evicts idle sessions after a TTL and the least recently used
ones beyond a capacity, and hands out one ``asyncio.Lock`` per session so that
at most one orchestrator loop runs per session at a time.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from .config import MAX_SESSIONS, SESSION_TTL_SECONDS
from .models import SessionData, Turn
from .persona import get_default_preamble

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Pluggable session backing used by the orchestrator."""

    @abstractmethod
    async def get(self, session_id: str) -> SessionData | None:
        ...

    @abstractmethod
    async def create(self, system_instruction: str | None = None) -> tuple[str, SessionData]:
        """Create a session seeded with the persona preamble."""
        ...

    @abstractmethod
    async def put(self, session_id: str, data: SessionData) -> None:
        ...

    @abstractmethod
    def lock(self, session_id: str) -> AbstractAsyncContextManager[None]:
        """Async context manager serialising work on one session."""
        ...


class InMemorySessionStore(SessionStore):
    """Process-local store with TTL and LRU eviction."""

    def __init__(
        self,
        preamble: Sequence[Turn] | None = None,
        *,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._preamble = tuple(get_default_preamble() if preamble is None else preamble)
        self._ttl = ttl_seconds
        self._max_sessions = max_sessions
        self._clock = clock
        # session_id -> (snapshot, last access)
        self._sessions: OrderedDict[str, tuple[SessionData, float]] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, session_id: str) -> SessionData | None:
        self._evict_expired()
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        data, _ = entry
        self._touch(session_id, data)
        self._evict_overflow()
        return data

    async def create(self, system_instruction: str | None = None) -> tuple[str, SessionData]:
        session_id = str(uuid.uuid4())
        data = SessionData(
            session_id=session_id,
            turns=self._preamble,
            system_instruction=system_instruction,
        )
        self._touch(session_id, data)
        self._evict()
        logger.info("[Session: %s] Created", session_id)
        return session_id, data

    async def put(self, session_id: str, data: SessionData) -> None:
        previous = self._sessions.get(session_id)
        if previous is not None and len(data.turns) < len(previous[0].turns):
            raise ValueError(f"Refusing to shrink session {session_id}")
        self._touch(session_id, data)
        self._evict()

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            yield

    def _touch(self, session_id: str, data: SessionData) -> None:
        self._sessions[session_id] = (data, self._clock())
        self._sessions.move_to_end(session_id)

    def _is_busy(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._locks.pop(session_id, None)
        logger.info("[Session: %s] Evicted", session_id)

    def _evict(self) -> None:
        self._evict_expired()
        self._evict_overflow()

    def _evict_expired(self) -> None:
        now = self._clock()
        # Oldest access first, so expired entries cluster at the front.
        for session_id, (_, last_access) in list(self._sessions.items()):
            if now - last_access < self._ttl:
                break
            if not self._is_busy(session_id):
                self._drop(session_id)

    def _evict_overflow(self) -> None:
        overflow = len(self._sessions) - self._max_sessions
        if overflow <= 0:
            return
        # The most recently touched session is the one being served; keep it.
        for session_id in list(self._sessions)[:-1]:
            if overflow <= 0:
                break
            if not self._is_busy(session_id):
                self._drop(session_id)
                overflow -= 1


_default_store: SessionStore | None = None


def get_default_store() -> SessionStore:
    """Return the process-wide session store."""
    global _default_store
    if _default_store is None:
        _default_store = InMemorySessionStore()
    return _default_store


def set_default_store(store: SessionStore) -> None:
    global _default_store
    _default_store = store
