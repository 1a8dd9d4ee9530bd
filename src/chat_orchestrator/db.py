"""MongoDB access for chat histories and user preferences. Two collections:

- chat_histories: one document per saved conversation (_id = ObjectId), with
  session_id, bot_id, user_id, title, start_time, logged_at and messages
- user_preferences: one document per user (_id = user id) holding the custom
  system instruction
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from .config import HISTORY_LIST_LIMIT, MONGODB_DATABASE, MONGODB_URI
from .errors import HistoryDBError

logger = logging.getLogger(__name__)

COLLECTION_HISTORIES = "chat_histories"
COLLECTION_PREFERENCES = "user_preferences"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(record_id: str) -> ObjectId | None:
    return ObjectId(record_id) if ObjectId.is_valid(record_id) else None


def _history_out(doc: dict[str, Any]) -> dict[str, Any]:
    out = dict(doc)
    out["id"] = str(out.pop("_id"))
    return out


class ChatRepository:
    """Persistence adapter over a Mongo database handle."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def _histories(self):
        return self._db[COLLECTION_HISTORIES]

    @property
    def _preferences(self):
        return self._db[COLLECTION_PREFERENCES]

    async def ensure_indexes(self) -> None:
        await self._histories.create_index([("user_id", 1), ("start_time", DESCENDING)])

    # -----------------------------------------------------------------------
    # Chat histories
    # -----------------------------------------------------------------------

    async def save_history(
        self,
        session_id: str,
        bot_id: str,
        messages: list[dict[str, Any]],
        user_id: str | None = None,
    ) -> str:
        """Insert a conversation record and return its id."""
        now = _utc_now()
        doc = {
            "session_id": session_id,
            "bot_id": bot_id,
            "user_id": user_id,
            "title": None,
            "start_time": now,
            "logged_at": now,
            "messages": messages,
        }
        try:
            result = await self._histories.insert_one(doc)
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to save chat history: {e}") from e
        return str(result.inserted_id)

    async def list_histories(self, user_id: str, limit: int = HISTORY_LIST_LIMIT) -> list[dict[str, Any]]:
        """Return a user's records, newest start_time first."""
        try:
            cursor = self._histories.find({"user_id": user_id}).sort("start_time", DESCENDING).limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to list chat histories: {e}") from e
        return [_history_out(d) for d in docs]

    async def get_history(self, record_id: str) -> dict[str, Any] | None:
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            doc = await self._histories.find_one({"_id": oid})
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to get chat history {record_id}: {e}") from e
        return _history_out(doc) if doc else None

    async def delete_history(self, record_id: str) -> bool:
        """Delete one record. Returns False when it does not exist."""
        oid = _object_id(record_id)
        if oid is None:
            return False
        try:
            result = await self._histories.delete_one({"_id": oid})
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to delete chat history {record_id}: {e}") from e
        return result.deleted_count > 0

    async def update_title(self, record_id: str, title: str) -> dict[str, Any] | None:
        """Set the title and return the updated record, or None when absent."""
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            doc = await self._histories.find_one_and_update(
                {"_id": oid},
                {"$set": {"title": title}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to update chat history {record_id}: {e}") from e
        return _history_out(doc) if doc else None

    # -----------------------------------------------------------------------
    # User preferences
    # -----------------------------------------------------------------------

    async def get_custom_instruction(self, user_id: str) -> str | None:
        try:
            doc = await self._preferences.find_one({"_id": user_id})
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to get preferences for {user_id}: {e}") from e
        if not doc:
            return None
        return doc.get("custom_system_instruction")

    async def set_custom_instruction(self, user_id: str, instruction: str | None) -> str | None:
        """Upsert the user's custom system instruction; empty clears it."""
        value = instruction or None
        try:
            await self._preferences.update_one(
                {"_id": user_id},
                {"$set": {"custom_system_instruction": value, "updated_at": _utc_now()}},
                upsert=True,
            )
        except PyMongoError as e:
            raise HistoryDBError(f"Failed to save preferences for {user_id}: {e}") from e
        return value


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------

_client: AsyncIOMotorClient | None = None
_repository: ChatRepository | None = None


async def init_db(uri: str = MONGODB_URI, database: str = MONGODB_DATABASE) -> ChatRepository:
    """Connect to MongoDB and ensure indexes. Call once at app startup."""
    global _client, _repository
    try:
        _client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        await _client.admin.command("ping")
        _repository = ChatRepository(_client[database])
        await _repository.ensure_indexes()
    except PyMongoError as e:
        _client = None
        _repository = None
        raise HistoryDBError(f"MongoDB connection or init failed: {e}") from e
    logger.info("MongoDB connected (database %s)", database)
    return _repository


async def close_db() -> None:
    """Close MongoDB connection. Call at app shutdown."""
    global _client, _repository
    if _client is not None:
        _client.close()
    _client = None
    _repository = None


def get_repository() -> ChatRepository:
    """Return the repository; call after init_db."""
    if _repository is None:
        raise HistoryDBError("DB not initialized. Call init_db() first.")
    return _repository


def get_optional_repository() -> ChatRepository | None:
    """Return the repository, or None when the database is not connected."""
    return _repository
