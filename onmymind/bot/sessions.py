"""Per-chat ephemeral state for the note commands."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List

DEFAULT_SHARDS = 16


@dataclass
class ChatSession:
    """What a chat last pulled and last deleted."""

    last_pulled: str | None = None
    last_deleted: str | None = None
    deleted_at: datetime | None = None


class SessionStore:
    """Chat sessions keyed by chat id, split across independently locked shards.

    Chats in different shards never wait on each other.
    """

    def __init__(self, shards: int = DEFAULT_SHARDS):
        self._shards: List[Dict[int, ChatSession]] = [{} for _ in range(shards)]
        self._locks = [asyncio.Lock() for _ in range(shards)]

    def _index(self, chat_id: int) -> int:
        return hash(chat_id) % len(self._shards)

    async def get(self, chat_id: int) -> ChatSession:
        """Get a copy of a chat's session."""
        index = self._index(chat_id)
        async with self._locks[index]:
            session = self._shards[index].get(chat_id, ChatSession())
            return ChatSession(session.last_pulled, session.last_deleted, session.deleted_at)

    async def set_pulled(self, chat_id: int, text: str) -> None:
        index = self._index(chat_id)
        async with self._locks[index]:
            self._shards[index].setdefault(chat_id, ChatSession()).last_pulled = text

    async def mark_deleted(self, chat_id: int, text: str, deleted_at: datetime) -> None:
        """Record a deletion and forget the pulled item."""
        index = self._index(chat_id)
        async with self._locks[index]:
            session = self._shards[index].setdefault(chat_id, ChatSession())
            session.last_pulled = None
            session.last_deleted = text
            session.deleted_at = deleted_at

    async def clear_deleted(self, chat_id: int) -> None:
        index = self._index(chat_id)
        async with self._locks[index]:
            session = self._shards[index].get(chat_id)
            if session:
                session.last_deleted = None
                session.deleted_at = None
