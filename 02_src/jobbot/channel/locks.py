"""Per-conversation turn serialization."""

import asyncio
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

# Conversations whose lock is held by the current async call chain.
_held: ContextVar[frozenset[str]] = ContextVar("held_conversations", default=frozenset())


class ConversationLocks:
    """One asyncio.Lock per conversation, reentrant within a call chain.

    A lock exists only while some turn holds or waits for it; the last one
    out removes it from the map.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __contains__(self, conversation_key: str) -> bool:
        return conversation_key in self._locks

    def is_locked(self, conversation_key: str) -> bool:
        lock = self._locks.get(conversation_key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, conversation_key: str) -> AsyncIterator[None]:
        held = _held.get()
        if conversation_key in held:
            yield
            return

        lock = self._locks.setdefault(conversation_key, asyncio.Lock())
        self._users[conversation_key] = self._users.get(conversation_key, 0) + 1
        try:
            async with lock:
                token = _held.set(held | {conversation_key})
                try:
                    yield
                finally:
                    _held.reset(token)
        finally:
            self._users[conversation_key] -= 1
            if not self._users[conversation_key]:
                del self._users[conversation_key]
                del self._locks[conversation_key]
