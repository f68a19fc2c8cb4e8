"""
Conversation memory store. Keyed by conversation_id; memory is never sent from the frontend.

Memory is small code-owned scratch state (lastOrderId, lastOrderStatus) written by the
tool step of the agent and read back to enrich prompts on later turns. Two backends:
process-local dict (default) and Redis with a TTL.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Mapping

from agentdesk.core.config import MEMORY_KEY_PREFIX, MEMORY_STORE, MEMORY_TTL_SECONDS, REDIS_URL
from agentdesk.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

LAST_ORDER_ID = "lastOrderId"
LAST_ORDER_STATUS = "lastOrderStatus"


class ConversationMemory:
    """Key/value scratch state for one conversation."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def contains(self, key: str) -> bool:
        return key in self._data

    def snapshot(self) -> Mapping[str, Any]:
        """Return a read-only copy, safe to embed in a prompt or serialize."""
        return MappingProxyType(dict(self._data))

    def __len__(self) -> int:
        return len(self._data)


class MemoryStore(ABC):
    """Backing store for ConversationMemory. Owns eviction; the agent never deletes memory."""

    @abstractmethod
    def get(self, conversation_id: str) -> ConversationMemory | None: ...

    @abstractmethod
    def put(self, conversation_id: str, memory: ConversationMemory) -> None: ...

    @abstractmethod
    def remove(self, conversation_id: str) -> None: ...

    def get_or_create(self, conversation_id: str) -> ConversationMemory:
        """Return the conversation's memory, creating (and storing) an empty one on first turn."""
        memory = self.get(conversation_id)
        if memory is None:
            memory = ConversationMemory()
            self.put(conversation_id, memory)
            logger.info("[memory_store:get_or_create] created conversation_id=%s", conversation_id[:16])
        return memory


class InMemoryMemoryStore(MemoryStore):
    """
    Process-local store. The lock guards the dict only: two concurrent turns on the
    same conversation share one ConversationMemory and the last write wins.
    """

    def __init__(self) -> None:
        self._memories: dict[str, ConversationMemory] = {}
        self._lock = threading.Lock()

    def get(self, conversation_id: str) -> ConversationMemory | None:
        with self._lock:
            memory = self._memories.get(conversation_id)
        logger.info("[memory_store:get] conversation_id=%s found=%s", conversation_id[:16], memory is not None)
        return memory

    def put(self, conversation_id: str, memory: ConversationMemory) -> None:
        with self._lock:
            self._memories[conversation_id] = memory
        logger.info("[memory_store:put] conversation_id=%s keys=%d", conversation_id[:16], len(memory))

    def remove(self, conversation_id: str) -> None:
        with self._lock:
            self._memories.pop(conversation_id, None)
        logger.info("[memory_store:remove] conversation_id=%s", conversation_id[:16])


class RedisMemoryStore(MemoryStore):
    """Redis-backed store. Each conversation is one JSON string key that expires after ttl_seconds."""

    def __init__(self, client: Any, ttl_seconds: int = MEMORY_TTL_SECONDS, key_prefix: str = MEMORY_KEY_PREFIX) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _key(self, conversation_id: str) -> str:
        return f"{self.key_prefix}{conversation_id}"

    def get(self, conversation_id: str) -> ConversationMemory | None:
        raw = self.client.get(self._key(conversation_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        if not raw.strip():
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ServiceUnavailableError(f"Failed to deserialize memory for {conversation_id}") from e
        if not isinstance(data, dict):
            raise ServiceUnavailableError(f"Failed to deserialize memory for {conversation_id}")
        return ConversationMemory(data)

    def put(self, conversation_id: str, memory: ConversationMemory) -> None:
        payload = json.dumps(dict(memory.snapshot()), default=str)
        self.client.set(self._key(conversation_id), payload, ex=self.ttl_seconds)
        logger.info("[memory_store:redis_put] conversation_id=%s ttl=%ds", conversation_id[:16], self.ttl_seconds)

    def remove(self, conversation_id: str) -> None:
        self.client.delete(self._key(conversation_id))


def create_memory_store() -> MemoryStore:
    """Build the store selected by MEMORY_STORE ("memory" or "redis")."""
    if MEMORY_STORE == "redis":
        import redis

        logger.info("[memory_store] using Redis url=%s ttl=%ds", REDIS_URL.split("@")[-1], MEMORY_TTL_SECONDS)
        return RedisMemoryStore(redis.Redis.from_url(REDIS_URL), MEMORY_TTL_SECONDS, MEMORY_KEY_PREFIX)
    logger.info("[memory_store] using in-process store")
    return InMemoryMemoryStore()
