"""
Unit tests for conversation memory and its stores. Redis is replaced by a MagicMock client.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from agentdesk.core.errors import ServiceUnavailableError
from agentdesk.core.memory_store import (
    ConversationMemory,
    InMemoryMemoryStore,
    RedisMemoryStore,
    create_memory_store,
)


class TestConversationMemory:
    def test_put_get_contains(self) -> None:
        memory = ConversationMemory()
        memory.put("lastOrderId", "123")
        assert memory.get("lastOrderId") == "123"
        assert memory.contains("lastOrderId")
        assert memory.get("missing") is None

    def test_snapshot_is_read_only_copy(self) -> None:
        memory = ConversationMemory({"lastOrderId": "1"})
        snap = memory.snapshot()
        with pytest.raises(TypeError):
            snap["lastOrderId"] = "2"  # type: ignore[index]
        memory.put("lastOrderId", "3")
        assert snap["lastOrderId"] == "1"


class TestInMemoryMemoryStore:
    def test_get_or_create_then_reuse(self) -> None:
        store = InMemoryMemoryStore()
        assert store.get("c") is None
        created = store.get_or_create("c")
        assert store.get_or_create("c") is created

    def test_remove(self) -> None:
        store = InMemoryMemoryStore()
        store.get_or_create("c")
        store.remove("c")
        store.remove("never-existed")
        assert store.get("c") is None


class TestRedisMemoryStore:
    def test_put_serializes_with_ttl(self) -> None:
        client = MagicMock()
        store = RedisMemoryStore(client, ttl_seconds=60, key_prefix="memory:")
        store.put("c1", ConversationMemory({"lastOrderId": "5", "lastOrderStatus": "IN_TRANSIT"}))
        key, payload = client.set.call_args.args
        assert key == "memory:c1"
        assert json.loads(payload) == {"lastOrderId": "5", "lastOrderStatus": "IN_TRANSIT"}
        assert client.set.call_args.kwargs == {"ex": 60}

    def test_get_roundtrip_from_bytes(self) -> None:
        client = MagicMock()
        client.get.return_value = b'{"lastOrderId": "5"}'
        memory = RedisMemoryStore(client).get("c1")
        assert memory.get("lastOrderId") == "5"

    @pytest.mark.parametrize("raw", [None, b"", "  "])
    def test_get_missing(self, raw) -> None:
        client = MagicMock()
        client.get.return_value = raw
        assert RedisMemoryStore(client).get("c1") is None

    @pytest.mark.parametrize("raw", [b"{broken", b"[1, 2]"])
    def test_get_corrupt_raises(self, raw) -> None:
        client = MagicMock()
        client.get.return_value = raw
        with pytest.raises(ServiceUnavailableError):
            RedisMemoryStore(client).get("c1")

    def test_get_or_create_stores_empty_memory(self) -> None:
        client = MagicMock()
        client.get.return_value = None
        memory = RedisMemoryStore(client, key_prefix="m:").get_or_create("c1")
        assert len(memory) == 0
        assert client.set.call_args.args == ("m:c1", "{}")

    def test_remove_deletes_key(self) -> None:
        client = MagicMock()
        RedisMemoryStore(client, key_prefix="m:").remove("c1")
        client.delete.assert_called_once_with("m:c1")


class TestCreateMemoryStore:
    def test_default_is_in_memory(self) -> None:
        with patch("agentdesk.core.memory_store.MEMORY_STORE", "memory"):
            assert isinstance(create_memory_store(), InMemoryMemoryStore)

    def test_redis_selected(self) -> None:
        with patch("agentdesk.core.memory_store.MEMORY_STORE", "redis"), patch("redis.Redis.from_url") as from_url:
            store = create_memory_store()
        assert isinstance(store, RedisMemoryStore)
        from_url.assert_called_once()
