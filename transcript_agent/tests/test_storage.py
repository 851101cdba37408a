"""Tests for transcript stores."""

import pytest

from transcript_agent.common.errors import StoreError
from transcript_agent.common.storage import JsonFileStore, MemoryStore, SubscribableStore


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_missing_key_returns_empty_string(self):
        store = MemoryStore()
        assert await store.get("transcript") == ""

    @pytest.mark.asyncio
    async def test_set_then_get(self):
        store = MemoryStore()
        await store.set("transcript", "Hello world")
        assert await store.get("transcript") == "Hello world"

    @pytest.mark.asyncio
    async def test_subscribers_notified_in_order(self):
        store = MemoryStore()
        seen = []
        store.subscribe("transcript", lambda v: seen.append(("a", v)))
        store.subscribe("transcript", lambda v: seen.append(("b", v)))
        store.subscribe("other", lambda v: seen.append(("other", v)))

        await store.set("transcript", "one")

        assert seen == [("a", "one"), ("b", "one")]

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self):
        store = MemoryStore()
        seen = []
        unsubscribe = store.subscribe("transcript", seen.append)

        await store.set("transcript", "first")
        unsubscribe()
        unsubscribe()  # second call is harmless
        await store.set("transcript", "second")

        assert seen == ["first"]

    def test_memory_store_is_subscribable(self):
        assert isinstance(MemoryStore(), SubscribableStore)


class TestJsonFileStore:
    @pytest.mark.asyncio
    async def test_missing_file_returns_empty_string(self, tmp_path):
        store = JsonFileStore(tmp_path / "transcripts.json")
        assert await store.get("transcript") == ""

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "transcripts.json"
        await JsonFileStore(path).set("transcript", "Persisted text")
        await JsonFileStore(path).set("other", "More")

        store = JsonFileStore(path)
        assert await store.get("transcript") == "Persisted text"
        assert await store.get("other") == "More"

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_store_error(self, tmp_path):
        path = tmp_path / "transcripts.json"
        path.write_text("{broken")
        with pytest.raises(StoreError, match="Failed to read"):
            await JsonFileStore(path).get("transcript")

    @pytest.mark.asyncio
    async def test_non_object_file_raises_store_error(self, tmp_path):
        path = tmp_path / "transcripts.json"
        path.write_text("[1, 2]")
        with pytest.raises(StoreError):
            await JsonFileStore(path).get("transcript")

    def test_file_store_is_not_subscribable(self, tmp_path):
        assert not isinstance(JsonFileStore(tmp_path / "t.json"), SubscribableStore)
