"""Tests for the namespace epoch."""

import pytest

from tagged_cache import AsyncMemoryStore, Keyspace, MemoryStore
from tagged_cache.namespace import (
    EPOCH_START_RANGE,
    AsyncNamespaceController,
    NamespaceController,
)


class TestNamespaceController:
    def test_initializes_randomly_within_range(self, store: MemoryStore) -> None:
        epoch = NamespaceController(store, Keyspace()).current()
        low, high = EPOCH_START_RANGE
        assert low <= epoch <= high
        assert store.get("RKC:NAMESPACE") == str(epoch).encode()

    def test_initial_value_comes_from_random(
        self, store: MemoryStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("tagged_cache.namespace.random.randint", lambda a, b: 1234)
        assert NamespaceController(store, Keyspace()).current() == 1234

    def test_existing_epoch_is_kept(self, store: MemoryStore) -> None:
        store.set("RKC:NAMESPACE", 55)
        assert NamespaceController(store, Keyspace()).current() == 55

    def test_stable_across_calls(self, store: MemoryStore) -> None:
        namespace = NamespaceController(store, Keyspace())
        assert namespace.current() == namespace.current()

    def test_bump_all(self, store: MemoryStore) -> None:
        store.set("RKC:NAMESPACE", 10)
        namespace = NamespaceController(store, Keyspace())
        assert namespace.bump_all() == 11
        assert namespace.current() == 11

    def test_sees_bumps_from_other_instances(self, store: MemoryStore) -> None:
        ours = NamespaceController(store, Keyspace())
        theirs = NamespaceController(store, Keyspace())
        start = ours.current()
        theirs.bump_all()
        assert ours.current() == start + 1

    def test_marker_separates_namespaces(self, store: MemoryStore) -> None:
        store.set("RKC:NAMESPACE", 1)
        store.set("APP:NAMESPACE", 2)
        assert NamespaceController(store, Keyspace("APP")).current() == 2


class TestAsyncNamespaceController:
    async def test_initialize_and_bump(self, async_store: AsyncMemoryStore) -> None:
        namespace = AsyncNamespaceController(async_store, Keyspace())
        start = await namespace.current()
        assert await namespace.current() == start
        assert await namespace.bump_all() == start + 1
        assert await async_store.get("RKC:NAMESPACE") == str(start + 1).encode()
