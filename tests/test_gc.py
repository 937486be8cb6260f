"""Tests for garbage collection of tag metadata."""

import threading

import pytest

from tagged_cache import (
    AsyncGarbageCollector,
    AsyncMemoryStore,
    GarbageCollector,
    Keyspace,
    MemoryStore,
)
from tagged_cache.gc import find_stale_tags
from tagged_cache.versions import TagVersionStore

HOUR = 3600
DAY = 24 * HOUR


@pytest.fixture
def collector(store: MemoryStore, clock) -> GarbageCollector:
    return GarbageCollector(
        store, Keyspace(), refresh_window=2 * HOUR, stale_after=DAY, clock=clock
    )


@pytest.fixture
def versions(store: MemoryStore, clock) -> TagVersionStore:
    return TagVersionStore(store, Keyspace(), clock=clock)


class TestFindStaleTags:
    def test_selects_only_idle_tags(self) -> None:
        touched = {"old": b"1000", "edge": b"1400", "new": b"1450"}
        assert find_stale_tags(touched, now=1500, stale_after=100) == ["old"]

    def test_unreadable_timestamps_are_stale(self) -> None:
        assert find_stale_tags({"bad": b"yesterday"}, now=10, stale_after=5) == [
            "bad"
        ]

    def test_empty(self) -> None:
        assert find_stale_tags({}, now=10, stale_after=5) == []


class TestGarbageCollector:
    def test_removes_idle_tags_and_keeps_active_ones(
        self,
        collector: GarbageCollector,
        versions: TagVersionStore,
        store: MemoryStore,
        clock,
    ) -> None:
        versions.get_version("idle")
        versions.bump_version("idle")
        clock.advance(DAY - HOUR)
        versions.get_version("active")
        clock.advance(2 * HOUR)

        assert collector.run() == 1
        assert set(store.hgetall("RKC:TIME")) == {"active"}
        assert set(store.hgetall("RKC:TAGS")) == {"active"}

    def test_forgotten_tag_restarts_at_one(
        self, collector: GarbageCollector, versions: TagVersionStore, clock
    ) -> None:
        versions.get_version("user:42")
        versions.bump_version("user:42")
        clock.advance(DAY + 1)

        collector.run()

        assert versions.get_version("user:42") == 1

    def test_runs_once_per_window(
        self, collector: GarbageCollector, store: MemoryStore, clock
    ) -> None:
        assert collector.run() == 0
        assert store.exists("RKC:REFRESH")
        assert collector.run() is None

        clock.advance(2 * HOUR - 1)
        assert collector.run() is None

        clock.advance(1)
        assert collector.run() == 0

    def test_marker_is_shared_between_instances(
        self, store: MemoryStore, clock
    ) -> None:
        collectors = [
            GarbageCollector(
                store, Keyspace(), refresh_window=2 * HOUR, stale_after=DAY, clock=clock
            )
            for _ in range(5)
        ]
        results = [collector.run() for collector in collectors]
        assert results.count(None) == 4

    def test_concurrent_instances_sweep_once(self, store: MemoryStore, clock) -> None:
        collectors = [
            GarbageCollector(
                store, Keyspace(), refresh_window=2 * HOUR, stale_after=DAY, clock=clock
            )
            for _ in range(8)
        ]
        barrier = threading.Barrier(len(collectors))
        results: list[int | None] = []

        def sweep(collector: GarbageCollector) -> None:
            barrier.wait()
            results.append(collector.run())

        threads = [threading.Thread(target=sweep, args=(c,)) for c in collectors]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert results.count(None) == 7

    def test_lost_marker_race_skips(
        self, collector: GarbageCollector, store: MemoryStore
    ) -> None:
        # Marker absent on exists() but taken by someone else before set()
        original_exists = store.exists

        def exists_then_taken(key: str) -> bool:
            result = original_exists(key)
            store.set(key, 1, 60)
            return result

        store.exists = exists_then_taken  # type: ignore[method-assign]
        assert collector.run() is None

    def test_force_ignores_marker(
        self, collector: GarbageCollector, store: MemoryStore, versions, clock
    ) -> None:
        collector.run()
        versions.get_version("old")
        clock.advance(DAY + 1)
        store.set("RKC:REFRESH", 1, 10 * HOUR)

        assert collector.run() is None
        assert collector.run(force=True) == 1

    def test_deletion_is_idempotent(
        self, collector: GarbageCollector, store: MemoryStore, clock
    ) -> None:
        store.hset("RKC:TIME", "ghost", int(clock.now) - DAY - 10)
        assert collector.run() == 1
        assert collector.run(force=True) == 0
        assert store.hgetall("RKC:TIME") == {}


class TestAsyncGarbageCollector:
    async def test_sweep_and_gate(self, async_store: AsyncMemoryStore, clock) -> None:
        collector = AsyncGarbageCollector(
            async_store, Keyspace(), refresh_window=2 * HOUR, stale_after=DAY, clock=clock
        )
        await async_store.hset("RKC:TIME", "old", int(clock.now) - DAY - 1)
        await async_store.hset("RKC:TAGS", "old", 3)
        await async_store.hset("RKC:TIME", "new", int(clock.now))
        await async_store.hset("RKC:TAGS", "new", 1)

        assert await collector.run() == 1
        assert await collector.run() is None
        assert await async_store.hgetall("RKC:TAGS") == {"new": b"1"}
        assert await async_store.hgetall("RKC:TIME") == {
            "new": str(int(clock.now)).encode()
        }
