"""Shared pytest fixtures."""

import pytest

from tagged_cache import (
    AsyncMemoryStore,
    AsyncTaggedCache,
    CacheConfig,
    MemoryStore,
    TaggedCache,
)


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    """Create a fresh MemoryStore for each test."""
    return MemoryStore(clock=clock)


@pytest.fixture
def async_store(clock: FakeClock) -> AsyncMemoryStore:
    """Create a fresh AsyncMemoryStore for each test."""
    return AsyncMemoryStore(clock=clock)


@pytest.fixture
def config() -> CacheConfig:
    return CacheConfig()


@pytest.fixture
def cache(store: MemoryStore, config: CacheConfig, clock: FakeClock) -> TaggedCache:
    return TaggedCache(store, config, clock=clock)


@pytest.fixture
def async_cache(
    async_store: AsyncMemoryStore, config: CacheConfig, clock: FakeClock
) -> AsyncTaggedCache:
    return AsyncTaggedCache(async_store, config, clock=clock)
