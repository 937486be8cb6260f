"""Cache configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from tagged_cache.duration import parse_duration
from tagged_cache.types import Duration

DEFAULT_MARKER = "RKC"
DEFAULT_TTL: Duration = "1h"
DEFAULT_REFRESH_WINDOW: Duration = "2h"
DEFAULT_STALE_AFTER: Duration = "24h"


@dataclass(frozen=True, slots=True)
class Keyspace:
    """Well-known key names shared by every instance using one marker."""

    marker: str = DEFAULT_MARKER

    @property
    def namespace(self) -> str:
        return f"{self.marker}:NAMESPACE"

    @property
    def tags(self) -> str:
        return f"{self.marker}:TAGS"

    @property
    def time(self) -> str:
        return f"{self.marker}:TIME"

    @property
    def refresh(self) -> str:
        return f"{self.marker}:REFRESH"


@dataclass(frozen=True)
class CacheConfig:
    """Configuration for a single cache instance.

    Durations accept ``"30s"``, ``"5m"``, ``"2h"``, ``"1d"`` or whole seconds.

    Attributes:
        url: Backing store URL, used by ``TaggedCache.from_config``.
        prefix: Separator for independent logical caches sharing one store.
        marker: Leading segment of every key this layer writes.
        default_ttl: Entry lifetime used when ``save`` gets no ``ttl``.
        refresh_window: Minimum time between two garbage collection sweeps.
        stale_after: Idle time after which tag metadata is collected.
    """

    url: str | None = None
    prefix: str = ""
    marker: str = DEFAULT_MARKER
    default_ttl: Duration = DEFAULT_TTL
    refresh_window: Duration = DEFAULT_REFRESH_WINDOW
    stale_after: Duration = DEFAULT_STALE_AFTER

    def __post_init__(self) -> None:
        if not self.marker:
            raise ValueError("marker must not be empty")
        if ":" in self.marker:
            raise ValueError("marker must not contain ':'")
        for name in ("default_ttl", "refresh_window", "stale_after"):
            if parse_duration(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")

    @property
    def keyspace(self) -> Keyspace:
        return Keyspace(self.marker)

    @property
    def default_ttl_seconds(self) -> int:
        return parse_duration(self.default_ttl)

    @property
    def refresh_window_seconds(self) -> int:
        return parse_duration(self.refresh_window)

    @property
    def stale_after_seconds(self) -> int:
        return parse_duration(self.stale_after)

    @classmethod
    def from_env(cls, **overrides: object) -> CacheConfig:
        """Build a config from ``TAGGED_CACHE_*`` environment variables."""
        values: dict[str, object] = {
            "url": os.getenv("TAGGED_CACHE_URL"),
            "prefix": os.getenv("TAGGED_CACHE_PREFIX", ""),
            "marker": os.getenv("TAGGED_CACHE_MARKER", DEFAULT_MARKER),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


__all__ = [
    "DEFAULT_MARKER",
    "DEFAULT_REFRESH_WINDOW",
    "DEFAULT_STALE_AFTER",
    "DEFAULT_TTL",
    "CacheConfig",
    "Keyspace",
]
