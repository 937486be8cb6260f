"""Connection state of a cache facade.

A facade starts DISCONNECTED, moves through CONNECTING and ends either
CONNECTED or FAILED. FAILED is terminal: the facade turns every operation
into a no-op for the rest of the process lifetime.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

StoreT = TypeVar("StoreT")


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Disabled:
    """No usable backing store. Operations are no-ops."""

    reason: str


@dataclass(frozen=True, slots=True)
class Connected(Generic[StoreT]):
    """A reachable backing store."""

    store: StoreT


__all__ = ["ConnectionState", "Connected", "Disabled"]
