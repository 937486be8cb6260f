"""Exception hierarchy for tagged-cache."""


class TaggedCacheError(Exception):
    """Base class for all tagged-cache errors."""


class StoreError(TaggedCacheError):
    """A backing store operation failed."""


class ConnectionFailure(StoreError):
    """The backing store cannot be reached.

    A facade that sees this error switches to no-op mode for the rest of the
    process lifetime and never tries to reconnect.
    """


class DecodeFailure(TaggedCacheError):
    """A stored payload could not be decoded. Loads report it as a miss."""


__all__ = ["ConnectionFailure", "DecodeFailure", "StoreError", "TaggedCacheError"]
