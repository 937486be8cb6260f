"""Core types for tagged-cache."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Final, NewType

# Tags are plain strings, e.g. "user:42"
Tag = str

# Branded key type - compile-time enforcement only
if TYPE_CHECKING:
    CompositeKey = NewType("CompositeKey", str)
else:
    CompositeKey = str

# Duration type alias
Duration = str | int  # "30s", "5m", "2h", "1d" or seconds

TagsInput = Iterable[Tag] | Tag


def normalize_tags(tags: TagsInput) -> tuple[Tag, ...]:
    """Deduplicate and sort a tag collection. A bare string is one tag."""
    if isinstance(tags, str):
        return (tags,)
    return tuple(sorted(set(tags)))


class _Miss:
    """Sentinel returned by ``load`` when asked to distinguish misses."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Final = _Miss()


class CleaningMode(str, Enum):
    """Legacy cleaning modes accepted by ``clean``."""

    ALL = "all"
    MATCHING_TAG = "matchingTag"
    MATCHING_ANY_TAG = "matchingAnyTag"


class TagMatch(str, Enum):
    """How listed tags are meant to match an entry's tags.

    Both values currently bump every listed tag, so ANY and ALL behave the
    same. The distinction is kept so callers can state their intent.
    """

    ANY = "any"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class FlushAll:
    """Invalidate every entry by advancing the namespace epoch."""


@dataclass(frozen=True, slots=True)
class InvalidateTags:
    """Invalidate entries carrying the given tags."""

    tags: tuple[Tag, ...]
    match: TagMatch = field(default=TagMatch.ANY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))


InvalidationRequest = FlushAll | InvalidateTags
