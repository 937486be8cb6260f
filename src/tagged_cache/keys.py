"""Composite key derivation.

A composite key is a pure function of the namespace epoch, the prefix, the
logical key, the sorted tag names and their current versions. Changing the
epoch or any tag version changes the key, which orphans everything stored
under the old one.
"""

import base64
import hashlib
from collections.abc import Sequence

from tagged_cache.namespace import AsyncNamespaceController, NamespaceController
from tagged_cache.types import CompositeKey, Tag, TagsInput, normalize_tags
from tagged_cache.versions import AsyncTagVersionStore, TagVersionStore


def build_descriptor(
    prefix: str,
    key: str,
    tags: Sequence[Tag],
    versions: Sequence[int],
) -> str:
    """Build the string that gets hashed into a composite key.

    The layout is fixed so keys stay readable by existing deployments:
    ``<prefix>_keys_<key>_<names>_<versions>`` where names is ``_`` followed
    by ``_<tag>`` per tag and versions is ``0`` followed by ``_<version>``.
    """
    if len(tags) != len(versions):
        raise ValueError("tags and versions must have the same length")
    names = "_" + "".join(f"_{tag}" for tag in tags)
    numbers = "0" + "".join(f"_{version}" for version in versions)
    return f"{prefix}_keys_{key}_{names}_{numbers}"


def compose_key(marker: str, namespace: int, descriptor: str) -> CompositeKey:
    """Hash a descriptor into ``<marker>:<namespace>:<digest>``."""
    digest = hashlib.sha256(descriptor.encode("utf-8")).digest()
    encoded = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return CompositeKey(f"{marker}:{namespace}:{encoded}")


class KeyDeriver:
    """Sync key deriver."""

    def __init__(
        self,
        versions: TagVersionStore,
        namespace: NamespaceController,
        marker: str,
    ) -> None:
        self._versions = versions
        self._namespace = namespace
        self._marker = marker

    def derive(
        self,
        prefix: str,
        key: str,
        tags: TagsInput = (),
        *,
        namespace: int | None = None,
    ) -> CompositeKey:
        """Derive the composite key, touching every tag on the way.

        Args:
            prefix: Logical cache separator
            key: Caller's key
            tags: Tags the entry depends on, in any order
            namespace: Epoch to use instead of the current one

        Returns:
            The storage key for this combination
        """
        ordered = normalize_tags(tags)
        epoch = self._namespace.current() if namespace is None else namespace
        versions = [self._versions.get_version(tag) for tag in ordered]
        descriptor = build_descriptor(prefix, key, ordered, versions)
        return compose_key(self._marker, epoch, descriptor)


class AsyncKeyDeriver:
    """Async key deriver."""

    def __init__(
        self,
        versions: AsyncTagVersionStore,
        namespace: AsyncNamespaceController,
        marker: str,
    ) -> None:
        self._versions = versions
        self._namespace = namespace
        self._marker = marker

    async def derive(
        self,
        prefix: str,
        key: str,
        tags: TagsInput = (),
        *,
        namespace: int | None = None,
    ) -> CompositeKey:
        """Derive the composite key, touching every tag on the way."""
        ordered = normalize_tags(tags)
        epoch = await self._namespace.current() if namespace is None else namespace
        versions = [await self._versions.get_version(tag) for tag in ordered]
        descriptor = build_descriptor(prefix, key, ordered, versions)
        return compose_key(self._marker, epoch, descriptor)


__all__ = ["AsyncKeyDeriver", "KeyDeriver", "build_descriptor", "compose_key"]
