"""Payload codecs."""

import json
import zlib
from typing import Any, Protocol, runtime_checkable

from tagged_cache.errors import DecodeFailure


@runtime_checkable
class Codec(Protocol):
    """Turns cached values into bytes and back."""

    def encode(self, value: Any) -> bytes:
        """Serialize a value."""
        ...

    def decode(self, data: bytes) -> Any:
        """Deserialize a value. Raises DecodeFailure on corrupt input."""
        ...


class JsonZlibCodec:
    """JSON payloads compressed with zlib.

    Non-ASCII characters are written unescaped, which matches the payloads
    stored by the existing PHP deployments.
    """

    def __init__(self, level: int = 9) -> None:
        if not 0 <= level <= 9:
            raise ValueError("level must be between 0 and 9")
        self._level = level

    def encode(self, value: Any) -> bytes:
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        return zlib.compress(text.encode("utf-8"), self._level)

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(zlib.decompress(data).decode("utf-8"))
        except (zlib.error, UnicodeDecodeError, ValueError, TypeError) as e:
            raise DecodeFailure(f"Undecodable payload: {e}") from e


__all__ = ["Codec", "JsonZlibCodec"]
