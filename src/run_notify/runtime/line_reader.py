"""Lazy UTF-8 line decoding over a child output stream.

The reader pulls fixed-size chunks instead of using ``readline()`` so a
very long line never trips the StreamReader buffer limit.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Protocol

from ..errors import StreamReadError

__all__ = [
    "ByteStream",
    "DecodeErrorPolicy",
    "LineReader",
]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


class ByteStream(Protocol):
    """Anything with an awaitable ``read(n)``, e.g. ``asyncio.StreamReader``."""

    async def read(self, n: int = -1) -> bytes: ...


class DecodeErrorPolicy(Enum):
    """What to do with a line that is not valid UTF-8.

    - DROP: skip the line
    - REPLACE: keep it, substituting U+FFFD for bad bytes
    """

    DROP = "drop"
    REPLACE = "replace"

    @classmethod
    def from_string(cls, value: str) -> "DecodeErrorPolicy":
        """Parse a policy name, falling back to DROP for unknown values."""
        value = value.lower().strip()
        for policy in cls:
            if policy.value == value:
                return policy
        return cls.DROP


class LineReader:
    """Async iterator of decoded lines from a byte stream.

    Lines are split on ``\\n``; the delimiter and a trailing ``\\r`` are
    stripped. A final fragment without newline is still yielded. The
    reader is single-use: once the stream hits EOF it stays exhausted.

    Example:
        async for line in LineReader(process.stderr, name="stderr"):
            handle(line)
    """

    def __init__(
        self,
        stream: ByteStream,
        *,
        name: str = "stream",
        decode_errors: DecodeErrorPolicy = DecodeErrorPolicy.DROP,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self._stream = stream
        self._name = name
        self._decode_errors = decode_errors
        self._chunk_size = chunk_size
        self._pending = bytearray()
        self._ready: deque[bytes] = deque()
        self._eof = False
        self.dropped = 0

    def __aiter__(self) -> "LineReader":
        return self

    async def __anext__(self) -> str:
        while True:
            while self._ready:
                line = self._decode(self._ready.popleft())
                if line is not None:
                    return line
            if self._eof:
                raise StopAsyncIteration
            await self._fill()

    async def _fill(self) -> None:
        try:
            chunk = await self._stream.read(self._chunk_size)
        except OSError as e:
            raise StreamReadError(self._name, e) from e

        if not chunk:
            self._eof = True
            if self._pending:
                self._ready.append(bytes(self._pending))
                self._pending.clear()
            return

        if b"\n" not in chunk:
            self._pending.extend(chunk)
            return

        # Only the new chunk is split; _pending never holds a newline
        first, *complete, rest = chunk.split(b"\n")
        self._pending.extend(first)
        self._ready.append(bytes(self._pending))
        self._ready.extend(complete)
        self._pending = bytearray(rest)

    def _decode(self, raw: bytes) -> str | None:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            if self._decode_errors is DecodeErrorPolicy.REPLACE:
                return raw.decode("utf-8", errors="replace")
            self.dropped += 1
            logger.debug(f"Dropped undecodable {self._name} line ({len(raw)} bytes): {e}")
            return None
