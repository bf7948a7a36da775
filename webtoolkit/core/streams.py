from __future__ import annotations

import io
from typing import BinaryIO, Union


class ReadLimitExceeded(IOError):
    """Raised by LimitedReader once the wrapped stream yields more than `limit` bytes."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"stream exceeded {limit} bytes")
        self.limit = limit


class LimitedReader(io.RawIOBase):
    """Read-only wrapper that fails once the wrapped stream yields more than `limit` bytes.

    The check is exact: a stream of exactly `limit` bytes reads cleanly, one
    more byte raises ReadLimitExceeded. The wrapped stream is not closed.

    """

    def __init__(self, stream: BinaryIO, limit: int) -> None:
        self._stream = stream
        self._limit = int(limit)
        self._consumed = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        # Allow one byte past the limit so overflow is observable.
        room = self._limit - self._consumed + 1
        want = min(len(b), room)
        if want <= 0:
            raise ReadLimitExceeded(self._limit)
        data = self._stream.read(want)
        if not data:
            return 0
        n = len(data)
        b[:n] = data
        self._consumed += n
        if self._consumed > self._limit:
            raise ReadLimitExceeded(self._limit)
        return n


def as_stream(body: Union[bytes, bytearray, BinaryIO]) -> BinaryIO:
    """Accept raw bytes wherever a binary stream is expected."""

    if isinstance(body, (bytes, bytearray)):
        return io.BytesIO(bytes(body))
    return body
