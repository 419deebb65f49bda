from __future__ import annotations

from typing import BinaryIO

from .errors import TruncatedData


class LimitedReader:
    """Wrap a binary stream so that at most ``limit`` bytes can be read.

    Reads past the limit behave exactly like reads past the end of a file:
    they return fewer bytes (possibly none).
    """

    def __init__(self, stream: BinaryIO, limit: int) -> None:
        self._stream = stream
        self.remaining = limit

    def read(self, size: int = -1) -> bytes:
        if self.remaining <= 0:
            return b""
        if size < 0 or size > self.remaining:
            size = self.remaining
        data = self._stream.read(size)
        self.remaining -= len(data)
        return data


def read_exact(stream: BinaryIO, size: int, *, what: str) -> bytes:
    """Read exactly ``size`` bytes or raise :class:`TruncatedData`."""
    if size == 0:
        return b""
    data = stream.read(size)
    if len(data) != size:
        raise TruncatedData(
            f"failed reading {what}: wanted {size} bytes, got {len(data)}"
        )
    return data


def read_byte(stream: BinaryIO, *, what: str) -> int:
    return read_exact(stream, 1, what=what)[0]
