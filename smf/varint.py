"""MIDI variable-length integers.

Each byte carries 7 value bits, most-significant group first; the top bit
is set on every byte except the last.  At most 4 bytes are used, so the
largest encodable value is 0x0FFFFFFF.
"""

from __future__ import annotations

from typing import BinaryIO

from .errors import EndOfStream, OversizedInteger, TruncatedInteger

MAX_VARINT = 0x0FFFFFFF
MAX_VARINT_BYTES = 4


def read_varint(stream: BinaryIO) -> int:
    """Read one variable-length integer from ``stream``.

    Raises :class:`EndOfStream` if and only if the stream is exhausted
    before the first byte.  Running out of bytes after that raises
    :class:`TruncatedInteger`.
    """
    value = 0
    for i in range(MAX_VARINT_BYTES):
        chunk = stream.read(1)
        if not chunk:
            if i == 0:
                raise EndOfStream("end of stream")
            raise TruncatedInteger(
                f"failed reading full integer: stream ended after {i} byte(s)"
            )
        b = chunk[0]
        value = (value << 7) | (b & 0x7F)
        if not b & 0x80:
            return value
    raise OversizedInteger(
        "invalid variable-length integer: highest bit not clear on byte 4"
    )


def encode_varint(value: int) -> bytes:
    if value < 0 or value > MAX_VARINT:
        raise OversizedInteger(
            f"integer 0x{value:08X} is too large for a MIDI int"
        )
    if value == 0:
        return b"\x00"
    groups = []
    while value:
        groups.append(value & 0x7F)
        value >>= 7
    groups.reverse()
    last = len(groups) - 1
    return bytes(g | 0x80 if i != last else g for i, g in enumerate(groups))


def write_varint(stream: BinaryIO, value: int) -> None:
    stream.write(encode_varint(value))
