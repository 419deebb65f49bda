"""``MTrk`` chunk codec.

A track is stored as two parallel lists: ``deltas[i]`` is the number of
ticks elapsed before ``messages[i]``.  The methods on :class:`Track` edit
both lists together; code that touches the lists directly must keep their
lengths equal.

A track ends when its announced length is used up exactly between two
events.  A trailing EndOfTrack meta-event is not required; real-world
files omit it and still decode.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional, Tuple

from .errors import (
    BadChunkType,
    EndOfStream,
    OversizedInteger,
    SizeMismatch,
    SMFError,
    TrackLimitExceeded,
    TruncatedData,
)
from .messages import Message, read_message
from .stream import LimitedReader, read_exact
from .varint import MAX_VARINT, encode_varint, read_varint

TRACK_MAGIC = b"MTrk"
# Largest announced MTrk length accepted by default (64 MiB).
MAX_TRACK_LENGTH = 1 << 26


@dataclass
class Track:
    deltas: List[int] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.messages)

    def check(self) -> None:
        if len(self.deltas) != len(self.messages):
            raise SizeMismatch(
                f"bad track: has {len(self.messages)} messages, "
                f"but {len(self.deltas)} times"
            )

    def events(self) -> Iterator[Tuple[int, Message]]:
        self.check()
        return zip(self.deltas, self.messages)

    def append(self, delta: int, message: Message) -> None:
        self.deltas.append(delta)
        self.messages.append(message)

    def insert(self, index: int, delta: int, message: Message) -> None:
        if index < 0 or index > len(self):
            raise IndexError(f"insert position {index} out of range 0..{len(self)}")
        self.deltas.insert(index, delta)
        self.messages.insert(index, message)

    def remove(self, index: int) -> Tuple[int, Message]:
        """Delete the event at ``index`` and return it as ``(delta, message)``."""
        if index < 0 or index >= len(self):
            raise IndexError(f"event index {index} out of range 0..{len(self) - 1}")
        return self.deltas.pop(index), self.messages.pop(index)

    def total_ticks(self) -> int:
        return sum(self.deltas)

    def content_bytes(self) -> bytes:
        """Encode the events without the chunk header.

        Running status starts at 0 for every track.
        """
        self.check()
        buf = bytearray()
        running_status = 0
        for index, (delta, message) in enumerate(zip(self.deltas, self.messages)):
            try:
                buf += encode_varint(delta)
                data, running_status = message.encode(running_status)
            except SMFError as exc:
                raise exc.with_context(event=index)
            buf += data
        return bytes(buf)

    def to_bytes(self) -> bytes:
        content = self.content_bytes()
        return TRACK_MAGIC + len(content).to_bytes(4, "big") + content

    @classmethod
    def from_bytes(
        cls, data: bytes, *, max_length: Optional[int] = MAX_TRACK_LENGTH
    ) -> "Track":
        return read_track(io.BytesIO(data), max_length=max_length)


def read_track(
    stream: BinaryIO, *, max_length: Optional[int] = MAX_TRACK_LENGTH
) -> Track:
    """Decode one ``MTrk`` chunk starting at the current stream position."""
    tag = read_exact(stream, 4, what="track chunk type")
    if tag != TRACK_MAGIC:
        raise BadChunkType(f"bad chunk type for track: {tag!r}")
    length = int.from_bytes(read_exact(stream, 4, what="track length"), "big")
    if max_length is not None and length > max_length:
        raise TrackLimitExceeded(
            f"track length {length} exceeds limit of {max_length} bytes"
        )

    reader = LimitedReader(stream, length)
    track = Track()
    running_status = 0
    while True:
        index = len(track)
        try:
            delta = read_varint(reader)
        except EndOfStream:
            if reader.remaining:
                raise TruncatedData(
                    f"track ended {reader.remaining} byte(s) short of its "
                    f"announced length of {length}"
                ).with_context(event=index) from None
            break
        except SMFError as exc:
            raise exc.with_context(event=index)
        try:
            message, running_status = read_message(reader, running_status)
        except SMFError as exc:
            raise exc.with_context(event=index)
        track.append(delta, message)
    return track


def write_track(stream: BinaryIO, track: Track) -> None:
    stream.write(track.to_bytes())


def validate_delta(delta: int) -> int:
    if not isinstance(delta, int) or delta < 0 or delta > MAX_VARINT:
        raise OversizedInteger(
            f"time delta {delta} outside 0..0x{MAX_VARINT:08X}"
        )
    return delta
