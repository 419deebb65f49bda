"""Standard MIDI File container: the ``MThd`` header plus its track chunks.

Layout (big-endian)::

    "MThd"  u32 size=6  u16 format  u16 track_count  u16 division
    "MTrk"  u32 length  <events>      (repeated track_count times)

Format and track count are derived from ``SMFFile.tracks`` on write:
format 0 for exactly one track, format 1 otherwise.  Format 2 files are
rejected.

Round-trip guarantee: ``SMFFile.from_bytes(data).to_bytes() == data`` for
files whose channel events already use running status wherever possible.
"""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from .errors import (
    BadChunkType,
    MalformedChunk,
    SizeMismatch,
    SMFError,
    UnsupportedFormat,
)
from .stream import read_exact
from .track import MAX_TRACK_LENGTH, Track, read_track, write_track

HEADER_MAGIC = b"MThd"
HEADER_CHUNK_SIZE = 6
HEADER_SIZE = 14
# Extension room allowed beyond the six defined header bytes.
MAX_HEADER_CHUNK_SIZE = 256
MAX_TRACKS = 0xFFFF

FORMAT_SINGLE_TRACK = 0
FORMAT_MULTI_TRACK = 1


@dataclass(frozen=True)
class TimeDivision:
    """The header's 16-bit division word.

    Bit 15 clear: ticks per quarter note.  Bit 15 set: the high byte is the
    negated SMPTE frame rate and the low byte is ticks per frame.  A value
    of 0 ticks per quarter note cannot be used for timing.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or not 0 <= self.value <= 0xFFFF:
            raise ValueError(f"time division must be a 16-bit value, got {self.value}")

    @classmethod
    def from_ticks(cls, ticks_per_quarter_note: int) -> "TimeDivision":
        if not 0 < ticks_per_quarter_note <= 0x7FFF:
            raise ValueError(
                f"ticks per quarter note must be in [1, 32767], "
                f"got {ticks_per_quarter_note}"
            )
        return cls(ticks_per_quarter_note)

    @classmethod
    def from_smpte(cls, frames_per_second: int, ticks_per_frame: int) -> "TimeDivision":
        if not 0 < frames_per_second <= 0x80:
            raise ValueError(f"bad SMPTE frame rate {frames_per_second}")
        if not 0 <= ticks_per_frame <= 0xFF:
            raise ValueError(f"bad SMPTE ticks per frame {ticks_per_frame}")
        return cls((((-frames_per_second) & 0xFF) << 8) | ticks_per_frame)

    @property
    def is_smpte(self) -> bool:
        return bool(self.value & 0x8000)

    @property
    def ticks_per_quarter_note(self) -> int:
        """Ticks per quarter note, or 0 for SMPTE divisions."""
        if self.is_smpte:
            return 0
        return self.value

    @property
    def smpte(self) -> Tuple[int, int]:
        """``(frames_per_second, ticks_per_frame)``, or ``(0, 0)``."""
        if not self.is_smpte:
            return 0, 0
        fps = (0x100 - (self.value >> 8)) & 0xFF
        return fps, self.value & 0xFF

    def __str__(self) -> str:
        if self.value & 0x7FFF == 0:
            return f"Invalid TimeDivision value: 0x{self.value:04x}"
        if not self.is_smpte:
            return f"{self.value} ticks per quarter note"
        fps, ticks = self.smpte
        return f"{fps} frames per second, {ticks} ticks per frame"


@dataclass(frozen=True)
class SMFHeader:
    format: int
    track_count: int
    division: TimeDivision

    @classmethod
    def from_bytes(cls, data: bytes) -> "SMFHeader":
        if len(data) < HEADER_SIZE:
            raise MalformedChunk(
                f"file too short for header ({len(data)} bytes, need {HEADER_SIZE})"
            )
        if data[:4] != HEADER_MAGIC:
            raise BadChunkType(f"bad chunk type for header: {data[:4]!r}")
        size, fmt, track_count, division = struct.unpack(">IHHH", data[4:HEADER_SIZE])
        if size < HEADER_CHUNK_SIZE or size > MAX_HEADER_CHUNK_SIZE:
            raise MalformedChunk(f"bad header chunk size: {size}")
        if fmt not in (FORMAT_SINGLE_TRACK, FORMAT_MULTI_TRACK):
            raise UnsupportedFormat(f"SMF format {fmt} is not supported")
        if fmt == FORMAT_SINGLE_TRACK and track_count != 1:
            raise MalformedChunk(
                f"format 0 file must contain exactly one track, header says {track_count}"
            )
        return cls(format=fmt, track_count=track_count, division=TimeDivision(division))

    def to_bytes(self) -> bytes:
        return HEADER_MAGIC + struct.pack(
            ">IHHH", HEADER_CHUNK_SIZE, self.format, self.track_count, self.division.value
        )

    def __str__(self) -> str:
        return (
            f"Format {self.format}, with {self.track_count} track(s), {self.division}"
        )


def read_header(stream: BinaryIO) -> SMFHeader:
    data = read_exact(stream, HEADER_SIZE, what="SMF header")
    header = SMFHeader.from_bytes(data)
    size = int.from_bytes(data[4:8], "big")
    # Longer headers (up to MAX_HEADER_CHUNK_SIZE) are allowed; the extra
    # bytes are skipped.
    read_exact(stream, size - HEADER_CHUNK_SIZE, what="SMF header padding")
    return header


@dataclass
class SMFFile:
    """A decoded MIDI file: its time division and ordered tracks."""

    division: TimeDivision = field(default_factory=lambda: TimeDivision(96))
    tracks: List[Track] = field(default_factory=list)

    @property
    def header(self) -> SMFHeader:
        if len(self.tracks) > MAX_TRACKS:
            raise SizeMismatch(
                f"have too many tracks ({len(self.tracks)}), limited to {MAX_TRACKS}"
            )
        fmt = FORMAT_SINGLE_TRACK if len(self.tracks) == 1 else FORMAT_MULTI_TRACK
        return SMFHeader(format=fmt, track_count=len(self.tracks), division=self.division)

    @classmethod
    def read(
        cls, stream: BinaryIO, *, max_track_length: Optional[int] = MAX_TRACK_LENGTH
    ) -> "SMFFile":
        header = read_header(stream)
        tracks: List[Track] = []
        for index in range(header.track_count):
            try:
                tracks.append(read_track(stream, max_length=max_track_length))
            except SMFError as exc:
                raise exc.with_context(track=index)
        return cls(division=header.division, tracks=tracks)

    @classmethod
    def from_bytes(
        cls, data: bytes, *, max_track_length: Optional[int] = MAX_TRACK_LENGTH
    ) -> "SMFFile":
        return cls.read(io.BytesIO(data), max_track_length=max_track_length)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        *,
        max_track_length: Optional[int] = MAX_TRACK_LENGTH,
    ) -> "SMFFile":
        with open(path, "rb") as f:
            return cls.read(f, max_track_length=max_track_length)

    def write(self, stream: BinaryIO) -> None:
        stream.write(self.header.to_bytes())
        for index, track in enumerate(self.tracks):
            try:
                write_track(stream, track)
            except SMFError as exc:
                raise exc.with_context(track=index)

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write(buf)
        return buf.getvalue()

    def save(self, path: Union[str, Path]) -> None:
        data = self.to_bytes()
        Path(path).write_bytes(data)

    def longest_track_ticks(self) -> int:
        return max((track.total_ticks() for track in self.tracks), default=0)
