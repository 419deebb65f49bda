"""MIDI messages as they appear inside an SMF track chunk.

Three categories are supported:

  channel voice  0x8n-0xEn  NoteOff, NoteOn, Aftertouch, ControlChange,
                            ProgramChange, ChannelPressure, PitchBend
  sysex          0xF0/0xF7  SysEx
  meta           0xFF       SequenceNumber, Text, ChannelPrefix, EndOfTrack,
                            SetTempo, SMPTEOffset, TimeSignature,
                            KeySignature, GenericMeta (anything else)

Running status is a single byte owned by one pass over one track.  Every
encode/decode call takes the current value and returns the updated one:

  * channel messages set it to their status byte; on encode the status byte
    is omitted when it already equals the running status
  * sysex and meta messages reset it to 0

Any other status byte (system common, real-time) is rejected with
:class:`UnsupportedMessageKind`.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO, ClassVar, Dict, Optional, Tuple, Type

from .errors import (
    EndOfStream,
    InvalidField,
    MalformedMessage,
    NoRunningStatus,
    TruncatedData,
    UnsupportedMessageKind,
)
from .stream import read_byte, read_exact
from .varint import MAX_VARINT, encode_varint, read_varint

SYSEX_START = 0xF0
SYSEX_ESCAPE = 0xF7
META_PREFIX = 0xFF

# Text meta-event sub-types.
TEXT = 0x01
COPYRIGHT = 0x02
TRACK_NAME = 0x03
INSTRUMENT_NAME = 0x04
LYRIC = 0x05
MARKER = 0x06
CUE_POINT = 0x07

TEXT_TYPE_NAMES = {
    TEXT: "Generic text event",
    COPYRIGHT: "Copyright notice",
    TRACK_NAME: "Track/sequence name",
    INSTRUMENT_NAME: "Instrument name",
    LYRIC: "Lyric",
    MARKER: "Marker",
    CUE_POINT: "Cue point",
}

CHANNEL_MODE_NAMES = {
    120: "All sound off",
    121: "Reset all controllers",
    123: "All notes off",
    124: "Omni mode off",
    125: "Omni mode on",
    126: "Mono mode on",
    127: "Poly mode on",
}

_NOTE_NAMES = ("A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#")


def note_name(note: int) -> str:
    """Return e.g. ``C4`` for 60.  Only keys of an 88-key piano are named."""
    if note < 21 or note > 108:
        return f"MIDI note {note}"
    return f"{_NOTE_NAMES[(note - 21) % 12]}{(note - 12) // 12}"


def _check_int(kind: str, field: str, value: object, low: int, high: int) -> None:
    if not isinstance(value, int) or not (low <= value <= high):
        raise InvalidField(kind, field, value)


def _check_payload(kind: str, field: str, value: object) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise InvalidField(kind, field, value)
    if len(value) + 1 > MAX_VARINT:
        raise InvalidField(kind, f"{field} length", len(value))


class Message:
    """Common interface of every message variant."""

    kind: ClassVar[str] = "message"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def encode(self, running_status: int) -> Tuple[bytes, int]:
        """Return ``(smf_bytes, new_running_status)``."""
        raise NotImplementedError

    def __str__(self) -> str:
        return self.describe()


# ── channel voice ──────────────────────────────────────────────────────


class ChannelMessage(Message):
    """A channel-voice message: status nibble plus 1 or 2 data bytes."""

    STATUS: ClassVar[int] = 0
    # Names of the data bytes in wire order, used in error messages.
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ()
    channel: int

    @property
    def status(self) -> int:
        return self.STATUS | self.channel

    def data_bytes(self) -> bytes:
        raise NotImplementedError

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "ChannelMessage":
        raise NotImplementedError

    def validate(self) -> None:
        _check_int(self.kind, "channel", self.channel, 0, 15)
        for field in self.DATA_FIELDS:
            _check_int(self.kind, field, getattr(self, field), 0, 0x7F)

    def encode(self, running_status: int) -> Tuple[bytes, int]:
        self.validate()
        status = self.status
        data = self.data_bytes()
        if status == running_status:
            return data, running_status
        return bytes([status]) + data, status


@dataclass
class NoteOff(ChannelMessage):
    channel: int
    note: int
    velocity: int = 0

    kind: ClassVar[str] = "note-off"
    STATUS: ClassVar[int] = 0x80
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ("note", "velocity")

    def data_bytes(self) -> bytes:
        return bytes([self.note, self.velocity])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "NoteOff":
        return cls(channel=channel, note=data[0], velocity=data[1])

    def describe(self) -> str:
        return (
            f"Channel {self.channel}: {note_name(self.note)} off, "
            f"velocity = {self.velocity}"
        )


@dataclass
class NoteOn(ChannelMessage):
    channel: int
    note: int
    velocity: int

    kind: ClassVar[str] = "note-on"
    STATUS: ClassVar[int] = 0x90
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ("note", "velocity")

    def data_bytes(self) -> bytes:
        return bytes([self.note, self.velocity])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "NoteOn":
        return cls(channel=channel, note=data[0], velocity=data[1])

    def describe(self) -> str:
        return (
            f"Channel {self.channel}: {note_name(self.note)} on, "
            f"velocity = {self.velocity}"
        )


@dataclass
class Aftertouch(ChannelMessage):
    """Polyphonic key pressure."""

    channel: int
    note: int
    pressure: int

    kind: ClassVar[str] = "aftertouch"
    STATUS: ClassVar[int] = 0xA0
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ("note", "pressure")

    def data_bytes(self) -> bytes:
        return bytes([self.note, self.pressure])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "Aftertouch":
        return cls(channel=channel, note=data[0], pressure=data[1])

    def describe(self) -> str:
        return (
            f"Channel {self.channel}: {note_name(self.note)} aftertouch "
            f"pressure {self.pressure}"
        )


@dataclass
class ControlChange(ChannelMessage):
    """Control change; controllers 120-127 are channel-mode messages."""

    channel: int
    controller: int
    value: int

    kind: ClassVar[str] = "control-change"
    STATUS: ClassVar[int] = 0xB0
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ("controller", "value")

    def data_bytes(self) -> bytes:
        return bytes([self.controller, self.value])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "ControlChange":
        return cls(channel=channel, controller=data[0], value=data[1])

    @property
    def is_channel_mode(self) -> bool:
        return self.controller >= 120

    def describe(self) -> str:
        prefix = f"Channel {self.channel}: "
        if self.controller == 122:
            if self.value == 0:
                setting = "off"
            elif self.value == 127:
                setting = "on"
            else:
                setting = f"unknown setting {self.value}"
            return prefix + f"Local control {setting}"
        name = CHANNEL_MODE_NAMES.get(self.controller)
        if name is not None:
            return prefix + f"{name} (v = {self.value})"
        return prefix + (
            f"Control change, controller number {self.controller}, "
            f"value {self.value}"
        )


@dataclass
class ProgramChange(ChannelMessage):
    channel: int
    program: int

    kind: ClassVar[str] = "program-change"
    STATUS: ClassVar[int] = 0xC0
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ("program",)

    def data_bytes(self) -> bytes:
        return bytes([self.program])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "ProgramChange":
        return cls(channel=channel, program=data[0])

    def describe(self) -> str:
        return f"Channel {self.channel}: program change to {self.program}"


@dataclass
class ChannelPressure(ChannelMessage):
    channel: int
    pressure: int

    kind: ClassVar[str] = "channel-pressure"
    STATUS: ClassVar[int] = 0xD0
    DATA_FIELDS: ClassVar[Tuple[str, ...]] = ("pressure",)

    def data_bytes(self) -> bytes:
        return bytes([self.pressure])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "ChannelPressure":
        return cls(channel=channel, pressure=data[0])

    def describe(self) -> str:
        return f"Channel {self.channel}: Set channel pressure to {self.pressure}"


@dataclass
class PitchBend(ChannelMessage):
    """14-bit pitch bend, centre 0x2000.  Sent low 7 bits first."""

    channel: int
    value: int = 0x2000

    kind: ClassVar[str] = "pitch-bend"
    STATUS: ClassVar[int] = 0xE0

    def validate(self) -> None:
        _check_int(self.kind, "channel", self.channel, 0, 15)
        _check_int(self.kind, "value", self.value, 0, 0x3FFF)

    def data_bytes(self) -> bytes:
        return bytes([self.value & 0x7F, self.value >> 7])

    @classmethod
    def from_data(cls, channel: int, data: bytes) -> "PitchBend":
        return cls(channel=channel, value=data[0] | (data[1] << 7))

    def describe(self) -> str:
        return f"Channel {self.channel}: Pitch bend value {self.value}"


CHANNEL_MESSAGE_TYPES: Dict[int, Type[ChannelMessage]] = {
    cls.STATUS: cls
    for cls in (
        NoteOff,
        NoteOn,
        Aftertouch,
        ControlChange,
        ProgramChange,
        ChannelPressure,
        PitchBend,
    )
}

# Data-byte count per status nibble.
_CHANNEL_DATA_LENGTH = {
    0x80: 2,
    0x90: 2,
    0xA0: 2,
    0xB0: 2,
    0xC0: 1,
    0xD0: 1,
    0xE0: 2,
}

_PITCH_BEND_BYTES = ("value low bits", "value high bits")


# ── system exclusive ───────────────────────────────────────────────────


@dataclass
class SysEx(Message):
    """System-exclusive event.

    ``status`` is the leading byte.  For 0xF0 messages ``payload`` excludes
    the trailing 0xF7, which is re-added on encode.  0xF7 ("escape")
    messages carry their bytes verbatim.
    """

    payload: bytes
    status: int = SYSEX_START

    kind: ClassVar[str] = "sysex"

    def validate(self) -> None:
        if self.status not in (SYSEX_START, SYSEX_ESCAPE):
            raise InvalidField(self.kind, "status", self.status)
        _check_payload(self.kind, "payload", self.payload)

    def describe(self) -> str:
        label = "System exclusive message" if self.status == SYSEX_START else (
            "System exclusive escape"
        )
        return f"{label}. {len(self.payload)} bytes: {bytes(self.payload).hex(' ')}."

    def encode(self, running_status: int) -> Tuple[bytes, int]:
        self.validate()
        if self.status == SYSEX_START:
            body = bytes(self.payload) + bytes([SYSEX_ESCAPE])
        else:
            body = bytes(self.payload)
        return bytes([self.status]) + encode_varint(len(body)) + body, 0


# ── meta events ────────────────────────────────────────────────────────


class MetaMessage(Message):
    META_TYPE: ClassVar[int] = -1
    # Required payload size, or None when any length is accepted.
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = None

    @property
    def meta_type(self) -> int:
        return self.META_TYPE

    def payload(self) -> bytes:
        raise NotImplementedError

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "MetaMessage":
        raise NotImplementedError

    def encode(self, running_status: int) -> Tuple[bytes, int]:
        self.validate()
        data = self.payload()
        return bytes([META_PREFIX, self.meta_type]) + encode_varint(len(data)) + data, 0


@dataclass
class SequenceNumber(MetaMessage):
    number: int

    kind: ClassVar[str] = "sequence-number"
    META_TYPE: ClassVar[int] = 0x00
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 2

    def validate(self) -> None:
        _check_int(self.kind, "number", self.number, 0, 0xFFFF)

    def payload(self) -> bytes:
        return self.number.to_bytes(2, "big")

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "SequenceNumber":
        return cls(number=int.from_bytes(data, "big"))

    def describe(self) -> str:
        return f"Sequence number: {self.number}"


@dataclass
class Text(MetaMessage):
    """Text-like meta-events, sub-types 0x01-0x0F."""

    text_type: int
    data: bytes

    kind: ClassVar[str] = "text"

    def validate(self) -> None:
        _check_int(self.kind, "text type", self.text_type, 0x01, 0x0F)
        _check_payload(self.kind, "data", self.data)

    @property
    def meta_type(self) -> int:
        return self.text_type

    @property
    def text(self) -> str:
        return bytes(self.data).decode("latin-1")

    def payload(self) -> bytes:
        return bytes(self.data)

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "Text":
        return cls(text_type=meta_type, data=data)

    def describe(self) -> str:
        label = TEXT_TYPE_NAMES.get(
            self.text_type, f"Unknown text event type {self.text_type}"
        )
        return f"{label}: {self.text}"


@dataclass
class ChannelPrefix(MetaMessage):
    """Associates following meta and sysex events with a channel."""

    channel: int

    kind: ClassVar[str] = "channel-prefix"
    META_TYPE: ClassVar[int] = 0x20
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 1

    def validate(self) -> None:
        _check_int(self.kind, "channel", self.channel, 0, 0xFF)

    def payload(self) -> bytes:
        return bytes([self.channel])

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "ChannelPrefix":
        return cls(channel=data[0])

    def describe(self) -> str:
        return f"Channel prefix: {self.channel}"


@dataclass
class EndOfTrack(MetaMessage):
    kind: ClassVar[str] = "end-of-track"
    META_TYPE: ClassVar[int] = 0x2F
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 0

    def validate(self) -> None:
        pass

    def payload(self) -> bytes:
        return b""

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "EndOfTrack":
        return cls()

    def describe(self) -> str:
        return "End of track"


@dataclass
class SetTempo(MetaMessage):
    """Tempo in microseconds per quarter note (24 bits)."""

    tempo: int

    kind: ClassVar[str] = "set-tempo"
    META_TYPE: ClassVar[int] = 0x51
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 3

    def validate(self) -> None:
        _check_int(self.kind, "tempo", self.tempo, 0, 0xFFFFFF)

    @property
    def bpm(self) -> float:
        if self.tempo == 0:
            return float("inf")
        return 60_000_000 / self.tempo

    def payload(self) -> bytes:
        return self.tempo.to_bytes(3, "big")

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "SetTempo":
        return cls(tempo=int.from_bytes(data, "big"))

    def describe(self) -> str:
        return (
            f"Set tempo to {self.tempo} us/quarter note ({self.bpm:.6f} BPM)"
        )


@dataclass
class SMPTEOffset(MetaMessage):
    hours: int
    minutes: int
    seconds: int
    frames: int
    fractional_frames: int = 0  # hundredths of a frame

    kind: ClassVar[str] = "smpte-offset"
    META_TYPE: ClassVar[int] = 0x54
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 5
    FIELDS: ClassVar[Tuple[str, ...]] = (
        "hours",
        "minutes",
        "seconds",
        "frames",
        "fractional_frames",
    )

    def validate(self) -> None:
        for field in self.FIELDS:
            _check_int(self.kind, field, getattr(self, field), 0, 0xFF)

    def payload(self) -> bytes:
        return bytes(getattr(self, field) for field in self.FIELDS)

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "SMPTEOffset":
        return cls(*data)

    def describe(self) -> str:
        frame = self.frames + self.fractional_frames / 100.0
        return (
            f"SMPTE offset: {self.hours}:{self.minutes}:{self.seconds}, "
            f"{frame:.2f} frames"
        )


@dataclass
class TimeSignature(MetaMessage):
    """``denominator`` is a power of two: 6/8 time is numerator 6, denominator 3."""

    numerator: int
    denominator: int
    clocks_per_click: int = 24
    notated_32nds_per_quarter: int = 8

    kind: ClassVar[str] = "time-signature"
    META_TYPE: ClassVar[int] = 0x58
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 4
    FIELDS: ClassVar[Tuple[str, ...]] = (
        "numerator",
        "denominator",
        "clocks_per_click",
        "notated_32nds_per_quarter",
    )

    def validate(self) -> None:
        for field in self.FIELDS:
            _check_int(self.kind, field, getattr(self, field), 0, 0xFF)

    @property
    def denominator_value(self) -> int:
        return 1 << self.denominator

    def payload(self) -> bytes:
        return bytes(getattr(self, field) for field in self.FIELDS)

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "TimeSignature":
        return cls(*data)

    def describe(self) -> str:
        return (
            f"Time signature: {self.numerator}/{self.denominator_value} time, "
            f"{self.clocks_per_click} clocks per metronome tick, "
            f"{self.notated_32nds_per_quarter} 32nd notes per notated quarter note"
        )


@dataclass
class KeySignature(MetaMessage):
    """Negative counts are flats, positive counts sharps."""

    sharps_flats: int
    minor: bool = False

    kind: ClassVar[str] = "key-signature"
    META_TYPE: ClassVar[int] = 0x59
    PAYLOAD_LENGTH: ClassVar[Optional[int]] = 2

    def validate(self) -> None:
        _check_int(self.kind, "sharps/flats", self.sharps_flats, -7, 7)
        if not isinstance(self.minor, bool):
            raise InvalidField(self.kind, "minor", self.minor)

    def payload(self) -> bytes:
        return bytes([self.sharps_flats & 0xFF, 1 if self.minor else 0])

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "KeySignature":
        sf = data[0] - 0x100 if data[0] & 0x80 else data[0]
        if data[1] > 1:
            raise InvalidField(cls.kind, "major/minor", data[1])
        return cls(sharps_flats=sf, minor=data[1] == 1)

    def describe(self) -> str:
        count = abs(self.sharps_flats)
        if self.sharps_flats < 0:
            label = "flat"
        elif self.sharps_flats > 0:
            label = "sharp"
        else:
            label = "sharps or flats"
        if count > 1:
            label += "s"
        mode = "minor" if self.minor else "major"
        return f"Key signature: {count} {label}, {mode} key"


@dataclass
class GenericMeta(MetaMessage):
    """Any meta-event type without a dedicated class."""

    event_type: int
    data: bytes = b""

    kind: ClassVar[str] = "meta-event"

    def validate(self) -> None:
        _check_int(self.kind, "type", self.event_type, 0, 0xFF)
        # Known types must go through their own class so the payload is checked.
        if self.event_type in META_MESSAGE_TYPES:
            raise InvalidField(self.kind, "type", self.event_type)
        _check_payload(self.kind, "data", self.data)

    @property
    def meta_type(self) -> int:
        return self.event_type

    def payload(self) -> bytes:
        return bytes(self.data)

    @classmethod
    def from_payload(cls, meta_type: int, data: bytes) -> "GenericMeta":
        return cls(event_type=meta_type, data=data)

    def describe(self) -> str:
        return (
            f"Unknown meta-event. Type {self.event_type}, "
            f"size: {len(self.data)} bytes"
        )


META_MESSAGE_TYPES: Dict[int, Type[MetaMessage]] = {
    cls.META_TYPE: cls
    for cls in (
        SequenceNumber,
        ChannelPrefix,
        EndOfTrack,
        SetTempo,
        SMPTEOffset,
        TimeSignature,
        KeySignature,
    )
}
for _text_type in range(0x01, 0x10):
    META_MESSAGE_TYPES[_text_type] = Text
del _text_type


# ── decoding ───────────────────────────────────────────────────────────


def _read_length(stream: BinaryIO, *, what: str) -> int:
    try:
        return read_varint(stream)
    except EndOfStream:
        raise TruncatedData(f"failed reading {what}: end of stream") from None


def _read_sysex(stream: BinaryIO, status: int) -> SysEx:
    length = _read_length(stream, what="sysex length")
    data = read_exact(stream, length, what="sysex data")
    if status == SYSEX_START:
        if not data or data[-1] != SYSEX_ESCAPE:
            raise MalformedMessage("sysex message didn't end with 0xF7 byte")
        data = data[:-1]
    return SysEx(payload=data, status=status)


def _read_meta(stream: BinaryIO) -> MetaMessage:
    meta_type = read_byte(stream, what="meta-event type")
    length = _read_length(stream, what="meta-event length")
    data = read_exact(stream, length, what="meta-event data")
    cls = META_MESSAGE_TYPES.get(meta_type, GenericMeta)
    if cls.PAYLOAD_LENGTH is not None and length != cls.PAYLOAD_LENGTH:
        raise MalformedMessage(
            f"bad {cls.kind} meta-event length: {length} bytes "
            f"(expected {cls.PAYLOAD_LENGTH})"
        )
    return cls.from_payload(meta_type, data)


def _read_channel_message(
    stream: BinaryIO, status: int, first_data: Optional[int]
) -> ChannelMessage:
    cls = CHANNEL_MESSAGE_TYPES.get(status & 0xF0)
    if cls is None:
        raise UnsupportedMessageKind(f"status byte 0x{status:02X} not supported")
    length = _CHANNEL_DATA_LENGTH[cls.STATUS]
    names = _PITCH_BEND_BYTES if cls is PitchBend else cls.DATA_FIELDS
    if first_data is None:
        data = read_exact(stream, length, what=f"{cls.kind} data")
    else:
        data = bytes([first_data]) + read_exact(
            stream, length - 1, what=f"{cls.kind} data"
        )
    for name, value in zip(names, data):
        if value > 0x7F:
            raise InvalidField(cls.kind, name, value)
    return cls.from_data(status & 0x0F, data)


def read_message(stream: BinaryIO, running_status: int) -> Tuple[Message, int]:
    """Decode one message from ``stream``.

    Returns ``(message, new_running_status)``.  ``running_status`` is 0 when
    no channel status is in effect.
    """
    chunk = stream.read(1)
    if not chunk:
        raise TruncatedData("failed reading start of MIDI message: end of stream")
    first = chunk[0]
    if first in (SYSEX_START, SYSEX_ESCAPE):
        return _read_sysex(stream, first), 0
    if first == META_PREFIX:
        return _read_meta(stream), 0
    if first & 0x80:
        if first & 0xF0 == 0xF0:
            raise UnsupportedMessageKind(f"status byte 0x{first:02X} not supported")
        return _read_channel_message(stream, first, None), first
    # Data byte: reuse the running status.
    if not running_status & 0x80:
        raise NoRunningStatus(
            f"data byte 0x{first:02X} without a valid status or running status"
        )
    return _read_channel_message(stream, running_status, first), running_status


def parse_message(data: bytes, running_status: int = 0) -> Message:
    """Decode a single message from a standalone byte string.

    Trailing bytes are rejected.
    """
    stream = io.BytesIO(data)
    message, _ = read_message(stream, running_status)
    leftover = len(data) - stream.tell()
    if leftover:
        raise MalformedMessage(f"{leftover} trailing byte(s) after {message.kind}")
    return message


def encode_message(message: Message, running_status: int = 0) -> bytes:
    """Encode ``message`` on its own, discarding the updated running status."""
    data, _ = message.encode(running_status)
    return data
