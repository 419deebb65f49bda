"""Tests for message encode/decode and field validation."""

import io

import pytest

from smf.errors import (
    InvalidField,
    MalformedMessage,
    NoRunningStatus,
    TruncatedData,
    UnsupportedMessageKind,
)
from smf.messages import (
    Aftertouch,
    ChannelPrefix,
    ChannelPressure,
    ControlChange,
    EndOfTrack,
    GenericMeta,
    KeySignature,
    NoteOff,
    NoteOn,
    PitchBend,
    ProgramChange,
    SequenceNumber,
    SetTempo,
    SMPTEOffset,
    SysEx,
    Text,
    TimeSignature,
    encode_message,
    note_name,
    parse_message,
    read_message,
)


# ── decoding each variant ──────────────────────────────────────────


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"\x83\x3C\x40", NoteOff(channel=3, note=60, velocity=64)),
        (b"\x9F\x7F\x7F", NoteOn(channel=15, note=127, velocity=127)),
        (b"\xA0\x40\x10", Aftertouch(channel=0, note=64, pressure=16)),
        (b"\xB1\x07\x64", ControlChange(channel=1, controller=7, value=100)),
        (b"\xC9\x00", ProgramChange(channel=9, program=0)),
        (b"\xD2\x55", ChannelPressure(channel=2, pressure=0x55)),
        (b"\xE0\x00\x40", PitchBend(channel=0, value=0x2000)),
        (b"\xE5\x7F\x7F", PitchBend(channel=5, value=0x3FFF)),
        (b"\xF0\x03\x43\x12\xF7", SysEx(payload=b"\x43\x12")),
        (b"\xF7\x02\x01\x02", SysEx(payload=b"\x01\x02", status=0xF7)),
        (b"\xFF\x00\x02\x01\x02", SequenceNumber(number=0x0102)),
        (b"\xFF\x03\x04Bass", Text(text_type=0x03, data=b"Bass")),
        (b"\xFF\x0F\x00", Text(text_type=0x0F, data=b"")),
        (b"\xFF\x20\x01\x05", ChannelPrefix(channel=5)),
        (b"\xFF\x2F\x00", EndOfTrack()),
        (b"\xFF\x51\x03\x07\xA1\x20", SetTempo(tempo=500000)),
        (b"\xFF\x54\x05\x01\x02\x03\x04\x05", SMPTEOffset(1, 2, 3, 4, 5)),
        (b"\xFF\x58\x04\x06\x03\x24\x08", TimeSignature(6, 3, 36, 8)),
        (b"\xFF\x59\x02\xFD\x01", KeySignature(sharps_flats=-3, minor=True)),
        (b"\xFF\x59\x02\x07\x00", KeySignature(sharps_flats=7, minor=False)),
        (b"\xFF\x7F\x03\x00\x00\x41", GenericMeta(event_type=0x7F, data=b"\x00\x00\x41")),
    ],
)
def test_parse_each_variant(data: bytes, expected) -> None:
    assert parse_message(data) == expected


@pytest.mark.parametrize(
    "message,expected",
    [
        (NoteOff(channel=3, note=60, velocity=64), b"\x83\x3C\x40"),
        (PitchBend(channel=5, value=0x3FFF), b"\xE5\x7F\x7F"),
        (PitchBend(channel=0, value=0x81), b"\xE0\x01\x01"),
        (SysEx(payload=b"\x43\x12"), b"\xF0\x03\x43\x12\xF7"),
        (SysEx(payload=b"\x01\x02", status=0xF7), b"\xF7\x02\x01\x02"),
        (SequenceNumber(number=0x0102), b"\xFF\x00\x02\x01\x02"),
        (SetTempo(tempo=500000), b"\xFF\x51\x03\x07\xA1\x20"),
        (KeySignature(sharps_flats=-3, minor=True), b"\xFF\x59\x02\xFD\x01"),
        (EndOfTrack(), b"\xFF\x2F\x00"),
        (GenericMeta(event_type=0x21, data=b"\x00"), b"\xFF\x21\x01\x00"),
    ],
)
def test_encode_explicit_status(message, expected: bytes) -> None:
    assert encode_message(message) == expected


def test_sysex_terminator_is_implicit() -> None:
    message = parse_message(b"\xF0\x05\x7E\x7F\x09\x01\xF7")
    assert message.payload == b"\x7E\x7F\x09\x01"
    assert encode_message(message) == b"\xF0\x05\x7E\x7F\x09\x01\xF7"


def test_sysex_without_terminator_fails() -> None:
    with pytest.raises(MalformedMessage):
        parse_message(b"\xF0\x02\x7E\x7F")
    with pytest.raises(MalformedMessage):
        parse_message(b"\xF0\x00")


def test_escape_sysex_does_not_need_terminator() -> None:
    assert parse_message(b"\xF7\x01\xF8") == SysEx(payload=b"\xF8", status=0xF7)


# ── fixed meta payload lengths ─────────────────────────────────────


@pytest.mark.parametrize(
    "data",
    [
        b"\xFF\x00\x01\x01",  # sequence number wants 2
        b"\xFF\x20\x02\x01\x02",  # channel prefix wants 1
        b"\xFF\x2F\x01\x00",  # end of track wants 0
        b"\xFF\x51\x02\x07\xA1",  # tempo wants 3
        b"\xFF\x54\x04\x01\x02\x03\x04",  # SMPTE offset wants 5
        b"\xFF\x58\x03\x04\x02\x18",  # time signature wants 4
        b"\xFF\x59\x01\x00",  # key signature wants 2
    ],
)
def test_fixed_length_meta_events_reject_other_lengths(data: bytes) -> None:
    with pytest.raises(MalformedMessage):
        parse_message(data)


def test_key_signature_decode_rejects_out_of_range() -> None:
    with pytest.raises(InvalidField):
        parse_message(b"\xFF\x59\x02\x08\x00")
    with pytest.raises(InvalidField) as excinfo:
        parse_message(b"\xFF\x59\x02\x00\x02")
    assert excinfo.value.field == "major/minor"


# ── field validation ───────────────────────────────────────────────


def test_note_on_velocity_out_of_range() -> None:
    with pytest.raises(InvalidField) as excinfo:
        NoteOn(channel=0, note=60, velocity=200)
    assert excinfo.value.field == "velocity"
    assert excinfo.value.value == 200
    assert "velocity" in str(excinfo.value)


def test_note_on_channel_out_of_range() -> None:
    with pytest.raises(InvalidField) as excinfo:
        NoteOn(channel=20, note=60, velocity=100)
    assert excinfo.value.field == "channel"


@pytest.mark.parametrize("value", [0, 127])
def test_note_on_boundaries_accepted(value: int) -> None:
    message = NoteOn(channel=value % 16, note=value, velocity=value)
    data, status = message.encode(0)
    assert data[1:] == bytes([value, value])
    assert status == 0x90 | (value % 16)


def test_mutated_field_rejected_on_encode() -> None:
    message = NoteOn(channel=0, note=60, velocity=100)
    message.velocity = 200
    with pytest.raises(InvalidField):
        message.encode(0)


def test_pitch_bend_range() -> None:
    PitchBend(channel=0, value=0x3FFF)
    with pytest.raises(InvalidField):
        PitchBend(channel=0, value=0x4000)


def test_set_tempo_must_fit_24_bits() -> None:
    SetTempo(tempo=0xFFFFFF)
    with pytest.raises(InvalidField):
        SetTempo(tempo=0x1000000)


def test_text_type_range() -> None:
    with pytest.raises(InvalidField):
        Text(text_type=0x10, data=b"x")


@pytest.mark.parametrize(
    "event_type", [0x00, 0x01, 0x0F, 0x20, 0x2F, 0x51, 0x54, 0x58, 0x59]
)
def test_generic_meta_rejects_known_types(event_type: int) -> None:
    with pytest.raises(InvalidField) as excinfo:
        GenericMeta(event_type=event_type, data=b"\x01")
    assert excinfo.value.field == "type"


def test_generic_meta_output_decodes() -> None:
    message = GenericMeta(event_type=0x60, data=b"\x01")
    assert parse_message(encode_message(message)) == message
    message.event_type = 0x51
    with pytest.raises(InvalidField):
        encode_message(message)


def test_data_byte_with_high_bit_is_invalid() -> None:
    with pytest.raises(InvalidField) as excinfo:
        parse_message(b"\x90\x3C\x80")
    assert excinfo.value.field == "velocity"
    with pytest.raises(InvalidField) as excinfo:
        parse_message(b"\xE0\x80\x00")
    assert excinfo.value.field == "value low bits"


# ── dispatch failures ──────────────────────────────────────────────


def test_data_byte_without_running_status() -> None:
    with pytest.raises(NoRunningStatus):
        read_message(io.BytesIO(b"\x3C\x40"), 0)


@pytest.mark.parametrize("status", [0xF1, 0xF2, 0xF3, 0xF6, 0xF8, 0xFA, 0xFE])
def test_system_common_and_realtime_unsupported(status: int) -> None:
    with pytest.raises(UnsupportedMessageKind):
        parse_message(bytes([status, 0x00, 0x00]))


def test_truncated_message_data() -> None:
    with pytest.raises(TruncatedData):
        parse_message(b"\x90\x3C")
    with pytest.raises(TruncatedData):
        parse_message(b"\xFF\x03\x05ab")
    with pytest.raises(TruncatedData):
        parse_message(b"\xFF\x03")
    with pytest.raises(TruncatedData):
        parse_message(b"")


def test_trailing_bytes_rejected() -> None:
    with pytest.raises(MalformedMessage):
        parse_message(b"\xC0\x05\x05")


# ── descriptions ───────────────────────────────────────────────────


def test_note_name() -> None:
    assert note_name(21) == "A0"
    assert note_name(60) == "C4"
    assert note_name(108) == "C8"
    assert note_name(20) == "MIDI note 20"


def test_descriptions() -> None:
    assert str(NoteOn(channel=1, note=60, velocity=90)) == "Channel 1: C4 on, velocity = 90"
    assert str(ControlChange(channel=0, controller=123, value=0)) == (
        "Channel 0: All notes off (v = 0)"
    )
    assert str(ControlChange(channel=0, controller=122, value=127)) == (
        "Channel 0: Local control on"
    )
    assert str(KeySignature(sharps_flats=-1)) == "Key signature: 1 flat, major key"
    assert str(KeySignature(sharps_flats=3, minor=True)) == (
        "Key signature: 3 sharps, minor key"
    )
    assert str(Text(text_type=0x03, data=b"Piano")) == "Track/sequence name: Piano"
    assert "4/4" in str(TimeSignature(4, 2, 24, 8))
    assert SetTempo(tempo=500000).bpm == pytest.approx(120.0)
    assert str(EndOfTrack()) == "End of track"
