"""Structural edits on decoded files."""

import pytest

from smf.edits import (
    append_beat_track,
    delete_event,
    dump_events,
    get_track,
    hex_to_bytes,
    insert_event_hex,
    parse_event_hex,
    reassign_channel,
    scale_velocity,
    set_time_delta,
)
from smf.errors import NoRunningStatus, OversizedInteger
from smf.file import SMFFile, TimeDivision
from smf.messages import EndOfTrack, NoteOn, ProgramChange, SetTempo

from smf_fixtures import FORMAT1_EXAMPLE


def _example() -> SMFFile:
    return SMFFile.from_bytes(FORMAT1_EXAMPLE)


def test_hex_to_bytes_accepts_whitespace_and_case() -> None:
    assert hex_to_bytes("00 C0\n05") == b"\x00\xC0\x05"


@pytest.mark.parametrize("text", ["0", "zz", "00 c0 0g", "abc"])
def test_hex_to_bytes_rejects_bad_input(text: str) -> None:
    with pytest.raises(ValueError):
        hex_to_bytes(text)


def test_parse_event_hex() -> None:
    delta, message = parse_event_hex("81 00 ff 51 03 07 a1 20")
    assert delta == 0x80
    assert message == SetTempo(tempo=500000)


def test_parse_event_hex_requires_status_byte() -> None:
    with pytest.raises(NoRunningStatus):
        parse_event_hex("00 3c 40")


def test_insert_event_hex_at_start() -> None:
    smf = _example()
    insert_event_hex(smf, 2, 0, "00 c0 07")
    track = smf.tracks[1]
    assert len(track) == 5
    assert track.messages[0] == ProgramChange(channel=0, program=7)
    assert len(track.deltas) == len(track.messages)


def test_insert_event_position_out_of_range() -> None:
    smf = _example()
    with pytest.raises(ValueError):
        insert_event_hex(smf, 2, 9, "00 c0 07")


def test_get_track_numbering() -> None:
    smf = _example()
    assert get_track(smf, 1) is smf.tracks[0]
    with pytest.raises(ValueError):
        get_track(smf, 0)
    with pytest.raises(ValueError):
        get_track(smf, 5)


def test_delete_event() -> None:
    smf = _example()
    delta, message = delete_event(smf, 4, 1)
    assert message == ProgramChange(channel=2, program=0x46)
    assert len(smf.tracks[3]) == 5
    with pytest.raises(ValueError):
        delete_event(smf, 4, 6)


def test_set_time_delta() -> None:
    smf = _example()
    set_time_delta(smf, 1, 3, 0x200)
    assert smf.tracks[0].deltas[2] == 0x200
    with pytest.raises(OversizedInteger):
        set_time_delta(smf, 1, 3, 0x10000000)


def test_reassign_channel() -> None:
    smf = _example()
    modified, total = reassign_channel(smf, 1, 4)
    assert (modified, total) == (3, 17)
    assert all(m.channel == 4 for m in smf.tracks[2].messages[:3])
    with pytest.raises(ValueError):
        reassign_channel(smf, 1, 16)


def test_scale_velocity() -> None:
    smf = _example()
    count = scale_velocity(smf, 4, 0.5)
    assert count == 4
    assert [m.velocity for m in smf.tracks[3].messages if isinstance(m, NoteOn)] == [
        0x30,
        0x30,
        0,
        0,
    ]
    with pytest.raises(ValueError):
        scale_velocity(smf, 4, 1.5)


def test_append_beat_track() -> None:
    smf = _example()
    track = append_beat_track(smf)
    assert len(smf.tracks) == 5
    # Longest track is 384 ticks; beats are 48 ticks apart.
    assert len(track) == 8 * 2 + 1
    assert track.messages[-1] == EndOfTrack()
    assert track.messages[0] == NoteOn(channel=9, note=36, velocity=120)
    assert track.messages[1] == NoteOn(channel=9, note=36, velocity=0)
    assert track.total_ticks() == 384
    reparsed = SMFFile.from_bytes(smf.to_bytes())
    assert reparsed.tracks[4] == track


def test_append_beat_track_needs_ticks_per_quarter_note() -> None:
    smf = SMFFile(division=TimeDivision.from_smpte(25, 40))
    with pytest.raises(ValueError):
        append_beat_track(smf)


def test_dump_events() -> None:
    lines = dump_events(_example())
    assert lines[0] == "Track 1 (3 events):"
    assert lines[2] == "  2. Time 0: Set tempo to 500000 us/quarter note (120.000000 BPM)"


@pytest.mark.parametrize("scale", [0.0, 1.0])
def test_scale_velocity_range_is_inclusive(scale: float) -> None:
    smf = _example()
    before = [m.velocity for m in smf.tracks[3].messages if isinstance(m, NoteOn)]
    assert scale_velocity(smf, 4, scale) == 4
    after = [m.velocity for m in smf.tracks[3].messages if isinstance(m, NoteOn)]
    assert after == [int(v * scale) for v in before]
    with pytest.raises(ValueError):
        scale_velocity(smf, 4, -0.1)
