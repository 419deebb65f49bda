"""Structural edits on a decoded :class:`~smf.file.SMFFile`.

Track and event numbers taken by these helpers are 1-based, matching the
numbering printed by ``tools/smf_tool.py --dump-events``.  Channels are
0-based.  Every helper edits the file in place; call ``to_bytes()`` or
``save()`` afterwards to materialize the change.
"""

from __future__ import annotations

import io
import re
from typing import List, Tuple

from .errors import MalformedMessage
from .file import SMFFile
from .messages import ChannelMessage, EndOfTrack, Message, NoteOn, read_message
from .track import Track, validate_delta
from .varint import read_varint

_WHITESPACE = re.compile(r"\s+")
_HEX_PAIRS = re.compile(r"(?:[0-9a-f]{2})*")

# General MIDI percussion pattern: kick, closed hat, snare, closed hat.
BEAT_CHANNEL = 9
BEAT_PATTERN: Tuple[Tuple[int, int], ...] = (
    (36, 120),
    (42, 80),
    (40, 100),
    (42, 80),
)


def hex_to_bytes(text: str) -> bytes:
    """Convert hex text (whitespace allowed) to bytes.

    Raises ``ValueError`` on odd lengths or non-hex characters.
    """
    cleaned = _WHITESPACE.sub("", text).lower()
    if not _HEX_PAIRS.fullmatch(cleaned):
        raise ValueError(f"invalid hex bytes string: {text!r}")
    return bytes.fromhex(cleaned)


def parse_event_hex(text: str) -> Tuple[int, Message]:
    """Parse ``<varint delta><message>`` from hex text.

    The message must carry an explicit status byte; running status is not
    in effect for a standalone event.
    """
    data = hex_to_bytes(text)
    stream = io.BytesIO(data)
    delta = read_varint(stream)
    message, _ = read_message(stream, 0)
    leftover = len(data) - stream.tell()
    if leftover:
        raise MalformedMessage(f"{leftover} trailing byte(s) after new event")
    return delta, message


def get_track(smf: SMFFile, number: int) -> Track:
    if number <= 0:
        raise ValueError(
            f"invalid track number: {number}. Track numbering starts at 1."
        )
    if number > len(smf.tracks):
        raise ValueError(
            f"invalid track number: {number}. The file only contains "
            f"{len(smf.tracks)} tracks."
        )
    return smf.tracks[number - 1]


def _event_index(track: Track, position: int) -> int:
    index = position - 1
    if index < 0 or index >= len(track):
        raise ValueError(f"invalid event number: {position}")
    return index


def insert_event(
    smf: SMFFile, track_number: int, position: int, delta: int, message: Message
) -> None:
    """Insert a new event so that it becomes event ``position + 1``.

    ``position`` 0 inserts at the start of the track.
    """
    track = get_track(smf, track_number)
    if position < 0 or position > len(track):
        raise ValueError(f"invalid track position: {position}")
    track.insert(position, validate_delta(delta), message)


def insert_event_hex(
    smf: SMFFile, track_number: int, position: int, text: str
) -> Tuple[int, Message]:
    delta, message = parse_event_hex(text)
    insert_event(smf, track_number, position, delta, message)
    return delta, message


def delete_event(smf: SMFFile, track_number: int, position: int) -> Tuple[int, Message]:
    track = get_track(smf, track_number)
    return track.remove(_event_index(track, position))


def set_time_delta(smf: SMFFile, track_number: int, position: int, delta: int) -> None:
    track = get_track(smf, track_number)
    track.deltas[_event_index(track, position)] = validate_delta(delta)


def reassign_channel(smf: SMFFile, old: int, new: int) -> Tuple[int, int]:
    """Move every channel-voice event on ``old`` to ``new``.

    Returns ``(modified, total)`` event counts.
    """
    for channel in (old, new):
        if not 0 <= channel <= 15:
            raise ValueError(f"invalid channel number: {channel}")
    total = 0
    modified = 0
    for track in smf.tracks:
        for message in track.messages:
            total += 1
            if isinstance(message, ChannelMessage) and message.channel == old:
                message.channel = new
                modified += 1
    return modified, total


def scale_velocity(smf: SMFFile, track_number: int, scale: float) -> int:
    """Scale NoteOn velocities in one track; returns the number of NoteOns.

    ``scale`` is inclusive of both ends: 0.0 silences every note and 1.0
    leaves velocities unchanged.
    """
    if not 0.0 <= scale <= 1.0:
        raise ValueError(f"velocity scale must be between 0 and 1, got {scale}")
    track = get_track(smf, track_number)
    count = 0
    for message in track.messages:
        if isinstance(message, NoteOn):
            message.velocity = min(int(message.velocity * scale), 127)
            count += 1
    return count


def append_beat_track(smf: SMFFile) -> Track:
    """Append a percussion track spanning the longest existing track.

    Beats fall at twice the file's quarter-note rate.  Note-offs are sent
    as velocity-0 NoteOns so the whole track runs on one status byte.
    """
    ticks_per_beat = smf.division.ticks_per_quarter_note // 2
    if ticks_per_beat == 0:
        raise ValueError("unsupported: the file doesn't specify ticks per beat")
    beats = smf.longest_track_ticks() // ticks_per_beat

    track = Track()
    for i in range(beats):
        note, velocity = BEAT_PATTERN[i % len(BEAT_PATTERN)]
        track.append(0, NoteOn(channel=BEAT_CHANNEL, note=note, velocity=velocity))
        track.append(ticks_per_beat, NoteOn(channel=BEAT_CHANNEL, note=note, velocity=0))
    track.append(0, EndOfTrack())
    smf.tracks.append(track)
    return track


def dump_events(smf: SMFFile) -> List[str]:
    lines: List[str] = []
    for number, track in enumerate(smf.tracks, start=1):
        lines.append(f"Track {number} ({len(track)} events):")
        for position, (delta, message) in enumerate(track.events(), start=1):
            lines.append(f"  {position}. Time {delta}: {message}")
    return lines
