#!/usr/bin/env python3
"""Cross-check the codec against mido's parser.

For every file, both parsers must agree on the track count, the number of
events per track, the delta times and the channel-voice content.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import List, Optional, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import mido  # noqa: E402

from smf.file import SMFFile  # noqa: E402
from smf.messages import (  # noqa: E402
    Aftertouch,
    ChannelPressure,
    ControlChange,
    Message,
    NoteOff,
    NoteOn,
    PitchBend,
    ProgramChange,
)

# mido reports pitch as -8192..8191 around the centre.
_PITCH_CENTRE = 0x2000


def channel_key(message: Message) -> Optional[Tuple]:
    """Comparable ``(type, channel, ...)`` tuple for channel-voice messages."""
    if isinstance(message, NoteOn):
        return ("note_on", message.channel, message.note, message.velocity)
    if isinstance(message, NoteOff):
        return ("note_off", message.channel, message.note, message.velocity)
    if isinstance(message, Aftertouch):
        return ("polytouch", message.channel, message.note, message.pressure)
    if isinstance(message, ControlChange):
        return ("control_change", message.channel, message.controller, message.value)
    if isinstance(message, ProgramChange):
        return ("program_change", message.channel, message.program)
    if isinstance(message, ChannelPressure):
        return ("aftertouch", message.channel, message.pressure)
    if isinstance(message, PitchBend):
        return ("pitchwheel", message.channel, message.value - _PITCH_CENTRE)
    return None


def mido_key(message: mido.Message) -> Optional[Tuple]:
    if message.is_meta or message.type == "sysex":
        return None
    if message.type in ("note_on", "note_off"):
        return (message.type, message.channel, message.note, message.velocity)
    if message.type == "polytouch":
        return (message.type, message.channel, message.note, message.value)
    if message.type == "control_change":
        return (message.type, message.channel, message.control, message.value)
    if message.type == "program_change":
        return (message.type, message.channel, message.program)
    if message.type == "aftertouch":
        return (message.type, message.channel, message.value)
    if message.type == "pitchwheel":
        return (message.type, message.channel, message.pitch)
    return None


def compare(smf: SMFFile, midi: mido.MidiFile) -> List[str]:
    """Return a list of human-readable differences (empty when they agree)."""
    problems: List[str] = []
    if len(smf.tracks) != len(midi.tracks):
        problems.append(f"track count: smf={len(smf.tracks)} mido={len(midi.tracks)}")
        return problems
    if smf.division.ticks_per_quarter_note and (
        smf.division.ticks_per_quarter_note != midi.ticks_per_beat
    ):
        problems.append(
            f"ticks per beat: smf={smf.division.ticks_per_quarter_note} "
            f"mido={midi.ticks_per_beat}"
        )
    for number, (track, other) in enumerate(zip(smf.tracks, midi.tracks), start=1):
        if len(track) != len(other):
            problems.append(
                f"track {number}: event count smf={len(track)} mido={len(other)}"
            )
            continue
        for position, ((delta, message), theirs) in enumerate(
            zip(track.events(), other), start=1
        ):
            if delta != theirs.time:
                problems.append(
                    f"track {number} event {position}: delta smf={delta} mido={theirs.time}"
                )
            ours = channel_key(message)
            if ours != mido_key(theirs):
                problems.append(
                    f"track {number} event {position}: smf={ours} mido={mido_key(theirs)}"
                )
    return problems


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("paths", nargs="+", type=Path, help=".mid files to compare")
    parser.add_argument(
        "--limit", type=int, default=10, help="Maximum differences printed per file"
    )
    args = parser.parse_args(argv)

    failures = 0
    for path in args.paths:
        try:
            smf = SMFFile.load(path)
        except (OSError, ValueError) as exc:
            failures += 1
            print(f"ERR  {path}: {exc}")
            continue
        try:
            midi = mido.MidiFile(str(path))
        except (OSError, EOFError, ValueError) as exc:
            failures += 1
            print(f"ERR  {path}: mido: {exc}")
            continue
        problems = compare(smf, midi)
        if not problems:
            print(f"OK   {path}")
            continue
        failures += 1
        print(f"FAIL {path}: {len(problems)} difference(s)")
        for line in problems[: args.limit]:
            print(f"  {line}")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
