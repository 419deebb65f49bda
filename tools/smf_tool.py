#!/usr/bin/env python3
"""View or edit a Standard MIDI File.

Edits are applied in this order: delete, time delta, insert, channel
reassignment, velocity scaling, extra beat track.  Events are dumped after
all edits.

Examples
--------
    python tools/smf_tool.py song.mid --dump-events
    python tools/smf_tool.py song.mid --track 2 --position 0 \\
        --new-event "00 c0 05" -o edited.mid
    python tools/smf_tool.py song.mid --reassign-channel 9,3 -o fixed.mid
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smf.edits import (  # noqa: E402
    append_beat_track,
    delete_event,
    dump_events,
    insert_event_hex,
    reassign_channel,
    scale_velocity,
    set_time_delta,
)
from smf.file import SMFFile  # noqa: E402


def parse_channel_pair(text: str) -> Tuple[int, int]:
    parts = text.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"{text} doesn't contain two channel numbers")
    try:
        old, new = (int(p) for p in parts)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"bad channel number in {text}: {exc}")
    for channel in (old, new):
        if not 0 <= channel <= 15:
            raise argparse.ArgumentTypeError(
                f"invalid channel number: {channel}. Channels are numbered 0-15."
            )
    return old, new


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect or modify a .mid file")
    parser.add_argument("input", type=Path, help="The .mid file to open")
    parser.add_argument(
        "-o", "--output", type=Path, default=None, help="The .mid file to create"
    )
    parser.add_argument(
        "--dump-events",
        action="store_true",
        help="Print every event in the file after any modifications",
    )
    parser.add_argument("--track", type=int, default=None, help="Track to modify (1-based)")
    parser.add_argument(
        "--position",
        type=int,
        default=None,
        help="Event position in the track. New events are inserted after this "
        "position (0 = start of track)",
    )
    parser.add_argument(
        "--new-time-delta",
        type=int,
        default=None,
        help="Set the time delta of the event at --track/--position",
    )
    parser.add_argument(
        "--new-event",
        default=None,
        help="Hex bytes of a delta time followed by a MIDI message (no running status)",
    )
    parser.add_argument(
        "--delete-event",
        action="store_true",
        help="Delete the event at --track/--position",
    )
    parser.add_argument(
        "--reassign-channel",
        type=parse_channel_pair,
        default=None,
        help="OLD,NEW: move every channel event from OLD to NEW (0-based)",
    )
    parser.add_argument(
        "--scale-velocity",
        type=float,
        default=None,
        help="Scale note-on velocities in --track by this value (0.0-1.0)",
    )
    parser.add_argument(
        "--boots-and-cats",
        action="store_true",
        help="Append a percussion track for added rhythmic emphasis",
    )
    return parser


def _require_track(parser: argparse.ArgumentParser, args: argparse.Namespace, what: str) -> None:
    if args.track is None:
        parser.error(f"{what} requires --track")


def _require_position(parser: argparse.ArgumentParser, args: argparse.Namespace, what: str) -> None:
    _require_track(parser, args, what)
    if args.position is None:
        parser.error(f"{what} requires --position")


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    if args.delete_event:
        _require_position(parser, args, "--delete-event")
        if args.new_time_delta is not None or args.new_event is not None:
            parser.error("no other event edits can be combined with --delete-event")
    if args.new_time_delta is not None:
        _require_position(parser, args, "--new-time-delta")
    if args.new_event is not None:
        _require_position(parser, args, "--new-event")
    if args.scale_velocity is not None:
        _require_track(parser, args, "--scale-velocity")

    try:
        smf = SMFFile.load(args.input)
    except (OSError, ValueError) as exc:
        print(f"Couldn't parse {args.input}: {exc}", file=sys.stderr)
        return 1
    print(
        f"Parsed {args.input} OK. Contains {len(smf.tracks)} tracks. "
        f"Time division: {smf.division}."
    )

    try:
        if args.delete_event:
            delta, message = delete_event(smf, args.track, args.position)
            print(f"Deleted event: time {delta}: {message}")
        if args.new_time_delta is not None:
            set_time_delta(smf, args.track, args.position, args.new_time_delta)
        if args.new_event is not None:
            delta, message = insert_event_hex(smf, args.track, args.position, args.new_event)
            print(f"Inserted new event: time {delta}: {message}")
        if args.reassign_channel is not None:
            old, new = args.reassign_channel
            modified, total = reassign_channel(smf, old, new)
            print(f"Reassigned {modified}/{total} events from channel {old} to {new}.")
        if args.scale_velocity is not None:
            count = scale_velocity(smf, args.track, args.scale_velocity)
            print(
                f"Updated the velocity of {count} note-on events in track {args.track}"
            )
        if args.boots_and_cats:
            track = append_beat_track(smf)
            print(f"Appended track {len(smf.tracks)}, with {len(track)} events.")
    except (IndexError, ValueError) as exc:
        print(f"Edit failed: {exc}", file=sys.stderr)
        return 1

    if args.dump_events:
        for line in dump_events(smf):
            print(line)

    if args.output is not None:
        try:
            smf.save(args.output)
        except (OSError, ValueError) as exc:
            print(f"Error writing {args.output}: {exc}", file=sys.stderr)
            return 1
        print(f"{args.output} saved OK.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
