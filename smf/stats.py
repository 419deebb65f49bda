from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .file import SMFFile
from .messages import NoteOn, ProgramChange

PERCUSSION_CHANNEL = 9


def _zeros() -> List[int]:
    return [0] * 128


@dataclass
class InstrumentStats:
    """Note-on counts per General MIDI program and per percussion key."""

    event_counts: List[int] = field(default_factory=_zeros)
    percussion_counts: List[int] = field(default_factory=_zeros)
    files: int = 0

    def add_file(self, smf: SMFFile) -> None:
        for track in smf.tracks:
            # Channel programs are assumed to reset at each track.
            programs = [0] * 16
            for message in track.messages:
                if isinstance(message, NoteOn):
                    if message.velocity == 0:
                        continue
                    if message.channel == PERCUSSION_CHANNEL:
                        self.percussion_counts[message.note] += 1
                    else:
                        self.event_counts[programs[message.channel]] += 1
                elif isinstance(message, ProgramChange):
                    programs[message.channel] = message.program
        self.files += 1

    def report(self) -> List[str]:
        lines = [
            f"Instrument {i}: {count} events." for i, count in enumerate(self.event_counts)
        ]
        lines.extend(
            f"Percussion instrument {i}: {count} events."
            for i, count in enumerate(self.percussion_counts)
        )
        return lines
