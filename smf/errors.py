"""Exception types raised by the SMF codec.

Every error derives from :class:`SMFError`, which is a ``ValueError`` so
callers can keep catching ``ValueError`` around parsing.  Errors carry the
position they were raised at: the track codec stamps ``event`` and the file
codec stamps ``track`` before re-raising the same object.
"""

from __future__ import annotations

from typing import Optional


class SMFError(ValueError):
    """Base class for every codec failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.track: Optional[int] = None
        self.event: Optional[int] = None

    def with_context(
        self, *, track: Optional[int] = None, event: Optional[int] = None
    ) -> "SMFError":
        if track is not None and self.track is None:
            self.track = track
        if event is not None and self.event is None:
            self.event = event
        return self

    def __str__(self) -> str:
        where = []
        if self.track is not None:
            where.append(f"track {self.track}")
        if self.event is not None:
            where.append(f"event {self.event}")
        if not where:
            return self.message
        return f"{', '.join(where)}: {self.message}"


class MalformedChunk(SMFError):
    """Bad chunk tag, bad header size or inconsistent header fields."""


BadChunkType = MalformedChunk


class UnsupportedFormat(MalformedChunk):
    """Header format other than 0 or 1."""


class TrackLimitExceeded(MalformedChunk):
    """Announced track length is above the configured allocation bound."""


class TruncatedData(SMFError):
    """Input ended in the middle of a structure."""


class TruncatedInteger(TruncatedData):
    """A variable-length integer was cut short after its first byte."""


class OversizedInteger(SMFError):
    """A variable-length integer exceeds 0x0FFFFFFF."""


class EndOfStream(SMFError):
    """Clean end of input: no byte was available to start a new integer.

    This is the only legal way for a track's event stream to end.
    """


class NoRunningStatus(SMFError):
    """A data byte appeared where a status byte was required."""


class MalformedMessage(SMFError):
    """A message payload has the wrong shape."""


class InvalidField(MalformedMessage):
    """A message field is outside its legal range."""

    def __init__(self, kind: str, field: str, value: object) -> None:
        super().__init__(f"invalid {kind} {field}: {value}")
        self.kind = kind
        self.field = field
        self.value = value


class UnsupportedMessageKind(SMFError):
    """Status byte outside sysex, meta and the channel-voice categories."""


class SizeMismatch(SMFError):
    """Parallel sequences of unequal length, or too many tracks."""
