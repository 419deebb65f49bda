"""Reading and writing Standard MIDI Files."""

from .errors import (  # noqa: F401
    BadChunkType,
    EndOfStream,
    InvalidField,
    MalformedChunk,
    MalformedMessage,
    NoRunningStatus,
    OversizedInteger,
    SizeMismatch,
    SMFError,
    TrackLimitExceeded,
    TruncatedData,
    TruncatedInteger,
    UnsupportedFormat,
    UnsupportedMessageKind,
)
from .varint import MAX_VARINT, encode_varint, read_varint, write_varint  # noqa: F401
from .messages import (  # noqa: F401
    Aftertouch,
    ChannelMessage,
    ChannelPrefix,
    ChannelPressure,
    ControlChange,
    EndOfTrack,
    GenericMeta,
    KeySignature,
    Message,
    MetaMessage,
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
from .track import MAX_TRACK_LENGTH, TRACK_MAGIC, Track, read_track, write_track  # noqa: F401
from .file import (  # noqa: F401
    HEADER_MAGIC,
    MAX_HEADER_CHUNK_SIZE,
    SMFFile,
    SMFHeader,
    TimeDivision,
    read_header,
)
