"""Exception hierarchy for WAVE reading and writing.

Every exception carries an ``ErrorKind`` so callers can dispatch on the
failure category without matching on exception classes.
"""

from enum import Enum


class ErrorKind(Enum):
    """Category of a WAVE/RIFF failure."""

    NOT_RIFF = "not_riff"
    NOT_WAVE = "not_wave"
    UNSUPPORTED_FORMAT_TAG = "unsupported_format_tag"
    MALFORMED_HEADER = "malformed_header"
    ORDERING = "ordering"
    MISSING_CHUNK = "missing_chunk"
    TRUNCATED_CHUNK = "truncated_chunk"
    INVALID_PARAMETER = "invalid_parameter"
    MISSING_PARAMETER = "missing_parameter"
    PARAMETER_LOCKED = "parameter_locked"
    IO_UNAVAILABLE = "io_unavailable"
    CHUNK_CLOSED = "chunk_closed"


class WaveError(Exception):
    """Base class for pcmwave exceptions."""

    kind: ErrorKind


class RiffError(WaveError):
    """Error in the RIFF chunk structure."""


class NotRiffError(RiffError):
    """Root chunk id is not ``RIFF``."""

    kind = ErrorKind.NOT_RIFF


class NotWaveError(RiffError):
    """RIFF form type is not ``WAVE``."""

    kind = ErrorKind.NOT_WAVE


class MalformedHeaderError(RiffError):
    """Chunk header is truncated or inconsistent with its parent."""

    kind = ErrorKind.MALFORMED_HEADER


class TruncatedChunkError(RiffError):
    """Read past the declared extent of a chunk, or the stream ended early."""

    kind = ErrorKind.TRUNCATED_CHUNK


class ChunkClosedError(RiffError):
    """Write attempted on a chunk whose size has been finalized."""

    kind = ErrorKind.CHUNK_CLOSED


class FormatError(WaveError):
    """Error in the WAVE-level chunk layout or format record."""


class UnsupportedFormatTagError(FormatError):
    """Format tag is not uncompressed PCM."""

    kind = ErrorKind.UNSUPPORTED_FORMAT_TAG

    def __init__(self, message: str, format_tag: int | None = None) -> None:
        self.format_tag = format_tag
        super().__init__(message)


class OrderingError(FormatError):
    """``data`` chunk appears before the ``fmt `` chunk."""

    kind = ErrorKind.ORDERING


class MissingChunkError(FormatError):
    """A required ``fmt `` or ``data`` chunk is absent."""

    kind = ErrorKind.MISSING_CHUNK


class ParameterError(WaveError):
    """Writer misuse by the caller."""


class InvalidParameterError(ParameterError, ValueError):
    """Parameter value outside its documented domain."""

    kind = ErrorKind.INVALID_PARAMETER

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class MissingParameterError(ParameterError):
    """Header emission attempted before all parameters were set."""

    kind = ErrorKind.MISSING_PARAMETER


class ParameterLockedError(ParameterError):
    """Parameter change attempted after the header was written."""

    kind = ErrorKind.PARAMETER_LOCKED


class IoUnavailableError(WaveError, OSError):
    """File cannot be opened."""

    kind = ErrorKind.IO_UNAVAILABLE
