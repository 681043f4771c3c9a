"""Python types for the WAVE format record.

``WaveFormat`` mirrors the 16-byte PCM ``fmt `` chunk and converts to and
from its little-endian on-disk layout.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum

from pcmwave.errors import MalformedHeaderError, UnsupportedFormatTagError
from pcmwave.riff import WAVE_FORMAT_PCM, ReadChunk

# tag, channels, frame rate, avg bytes/sec, block align
_FMT_FIXED = struct.Struct("<HHIIH")
_FMT_PCM = struct.Struct("<HHIIHH")

PCM_FMT_SIZE = _FMT_PCM.size
MIN_SAMPLE_WIDTH = 1
MAX_SAMPLE_WIDTH = 4

COMPTYPE = "NONE"
COMPNAME = "not compressed"


class FormatTag(IntEnum):
    """WAVE format tags this package recognizes."""

    PCM = WAVE_FORMAT_PCM
    """Uncompressed integer PCM."""

    @classmethod
    def describe(cls, value: int) -> str:
        """Human-readable name for a tag, including unknown ones."""
        try:
            return cls(value).name
        except ValueError:
            return f"0x{value:04x}"


@dataclass(frozen=True)
class WaveFormat:
    """Contents of a PCM ``fmt `` chunk."""

    format_tag: int
    channel_count: int
    frame_rate: int
    avg_bytes_per_sec: int
    block_align: int
    bits_per_sample: int

    @property
    def sample_width(self) -> int:
        """Bytes per sample, rounding partial bytes up."""
        return (self.bits_per_sample + 7) // 8

    @property
    def frame_size(self) -> int:
        """Bytes per interleaved frame."""
        return self.channel_count * self.sample_width

    @classmethod
    def for_pcm(cls, channel_count: int, sample_width: int, frame_rate: int) -> "WaveFormat":
        """Build a PCM format record with all derived fields filled in."""
        return cls(
            format_tag=FormatTag.PCM,
            channel_count=channel_count,
            frame_rate=frame_rate,
            avg_bytes_per_sec=channel_count * frame_rate * sample_width,
            block_align=channel_count * sample_width,
            bits_per_sample=sample_width * 8,
        )

    def to_bytes(self) -> bytes:
        """Pack the record into its 16-byte on-disk form."""
        return _FMT_PCM.pack(
            self.format_tag,
            self.channel_count,
            self.frame_rate,
            self.avg_bytes_per_sec,
            self.block_align,
            self.bits_per_sample,
        )

    @classmethod
    def from_chunk(cls, chunk: ReadChunk) -> "WaveFormat":
        """Parse a ``fmt `` chunk.

        The fixed 14 bytes are read first; the bits-per-sample field is only
        read once the tag is known to be PCM.

        Raises:
            TruncatedChunkError: If the chunk is too short.
            UnsupportedFormatTagError: If the tag is not PCM.
            MalformedHeaderError: If channels, rate or sample width are out of range.
        """
        format_tag, channel_count, frame_rate, avg_bytes_per_sec, block_align = (
            _FMT_FIXED.unpack(chunk.read(_FMT_FIXED.size))
        )
        if format_tag != FormatTag.PCM:
            raise UnsupportedFormatTagError(
                f"Unsupported format tag {FormatTag.describe(format_tag)}; "
                f"only uncompressed PCM is supported",
                format_tag=format_tag,
            )
        (bits_per_sample,) = struct.unpack("<H", chunk.read(2))

        fmt = cls(
            format_tag=FormatTag.PCM,
            channel_count=channel_count,
            frame_rate=frame_rate,
            avg_bytes_per_sec=avg_bytes_per_sec,
            block_align=block_align,
            bits_per_sample=bits_per_sample,
        )
        if fmt.channel_count < 1:
            raise MalformedHeaderError("fmt chunk declares zero channels")
        if fmt.frame_rate < 1:
            raise MalformedHeaderError("fmt chunk declares a zero frame rate")
        if not MIN_SAMPLE_WIDTH <= fmt.sample_width <= MAX_SAMPLE_WIDTH:
            raise MalformedHeaderError(
                f"Unsupported sample width: {bits_per_sample} bits per sample"
            )
        return fmt
