"""pcmwave - RIFF/WAVE PCM reading and writing.

This package converts between byte-exact PCM WAVE files and normalized
float arrays.

File Layout
-----------
    +----------------------------------------+
    | RIFF header ("WAVE")                   |
    +----------------------------------------+
    | fmt  chunk (16-byte PCM format record) |
    +----------------------------------------+
    | data chunk (interleaved PCM frames)    |
    |   - 8-bit unsigned, offset 0x80        |
    |   - 16/24/32-bit signed little-endian  |
    +----------------------------------------+

Example Usage
-------------
>>> import numpy as np
>>> from pcmwave import decode, encode
>>>
>>> tone = np.sin(np.linspace(0, 2 * np.pi, 441))
>>> encode("tone.wav", tone, frame_rate=44100, sample_width=2, channel_count=1)
True
>>> samples, frame_rate, ok = decode("tone.wav")
"""

from pcmwave.codec import DecodeResult, decode, encode
from pcmwave.errors import (
    ChunkClosedError,
    ErrorKind,
    FormatError,
    InvalidParameterError,
    IoUnavailableError,
    MalformedHeaderError,
    MissingChunkError,
    MissingParameterError,
    NotRiffError,
    NotWaveError,
    OrderingError,
    ParameterError,
    ParameterLockedError,
    RiffError,
    TruncatedChunkError,
    UnsupportedFormatTagError,
    WaveError,
)
from pcmwave.pcm import decode_pcm_frames, decode_pcm_samples, quantize
from pcmwave.reader import WaveReader
from pcmwave.riff import ReadChunk, WriteChunk
from pcmwave.types import FormatTag, WaveFormat
from pcmwave.writer import WaveWriter, check_params

__all__ = [
    # Codec
    "decode",
    "encode",
    "DecodeResult",
    "decode_pcm_frames",
    "decode_pcm_samples",
    "quantize",
    # Sessions
    "WaveReader",
    "WaveWriter",
    "check_params",
    # Chunks
    "ReadChunk",
    "WriteChunk",
    # Types
    "WaveFormat",
    "FormatTag",
    # Errors
    "ErrorKind",
    "WaveError",
    "RiffError",
    "NotRiffError",
    "NotWaveError",
    "MalformedHeaderError",
    "TruncatedChunkError",
    "ChunkClosedError",
    "FormatError",
    "UnsupportedFormatTagError",
    "OrderingError",
    "MissingChunkError",
    "ParameterError",
    "InvalidParameterError",
    "MissingParameterError",
    "ParameterLockedError",
    "IoUnavailableError",
]
