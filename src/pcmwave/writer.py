"""WAVE file writer.

This module builds a RIFF/WAVE chunk tree incrementally. The ``fmt `` and
``data`` chunks are emitted on the first frame write (or on close), after
which format parameters are locked.
"""

import logging
from types import TracebackType
from typing import BinaryIO

from pcmwave.errors import (
    InvalidParameterError,
    MissingParameterError,
    ParameterLockedError,
)
from pcmwave.riff import DATA_ID, FMT_ID, RIFF_ID, WAVE_ID, WriteChunk
from pcmwave.types import COMPNAME, COMPTYPE, MAX_SAMPLE_WIDTH, MIN_SAMPLE_WIDTH, WaveFormat

logger = logging.getLogger(__name__)

MAX_CHANNEL_COUNT = 0xFFFF
MAX_FRAME_RATE = 0xFFFFFFFF


def _check_int(value: int, low: int, high: int, field: str, label: str) -> int:
    """Return ``value`` as an int in ``[low, high]`` or raise InvalidParameterError."""
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidParameterError(f"Bad {label}: {value!r}", field=field) from None
    if number != value or not low <= number <= high:
        raise InvalidParameterError(f"Bad {label}: {value!r}", field=field)
    return number


def check_params(channel_count: int, sample_width: int, frame_rate: int) -> tuple[int, int, int]:
    """Validate format parameters without touching a stream.

    Returns:
        The parameters as ints, in argument order.

    Raises:
        InvalidParameterError: If any value is not a whole number in range.
    """
    return (
        _check_int(channel_count, 1, MAX_CHANNEL_COUNT, "channel_count", "number of channels"),
        _check_int(
            sample_width, MIN_SAMPLE_WIDTH, MAX_SAMPLE_WIDTH, "sample_width", "sample width"
        ),
        _check_int(frame_rate, 1, MAX_FRAME_RATE, "frame_rate", "frame rate"),
    )


class WaveWriter:
    """Frame-based writer producing a PCM RIFF/WAVE stream.

    The stream must be seekable and opened for binary writing. It is
    borrowed: ``close()`` finalizes every size field but leaves the stream
    open for the caller to flush and close.

    Example:
        >>> with open("out.wav", "wb") as f, WaveWriter(f) as writer:
        ...     writer.set_params(channel_count=1, sample_width=2, frame_rate=44100)
        ...     writer.write_frames(pcm_bytes)
    """

    comptype = COMPTYPE
    compname = COMPNAME

    def __init__(self, stream: BinaryIO) -> None:
        self._file_chunk = WriteChunk.create_root(stream, RIFF_ID)
        self._file_chunk.write(WAVE_ID)
        self._data_chunk: WriteChunk | None = None
        self._channel_count = 0
        self._sample_width = 0
        self._frame_rate = 0
        self._frames_written = 0
        self._closed = False

    @property
    def header_written(self) -> bool:
        return self._data_chunk is not None

    @property
    def channel_count(self) -> int:
        return self._channel_count

    @property
    def sample_width(self) -> int:
        return self._sample_width

    @property
    def frame_rate(self) -> int:
        return self._frame_rate

    @property
    def frame_size(self) -> int:
        return self._channel_count * self._sample_width

    @property
    def frames_written(self) -> int:
        return self._frames_written

    def _check_unlocked(self) -> None:
        if self.header_written:
            raise ParameterLockedError("Cannot change parameters after starting to write")

    def set_channel_count(self, channel_count: int) -> None:
        self._check_unlocked()
        self._channel_count = _check_int(
            channel_count, 1, MAX_CHANNEL_COUNT, "channel_count", "number of channels"
        )

    def set_sample_width(self, sample_width: int) -> None:
        self._check_unlocked()
        self._sample_width = _check_int(
            sample_width, MIN_SAMPLE_WIDTH, MAX_SAMPLE_WIDTH, "sample_width", "sample width"
        )

    def set_frame_rate(self, frame_rate: int) -> None:
        self._check_unlocked()
        self._frame_rate = _check_int(frame_rate, 1, MAX_FRAME_RATE, "frame_rate", "frame rate")

    def set_params(self, channel_count: int, sample_width: int, frame_rate: int) -> None:
        """Set channel count, sample width and frame rate in one call."""
        self.set_channel_count(channel_count)
        self.set_sample_width(sample_width)
        self.set_frame_rate(frame_rate)

    def _ensure_header_written(self) -> WriteChunk:
        if self._data_chunk is not None:
            return self._data_chunk

        if not self._channel_count:
            raise MissingParameterError("Number of channels not specified")
        if not self._sample_width:
            raise MissingParameterError("Sample width not specified")
        if not self._frame_rate:
            raise MissingParameterError("Frame rate not specified")

        fmt = WaveFormat.for_pcm(self._channel_count, self._sample_width, self._frame_rate)
        fmt_chunk = self._file_chunk.create_child(FMT_ID)
        fmt_chunk.write(fmt.to_bytes())

        self._data_chunk = self._file_chunk.create_child(DATA_ID)
        logger.debug(
            "Wrote WAVE header: %d channel(s), %d byte samples, %d Hz",
            fmt.channel_count,
            fmt.sample_width,
            fmt.frame_rate,
        )
        return self._data_chunk

    def write_frames(
        self, data: bytes | bytearray | memoryview, nframes: int | None = None
    ) -> None:
        """Write interleaved little-endian PCM frames.

        Args:
            data: Raw frame bytes.
            nframes: Frames to take from ``data``. Defaults to every whole
                frame in ``data``.

        Raises:
            MissingParameterError: If the header still has unset parameters.
            InvalidParameterError: If ``data`` holds fewer than ``nframes`` frames.
        """
        data_chunk = self._ensure_header_written()
        view = memoryview(data).cast("B")
        if nframes is None:
            nframes = len(view) // self.frame_size
        if nframes < 0:
            raise InvalidParameterError(f"Frame count must be non-negative, got {nframes}")

        nbytes = nframes * self.frame_size
        if nbytes > len(view):
            raise InvalidParameterError(
                f"Buffer of {len(view)} bytes holds fewer than {nframes} frames"
            )
        data_chunk.write(view[:nbytes])
        self._frames_written += nframes

    def close(self) -> None:
        """Write the header if needed and back-patch every size field."""
        if self._closed:
            return
        try:
            self._ensure_header_written()
        finally:
            self._finalize()

    def _finalize(self) -> None:
        if self._data_chunk is not None:
            self._data_chunk.close()
        self._file_chunk.close()
        self._closed = True

    def __enter__(self) -> "WaveWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        elif not self._closed:
            # Keep the file walkable without masking the original error
            self._finalize()
