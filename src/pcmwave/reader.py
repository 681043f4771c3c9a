"""WAVE file reader.

This module parses the RIFF/WAVE chunk tree of an open binary stream and
exposes the PCM frames of the first ``data`` chunk.
"""

import logging
from types import TracebackType
from typing import BinaryIO

from pcmwave.errors import (
    MissingChunkError,
    NotRiffError,
    NotWaveError,
    OrderingError,
    TruncatedChunkError,
)
from pcmwave.riff import DATA_ID, FMT_ID, RIFF_ID, WAVE_ID, ReadChunk
from pcmwave.types import COMPNAME, COMPTYPE, WaveFormat

logger = logging.getLogger(__name__)


class WaveReader:
    """Frame-based reader over a RIFF/WAVE stream.

    The stream must be seekable and opened in binary mode. It is borrowed,
    not owned: ``close()`` releases the chunk tree but leaves the stream open.

    Example:
        >>> with open("input.wav", "rb") as f, WaveReader(f) as reader:
        ...     raw = reader.read_frames(reader.frame_count)
    """

    comptype = COMPTYPE
    compname = COMPNAME

    def __init__(self, stream: BinaryIO) -> None:
        self._file_chunk = ReadChunk.open_root(stream)
        if self._file_chunk.id != RIFF_ID:
            raise NotRiffError(
                f"File does not start with RIFF id (got {self._file_chunk.id!r})"
            )
        if self._file_chunk.remaining < len(WAVE_ID):
            raise NotWaveError("RIFF chunk is too small to hold a form type")
        form_type = self._file_chunk.read(len(WAVE_ID))
        if form_type != WAVE_ID:
            raise NotWaveError(f"Not a WAVE file (form type {form_type!r})")

        fmt: WaveFormat | None = None
        data_chunk: ReadChunk | None = None
        for chunk in self._file_chunk.discover_subchunks():
            if chunk.id == FMT_ID:
                fmt = WaveFormat.from_chunk(chunk)
            elif chunk.id == DATA_ID:
                if fmt is None:
                    raise OrderingError("data chunk before fmt chunk")
                data_chunk = chunk
                break
            else:
                logger.debug("Skipping %r chunk", chunk.id)

        if fmt is None or data_chunk is None:
            missing = [
                name
                for name, found in (("fmt", fmt), ("data", data_chunk))
                if found is None
            ]
            raise MissingChunkError(f"Missing chunk(s): {', '.join(missing)}")

        self._format = fmt
        self._data_chunk = data_chunk
        self._frame_count = data_chunk.size // fmt.frame_size
        self._frames_read = 0

    @property
    def format(self) -> WaveFormat:
        """The parsed ``fmt `` record."""
        return self._format

    @property
    def channel_count(self) -> int:
        return self._format.channel_count

    @property
    def frame_rate(self) -> int:
        return self._format.frame_rate

    @property
    def sample_width(self) -> int:
        """Bytes per sample, 1 to 4."""
        return self._format.sample_width

    @property
    def frame_size(self) -> int:
        return self._format.frame_size

    @property
    def frame_count(self) -> int:
        """Whole frames in the data chunk."""
        return self._frame_count

    @property
    def frames_remaining(self) -> int:
        return self._frame_count - self._frames_read

    def tell(self) -> int:
        """Number of frames consumed so far."""
        return self._frames_read

    def rewind(self) -> None:
        """Move the frame cursor back to the first frame."""
        self._data_chunk.seek(0)
        self._frames_read = 0

    def _check_frames(self, nframes: int) -> None:
        if nframes < 0:
            raise ValueError(f"Frame count must be non-negative, got {nframes}")
        if nframes > self.frames_remaining:
            raise TruncatedChunkError(
                f"Requested {nframes} frames, only {self.frames_remaining} remain"
            )

    def read_frames(self, nframes: int) -> bytes:
        """Read ``nframes`` interleaved frames as raw little-endian bytes.

        Raises:
            TruncatedChunkError: If fewer than ``nframes`` frames remain.
        """
        self._check_frames(nframes)
        data = self._data_chunk.read(nframes * self.frame_size)
        self._frames_read += nframes
        return data

    def read_frames_into(self, buffer: bytearray | memoryview, nframes: int) -> int:
        """Read ``nframes`` frames into the start of a caller-provided buffer.

        Returns:
            Number of bytes written into ``buffer``.
        """
        self._check_frames(nframes)
        nbytes = nframes * self.frame_size
        view = memoryview(buffer).cast("B")
        if len(view) < nbytes:
            raise ValueError(
                f"Buffer of {len(view)} bytes cannot hold {nframes} frames ({nbytes} bytes)"
            )
        self._data_chunk.readinto(view[:nbytes])
        self._frames_read += nframes
        return nbytes

    def close(self) -> None:
        self._file_chunk.close()

    def __enter__(self) -> "WaveReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
