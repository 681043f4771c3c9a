"""File-level WAVE decode and encode.

``decode`` streams a WAVE file into a mono float32 array; ``encode`` writes
float samples as interleaved PCM. A file that cannot be opened is reported
through the ``ok`` flag rather than an exception; every other failure
propagates.
"""

import logging
from pathlib import Path
from typing import BinaryIO, NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pcmwave.errors import InvalidParameterError, IoUnavailableError
from pcmwave.pcm import decode_pcm_frames, quantize
from pcmwave.reader import WaveReader
from pcmwave.writer import WaveWriter, check_params

logger = logging.getLogger(__name__)

# Frames decoded per read from the data chunk
DEFAULT_BLOCK_FRAMES = 4096


class DecodeResult(NamedTuple):
    """Result of ``decode``."""

    samples: NDArray[np.float32]
    """One mixed-down value per frame."""

    frame_rate: float
    """Frames per second, 0.0 when the file was unavailable."""

    ok: bool
    """False when the file could not be opened."""


def _open_stream(path: Path, mode: str) -> BinaryIO:
    try:
        return open(path, mode)
    except OSError as e:
        raise IoUnavailableError(f"Cannot open file: {path}") from e


def decode(
    path: Path | str,
    *,
    normalize: bool = True,
    block_frames: int = DEFAULT_BLOCK_FRAMES,
) -> DecodeResult:
    """Decode a PCM WAVE file to mono float samples.

    Channels are averaged into one value per frame. The data chunk is read
    ``block_frames`` frames at a time.

    Args:
        path: Path to the WAV file.
        normalize: Scale samples to [-1, 1) by the full-scale value of the
            sample width. When False, the raw channel average is returned.
        block_frames: Frames read per block.

    Returns:
        DecodeResult of (samples, frame_rate, ok). A file that cannot be
        opened yields an empty array, frame rate 0.0 and ``ok=False``.

    Raises:
        WaveError: If the file is not a valid PCM WAVE file.

    Example:
        >>> samples, frame_rate, ok = decode("speech.wav")
    """
    if block_frames < 1:
        raise InvalidParameterError(
            f"block_frames must be positive, got {block_frames}", field="block_frames"
        )
    path = Path(path)

    try:
        f = _open_stream(path, "rb")
    except IoUnavailableError as e:
        logger.warning("%s (%s)", e, e.__cause__)
        return DecodeResult(np.zeros(0, dtype=np.float32), 0.0, False)

    with f, WaveReader(f) as reader:
        output = np.empty(reader.frame_count, dtype=np.float32)
        offset = 0
        while reader.frames_remaining:
            nframes = min(block_frames, reader.frames_remaining)
            output[offset : offset + nframes] = decode_pcm_frames(
                reader.read_frames(nframes),
                reader.sample_width,
                reader.channel_count,
                normalize=normalize,
            )
            offset += nframes

        logger.debug(
            "Decoded %d frames at %d Hz from %s", reader.frame_count, reader.frame_rate, path
        )
        return DecodeResult(output, float(reader.frame_rate), True)


def encode(
    path: Path | str,
    samples: ArrayLike,
    frame_rate: int,
    sample_width: int,
    channel_count: int,
) -> bool:
    """Encode float samples as a PCM WAVE file.

    Args:
        path: Output file path.
        samples: Interleaved float samples, nominally in [-1, 1].
        frame_rate: Frames per second.
        sample_width: Bytes per sample (1-4).
        channel_count: Samples per frame.

    Returns:
        True on success, False if the output file cannot be opened.

    Raises:
        InvalidParameterError: If a parameter is out of range.
    """
    # Nothing is created on disk for bad parameters
    channel_count, sample_width, frame_rate = check_params(
        channel_count, sample_width, frame_rate
    )
    path = Path(path)
    flat = np.asarray(samples, dtype=np.float64).reshape(-1)

    frame_count = len(flat) // channel_count
    usable = frame_count * channel_count
    if usable != len(flat):
        logger.debug(
            "Dropping %d trailing sample(s) that do not fill a %d-channel frame",
            len(flat) - usable,
            channel_count,
        )
    pcm = quantize(flat[:usable], sample_width)

    try:
        f = _open_stream(path, "wb")
    except IoUnavailableError as e:
        logger.warning("%s (%s)", e, e.__cause__)
        return False

    with f:
        with WaveWriter(f) as writer:
            writer.set_params(channel_count, sample_width, frame_rate)
            writer.write_frames(pcm, frame_count)
        f.flush()

    logger.debug("Encoded %d frames at %d Hz to %s", frame_count, frame_rate, path)
    return True
