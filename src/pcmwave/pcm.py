"""In-memory PCM sample conversion.

Converts between interleaved little-endian PCM bytes and float arrays.
Supported sample widths: 1, 2, 3 and 4 bytes. 8-bit samples are unsigned
offset-binary (0x80 is silence); wider samples are two's complement.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pcmwave.errors import InvalidParameterError
from pcmwave.types import MAX_SAMPLE_WIDTH, MIN_SAMPLE_WIDTH

UNSIGNED_OFFSET = 0x80


def full_scale(sample_width: int) -> float:
    """Magnitude of the most negative code for a sample width (2^(8w-1))."""
    return float(1 << (8 * sample_width - 1))


def _check_width(sample_width: int) -> None:
    if not MIN_SAMPLE_WIDTH <= sample_width <= MAX_SAMPLE_WIDTH:
        raise InvalidParameterError(
            f"Unsupported sample width: {sample_width}", field="sample_width"
        )


def decode_pcm_samples(data: bytes, sample_width: int) -> NDArray[np.int32]:
    """Sign-extend raw PCM bytes into one int32 per sample."""
    _check_width(sample_width)

    if sample_width == 1:
        samples = np.frombuffer(data, dtype=np.uint8).astype(np.int32)
        return samples - UNSIGNED_OFFSET
    elif sample_width == 2:
        return np.frombuffer(data, dtype="<i2").astype(np.int32)
    elif sample_width == 3:
        return _decode_24bit(data)
    return np.frombuffer(data, dtype="<i4").astype(np.int32)


def _decode_24bit(data: bytes) -> NDArray[np.int32]:
    """Decode 24-bit samples by placing them in the top of a 32-bit word."""
    packed = np.frombuffer(data, dtype=np.uint8).reshape(-1, 3)
    words = np.zeros((packed.shape[0], 4), dtype=np.uint8)
    words[:, 1:] = packed
    # Arithmetic shift restores the sign of bit 23
    return words.view("<i4").reshape(-1).astype(np.int32) >> 8


def decode_pcm_frames(
    data: bytes,
    sample_width: int,
    channel_count: int,
    *,
    normalize: bool = True,
) -> NDArray[np.float32]:
    """Decode interleaved PCM frames and mix them down to mono.

    Each channel contributes ``sample * (1 / channel_count)`` to its frame.

    Args:
        data: Whole interleaved frames.
        sample_width: Bytes per sample (1-4).
        channel_count: Samples per frame.
        normalize: Divide by the full-scale value of ``sample_width`` so the
            result lies in [-1, 1). When False, the channel average is
            returned on the integer scale of the sample width.

    Returns:
        One float32 value per frame.
    """
    if channel_count < 1:
        raise InvalidParameterError(
            f"Bad number of channels: {channel_count}", field="channel_count"
        )
    frame_size = sample_width * channel_count
    if len(data) % frame_size:
        raise ValueError(
            f"{len(data)} bytes is not a whole number of {frame_size}-byte frames"
        )

    frames = decode_pcm_samples(data, sample_width).reshape(-1, channel_count)
    mixed = (frames.astype(np.float64) * (1.0 / channel_count)).sum(axis=1)
    if normalize:
        mixed /= full_scale(sample_width)
    return mixed.astype(np.float32)


def quantize(samples: ArrayLike, sample_width: int) -> bytes:
    """Requantize float samples to little-endian PCM bytes.

    Samples are clipped to [-1, 1] and rounded half toward positive infinity
    on a grid of 2^(8w-1) steps per unit. The result is clamped to the
    signed range of the width, so +1.0 maps to the largest code.

    Args:
        samples: Float samples, already interleaved if multichannel.
        sample_width: Bytes per sample (1-4).

    Returns:
        ``len(samples) * sample_width`` bytes.

    Raises:
        InvalidParameterError: If the width is unsupported or a sample is NaN.
    """
    _check_width(sample_width)
    x = np.asarray(samples, dtype=np.float64).reshape(-1)
    if np.isnan(x).any():
        raise InvalidParameterError("Samples contain NaN values", field="samples")

    clipped = np.clip(x, -1.0, 1.0)
    scale = float(1 << (8 * sample_width))
    codes = np.floor(clipped * scale + 1.0).astype(np.int64) >> 1

    limit = 1 << (8 * sample_width - 1)
    codes = np.clip(codes, -limit, limit - 1)

    if sample_width == 1:
        return (codes + UNSIGNED_OFFSET).astype(np.uint8).tobytes()
    elif sample_width == 2:
        return codes.astype("<i2").tobytes()
    elif sample_width == 3:
        words = codes.astype("<i4").view(np.uint8).reshape(-1, 4)
        return words[:, :3].tobytes()
    return codes.astype("<i4").tobytes()
