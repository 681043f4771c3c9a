"""Unit tests for WaveFormat parsing and the WaveReader."""

import io
import struct

import pytest

from pcmwave.errors import (
    ErrorKind,
    MalformedHeaderError,
    MissingChunkError,
    NotRiffError,
    NotWaveError,
    OrderingError,
    TruncatedChunkError,
    UnsupportedFormatTagError,
)
from pcmwave.reader import WaveReader
from pcmwave.types import PCM_FMT_SIZE, FormatTag, WaveFormat


def _chunk(chunk_id: bytes, payload: bytes) -> bytes:
    pad = b"\x00" if len(payload) % 2 else b""
    return chunk_id + struct.pack("<I", len(payload)) + payload + pad


def _fmt(channels: int = 1, width: int = 2, rate: int = 44100, tag: int = 1) -> bytes:
    return _chunk(
        b"fmt ",
        struct.pack(
            "<HHIIHH", tag, channels, rate, channels * rate * width, channels * width, width * 8
        ),
    )


def _wave(*chunks: bytes, root: bytes = b"RIFF", form: bytes = b"WAVE") -> io.BytesIO:
    return io.BytesIO(_chunk(root, form + b"".join(chunks)))


class TestWaveFormat:
    """Tests for the fmt chunk record."""

    def test_for_pcm_derives_fields(self) -> None:
        fmt = WaveFormat.for_pcm(channel_count=2, sample_width=3, frame_rate=48000)

        assert fmt.format_tag == FormatTag.PCM
        assert fmt.avg_bytes_per_sec == 2 * 48000 * 3
        assert fmt.block_align == 6
        assert fmt.bits_per_sample == 24
        assert fmt.sample_width == 3
        assert fmt.frame_size == 6

    def test_to_bytes_layout(self) -> None:
        fmt = WaveFormat.for_pcm(channel_count=1, sample_width=2, frame_rate=44100)

        assert fmt.to_bytes() == struct.pack("<HHIIHH", 1, 1, 44100, 88200, 2, 16)
        assert len(fmt.to_bytes()) == PCM_FMT_SIZE == 16

    def test_sample_width_rounds_bits_up(self) -> None:
        fmt = WaveFormat(1, 1, 8000, 16000, 2, 12)
        assert fmt.sample_width == 2

    def test_describe_unknown_tag(self) -> None:
        assert FormatTag.describe(1) == "PCM"
        assert FormatTag.describe(3) == "0x0003"


class TestWaveReader:
    """Tests for opening and reading WAVE streams."""

    def test_parses_format(self) -> None:
        stream = _wave(_fmt(channels=2, width=3, rate=48000), _chunk(b"data", b"\x00" * 24))

        with WaveReader(stream) as reader:
            assert reader.channel_count == 2
            assert reader.sample_width == 3
            assert reader.frame_rate == 48000
            assert reader.frame_size == 6
            assert reader.frame_count == 4
            assert reader.comptype == "NONE"
            assert reader.compname == "not compressed"
            assert reader.format.bits_per_sample == 24

    @pytest.mark.parametrize(
        "channels,width,frames",
        [(1, 1, 7), (2, 2, 5), (3, 3, 4), (2, 4, 9), (6, 2, 0)],
    )
    def test_frame_count(self, channels: int, width: int, frames: int) -> None:
        data = b"\x00" * (channels * width * frames)
        reader = WaveReader(_wave(_fmt(channels=channels, width=width), _chunk(b"data", data)))

        assert reader.frame_count == frames

    def test_partial_trailing_frame_ignored(self) -> None:
        reader = WaveReader(_wave(_fmt(channels=2, width=2), _chunk(b"data", b"\x00" * 10)))
        assert reader.frame_count == 2

    def test_read_frames(self) -> None:
        data = struct.pack("<4h", 1, -1, 2, -2)
        reader = WaveReader(_wave(_fmt(channels=2, width=2), _chunk(b"data", data)))

        assert reader.read_frames(1) == struct.pack("<2h", 1, -1)
        assert reader.tell() == 1
        assert reader.frames_remaining == 1
        assert reader.read_frames(1) == struct.pack("<2h", 2, -2)

    def test_read_frames_into(self) -> None:
        data = bytes(range(12))
        reader = WaveReader(_wave(_fmt(channels=1, width=3), _chunk(b"data", data)))
        buffer = bytearray(9)

        assert reader.read_frames_into(buffer, 3) == 9
        assert bytes(buffer) == data[:9]

        with pytest.raises(ValueError):
            reader.read_frames_into(bytearray(2), 1)

    def test_read_past_end_is_truncated(self) -> None:
        reader = WaveReader(_wave(_fmt(), _chunk(b"data", b"\x00" * 4)))

        with pytest.raises(TruncatedChunkError) as exc_info:
            reader.read_frames(3)
        assert exc_info.value.kind == ErrorKind.TRUNCATED_CHUNK

    def test_rewind(self) -> None:
        data = struct.pack("<2h", 100, 200)
        reader = WaveReader(_wave(_fmt(), _chunk(b"data", data)))
        reader.read_frames(2)

        reader.rewind()

        assert reader.tell() == 0
        assert reader.read_frames(1) == struct.pack("<h", 100)

    def test_unknown_chunks_are_skipped(self) -> None:
        stream = _wave(
            _chunk(b"JUNK", b"\xff" * 5),
            _fmt(),
            _chunk(b"LIST", b"INFO"),
            _chunk(b"data", struct.pack("<h", 7)),
        )
        reader = WaveReader(stream)

        assert reader.read_frames(1) == struct.pack("<h", 7)

    def test_first_data_chunk_wins(self) -> None:
        stream = _wave(
            _fmt(),
            _chunk(b"data", struct.pack("<h", 1)),
            _chunk(b"data", struct.pack("<3h", 2, 3, 4)),
        )
        reader = WaveReader(stream)

        assert reader.frame_count == 1
        assert reader.read_frames(1) == struct.pack("<h", 1)

    def test_not_riff(self) -> None:
        with pytest.raises(NotRiffError) as exc_info:
            WaveReader(_wave(_fmt(), _chunk(b"data", b""), root=b"RIFX"))
        assert exc_info.value.kind == ErrorKind.NOT_RIFF

    def test_not_wave(self) -> None:
        with pytest.raises(NotWaveError) as exc_info:
            WaveReader(_wave(_fmt(), _chunk(b"data", b""), form=b"AVI "))
        assert exc_info.value.kind == ErrorKind.NOT_WAVE

    def test_riff_too_small_for_form_type(self) -> None:
        with pytest.raises(NotWaveError):
            WaveReader(io.BytesIO(_chunk(b"RIFF", b"WA")))

    def test_empty_stream(self) -> None:
        with pytest.raises(MalformedHeaderError):
            WaveReader(io.BytesIO(b""))

    def test_unsupported_format_tag(self) -> None:
        stream = _wave(_fmt(tag=3, width=4), _chunk(b"data", b"\x00" * 4))

        with pytest.raises(UnsupportedFormatTagError) as exc_info:
            WaveReader(stream)
        assert exc_info.value.kind == ErrorKind.UNSUPPORTED_FORMAT_TAG
        assert exc_info.value.format_tag == 3

    def test_data_before_fmt(self) -> None:
        stream = _wave(_chunk(b"data", b"\x00" * 4), _fmt())

        with pytest.raises(OrderingError) as exc_info:
            WaveReader(stream)
        assert exc_info.value.kind == ErrorKind.ORDERING

    @pytest.mark.parametrize(
        "chunks",
        [
            (_fmt(),),
            (_chunk(b"LIST", b"INFO"),),
            (),
        ],
    )
    def test_missing_chunk(self, chunks: tuple[bytes, ...]) -> None:
        with pytest.raises(MissingChunkError) as exc_info:
            WaveReader(_wave(*chunks))
        assert exc_info.value.kind == ErrorKind.MISSING_CHUNK

    def test_short_fmt_chunk(self) -> None:
        stream = _wave(_chunk(b"fmt ", b"\x01\x00\x01\x00"), _chunk(b"data", b""))

        with pytest.raises(TruncatedChunkError):
            WaveReader(stream)

    @pytest.mark.parametrize(
        "channels,width,rate",
        [(0, 2, 44100), (1, 2, 0), (1, 5, 44100)],
    )
    def test_inconsistent_fmt(self, channels: int, width: int, rate: int) -> None:
        stream = _wave(_fmt(channels=channels, width=width, rate=rate), _chunk(b"data", b""))

        with pytest.raises(MalformedHeaderError):
            WaveReader(stream)

    def test_data_chunk_larger_than_riff(self) -> None:
        payload = b"WAVE" + _fmt() + b"data" + struct.pack("<I", 1000) + b"\x00" * 8
        stream = io.BytesIO(_chunk(b"RIFF", payload))

        with pytest.raises(MalformedHeaderError):
            WaveReader(stream)

    def test_close_leaves_stream_open(self) -> None:
        stream = _wave(_fmt(), _chunk(b"data", b""))
        with WaveReader(stream):
            pass

        assert not stream.closed
