"""RIFF chunk model.

This module provides a uniform view of RIFF chunks over a single shared
binary stream. Chunks never own the stream; each one records its own
header offset and cursor and seeks there before every I/O operation, so
several chunk objects can share one file handle without relying on the
ambient file position.

Two variants exist:

- ``ReadChunk``: a bounded window onto an existing chunk. Reads never cross
  the declared size and children are discovered one level at a time.
- ``WriteChunk``: an append-only chunk whose size field is reserved when the
  chunk is created and back-patched when it is closed.

Layout of a chunk on disk::

    +------+------+---------------------------+-----+
    | id   | size | content (size bytes)      | pad |
    | 4 B  | u32  |                           | 0-1 |
    +------+------+---------------------------+-----+

The size field never includes the pad byte, but the enclosing chunk's
size does.
"""

import logging
import struct
from abc import ABC, abstractmethod
from typing import BinaryIO

from pcmwave.errors import (
    ChunkClosedError,
    MalformedHeaderError,
    TruncatedChunkError,
)

logger = logging.getLogger(__name__)

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

# Audio format codes
WAVE_FORMAT_PCM = 1

CHUNK_HEADER_SIZE = 8
MAX_CHUNK_SIZE = 0xFFFFFFFF


def read_chunk_header(f: BinaryIO) -> tuple[bytes, int]:
    """Read a RIFF chunk header (FourCC + size).

    Args:
        f: File handle positioned at the start of a chunk.

    Returns:
        Tuple of (chunk_id, chunk_size).

    Raises:
        MalformedHeaderError: If fewer than 8 bytes are available.
    """
    header = f.read(CHUNK_HEADER_SIZE)
    if len(header) < CHUNK_HEADER_SIZE:
        raise MalformedHeaderError("Unexpected end of file reading chunk header")

    chunk_id = header[:4]
    chunk_size = struct.unpack("<I", header[4:8])[0]
    return chunk_id, chunk_size


def padded_size(size: int) -> int:
    """Return the number of bytes a chunk body occupies including word alignment."""
    return size + (size % 2)


class Chunk(ABC):
    """One RIFF chunk over a shared binary stream."""

    def __init__(self, stream: BinaryIO, chunk_id: bytes, header_offset: int) -> None:
        if len(chunk_id) != 4:
            raise ValueError(f"Chunk id must be 4 bytes, got {chunk_id!r}")
        self.stream = stream
        self.id = chunk_id
        self.header_offset = header_offset
        self.closed = False

    @property
    def data_offset(self) -> int:
        """Absolute stream offset of the first content byte."""
        return self.header_offset + CHUNK_HEADER_SIZE

    @property
    @abstractmethod
    def size(self) -> int:
        """Content size in bytes, excluding header and pad byte."""

    @abstractmethod
    def close(self) -> None:
        """Release the chunk and any open descendants."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id!r}, size={self.size}, "
            f"offset={self.header_offset})"
        )


class ReadChunk(Chunk):
    """A bounded, read-only window onto a chunk in an existing stream."""

    def __init__(
        self, stream: BinaryIO, chunk_id: bytes, header_offset: int, size: int
    ) -> None:
        super().__init__(stream, chunk_id, header_offset)
        self._size = size
        self.position = 0
        self.subchunks: list[ReadChunk] = []

    @classmethod
    def open_root(cls, stream: BinaryIO) -> "ReadChunk":
        """Parse the chunk header at the current stream position.

        Raises:
            MalformedHeaderError: If fewer than 8 bytes are available.
        """
        header_offset = stream.tell()
        chunk_id, size = read_chunk_header(stream)
        return cls(stream, chunk_id, header_offset, size)

    @property
    def size(self) -> int:
        return self._size

    @property
    def remaining(self) -> int:
        """Bytes between the cursor and the end of the declared extent."""
        return self._size - self.position

    def _check_readable(self, n: int) -> None:
        if self.closed:
            raise ChunkClosedError(f"{self.id!r} chunk is closed")
        if n < 0:
            raise ValueError(f"Byte count must be non-negative, got {n}")
        if n > self.remaining:
            raise TruncatedChunkError(
                f"Cannot read {n} bytes from {self.id!r} chunk, "
                f"only {self.remaining} remain"
            )

    def read(self, n: int) -> bytes:
        """Read exactly ``n`` bytes from the cursor and advance it.

        Raises:
            TruncatedChunkError: If ``n`` exceeds the bytes left in the chunk
                or the stream ends before the declared extent.
        """
        self._check_readable(n)
        self.stream.seek(self.data_offset + self.position)
        data = self.stream.read(n)
        if len(data) < n:
            raise TruncatedChunkError(
                f"Unexpected end of stream in {self.id!r} chunk: "
                f"wanted {n} bytes, got {len(data)}"
            )
        self.position += n
        return data

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Fill ``buffer`` completely from the cursor and advance it."""
        view = memoryview(buffer).cast("B")
        n = len(view)
        self._check_readable(n)
        self.stream.seek(self.data_offset + self.position)
        got = self.stream.readinto(view)
        if got is None or got < n:
            raise TruncatedChunkError(
                f"Unexpected end of stream in {self.id!r} chunk: "
                f"wanted {n} bytes, got {got or 0}"
            )
        self.position += n
        return n

    def skip(self, n: int) -> None:
        """Advance the cursor by ``n`` bytes without reading them."""
        self._check_readable(n)
        self.position += n

    def seek(self, position: int) -> None:
        """Move the cursor to ``position`` bytes from the start of the content."""
        if not 0 <= position <= self._size:
            raise TruncatedChunkError(
                f"Position {position} outside {self.id!r} chunk of size {self._size}"
            )
        self.position = position

    def discover_subchunks(self) -> "list[ReadChunk]":
        """Parse child chunk headers from the cursor to the end of the chunk.

        Discovery is one level deep; grandchildren are found by calling this
        method on a child. The cursor ends at the end of the chunk.

        Returns:
            The children in file order (also stored in ``subchunks``).

        Raises:
            MalformedHeaderError: If trailing bytes cannot hold a header, or a
                child claims more bytes than the parent has left.
        """
        if self.closed:
            raise ChunkClosedError(f"{self.id!r} chunk is closed")

        self.subchunks = []
        while self.remaining > 0:
            if self.remaining < CHUNK_HEADER_SIZE:
                raise MalformedHeaderError(
                    f"{self.remaining} trailing bytes in {self.id!r} chunk "
                    f"cannot hold a chunk header"
                )

            header_offset = self.data_offset + self.position
            self.stream.seek(header_offset)
            chunk_id, size = read_chunk_header(self.stream)

            available = self.remaining - CHUNK_HEADER_SIZE
            if size > available:
                raise MalformedHeaderError(
                    f"{chunk_id!r} chunk at offset {header_offset} claims {size} bytes, "
                    f"but its {self.id!r} parent has only {available} left"
                )

            logger.debug("Found %r chunk at offset %d (%d bytes)", chunk_id, header_offset, size)
            self.subchunks.append(ReadChunk(self.stream, chunk_id, header_offset, size))

            # A final child may omit its pad byte
            self.position += CHUNK_HEADER_SIZE + min(padded_size(size), available)

        return self.subchunks

    def close(self) -> None:
        for child in self.subchunks:
            child.close()
        self.closed = True


class WriteChunk(Chunk):
    """An append-only chunk with a deferred size field.

    Growth of a child is propagated to every ancestor immediately, so each
    chunk's running size always covers its children's headers, content and
    pad bytes, even while a child is still open.
    """

    def __init__(
        self,
        stream: BinaryIO,
        chunk_id: bytes,
        header_offset: int,
        parent: "WriteChunk | None" = None,
    ) -> None:
        super().__init__(stream, chunk_id, header_offset)
        self.parent = parent
        self.subchunks: list[WriteChunk] = []
        self._size = 0

    @classmethod
    def create_root(cls, stream: BinaryIO, chunk_id: bytes) -> "WriteChunk":
        """Start a top-level chunk at the current stream position."""
        chunk = cls(stream, chunk_id, stream.tell())
        chunk._write_header()
        return chunk

    @property
    def size(self) -> int:
        return self._size

    @property
    def end_offset(self) -> int:
        """Absolute stream offset where the next content byte goes."""
        return self.data_offset + self._size

    def _write_header(self) -> None:
        self.stream.seek(self.header_offset)
        self.stream.write(self.id + struct.pack("<I", 0))

    def _patch_size(self) -> None:
        self.stream.seek(self.header_offset + 4)
        self.stream.write(struct.pack("<I", self._size))

    def _root(self) -> "WriteChunk":
        chunk = self
        while chunk.parent is not None:
            chunk = chunk.parent
        return chunk

    def _grow(self, n: int) -> None:
        # The root is the largest chunk in the tree
        if self._root()._size + n > MAX_CHUNK_SIZE:
            raise MalformedHeaderError(
                f"Writing {n} more bytes to {self.id!r} chunk would exceed "
                f"the RIFF size limit of {MAX_CHUNK_SIZE} bytes"
            )
        chunk: WriteChunk | None = self
        while chunk is not None:
            chunk._size += n
            chunk = chunk.parent

    def _check_writable(self) -> None:
        if self.closed:
            raise ChunkClosedError(f"{self.id!r} chunk is closed")

    def _close_open_child(self) -> None:
        if self.subchunks and not self.subchunks[-1].closed:
            self.subchunks[-1].close()

    def create_child(self, chunk_id: bytes) -> "WriteChunk":
        """Append a new child chunk and return it.

        Any previously created child that is still open is closed first;
        chunks are written depth-first and strictly append-only.
        """
        self._check_writable()
        self._close_open_child()

        child = WriteChunk(self.stream, chunk_id, self.end_offset, parent=self)
        self._grow(CHUNK_HEADER_SIZE)
        child._write_header()
        self.subchunks.append(child)
        logger.debug("Created %r chunk at offset %d", chunk_id, child.header_offset)
        return child

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """Append ``data`` to the chunk content.

        Returns:
            Number of bytes written.
        """
        self._check_writable()
        self._close_open_child()

        view = memoryview(data).cast("B")
        n = len(view)
        if n == 0:
            return 0

        offset = self.end_offset
        self._grow(n)
        self.stream.seek(offset)
        self.stream.write(view)
        return n

    def close(self) -> None:
        """Finalize the size field, pad to even length and patch ancestors.

        Ancestors stay open; only their size fields are refreshed so the
        file is structurally consistent after every close.
        """
        if self.closed:
            return
        self._close_open_child()
        self._patch_size()

        end = self.end_offset
        if self._size % 2:
            if self.parent is not None:
                self.parent._grow(1)
            self.stream.seek(end)
            self.stream.write(b"\x00")
            end += 1
        self.closed = True

        ancestor = self.parent
        while ancestor is not None:
            ancestor._patch_size()
            ancestor = ancestor.parent

        self.stream.seek(end)
        logger.debug("Closed %r chunk (%d bytes)", self.id, self._size)
