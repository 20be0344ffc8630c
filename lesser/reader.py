"""Line-indexed random access over a byte source.

:class:`LineReader` resolves a line number to a byte range by starting from
the nearest line already present in its :class:`~lesser.index.OffsetIndex`
and scanning forward in fixed-size chunks.  Every line start discovered on
the way is added to the index, so resolving line N costs time proportional
to the distance from the nearest previously visited line rather than to N.

A line L > 1 exists only when a newline ends line L-1 *and* at least one
byte follows that newline.  A trailing newline therefore terminates the
last line instead of opening an empty one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .errors import EndOfStream, ReadError
from .index import OffsetIndex
from .source import ByteSource

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 128

# Step used when reading the content of a line with no terminating newline.
CONTENT_READ_SIZE = 64 * 1024


class ReadStatus(Enum):
    """Outcome of :meth:`LineReader.read_line`."""

    FULL = "full"
    # Fewer bytes than the buffer holds were meaningful; the rest of the
    # buffer was not touched.
    SHORT = "short"


@dataclass(frozen=True)
class LineRange:
    """Byte span of one line.

    ``start`` is the offset of the line's first byte.  ``end`` is the offset
    of the newline that terminates it (content is ``[start, end)``), or
    ``None`` when the stream ends before any newline.
    """

    start: int
    end: int | None

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def length(self) -> int | None:
        if self.end is None:
            return None
        return self.end - self.start


class LineReader:
    """Reads lines by number from a random-access byte source.

    The reader holds no lock of its own; concurrent callers are serialized
    only where they touch the shared :class:`OffsetIndex`.

    Parameters
    ----------
    source : ByteSource
        Object providing ``read_at(size, offset)``.
    chunk_size : int
        Number of bytes read per step while scanning for newlines.
    index : OffsetIndex | None
        Index to populate.  A fresh, seeded index is created when omitted.
    """

    def __init__(
        self,
        source: ByteSource,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        index: OffsetIndex | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._source = source
        self.chunk_size = chunk_size
        self.index = index if index is not None else OffsetIndex()
        if 1 not in self.index:
            self.index.insert(1, 0)
        # (last line boundary in the stream, its offset if no byte follows it)
        self._eof: tuple[int, int | None] | None = None
        # Latest boundary found at the very end of a chunk, not yet known
        # to have content: (line, offset).
        self._boundary: tuple[int, int] | None = None

    def __repr__(self) -> str:
        return f"LineReader({self._source!r}, indexed={len(self.index)})"

    # ------------------------------------------------------------------
    # Source access
    # ------------------------------------------------------------------

    def _read(self, size: int, offset: int) -> bytes:
        try:
            return self._source.read_at(size, offset)
        except OSError as e:
            raise ReadError(offset, e) from e

    # ------------------------------------------------------------------
    # Line location
    # ------------------------------------------------------------------

    def _scan(self, line: int, cur_line: int, pos: int) -> int:
        """Scan forward from *pos* (the start of *cur_line*) to *line*.

        Returns the offset just past the newline that ends ``line - 1``.
        Confirmed line starts are inserted into the index along the way.
        """
        logger.debug("Scanning for line %d from line %d at offset %d", line, cur_line, pos)
        # cur_line starts at pos, but no byte has been seen there yet.
        unconfirmed = False
        while True:
            chunk = self._read(self.chunk_size, pos)
            if not chunk:
                self._eof = (cur_line, pos if unconfirmed else None)
                logger.debug("End of stream at offset %d (last boundary: line %d)", pos, cur_line)
                raise EndOfStream(line)

            if unconfirmed:
                self.index.insert(cur_line, pos)
                unconfirmed = False

            start = 0
            while True:
                i = chunk.find(b"\n", start)
                if i == -1:
                    break
                start = i + 1
                cur_line += 1
                offset = pos + start
                if start < len(chunk):
                    self.index.insert(cur_line, offset)
                else:
                    unconfirmed = True
                if cur_line == line:
                    if unconfirmed:
                        self._boundary = (cur_line, offset)
                    return offset

            pos += len(chunk)

    def _locate(self, line: int) -> int:
        """Return the offset where *line* would start.

        Unlike :meth:`find_line`, this succeeds for the empty boundary
        after a trailing newline.
        """
        eof = self._eof
        if eof is not None:
            last, tail = eof
            if line > last:
                raise EndOfStream(line)
            if line == last and tail is not None:
                return tail

        boundary = self._boundary
        if boundary is not None and boundary[0] == line:
            return boundary[1]

        nearest, offset = self.index.nearest_less_equal(line)
        if nearest == line:
            return offset
        return self._scan(line, nearest, offset)

    @staticmethod
    def _check_line(line: int) -> None:
        if line < 1:
            raise ValueError(f"line numbers start at 1, got {line}")

    def find_line(self, line: int) -> int:
        """Return the byte offset of the first byte of *line*.

        Raises
        ------
        EndOfStream
            If the stream ends before *line*.
        ReadError
            If the byte source fails.
        """
        self._check_line(line)
        offset = self._locate(line)
        if line in self.index:
            return offset

        # The boundary was found at the very end of a chunk; make sure
        # the line actually has content before reporting it.
        if not self._read(1, offset):
            self._eof = (line, offset)
            raise EndOfStream(line)
        self.index.insert(line, offset)
        return offset

    def line_exists(self, line: int) -> bool:
        """Return True if *line* exists in the stream."""
        try:
            self.find_line(line)
        except EndOfStream:
            return False
        return True

    def line_range(self, line: int) -> LineRange:
        """Return the byte span of *line*."""
        start = self.find_line(line)
        try:
            end = self._locate(line + 1)
        except EndOfStream:
            return LineRange(start, None)
        # _locate returns the start of the next line; exclude the newline.
        return LineRange(start, end - 1)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_line(self, buffer: bytearray | memoryview, line: int) -> tuple[int, ReadStatus]:
        """Fill *buffer* with up to ``len(buffer)`` bytes of *line*.

        Parameters
        ----------
        buffer : bytearray | memoryview
            Writable destination.  Bytes past the returned count are left
            untouched.
        line : int
            1-based line number.

        Returns
        -------
        tuple[int, ReadStatus]
            Bytes written and whether the buffer was filled.

        Raises
        ------
        EndOfStream
            If *line* does not exist.
        ReadError
            If the byte source fails.
        """
        rng = self.line_range(line)
        with memoryview(buffer) as view:
            size = len(view)
            if rng.length is not None and rng.length < size:
                size = rng.length
            data = self._read(size, rng.start)
            n = len(data)
            view[:n] = data
            status = ReadStatus.FULL if n == len(view) else ReadStatus.SHORT
        return n, status

    def line(self, line: int) -> bytes:
        """Return the complete content of *line*, without its newline."""
        rng = self.line_range(line)
        if rng.length is not None:
            return self._read(rng.length, rng.start)

        # Open-ended: everything up to the end of the stream.
        parts: list[bytes] = []
        pos = rng.start
        step = max(self.chunk_size, CONTENT_READ_SIZE)
        while True:
            chunk = self._read(step, pos)
            if not chunk:
                break
            parts.append(chunk)
            pos += len(chunk)
        return b"".join(parts)

    def iter_lines(self, start: int = 1) -> Iterator[tuple[int, bytes]]:
        """Yield ``(line_number, content)`` from *start* to the last line."""
        self._check_line(start)
        line = start
        while True:
            try:
                content = self.line(line)
            except EndOfStream:
                return
            yield line, content
            line += 1
