"""Shared fixtures for the lesser test suite."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from lesser.reader import LineReader
from lesser.search import Searcher
from lesser.source import BytesSource, MappedFileSource

# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------

THREE_LINES = b"Line 1\nLine 2\nLine 3\n"

NO_NEWLINE = b"Hello World!"

EMPTY_LINE = b"A\n\nB\n"

LONG_LINE = b"a" * 400

SAMPLE_TEXT = (
    b"Line 1\nLine 2\nLine 3\nLine 4\nLine 5\n\nLine 7\n" + LONG_LINE + b"\nLine 9"
)


def numbered_lines(count: int) -> bytes:
    """Return *count* lines of the form ``row N`` joined by newlines."""
    return b"".join(f"row {n}\n".encode() for n in range(1, count + 1))


# ---------------------------------------------------------------------------
# Instrumented sources
# ---------------------------------------------------------------------------


class CountingSource(BytesSource):
    """BytesSource that records every read."""

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.reads: list[tuple[int, int]] = []
        self._lock = threading.Lock()

    def read_at(self, size: int, offset: int) -> bytes:
        with self._lock:
            self.reads.append((size, offset))
        return super().read_at(size, offset)

    @property
    def bytes_read(self) -> int:
        return sum(size for size, _ in self.reads)


class FailingSource(BytesSource):
    """BytesSource whose reads fail once they touch ``[fail_from, fail_to)``.

    ``fail_from=None`` disables failures until the attributes are set.
    """

    def __init__(
        self, data: bytes, fail_from: int | None = None, fail_to: int | None = None
    ) -> None:
        super().__init__(data)
        self.fail_from = fail_from
        self.fail_to = fail_to

    def read_at(self, size: int, offset: int) -> bytes:
        if self.fail_from is not None and size:
            past_start = offset + size > self.fail_from
            before_end = self.fail_to is None or offset < self.fail_to
            if past_start and before_end:
                raise OSError(5, "Input/output error")
        return super().read_at(size, offset)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def three_line_reader() -> LineReader:
    return LineReader(BytesSource(THREE_LINES))


@pytest.fixture()
def sample_reader() -> LineReader:
    return LineReader(BytesSource(SAMPLE_TEXT))


@pytest.fixture()
def sample_searcher(sample_reader: LineReader) -> Searcher:
    return Searcher(sample_reader)


@pytest.fixture()
def tmp_text_file(tmp_path: Path) -> Path:
    """Create a temporary file with SAMPLE_TEXT."""
    p = tmp_path / "sample.txt"
    p.write_bytes(SAMPLE_TEXT)
    return p


@pytest.fixture()
def tmp_empty_file(tmp_path: Path) -> Path:
    """Create an empty temporary file."""
    p = tmp_path / "empty.txt"
    p.write_bytes(b"")
    return p


@pytest.fixture()
def mapped_source(tmp_text_file: Path) -> MappedFileSource:
    """MappedFileSource backed by a temp file."""
    src = MappedFileSource(tmp_text_file)
    yield src  # type: ignore[misc]
    src.close()
