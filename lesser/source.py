"""Random-access byte sources consumed by :class:`~lesser.reader.LineReader`.

The reader needs exactly one capability from its source: "read up to
``size`` bytes starting at ``offset``".  A source returns fewer bytes (or
``b""``) once the stream is exhausted and raises :class:`OSError` when the
read itself fails.

:class:`MappedFileSource` memory-maps a file so the OS pages data in and out
on demand; :class:`BytesSource` serves an in-memory buffer.
"""

from __future__ import annotations

import mmap
import os
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteSource(Protocol):
    """Anything that can read a byte range at an arbitrary offset."""

    def read_at(self, size: int, offset: int) -> bytes:
        """Return up to *size* bytes starting at *offset*."""
        ...


def _check_range(size: int, offset: int) -> None:
    if size < 0:
        raise ValueError(f"negative read size: {size}")
    if offset < 0:
        raise ValueError(f"negative offset: {offset}")


class BytesSource:
    """Byte source backed by an in-memory buffer.

    Parameters
    ----------
    data : bytes | bytearray
        Buffer to serve.  A ``bytearray`` is copied so later mutation by the
        caller cannot shift line boundaries under the reader.
    """

    def __init__(self, data: bytes | bytearray) -> None:
        self._data = bytes(data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"BytesSource(size={len(self._data):,})"

    def read_at(self, size: int, offset: int) -> bytes:
        _check_range(size, offset)
        return self._data[offset : offset + size]


class MappedFileSource:
    """Memory-mapped, read-only byte source over a file.

    The file is mapped into virtual memory via :mod:`mmap`, so physical RAM
    usage stays bounded even for multi-gigabyte files.  Slicing an mmap
    copies the requested range, which makes concurrent ``read_at`` calls
    from several search workers safe.

    Parameters
    ----------
    path : str | Path
        Path to the file to map.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._fd = os.open(str(self._path), os.O_RDONLY)
        self._size = os.fstat(self._fd).st_size
        self._closed = False
        if self._size == 0:
            # mmap cannot map zero-length files.
            self._mm: mmap.mmap | None = None
        else:
            self._mm = mmap.mmap(self._fd, 0, access=mmap.ACCESS_READ)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the memory map and file descriptor."""
        self._closed = True
        if self._mm is not None:
            self._mm.close()
            self._mm = None
        if self._fd >= 0:
            os.close(self._fd)
            self._fd = -1

    def __del__(self) -> None:  # noqa: D105
        # __init__ may have failed before the descriptor existed.
        if hasattr(self, "_fd"):
            self.close()

    def __enter__(self) -> MappedFileSource:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"MappedFileSource({str(self._path)!r}, size={self._size:,})"

    def read_at(self, size: int, offset: int) -> bytes:
        """Return up to *size* bytes starting at *offset*.

        Raises
        ------
        OSError
            If the source has been closed.
        ValueError
            If *size* or *offset* is negative.
        """
        _check_range(size, offset)
        if self._closed:
            raise OSError(f"read from closed source {self._path}")
        if self._mm is None:
            return b""
        return self._mm[offset : offset + size]
