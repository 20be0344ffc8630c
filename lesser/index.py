"""Thread-safe sorted cache of line number -> byte offset.

The index never holds every line of the file, only the lines discovered so
far.  Keys live in a sorted list searched with :mod:`bisect`; offsets live in
a parallel dict.  A single lock guards every read and write of both.
"""

from __future__ import annotations

import bisect
import threading
from typing import overload


class NotFound(KeyError):
    """Raised when no indexed line is less than or equal to the query."""


class OffsetIndex:
    """Sorted map of line number to the byte offset of that line's first byte.

    Parameters
    ----------
    seed : bool
        Insert the ``(1, 0)`` entry: line 1 starts at the beginning of the
        stream.
    """

    def __init__(self, seed: bool = True) -> None:
        self._lines: list[int] = []
        self._offsets: dict[int, int] = {}
        self._lock = threading.Lock()
        if seed:
            self.insert(1, 0)

    def insert(self, line: int, offset: int) -> None:
        """Insert *line* at *offset*, overwriting any existing entry."""
        with self._lock:
            if line not in self._offsets:
                bisect.insort(self._lines, line)
            self._offsets[line] = offset

    def delete(self, line: int) -> None:
        """Remove *line* from the index.  Missing lines are ignored."""
        with self._lock:
            if self._offsets.pop(line, None) is None:
                return
            i = bisect.bisect_left(self._lines, line)
            del self._lines[i]

    def nearest_less_equal(self, line: int) -> tuple[int, int]:
        """Return the greatest indexed ``(line, offset)`` with line <= *line*.

        Raises
        ------
        NotFound
            If *line* is below the smallest indexed line.
        """
        with self._lock:
            i = bisect.bisect_right(self._lines, line)
            if i == 0:
                raise NotFound(f"no indexed line <= {line}")
            found = self._lines[i - 1]
            return found, self._offsets[found]

    @overload
    def get(self, line: int) -> int | None: ...
    @overload
    def get(self, line: int, default: int) -> int: ...

    def get(self, line: int, default: int | None = None) -> int | None:
        with self._lock:
            return self._offsets.get(line, default)

    def max_line(self) -> int | None:
        """Return the greatest indexed line number, or ``None`` if empty."""
        with self._lock:
            return self._lines[-1] if self._lines else None

    def items(self) -> list[tuple[int, int]]:
        """Snapshot of all ``(line, offset)`` pairs in line order."""
        with self._lock:
            return [(line, self._offsets[line]) for line in self._lines]

    def __contains__(self, line: object) -> bool:
        with self._lock:
            return line in self._offsets

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def __repr__(self) -> str:
        return f"OffsetIndex(lines={len(self)})"
