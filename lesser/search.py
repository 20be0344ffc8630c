"""Concurrent per-line pattern search over a :class:`~lesser.reader.LineReader`.

:class:`Searcher` keeps a fixed-width window of line searches in flight on a
thread pool.  Each completed line immediately dispatches the next undispatched
line, until some line reports end of stream or a line whose start could not
be located because the source failed.  After that no new work is dispatched,
but every search already in flight is drained and collected, so the results
cover every line from the starting line up to that stopping line.

A line whose start is known but whose content cannot be read is recorded as
a read error and the search carries on past it.  Each worker reads at most
``max_line_bytes`` of its line; longer lines are matched on that prefix.
"""

from __future__ import annotations

import codecs
import logging
import re
from collections.abc import Iterator, Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum

from .errors import CompileError, EndOfStream, ReadError
from .reader import LineReader

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 5
DEFAULT_MAX_LINE_BYTES = 64 * 1024


class SearchOutcome(Enum):
    """What happened when a single line was searched."""

    MATCHED = "matched"
    NO_MATCH = "no_match"
    END_OF_STREAM = "end_of_stream"
    READ_ERROR = "read_error"


@dataclass(frozen=True)
class LineMatch:
    """Search result for one line.

    ``spans`` holds half-open ``(start, end)`` character intervals, in the
    order the pattern matched them.  ``stops_search`` is set on a read error
    raised before the line's start was found; no later line can be reached
    past it.
    """

    line: int
    spans: tuple[tuple[int, int], ...] = ()
    outcome: SearchOutcome = SearchOutcome.NO_MATCH
    error: BaseException | None = field(default=None, compare=False)
    stops_search: bool = field(default=False, compare=False)

    @property
    def matched(self) -> bool:
        return self.outcome is SearchOutcome.MATCHED

    def matches_char(self, column: int) -> bool:
        """Return True if *column* falls inside any matched interval."""
        return any(start <= column < end for start, end in self.spans)


class SearchResults(Mapping[int, LineMatch]):
    """Per-line results of one search, keyed by line number.

    Iteration yields line numbers in the order their results arrived.
    """

    def __init__(self, pattern: str, matches: list[LineMatch] | None = None) -> None:
        self.pattern = pattern
        self._by_line: dict[int, LineMatch] = {}
        for match in matches or []:
            self._by_line[match.line] = match

    def __getitem__(self, line: int) -> LineMatch:
        return self._by_line[line]

    def __iter__(self) -> Iterator[int]:
        return iter(self._by_line)

    def __len__(self) -> int:
        return len(self._by_line)

    def __repr__(self) -> str:
        return (
            f"SearchResults({self.pattern!r}, lines={len(self)}, "
            f"matched={len(self.matched_lines())})"
        )

    @property
    def last_line(self) -> int | None:
        """Greatest line number with a recorded result."""
        return max(self._by_line, default=None)

    def matched_lines(self) -> list[int]:
        """Line numbers with at least one match, ascending."""
        return sorted(line for line, m in self._by_line.items() if m.matched)

    def errors(self) -> list[LineMatch]:
        """Results for lines whose read failed, ascending by line."""
        return [
            self._by_line[line]
            for line in sorted(self._by_line)
            if self._by_line[line].outcome is SearchOutcome.READ_ERROR
        ]

    def matches_char(self, line: int, column: int) -> bool:
        """Return True if *column* of *line* falls inside a match."""
        match = self._by_line.get(line)
        return match is not None and match.matches_char(column)


class Searcher:
    """Searches a :class:`LineReader` line by line with bounded concurrency.

    Parameters
    ----------
    reader : LineReader
        Reader shared with the display path; its offset index is populated
        by the search workers as a side effect.
    width : int
        Maximum number of line searches in flight.
    encoding : str
        Encoding used to decode each line before matching.  Undecodable
        bytes are replaced, so match intervals are character indices.
    max_lines : int | None
        Upper bound on the number of lines one search dispatches.  ``None``
        searches until the end of the stream.
    max_line_bytes : int
        Most bytes of one line a worker reads and matches against.
    """

    def __init__(
        self,
        reader: LineReader,
        width: int = DEFAULT_WIDTH,
        encoding: str = "utf-8",
        max_lines: int | None = None,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    ) -> None:
        if width < 1:
            raise ValueError(f"width must be positive, got {width}")
        if max_lines is not None and max_lines < 1:
            raise ValueError(f"max_lines must be positive, got {max_lines}")
        if max_line_bytes < 1:
            raise ValueError(f"max_line_bytes must be positive, got {max_line_bytes}")
        codecs.lookup(encoding)
        self.reader = reader
        self.width = width
        self.encoding = encoding
        self.max_lines = max_lines
        self.max_line_bytes = max_line_bytes

    @staticmethod
    def compile(pattern: str, ignore_case: bool = False, literal: bool = False) -> re.Pattern[str]:
        """Compile *pattern*, raising :class:`CompileError` if it is invalid."""
        expr = re.escape(pattern) if literal else pattern
        flags = re.IGNORECASE if ignore_case else 0
        try:
            return re.compile(expr, flags)
        except re.error as e:
            raise CompileError(pattern, e) from e

    def search_line(self, regex: re.Pattern[str], line: int) -> LineMatch:
        """Search a single line.  Never raises for end of stream or read errors."""
        buffer = bytearray(self.max_line_bytes)
        try:
            n, _ = self.reader.read_line(buffer, line)
        except EndOfStream:
            return LineMatch(line, outcome=SearchOutcome.END_OF_STREAM)
        except ReadError as e:
            located = line in self.reader.index
            logger.warning("Search could not read line %d: %s", line, e)
            return LineMatch(
                line, outcome=SearchOutcome.READ_ERROR, error=e, stops_search=not located
            )

        text = buffer[:n].decode(self.encoding, errors="replace")
        spans = tuple(m.span() for m in regex.finditer(text))
        outcome = SearchOutcome.MATCHED if spans else SearchOutcome.NO_MATCH
        return LineMatch(line, spans, outcome)

    def search(
        self,
        pattern: str,
        from_line: int = 1,
        *,
        ignore_case: bool = False,
        literal: bool = False,
    ) -> SearchResults:
        """Search every line from *from_line* to the end of the stream.

        Parameters
        ----------
        pattern : str
            Regular expression, or a plain substring when *literal* is set.
        from_line : int
            First line to search (1-based).
        ignore_case : bool
            Match case-insensitively.
        literal : bool
            Treat *pattern* as a plain substring.

        Returns
        -------
        SearchResults
            One entry per searched line, in order of arrival.

        Raises
        ------
        CompileError
            If *pattern* is invalid.  No line is read in that case.
        """
        if from_line < 1:
            raise ValueError(f"line numbers start at 1, got {from_line}")
        regex = self.compile(pattern, ignore_case=ignore_case, literal=literal)

        stop = None if self.max_lines is None else from_line + self.max_lines
        next_line = from_line
        first_stop: int | None = None
        collected: list[LineMatch] = []

        with ThreadPoolExecutor(max_workers=self.width, thread_name_prefix="lesser-search") as pool:
            pending: set[Future[LineMatch]] = set()

            def dispatch() -> None:
                nonlocal next_line
                if stop is not None and next_line >= stop:
                    return
                pending.add(pool.submit(self.search_line, regex, next_line))
                next_line += 1

            for _ in range(self.width):
                dispatch()

            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    match = future.result()
                    collected.append(match)
                    if match.outcome is SearchOutcome.END_OF_STREAM or match.stops_search:
                        if first_stop is None or match.line < first_stop:
                            first_stop = match.line
                    elif first_stop is None:
                        dispatch()

        # Lines dispatched past the stopping line are dropped; the stopping
        # line itself stays as the end-of-stream or read-error marker.
        if first_stop is not None:
            collected = [m for m in collected if m.line <= first_stop]

        results = SearchResults(pattern, collected)
        logger.debug(
            "Search %r from line %d: %d lines searched, %d matched",
            pattern,
            from_line,
            len(results),
            len(results.matched_lines()),
        )
        return results
