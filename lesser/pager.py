"""Pager facade consumed by the display loop.

Bundles one byte source, one :class:`LineReader` and one :class:`Searcher`
behind the three operations a display needs: read a line into a buffer,
check whether a line exists, and search.
"""

from __future__ import annotations

import time
from pathlib import Path

import click

from .config import PagerConfig, validate_config
from .reader import LineReader, ReadStatus
from .search import Searcher, SearchResults
from .source import ByteSource, MappedFileSource

_LOG_PREFIX = click.style("[LESSER]", fg="yellow", bold=True)


class Pager:
    """Line access and search over a single byte source.

    Parameters
    ----------
    source : ByteSource
        Source to page through.
    config : PagerConfig | None
        Reader and search settings.  Defaults are used when omitted.
    """

    def __init__(self, source: ByteSource, config: PagerConfig | None = None) -> None:
        self.config = config or PagerConfig()
        validate_config(self.config)
        self.source = source
        self.reader = LineReader(source, chunk_size=self.config.reader.chunk_size)
        self.searcher = Searcher(
            self.reader,
            width=self.config.search.width,
            encoding=self.config.search.encoding,
            max_lines=self.config.search.max_lines,
            max_line_bytes=self.config.search.max_line_bytes,
        )
        self.last_search: SearchResults | None = None

    @classmethod
    def open(cls, path: str | Path, config: PagerConfig | None = None) -> Pager:
        """Memory-map *path* and return a pager over it."""
        source = MappedFileSource(path)
        try:
            return cls(source, config)
        except Exception:
            source.close()
            raise

    def _log(self, message: str) -> None:
        """Log a message if verbose is enabled.

        Parameters
        ----------
        message : str
            Message to log.
        """
        if self.config.verbose:
            click.echo(f"{_LOG_PREFIX} {message}", err=True)

    # ------------------------------------------------------------------
    # Display operations
    # ------------------------------------------------------------------

    def read_line(self, buffer: bytearray | memoryview, line: int) -> tuple[int, ReadStatus]:
        """Fill *buffer* with the start of *line*; see :meth:`LineReader.read_line`."""
        return self.reader.read_line(buffer, line)

    def line_exists(self, line: int) -> bool:
        return self.reader.line_exists(line)

    def search(self, pattern: str, from_line: int = 1) -> SearchResults:
        """Search from *from_line* using the configured search flags.

        The result replaces :attr:`last_search` entirely.
        """
        self._log(f"Searching for {pattern!r} from line {from_line}")
        started = time.monotonic()
        results = self.searcher.search(
            pattern,
            from_line,
            ignore_case=self.config.search.ignore_case,
            literal=self.config.search.literal,
        )
        elapsed = time.monotonic() - started
        self.last_search = results
        self._log(
            f"{len(results.matched_lines())} matching lines in {len(results)} searched "
            f"({elapsed:.3f}s, {len(self.reader.index)} lines indexed)"
        )
        for failed in results.errors():
            self._log(click.style(f"line {failed.line}: {failed.error}", fg="red"))
        return results

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the source if it supports closing."""
        close = getattr(self.source, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> Pager:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
