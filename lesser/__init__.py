"""lesser - line-indexed random access and concurrent search for large files.

The core of a terminal pager: lines of an arbitrarily large byte stream are
located on demand through an incrementally built offset index, and searched
concurrently with a bounded worker window.  Rendering, key handling and
file-opening policy belong to the caller.

Example:
    >>> from lesser import Pager
    >>>
    >>> with Pager.open("huge.log") as pager:
    ...     buf = bytearray(80)
    ...     n, status = pager.read_line(buf, 1000)
    ...     results = pager.search(r"ERROR \\d+")
    ...     results.matched_lines()
"""

from .config import ConfigError, PagerConfig, ReaderConfig, SearchConfig, load_config
from .errors import CompileError, EndOfStream, LesserError, ReadError
from .index import NotFound, OffsetIndex
from .pager import Pager
from .reader import LineRange, LineReader, ReadStatus
from .search import LineMatch, SearchOutcome, SearchResults, Searcher
from .source import ByteSource, BytesSource, MappedFileSource

__version__ = "0.1.0"

__all__ = [
    "Pager",
    "LineReader",
    "LineRange",
    "ReadStatus",
    "OffsetIndex",
    "NotFound",
    "Searcher",
    "SearchResults",
    "SearchOutcome",
    "LineMatch",
    "ByteSource",
    "BytesSource",
    "MappedFileSource",
    "PagerConfig",
    "ReaderConfig",
    "SearchConfig",
    "ConfigError",
    "load_config",
    "LesserError",
    "EndOfStream",
    "ReadError",
    "CompileError",
]
