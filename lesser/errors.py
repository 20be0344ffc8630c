"""Exception types raised by the line-indexing and search core.

``EndOfStream`` is a control signal rather than a failure: callers use it
to learn that a requested line does not exist.  ``ReadError`` wraps any
exception raised by the underlying byte source, and ``CompileError`` wraps
an invalid search pattern.
"""

from __future__ import annotations


class LesserError(Exception):
    """Base class for all errors raised by :mod:`lesser`."""


class EndOfStream(LesserError, EOFError):
    """Raised when the byte source ends before the requested line."""

    def __init__(self, line: int) -> None:
        super().__init__(f"line {line} is past the end of the stream")
        self.line = line


class ReadError(LesserError, OSError):
    """Raised when the byte source itself fails."""

    def __init__(self, offset: int, cause: BaseException) -> None:
        super().__init__(f"read at offset {offset} failed: {cause}")
        self.offset = offset
        self.cause = cause


class CompileError(LesserError, ValueError):
    """Raised when a search pattern does not compile."""

    def __init__(self, pattern: str, cause: BaseException) -> None:
        super().__init__(f"invalid search pattern {pattern!r}: {cause}")
        self.pattern = pattern
        self.cause = cause
