"""YAML-based configuration for the line reader and search window.

Loads an optional ``lesser.yaml`` file of the form::

    reader:
      chunk_size: 128
    search:
      width: 5
      encoding: utf-8
      ignore_case: false
      literal: false
      max_lines: null
      max_line_bytes: 65536
    verbose: false

Every key is optional; missing keys keep the hardcoded defaults.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .reader import DEFAULT_CHUNK_SIZE
from .search import DEFAULT_MAX_LINE_BYTES, DEFAULT_WIDTH


class ConfigError(ValueError):
    """Raised on configuration validation failures."""


# =====================================================================
# Dataclasses
# =====================================================================

_VALID_TOP_LEVEL = frozenset({"reader", "search", "verbose"})
_VALID_READER_KEYS = frozenset({"chunk_size"})
_VALID_SEARCH_KEYS = frozenset(
    {"width", "encoding", "ignore_case", "literal", "max_lines", "max_line_bytes"}
)


@dataclass
class ReaderConfig:
    """Settings for :class:`~lesser.reader.LineReader`."""

    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass
class SearchConfig:
    """Settings for :class:`~lesser.search.Searcher`."""

    width: int = DEFAULT_WIDTH
    encoding: str = "utf-8"
    ignore_case: bool = False
    literal: bool = False
    max_lines: int | None = None
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES


@dataclass
class PagerConfig:
    """Top-level parsed config file."""

    reader: ReaderConfig = field(default_factory=ReaderConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    verbose: bool = False


# =====================================================================
# Loading & Validation
# =====================================================================


def load_config(path: Path) -> PagerConfig:
    """Parse a YAML config file and return a ``PagerConfig``.

    Parameters
    ----------
    path : Path
        Path to the YAML configuration file.

    Returns
    -------
    PagerConfig
        Parsed configuration.

    Raises
    ------
    ConfigError
        If the file is not valid YAML or fails validation.
    FileNotFoundError
        If the config file does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw_text = path.read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {e}") from e

    if raw is None:
        # Empty YAML file: defaults only
        return PagerConfig()

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    config = parse_config(raw)
    validate_config(config)
    return config


def _section(raw: dict[str, Any], name: str, valid: frozenset[str]) -> dict[str, Any]:
    """Return the mapping stored under *name*, rejecting unknown keys."""
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    unknown = set(section) - valid
    if unknown:
        raise ConfigError(
            f"Unknown keys in '{name}': {sorted(unknown)}. Valid keys: {sorted(valid)}"
        )
    return section


def parse_config(raw: dict[str, Any]) -> PagerConfig:
    """Build a ``PagerConfig`` from a raw YAML dict."""
    unknown = set(raw) - _VALID_TOP_LEVEL
    if unknown:
        raise ConfigError(
            f"Unknown config sections: {sorted(unknown)}. Valid: {sorted(_VALID_TOP_LEVEL)}"
        )

    r = _section(raw, "reader", _VALID_READER_KEYS)
    reader = ReaderConfig(chunk_size=r.get("chunk_size", DEFAULT_CHUNK_SIZE))

    s = _section(raw, "search", _VALID_SEARCH_KEYS)
    search = SearchConfig(
        width=s.get("width", DEFAULT_WIDTH),
        encoding=s.get("encoding", "utf-8"),
        ignore_case=s.get("ignore_case", False),
        literal=s.get("literal", False),
        max_lines=s.get("max_lines"),
        max_line_bytes=s.get("max_line_bytes", DEFAULT_MAX_LINE_BYTES),
    )

    return PagerConfig(reader=reader, search=search, verbose=raw.get("verbose", False))


def _check_positive_int(label: str, value: object) -> None:
    # bool is an int subclass; `width: true` is a typo, not 1.
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ConfigError(f"{label} must be a positive integer, got {value!r}")


def _check_bool(label: str, value: object) -> None:
    if not isinstance(value, bool):
        raise ConfigError(f"{label} must be true or false, got {value!r}")


def validate_config(config: PagerConfig) -> None:
    """Validate a parsed config, raising ``ConfigError`` on problems."""
    _check_positive_int("reader.chunk_size", config.reader.chunk_size)
    _check_positive_int("search.width", config.search.width)
    _check_positive_int("search.max_line_bytes", config.search.max_line_bytes)
    if config.search.max_lines is not None:
        _check_positive_int("search.max_lines", config.search.max_lines)

    _check_bool("search.ignore_case", config.search.ignore_case)
    _check_bool("search.literal", config.search.literal)
    _check_bool("verbose", config.verbose)

    encoding = config.search.encoding
    if not isinstance(encoding, str):
        raise ConfigError(f"search.encoding must be a string, got {encoding!r}")
    try:
        codecs.lookup(encoding)
    except LookupError as e:
        raise ConfigError(f"Unknown search.encoding '{encoding}'") from e
