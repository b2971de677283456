"""Shared error types and logging setup."""

from core.errors import (
    ConfigError,
    DuplicateLocation,
    ErrorCode,
    IndexingError,
    LineIndexMismatch,
    OverlappingLocation,
    SvIndexError,
    UnsupportedConstruct,
)
from core.logging import configure_logging, get_logger

__all__ = [
    "ConfigError",
    "DuplicateLocation",
    "ErrorCode",
    "IndexingError",
    "LineIndexMismatch",
    "OverlappingLocation",
    "SvIndexError",
    "UnsupportedConstruct",
    "configure_logging",
    "get_logger",
]
