"""sv-index error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Indexing (per-file, recoverable)
- 9xxx: Internal
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from parse.syntax import ConstructKind
    from semantic.position import Range


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Indexing (3xxx)
    DUPLICATE_LOCATION = 3001
    OVERLAPPING_LOCATION = 3002
    LINE_INDEX_MISMATCH = 3003
    UNSUPPORTED_CONSTRUCT = 3004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(eq=False)
class SvIndexError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'DUPLICATE_LOCATION')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SvIndexError):
    """Raised when a config file exists but cannot be used."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> ConfigError:
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> ConfigError:
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class IndexingError(SvIndexError):
    """A per-file failure while building an index.

    Always scoped to the file being indexed; other files are unaffected.
    """


class DuplicateLocation(IndexingError):
    """Two semantic items claim the same start position in one file."""

    @classmethod
    def at(cls, existing: Range, new: Range) -> DuplicateLocation:
        return cls(
            code=ErrorCode.DUPLICATE_LOCATION,
            message=f"An item already begins at {existing.begin}",
            details={"existing": str(existing), "new": str(new)},
        )


class OverlappingLocation(DuplicateLocation):
    """A new item's range crosses the boundary of an existing sibling range."""

    @classmethod
    def between(cls, existing: Range, new: Range) -> OverlappingLocation:
        return cls(
            code=ErrorCode.OVERLAPPING_LOCATION,
            message=f"Range {new} partially overlaps {existing}",
            details={"existing": str(existing), "new": str(new)},
        )


class LineIndexMismatch(IndexingError):
    """A token's line number has no entry in the line table."""

    @classmethod
    def at_line(cls, line: int, offset: int, line_count: int) -> LineIndexMismatch:
        return cls(
            code=ErrorCode.LINE_INDEX_MISMATCH,
            message=(
                f"Line index mismatched at line {line} (offset {offset}); "
                f"table has {line_count} lines"
            ),
            details={"line": line, "offset": offset, "line_count": line_count},
        )


class UnsupportedConstruct(IndexingError):
    """A syntactic form the index builder does not model yet."""

    @classmethod
    def of(
        cls, kind: ConstructKind | str, line: int, offset: int
    ) -> UnsupportedConstruct:
        name = getattr(kind, "value", kind)
        return cls(
            code=ErrorCode.UNSUPPORTED_CONSTRUCT,
            message=f"Unsupported construct '{name}' at line {line}",
            details={"kind": name, "line": line, "offset": offset},
        )

    @property
    def kind(self) -> str:
        return str(self.details.get("kind", ""))


__all__ = [
    "ConfigError",
    "DuplicateLocation",
    "ErrorCode",
    "IndexingError",
    "LineIndexMismatch",
    "OverlappingLocation",
    "SvIndexError",
    "UnsupportedConstruct",
]
