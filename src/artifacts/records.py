"""Record models for index artifacts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SCHEMA_VERSION = 1

ItemKind = Literal["module_identifier", "module_instance", "unknown_identifier"]


class SpanRecord(BaseModel):
    """Zero-based, half-open source span."""

    path: str
    begin_row: int
    begin_col: int
    end_row: int
    end_col: int


class ItemRecord(BaseModel):
    """One semantic item of one file."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    item_index: int
    kind: ItemKind
    name: str
    span: SpanRecord
    depth: int | None = Field(
        default=None, description="Nesting depth in the location index"
    )
    declaration: bool = False
    module_name_index: int | None = None
    instance_name_index: int | None = None


class DeclarationRecord(BaseModel):
    """A module name and the declaration it currently resolves to."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    name: str
    span: SpanRecord
    declared_in: list[str] = Field(
        default_factory=list, description="Every declaring file, least recent first"
    )


class DefinitionRecord(BaseModel):
    """Result of a go-to-definition query."""

    path: str
    row: int
    col: int
    definition: SpanRecord


__all__ = [
    "SCHEMA_VERSION",
    "DeclarationRecord",
    "DefinitionRecord",
    "ItemKind",
    "ItemRecord",
    "SpanRecord",
]
