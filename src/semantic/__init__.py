"""Per-file semantic index: positions, items, locations and the builder."""

from semantic.builder import IndexBuilder, PerFileIndex, build_index
from semantic.items import (
    Item,
    ItemId,
    ItemStore,
    ModuleIdentifier,
    ModuleInstance,
    UnknownIdentifier,
)
from semantic.locations import LocationIndex
from semantic.position import (
    DocumentPosition,
    DocumentRange,
    Position,
    PositionMapper,
    Range,
)

__all__ = [
    "DocumentPosition",
    "DocumentRange",
    "IndexBuilder",
    "Item",
    "ItemId",
    "ItemStore",
    "LocationIndex",
    "ModuleIdentifier",
    "ModuleInstance",
    "PerFileIndex",
    "Position",
    "PositionMapper",
    "Range",
    "UnknownIdentifier",
    "build_index",
]
