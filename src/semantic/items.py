"""Semantic items and the per-file arena that owns them."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from collections.abc import Iterator

    from semantic.position import Range

_GENERATIONS = itertools.count(1)


@dataclass(frozen=True, order=True)
class ItemId:
    """Arena slot plus the generation of the store that issued it."""

    generation: int
    index: int


@dataclass(frozen=True)
class ModuleIdentifier:
    """A module name occurrence: a declaration, or the type at an instantiation."""

    module_name: str
    location: Range


@dataclass(frozen=True)
class ModuleInstance:
    module_name: ItemId
    instance_name: ItemId
    location: Range
    parameters: tuple[ItemId, ...] = ()
    ports: tuple[ItemId, ...] = ()


@dataclass(frozen=True)
class UnknownIdentifier:
    """An identifier occurrence without deeper semantic treatment (instance names)."""

    name: str
    location: Range


Item = Union[ModuleIdentifier, ModuleInstance, UnknownIdentifier]


class ItemStore:
    """Append-only arena of items for one file.

    Every store draws a fresh generation, so ids issued by a store that has
    since been replaced never dereference against its successor.
    """

    def __init__(self) -> None:
        self._generation = next(_GENERATIONS)
        self._items: list[Item] = []

    @property
    def generation(self) -> int:
        return self._generation

    def add(self, item: Item) -> ItemId:
        self._items.append(item)
        return ItemId(generation=self._generation, index=len(self._items) - 1)

    def get(self, item_id: ItemId) -> Item | None:
        if item_id.generation != self._generation:
            return None
        if not 0 <= item_id.index < len(self._items):
            return None
        return self._items[item_id.index]

    def __getitem__(self, item_id: ItemId) -> Item:
        item = self.get(item_id)
        if item is None:
            raise KeyError(item_id)
        return item

    def __contains__(self, item_id: object) -> bool:
        return isinstance(item_id, ItemId) and self.get(item_id) is not None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[tuple[ItemId, Item]]:
        for index, item in enumerate(self._items):
            yield ItemId(generation=self._generation, index=index), item


__all__ = [
    "Item",
    "ItemId",
    "ItemStore",
    "ModuleIdentifier",
    "ModuleInstance",
    "UnknownIdentifier",
]
