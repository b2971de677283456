"""Position-sorted index from source ranges to item ids.

Each level of the index is a flat list of mutually non-overlapping ranges
sorted by ``begin``, which keeps the range-vs-point comparison a valid order
for binary search. Ranges that sit inside another range live in that
entry's nested level.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.errors import DuplicateLocation, OverlappingLocation

if TYPE_CHECKING:
    from collections.abc import Iterator

    from semantic.items import ItemId
    from semantic.position import Position, Range


@dataclass
class LocationEntry:
    range: Range
    item_id: ItemId
    nested: list[LocationEntry] = field(default_factory=list)


@dataclass(frozen=True)
class LocationSlot:
    """Validated insertion point; ``level[start:stop]`` become the new entry's children."""

    level: list[LocationEntry]
    start: int
    stop: int


class LocationIndex:
    def __init__(self) -> None:
        self._entries: list[LocationEntry] = []

    def find_slot(self, new: Range) -> LocationSlot:
        """Locate where ``new`` belongs without modifying the index.

        Raises:
            DuplicateLocation: an entry at the same level begins at the same
                position and neither range strictly encloses the other.
            OverlappingLocation: ``new`` crosses the boundary of an entry.
        """
        level = self._entries
        while True:
            pos = bisect_left(level, new.begin, key=lambda entry: entry.range.begin)
            if pos < len(level) and level[pos].range.begin == new.begin:
                existing = level[pos].range
                if existing == new:
                    raise DuplicateLocation.at(existing, new)
                if existing.contains_range(new):
                    level = level[pos].nested
                    continue
                if not new.contains_range(existing):
                    raise DuplicateLocation.at(existing, new)
            elif pos > 0 and level[pos - 1].range.end > new.begin:
                previous = level[pos - 1]
                if previous.range.contains_range(new):
                    level = previous.nested
                    continue
                raise OverlappingLocation.between(previous.range, new)

            stop = pos
            while stop < len(level) and level[stop].range.begin < new.end:
                if not new.contains_range(level[stop].range):
                    raise OverlappingLocation.between(level[stop].range, new)
                stop += 1
            return LocationSlot(level=level, start=pos, stop=stop)

    def place(self, slot: LocationSlot, new: Range, item_id: ItemId) -> None:
        entry = LocationEntry(
            range=new, item_id=item_id, nested=slot.level[slot.start : slot.stop]
        )
        slot.level[slot.start : slot.stop] = [entry]

    def insert(self, new: Range, item_id: ItemId) -> None:
        self.place(self.find_slot(new), new, item_id)

    def lookup_at(self, position: Position) -> ItemId | None:
        """Return the innermost item whose range contains ``position``."""
        found: ItemId | None = None
        level = self._entries
        while level:
            entry = _search_level(level, position)
            if entry is None:
                break
            found = entry.item_id
            level = entry.nested
        return found

    def entries(self) -> Iterator[tuple[int, Range, ItemId]]:
        """Yield ``(depth, range, item_id)`` in document order."""
        yield from _walk(self._entries, 0)

    def levels(self) -> Iterator[list[tuple[Range, ItemId]]]:
        """Yield every level as a sorted list of sibling entries."""
        pending = [self._entries]
        while pending:
            level = pending.pop()
            yield [(entry.range, entry.item_id) for entry in level]
            pending.extend(entry.nested for entry in level if entry.nested)

    def __len__(self) -> int:
        return sum(1 for _ in self.entries())


def _search_level(level: list[LocationEntry], position: Position) -> LocationEntry | None:
    low, high = 0, len(level)
    while low < high:
        mid = (low + high) // 2
        ordering = level[mid].range.compare(position)
        if ordering < 0:
            low = mid + 1
        elif ordering > 0:
            high = mid
        else:
            return level[mid]
    return None


def _walk(level: list[LocationEntry], depth: int) -> Iterator[tuple[int, Range, ItemId]]:
    for entry in level:
        yield depth, entry.range, entry.item_id
        yield from _walk(entry.nested, depth + 1)


__all__ = ["LocationEntry", "LocationIndex", "LocationSlot"]
