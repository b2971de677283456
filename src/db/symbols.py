"""Project-wide table of declared module names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from db.catalog import FileId
    from semantic.items import ItemId


@dataclass(frozen=True)
class Declaration:
    """Where a name is declared."""

    file_id: FileId
    item_id: ItemId


class GlobalSymbolTable:
    """Maps declared names to the file and item that declare them.

    Every file's claims on a name are kept in reconcile order and the most
    recent claim wins. Dropping the winning claim falls back to the next
    most recent declarer, so the table always equals the union of the
    declarations of currently indexed files.
    """

    def __init__(self) -> None:
        self._claims: dict[str, dict[FileId, ItemId]] = {}

    def reconcile(
        self,
        file_id: FileId,
        old_names: Iterable[str],
        new_declarations: Iterable[tuple[str, ItemId]],
    ) -> None:
        """Replace ``file_id``'s claims: old names first, then the new ones."""
        for name in old_names:
            claims = self._claims.get(name)
            if claims is None:
                continue
            claims.pop(file_id, None)
            if not claims:
                del self._claims[name]

        for name, item_id in new_declarations:
            claims = self._claims.setdefault(name, {})
            # Re-inserting moves the claim to the most recent position.
            claims.pop(file_id, None)
            claims[file_id] = item_id

    def resolve(self, name: str) -> Declaration | None:
        claims = self._claims.get(name)
        if not claims:
            return None
        file_id = next(reversed(claims))
        return Declaration(file_id=file_id, item_id=claims[file_id])

    def declarers(self, name: str) -> list[FileId]:
        """All files declaring ``name``, least recent first."""
        return list(self._claims.get(name, {}))

    def names(self) -> Iterator[str]:
        return iter(sorted(self._claims))

    def __contains__(self, name: object) -> bool:
        return name in self._claims

    def __len__(self) -> int:
        return len(self._claims)


__all__ = ["Declaration", "GlobalSymbolTable"]
