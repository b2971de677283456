"""Stable mapping between file paths and small integer ids."""

from __future__ import annotations

from typing import TYPE_CHECKING, NewType

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

FileId = NewType("FileId", int)


class FileCatalog:
    """Bijective ``Path <-> FileId`` map. Ids are never recycled."""

    def __init__(self) -> None:
        self._by_path: dict[Path, FileId] = {}
        self._by_id: dict[FileId, Path] = {}

    def resolve_or_create(self, path: Path) -> FileId:
        file_id = self._by_path.get(path)
        if file_id is None:
            file_id = FileId(len(self._by_path))
            self._by_path[path] = file_id
            self._by_id[file_id] = path
        return file_id

    def get_id(self, path: Path) -> FileId | None:
        return self._by_path.get(path)

    def get_path(self, file_id: FileId) -> Path | None:
        return self._by_id.get(file_id)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def __len__(self) -> int:
        return len(self._by_path)

    def __iter__(self) -> Iterator[tuple[Path, FileId]]:
        return iter(self._by_path.items())


__all__ = ["FileCatalog", "FileId"]
