"""Project-wide index: per-file indexes plus the global name table."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

import structlog

from core.errors import IndexingError
from db.catalog import FileCatalog, FileId
from db.symbols import Declaration, GlobalSymbolTable
from semantic.builder import build_index
from semantic.items import ModuleIdentifier, ModuleInstance, UnknownIdentifier
from semantic.position import DocumentRange

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from parse.syntax import SyntaxTree
    from semantic.builder import PerFileIndex
    from semantic.items import Item, ItemId
    from semantic.position import DocumentPosition, Range

logger = structlog.get_logger()


class Database:
    """Owns the file catalog, one index per file and the global symbol table.

    Single-threaded: concurrent callers must serialise access themselves.
    """

    def __init__(self, *, strict: bool = True) -> None:
        self._strict = strict
        self._catalog = FileCatalog()
        self._data: dict[FileId, PerFileIndex] = {}
        self._symbols = GlobalSymbolTable()

    @property
    def symbols(self) -> GlobalSymbolTable:
        return self._symbols

    def update(self, path: Path, syntax_tree: SyntaxTree) -> FileId:
        """Rebuild the index for ``path`` and swap it in.

        Raises:
            IndexingError: the file could not be indexed. Its previous index,
                if any, stays in place and other files are untouched.
        """
        file_id = self._catalog.resolve_or_create(path)
        try:
            data = build_index(syntax_tree, strict=self._strict)
        except IndexingError as exc:
            logger.warning(
                "file_index_failed",
                path=str(path),
                file_id=file_id,
                error=exc.error_name,
                message=exc.message,
            )
            raise

        old_data = self._data.get(file_id)
        self._data[file_id] = data
        old_names = old_data.declarations.keys() if old_data is not None else ()
        self._symbols.reconcile(file_id, old_names, data.declarations.items())

        logger.debug(
            "file_indexed",
            path=str(path),
            file_id=file_id,
            items=len(data),
            declarations=len(data.declarations),
        )
        return file_id

    def get_data(self, file_id: FileId) -> PerFileIndex | None:
        return self._data.get(file_id)

    def file_id(self, path: Path) -> FileId | None:
        return self._catalog.get_id(path)

    def path_of(self, file_id: FileId) -> Path | None:
        return self._catalog.get_path(file_id)

    def files(self) -> Iterator[tuple[Path, FileId]]:
        """Known files with an index, in id order."""
        for path, file_id in self._catalog:
            if file_id in self._data:
                yield path, file_id

    def item_at(self, request: DocumentPosition) -> tuple[FileId, ItemId, Item] | None:
        file_id = self._catalog.get_id(request.document)
        if file_id is None:
            return None
        data = self._data.get(file_id)
        if data is None:
            return None
        found = data.item_at(request.position)
        if found is None:
            return None
        item_id, item = found
        return file_id, item_id, item

    def declaration_of(self, module_name: str) -> tuple[FileId, Item] | None:
        declaration = self._symbols.resolve(module_name)
        if declaration is None:
            return None
        item = self._dereference(declaration)
        if item is None:
            return None
        return declaration.file_id, item

    def goto_definition(self, request: DocumentPosition) -> DocumentRange | None:
        found = self.item_at(request)
        if found is None:
            return None
        file_id, _, item = found

        target: tuple[FileId, Range] | None
        if isinstance(item, ModuleIdentifier):
            declared = self.declaration_of(item.module_name)
            target = (declared[0], declared[1].location) if declared else None
        elif isinstance(item, ModuleInstance):
            data = self._data[file_id]
            instance_name = data.get(item.instance_name)
            target = (file_id, instance_name.location) if instance_name else None
        elif isinstance(item, UnknownIdentifier):
            target = (file_id, item.location)
        else:
            assert_never(item)

        if target is None:
            return None
        target_file, location = target
        document = self._catalog.get_path(target_file)
        if document is None:
            return None
        return DocumentRange(document=document, range=location)

    def _dereference(self, declaration: Declaration) -> Item | None:
        data = self._data.get(declaration.file_id)
        if data is None:
            return None
        return data.get(declaration.item_id)


__all__ = ["Database"]
