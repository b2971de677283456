"""Build one file's semantic index from its syntax tree."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

import structlog

from core.errors import UnsupportedConstruct
from parse.syntax import (
    ConstructKind,
    ModuleDeclarationAnsi,
    ModuleDeclarationExtern,
    ModuleDeclarationNonansi,
    ModuleDeclarationWildcard,
    ModuleInstantiation,
    OpaqueDescription,
    OpaqueItem,
)
from semantic.items import (
    Item,
    ItemId,
    ItemStore,
    ModuleIdentifier,
    ModuleInstance,
    UnknownIdentifier,
)
from semantic.locations import LocationIndex
from semantic.position import Position, PositionMapper, Range

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from parse.syntax import BodyItem, Locate, SyntaxTree

logger = structlog.get_logger()

# Body items that carry no declaration and are skipped without complaint.
SKIPPED_CONSTRUCTS = frozenset(
    {ConstructKind.PORT_DECLARATION, ConstructKind.MODULE_ITEM}
)


class PerFileIndex:
    """Read-only view of one file's index.

    Bundles the line table, the item arena, the location index and the
    module names this file declares.
    """

    def __init__(
        self,
        positions: PositionMapper,
        items: ItemStore,
        locations: LocationIndex,
        declarations: dict[str, ItemId],
        unsupported: tuple[UnsupportedConstruct, ...] = (),
    ) -> None:
        self._positions = positions
        self._items = items
        self._locations = locations
        self._declarations = declarations
        self._unsupported = unsupported

    @property
    def positions(self) -> PositionMapper:
        return self._positions

    @property
    def locations(self) -> LocationIndex:
        return self._locations

    @property
    def declarations(self) -> Mapping[str, ItemId]:
        return dict(self._declarations)

    @property
    def unsupported(self) -> tuple[UnsupportedConstruct, ...]:
        """Constructs skipped in lenient mode."""
        return self._unsupported

    def get(self, item_id: ItemId) -> Item | None:
        return self._items.get(item_id)

    def items(self) -> Iterator[tuple[ItemId, Item]]:
        return iter(self._items)

    def item_at(self, position: Position) -> tuple[ItemId, Item] | None:
        item_id = self._locations.lookup_at(position)
        if item_id is None:
            return None
        item = self._items.get(item_id)
        if item is None:
            return None
        return item_id, item

    def __len__(self) -> int:
        return len(self._items)


class IndexBuilder:
    """Walks a syntax tree and collects module declarations and instances.

    In strict mode the first unsupported construct aborts the build; in
    lenient mode it is recorded on the result and skipped.
    """

    def __init__(self, syntax_tree: SyntaxTree, *, strict: bool = True) -> None:
        self._tree = syntax_tree
        self._strict = strict
        self._positions = PositionMapper.from_tree(syntax_tree)
        self._items = ItemStore()
        self._locations = LocationIndex()
        self._declarations: dict[str, ItemId] = {}
        self._unsupported: list[UnsupportedConstruct] = []

    def build(self) -> PerFileIndex:
        for description in self._tree.source_text.descriptions:
            if isinstance(description, (ModuleDeclarationNonansi, ModuleDeclarationAnsi)):
                self._process_module_declaration(description)
            elif isinstance(description, ModuleDeclarationWildcard):
                self._unsupported_construct(
                    "wildcard_module_declaration", description.header.keyword.locate
                )
            elif isinstance(description, ModuleDeclarationExtern):
                self._unsupported_construct(
                    "extern_module_declaration", description.extern
                )
            elif isinstance(description, OpaqueDescription):
                self._unsupported_construct(description.kind, description.first)
            else:
                assert_never(description)

        return PerFileIndex(
            positions=self._positions,
            items=self._items,
            locations=self._locations,
            declarations=self._declarations,
            unsupported=tuple(self._unsupported),
        )

    def _insert(self, item: Item) -> ItemId:
        slot = self._locations.find_slot(item.location)
        item_id = self._items.add(item)
        self._locations.place(slot, item.location, item_id)
        return item_id

    def _unsupported_construct(self, kind: ConstructKind | str, locate: Locate) -> None:
        error = UnsupportedConstruct.of(kind, locate.line, locate.offset)
        if self._strict:
            raise error
        logger.warning(
            "unsupported_construct_skipped", kind=error.kind, line=locate.line
        )
        self._unsupported.append(error)

    def _process_module_declaration(
        self, module: ModuleDeclarationNonansi | ModuleDeclarationAnsi
    ) -> None:
        header = module.header
        module_name = self._tree.get_str_trim(header.name)

        end_locate = module.label.locate if module.label else module.endmodule
        end = self._positions.position_of(end_locate)
        location = Range(
            begin=self._positions.position_of(header.keyword.locate),
            end=Position(end.row, end.col + end_locate.length),
        )
        module_id = self._insert(
            ModuleIdentifier(module_name=module_name, location=location)
        )

        for item in module.items:
            self._process_body_item(item)

        self._declarations[module_name] = module_id

    def _process_body_item(self, item: BodyItem) -> None:
        if isinstance(item, ModuleInstantiation):
            self._process_instantiation(item)
        elif isinstance(item, OpaqueItem):
            if item.kind not in SKIPPED_CONSTRUCTS:
                self._unsupported_construct(item.kind, item.first)
        else:
            assert_never(item)

    def _process_instantiation(self, item: ModuleInstantiation) -> None:
        type_range = self._positions.range_of(item.module_name.locate)
        type_id = self._insert(
            ModuleIdentifier(
                module_name=self._tree.get_str_trim(item.module_name),
                location=type_range,
            )
        )

        last = len(item.instances) - 1
        for number, instance in enumerate(item.instances):
            name_range = self._positions.range_of(instance.name.locate)
            name_id = self._insert(
                UnknownIdentifier(
                    name=self._tree.get_str_trim(instance.name),
                    location=name_range,
                )
            )

            close = item.terminator if number == last else instance.close
            begin = type_range.begin if number == 0 else name_range.begin
            self._insert(
                ModuleInstance(
                    module_name=type_id,
                    instance_name=name_id,
                    location=Range(begin=begin, end=self._positions.range_of(close).end),
                )
            )


def build_index(syntax_tree: SyntaxTree, *, strict: bool = True) -> PerFileIndex:
    return IndexBuilder(syntax_tree, strict=strict).build()


__all__ = ["IndexBuilder", "PerFileIndex", "SKIPPED_CONSTRUCTS", "build_index"]
