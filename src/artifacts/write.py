from __future__ import annotations

from typing import TYPE_CHECKING

import orjson

from artifacts.records import DeclarationRecord, DefinitionRecord, ItemRecord, SpanRecord
from semantic.items import ModuleIdentifier, ModuleInstance, UnknownIdentifier

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from db.database import Database
    from db.workspace import Workspace
    from semantic.builder import PerFileIndex
    from semantic.items import Item
    from semantic.position import DocumentPosition, DocumentRange, Range

ITEMS_JSONL = "items.jsonl"
DECLARATIONS_JSONL = "declarations.jsonl"
ERRORS_JSONL = "errors.jsonl"


def _to_dict(obj: object) -> object:
    """Convert object to dict for JSON serialization."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return obj


def _write_jsonl(path: Path, records: Sequence[object]) -> None:
    with path.open("wb") as f:
        for rec in records:
            payload = _to_dict(rec)
            f.write(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS))
            f.write(b"\n")


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def span_record(path: str, location: Range) -> SpanRecord:
    return SpanRecord(
        path=path,
        begin_row=location.begin.row,
        begin_col=location.begin.col,
        end_row=location.end.row,
        end_col=location.end.col,
    )


def _item_record(
    path: str,
    index: int,
    item: Item,
    data: PerFileIndex,
    depth: int,
    declared: set[int],
) -> ItemRecord:
    if isinstance(item, ModuleIdentifier):
        return ItemRecord(
            item_index=index,
            kind="module_identifier",
            name=item.module_name,
            span=span_record(path, item.location),
            depth=depth,
            declaration=index in declared,
        )
    if isinstance(item, ModuleInstance):
        instance_name = data.get(item.instance_name)
        return ItemRecord(
            item_index=index,
            kind="module_instance",
            name=instance_name.name if isinstance(instance_name, UnknownIdentifier) else "",
            span=span_record(path, item.location),
            depth=depth,
            module_name_index=item.module_name.index,
            instance_name_index=item.instance_name.index,
        )
    return ItemRecord(
        item_index=index,
        kind="unknown_identifier",
        name=item.name,
        span=span_record(path, item.location),
        depth=depth,
    )


def build_item_records(database: Database, root: Path) -> list[ItemRecord]:
    """Items of every indexed file, enclosing items before the items they contain."""
    records: list[ItemRecord] = []
    files = sorted((_relative(path, root), file_id) for path, file_id in database.files())
    for rel_path, file_id in files:
        data = database.get_data(file_id)
        if data is None:
            continue
        declared = {item_id.index for item_id in data.declarations.values()}
        for depth, _, item_id in data.locations.entries():
            item = data.get(item_id)
            if item is None:
                continue
            records.append(
                _item_record(rel_path, item_id.index, item, data, depth, declared)
            )
    return records


def build_declaration_records(database: Database, root: Path) -> list[DeclarationRecord]:
    records: list[DeclarationRecord] = []
    for name in database.symbols.names():
        declared = database.declaration_of(name)
        if declared is None:
            continue
        file_id, item = declared
        path = database.path_of(file_id)
        if path is None:
            continue
        declared_in = [
            _relative(declarer, root)
            for declarer in (
                database.path_of(other) for other in database.symbols.declarers(name)
            )
            if declarer is not None
        ]
        records.append(
            DeclarationRecord(
                name=name,
                span=span_record(_relative(path, root), item.location),
                declared_in=declared_in,
            )
        )
    return records


def definition_record(
    request: DocumentPosition, result: DocumentRange, root: Path
) -> DefinitionRecord:
    return DefinitionRecord(
        path=_relative(request.document, root),
        row=request.position.row,
        col=request.position.col,
        definition=span_record(_relative(result.document, root), result.range),
    )


def dumps(record: object) -> bytes:
    return orjson.dumps(_to_dict(record), option=orjson.OPT_SORT_KEYS)


def write_index_artifacts(workspace: Workspace, out_dir: Path) -> dict[str, object]:
    """Write items, declarations and per-file errors of a workspace.

    Returns:
        Dictionary with counts and list of written artifact paths.
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    items = build_item_records(workspace.database, workspace.root)
    declarations = build_declaration_records(workspace.database, workspace.root)
    failures = sorted(workspace.failures, key=lambda f: f.path.as_posix())

    _write_jsonl(out_dir / ITEMS_JSONL, items)
    _write_jsonl(out_dir / DECLARATIONS_JSONL, declarations)
    _write_jsonl(out_dir / ERRORS_JSONL, failures)

    return {
        "file_count": len(workspace.indexed),
        "item_count": len(items),
        "declaration_count": len(declarations),
        "error_count": len(failures),
        "artifacts": [
            str(out_dir / name) for name in (ITEMS_JSONL, DECLARATIONS_JSONL, ERRORS_JSONL)
        ],
    }


__all__ = [
    "DECLARATIONS_JSONL",
    "ERRORS_JSONL",
    "ITEMS_JSONL",
    "build_declaration_records",
    "build_item_records",
    "definition_record",
    "dumps",
    "span_record",
    "write_index_artifacts",
]
