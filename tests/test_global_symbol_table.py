from __future__ import annotations

from db.catalog import FileId
from db.symbols import Declaration, GlobalSymbolTable
from semantic.items import ItemId

A = FileId(0)
B = FileId(1)


def _id(generation: int, index: int = 0) -> ItemId:
    return ItemId(generation=generation, index=index)


def test_reconcile_inserts_new_names() -> None:
    table = GlobalSymbolTable()

    table.reconcile(A, (), [("top", _id(1)), ("leaf", _id(1, 3))])

    assert table.resolve("top") == Declaration(file_id=A, item_id=_id(1))
    assert table.resolve("leaf") == Declaration(file_id=A, item_id=_id(1, 3))
    assert list(table.names()) == ["leaf", "top"]
    assert len(table) == 2


def test_old_names_are_removed_before_new_ones_are_inserted() -> None:
    table = GlobalSymbolTable()
    table.reconcile(A, (), [("top", _id(1)), ("gone", _id(1, 1))])

    table.reconcile(A, ["top", "gone"], [("top", _id(2))])

    assert table.resolve("top") == Declaration(file_id=A, item_id=_id(2))
    assert "gone" not in table
    assert table.resolve("gone") is None


def test_last_writer_wins_and_flips_back() -> None:
    table = GlobalSymbolTable()
    table.reconcile(A, (), [("m", _id(1))])
    table.reconcile(B, (), [("m", _id(2))])

    assert table.resolve("m").file_id == B

    table.reconcile(A, ["m"], [("m", _id(3))])

    assert table.resolve("m") == Declaration(file_id=A, item_id=_id(3))
    assert table.declarers("m") == [B, A]


def test_dropping_the_winner_falls_back_to_the_other_declarer() -> None:
    table = GlobalSymbolTable()
    table.reconcile(A, (), [("m", _id(1))])
    table.reconcile(B, (), [("m", _id(2))])

    table.reconcile(B, ["m"], [])

    assert table.resolve("m") == Declaration(file_id=A, item_id=_id(1))
    assert table.declarers("m") == [A]


def test_unknown_names_are_misses() -> None:
    table = GlobalSymbolTable()
    table.reconcile(A, ["never_declared"], [])

    assert table.resolve("nothing") is None
    assert table.declarers("nothing") == []
    assert len(table) == 0
