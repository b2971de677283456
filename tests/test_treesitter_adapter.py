from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from db.database import Database
from parse.syntax import (
    ModuleDeclarationAnsi,
    ModuleDeclarationExtern,
    ModuleDeclarationNonansi,
    ModuleDeclarationWildcard,
    ModuleInstantiation,
    OpaqueDescription,
    OpaqueItem,
    TokenKind,
)
from parse.treesitter_verilog import build_syntax_tree, parse_verilog_file
from semantic.position import DocumentPosition
from sv_source import offset_of, parse_sv, position_of


@dataclass(eq=False)
class FakeNode:
    """Just enough of ``tree_sitter.Node`` for the converter."""

    type: str
    start_byte: int
    end_byte: int
    children: list[FakeNode] = field(default_factory=list)
    is_named: bool = True

    @property
    def named_children(self) -> list[FakeNode]:
        return [child for child in self.children if child.is_named]

    @property
    def child_count(self) -> int:
        return len(self.children)


class _Tree:
    """Builds fake nodes whose byte spans come from the source text."""

    def __init__(self, source: bytes) -> None:
        self.source = source
        self._cursor = 0

    def leaf(self, text: str, node_type: str | None = None, *, named: bool = False) -> FakeNode:
        start = self.source.index(text.encode(), self._cursor)
        self._cursor = start + len(text)
        return FakeNode(
            type=node_type or text,
            start_byte=start,
            end_byte=self._cursor,
            is_named=named,
        )

    def ident(self, text: str) -> FakeNode:
        return self.leaf(text, "simple_identifier", named=True)

    @staticmethod
    def node(node_type: str, *children: FakeNode) -> FakeNode:
        return FakeNode(
            type=node_type,
            start_byte=children[0].start_byte,
            end_byte=children[-1].end_byte,
            children=list(children),
        )


TOP_SOURCE = b"module top;\n  mod_a inst1(), inst2();\nendmodule : top\n"


def _top_tree() -> FakeNode:
    t = _Tree(TOP_SOURCE)
    header = t.node(
        "module_ansi_header",
        t.node("module_keyword", t.leaf("module")),
        t.ident("top"),
        t.leaf(";"),
    )
    instantiation = t.node(
        "module_instantiation",
        t.ident("mod_a"),
        t.node(
            "hierarchical_instance",
            t.node(
                "name_of_instance",
                t.node("instance_identifier", t.ident("inst1")),
            ),
            t.leaf("("),
            t.leaf(")"),
        ),
        t.leaf(","),
        t.node(
            "hierarchical_instance",
            t.node(
                "name_of_instance",
                t.node("instance_identifier", t.ident("inst2")),
            ),
            t.leaf("("),
            t.leaf(")"),
        ),
        t.leaf(";"),
    )
    module = t.node(
        "module_declaration",
        header,
        t.node("module_or_generate_item", instantiation),
        t.leaf("endmodule"),
        t.leaf(":"),
        t.node("module_identifier", t.ident("top")),
    )
    root = t.node("source_file", module)
    root.end_byte = len(TOP_SOURCE)
    return root


def test_module_declaration_is_converted() -> None:
    tree = build_syntax_tree(TOP_SOURCE, _top_tree())

    (module,) = tree.source_text.descriptions
    assert isinstance(module, ModuleDeclarationAnsi)
    assert tree.get_str(module.header.keyword) == "module"
    assert tree.get_str_trim(module.header.name) == "top"
    assert tree.get_str(module.endmodule) == "endmodule"
    assert module.label is not None
    assert module.label.locate.offset == offset_of(TOP_SOURCE, "top", 1)


def test_instantiation_is_converted() -> None:
    tree = build_syntax_tree(TOP_SOURCE, _top_tree())

    (module,) = tree.source_text.descriptions
    (instantiation,) = module.items
    assert isinstance(instantiation, ModuleInstantiation)
    assert tree.get_str(instantiation.module_name) == "mod_a"
    assert [tree.get_str(i.name) for i in instantiation.instances] == ["inst1", "inst2"]
    assert instantiation.instances[0].close.offset == offset_of(TOP_SOURCE, ")")
    assert instantiation.terminator.offset == offset_of(TOP_SOURCE, ";", 1)


def test_single_instance_in_checker_shape_is_an_instantiation() -> None:
    source = b"module top;\n  mod_a inst1(.x(y));\nendmodule\n"
    t = _Tree(source)
    header = t.node(
        "module_ansi_header",
        t.node("module_keyword", t.leaf("module")),
        t.ident("top"),
        t.leaf(";"),
    )
    checker = t.node(
        "checker_instantiation",
        t.node("checker_identifier", t.ident("mod_a")),
        t.node("name_of_instance", t.node("instance_identifier", t.ident("inst1"))),
        t.leaf("("),
        t.node(
            "list_of_checker_port_connections",
            t.leaf("."),
            t.ident("x"),
            t.leaf("("),
            t.ident("y"),
            t.leaf(")"),
        ),
        t.leaf(")"),
        t.leaf(";"),
    )
    module = t.node(
        "module_declaration",
        header,
        t.node("module_or_generate_item", t.node("concurrent_assertion_item", checker)),
        t.leaf("endmodule"),
    )

    tree = build_syntax_tree(source, t.node("source_file", module))

    (declaration,) = tree.source_text.descriptions
    (instantiation,) = declaration.items
    assert isinstance(instantiation, ModuleInstantiation)
    assert tree.get_str(instantiation.module_name) == "mod_a"
    (instance,) = instantiation.instances
    assert tree.get_str(instance.name) == "inst1"
    assert instance.close.offset == offset_of(source, "));") + 1
    assert instantiation.terminator.offset == offset_of(source, ";", 1)


def test_plain_assertion_item_stays_opaque() -> None:
    source = b"module top;\n  a1: assert property (p);\nendmodule\n"
    t = _Tree(source)
    header = t.node(
        "module_ansi_header",
        t.node("module_keyword", t.leaf("module")),
        t.ident("top"),
        t.leaf(";"),
    )
    assertion = t.node(
        "concurrent_assertion_item",
        t.node("block_identifier", t.ident("a1")),
        t.leaf(":"),
        t.node(
            "assert_property_statement",
            t.leaf("assert"),
            t.leaf("property"),
            t.leaf("("),
            t.ident("p"),
            t.leaf(")"),
            t.leaf(";"),
        ),
    )
    module = t.node(
        "module_declaration",
        header,
        t.node("module_or_generate_item", assertion),
        t.leaf("endmodule"),
    )

    tree = build_syntax_tree(source, t.node("source_file", module))

    (declaration,) = tree.source_text.descriptions
    (item,) = declaration.items
    assert isinstance(item, OpaqueItem)
    assert tree.get_str(item.first) == "a1"


def test_compiler_directives_are_dropped() -> None:
    source = b"`timescale 1ns/1ps\nmodule m;\nendmodule\n"
    t = _Tree(source)
    directive = t.node(
        "timescale_compiler_directive",
        t.leaf("`timescale"),
        t.leaf("1ns"),
        t.leaf("/"),
        t.leaf("1ps"),
    )
    module = t.node(
        "module_declaration",
        t.node(
            "module_ansi_header",
            t.node("module_keyword", t.leaf("module")),
            t.ident("m"),
            t.leaf(";"),
        ),
        t.leaf("endmodule"),
    )

    tree = build_syntax_tree(source, t.node("source_file", directive, module))

    (declaration,) = tree.source_text.descriptions
    assert isinstance(declaration, ModuleDeclarationAnsi)


def test_tokens_cover_the_source_with_line_numbers() -> None:
    tree = build_syntax_tree(TOP_SOURCE, _top_tree())

    offset = 0
    for token in tree.tokens:
        assert token.locate.offset == offset
        assert token.locate.line == TOP_SOURCE.count(b"\n", 0, offset) + 1
        offset = token.locate.end
    assert offset == len(TOP_SOURCE)
    assert len(list(tree.newlines())) == 3

    kinds = {tree.get_str(token): token.kind for token in tree.tokens}
    assert kinds["module"] is TokenKind.KEYWORD
    assert kinds["mod_a"] is TokenKind.IDENTIFIER
    assert kinds[";"] is TokenKind.SYMBOL


def test_multiline_comment_is_split_at_newlines() -> None:
    source = b"/* a\r\nb */\nmodule m;\nendmodule\n"
    t = _Tree(source)
    comment = t.leaf("/* a\r\nb */", "comment", named=True)
    module = t.node(
        "module_declaration",
        t.node(
            "module_ansi_header",
            t.node("module_keyword", t.leaf("module")),
            t.ident("m"),
            t.leaf(";"),
        ),
        t.leaf("endmodule"),
    )
    root = t.node("source_file", comment, module)
    root.end_byte = len(source)

    tree = build_syntax_tree(source, root)

    assert [tree.get_str(token) for token in tree.newlines()] == ["\r\n", "\n", "\n", "\n"]
    assert [token.kind for token in tree.tokens[:3]] == [
        TokenKind.COMMENT,
        TokenKind.NEWLINE,
        TokenKind.COMMENT,
    ]
    (module_declaration,) = tree.source_text.descriptions
    assert module_declaration.endmodule.line == 4


def test_nonansi_header_and_port_items() -> None:
    source = b"module m(a);\n  input a;\n  assign x = a;\nendmodule\n"
    t = _Tree(source)
    generic_header = t.node(
        "module_header",
        t.node("module_keyword", t.leaf("module")),
        t.node("module_identifier", t.ident("m")),
    )
    port_header = t.node(
        "module_nonansi_header",
        t.node("list_of_ports", t.leaf("("), t.ident("a"), t.leaf(")")),
        t.leaf(";"),
    )
    port = t.node("port_declaration", t.leaf("input"), t.ident("a"), t.leaf(";"))
    assign = t.node(
        "continuous_assign", t.leaf("assign"), t.ident("x"), t.leaf("="), t.ident("a"), t.leaf(";")
    )
    module = t.node(
        "module_declaration",
        generic_header,
        port_header,
        t.node("module_item", port),
        t.node("module_item", t.node("module_or_generate_item", assign)),
        t.leaf("endmodule"),
    )

    tree = build_syntax_tree(source, t.node("source_file", module))

    (declaration,) = tree.source_text.descriptions
    assert isinstance(declaration, ModuleDeclarationNonansi)
    assert tree.get_str(declaration.header.name) == "m"
    assert [item.kind.value for item in declaration.items] == [
        "port_declaration",
        "module_item",
    ]
    assert all(isinstance(item, OpaqueItem) for item in declaration.items)


def test_wildcard_and_extern_headers() -> None:
    source = b"module w(.*);\nendmodule\nextern module e;\n"
    t = _Tree(source)
    wildcard = t.node(
        "module_declaration",
        t.node(
            "module_ansi_header",
            t.node("module_keyword", t.leaf("module")),
            t.ident("w"),
            t.leaf("("),
            t.leaf(".*"),
            t.leaf(")"),
            t.leaf(";"),
        ),
        t.leaf("endmodule"),
    )
    extern = t.node(
        "module_declaration",
        t.leaf("extern"),
        t.node(
            "module_ansi_header",
            t.node("module_keyword", t.leaf("module")),
            t.ident("e"),
            t.leaf(";"),
        ),
    )

    tree = build_syntax_tree(source, t.node("source_file", wildcard, extern))

    first, second = tree.source_text.descriptions
    assert isinstance(first, ModuleDeclarationWildcard)
    assert isinstance(second, ModuleDeclarationExtern)
    assert second.ansi is True
    assert tree.get_str(second.extern) == "extern"


def test_other_descriptions_are_opaque_and_comments_are_dropped() -> None:
    source = b"// header\npackage p;\nendpackage\n"
    t = _Tree(source)
    comment = t.leaf("// header", "comment", named=True)
    package = t.node(
        "package_declaration",
        t.leaf("package"),
        t.ident("p"),
        t.leaf(";"),
        t.leaf("endpackage"),
    )

    tree = build_syntax_tree(source, t.node("source_file", comment, package))

    (description,) = tree.source_text.descriptions
    assert isinstance(description, OpaqueDescription)
    assert description.kind == "package_declaration"
    assert tree.get_str(description.first) == "package"
    assert tree.get_str(description.last) == "endpackage"


def test_converted_tree_feeds_the_database() -> None:
    leaf_source = "module mod_a;\nendmodule\n"
    database = Database()
    database.update(Path("top.sv"), build_syntax_tree(TOP_SOURCE, _top_tree()))
    database.update(Path("leaf.sv"), parse_sv(leaf_source))

    use = DocumentPosition(
        document=Path("top.sv"), position=position_of(TOP_SOURCE, "mod_a")
    )
    result = database.goto_definition(use)

    assert result is not None
    assert result.document == Path("leaf.sv")
    assert result.range.end == position_of(leaf_source, "\n", 1)

    second = DocumentPosition(
        document=Path("top.sv"), position=position_of(TOP_SOURCE, "inst2")
    )
    assert database.goto_definition(second).range.begin == position_of(TOP_SOURCE, "inst2")


def test_grammar_parse_keeps_every_byte(tmp_path: Path) -> None:
    source = b"module top;\r\n  mod_a inst1 ();\n\n  // note\nendmodule\n"
    path = tmp_path / "top.sv"
    path.write_bytes(source)

    tree = parse_verilog_file(path)

    assert b"".join(tree.source[t.locate.offset : t.locate.end] for t in tree.tokens) == source
    assert [tree.get_str(token) for token in tree.newlines()] == ["\r\n", "\n\n", "\n", "\n"]
    assert any(tree.get_str(token) == "mod_a" for token in tree.tokens)
