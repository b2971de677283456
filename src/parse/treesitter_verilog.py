"""Tree-sitter based conversion of SystemVerilog sources into syntax trees."""

from __future__ import annotations

import re
from bisect import bisect_left
from typing import TYPE_CHECKING

from tree_sitter import Language, Node, Parser
from tree_sitter_verilog import language as get_verilog_language

from parse.syntax import (
    ConstructKind,
    HierarchicalInstance,
    Identifier,
    Locate,
    ModuleDeclarationAnsi,
    ModuleDeclarationExtern,
    ModuleDeclarationNonansi,
    ModuleDeclarationWildcard,
    ModuleHeader,
    ModuleInstantiation,
    ModuleKeyword,
    OpaqueDescription,
    OpaqueItem,
    SourceText,
    SyntaxTree,
    Token,
    TokenKind,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from parse.syntax import BodyItem, Description

_PARSER: Parser | None = None

_IDENTIFIER_TYPES = frozenset({"simple_identifier", "escaped_identifier"})
_KEYWORD_TYPES = frozenset({"module_keyword", "module", "macromodule"})
_INSTANTIATION_TYPES = frozenset(
    {
        "module_instantiation",
        "interface_instantiation",
        "program_instantiation",
        "checker_instantiation",
    }
)
_WRAPPER_TYPES = frozenset(
    {
        "module_item",
        "non_port_module_item",
        "module_or_generate_item",
        "module_common_item",
        "module_or_generate_item_declaration",
        "package_or_generate_item_declaration",
    }
)
# A single-instance instantiation such as ``m u();`` is ambiguous in the
# grammar and comes out as a checker instantiation under this node.
_ASSERTION_ITEM = "concurrent_assertion_item"
# Preprocessor text the grammar keeps in the tree. Directive node types all
# end in ``compiler_directive`` except these.
_DIRECTIVE_TYPES = frozenset({"text_macro_definition", "text_macro_usage"})
_BODY_KINDS: dict[str, ConstructKind] = {
    "generate_region": ConstructKind.GENERATE_REGION,
    "loop_generate_construct": ConstructKind.GENERATE_REGION,
    "conditional_generate_construct": ConstructKind.GENERATE_REGION,
    "gate_instantiation": ConstructKind.GATE_INSTANTIATION,
    "udp_instantiation": ConstructKind.UDP_INSTANTIATION,
    "parameter_declaration": ConstructKind.PARAMETER_DECLARATION,
    "local_parameter_declaration": ConstructKind.PARAMETER_DECLARATION,
    "parameter_override": ConstructKind.PARAMETER_DECLARATION,
    "specparam_declaration": ConstructKind.SPECPARAM_DECLARATION,
    "specify_block": ConstructKind.SPECIFY_BLOCK,
    "program_declaration": ConstructKind.PROGRAM_DECLARATION,
    "module_declaration": ConstructKind.MODULE_DECLARATION,
    "interface_declaration": ConstructKind.INTERFACE_DECLARATION,
    "timeunits_declaration": ConstructKind.TIMEUNITS_DECLARATION,
    "port_declaration": ConstructKind.PORT_DECLARATION,
    "input_declaration": ConstructKind.PORT_DECLARATION,
    "output_declaration": ConstructKind.PORT_DECLARATION,
    "inout_declaration": ConstructKind.PORT_DECLARATION,
    "ref_declaration": ConstructKind.PORT_DECLARATION,
}

# Newline runs, or runs of anything else that stop before a line terminator.
_PIECES = re.compile(rb"(?:\r\n|\n)+|(?:(?!\r\n)[^\n])+")


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with the Verilog language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(get_verilog_language())
        _PARSER = Parser(lang)

    return _PARSER


class _Converter:
    def __init__(self, source: bytes) -> None:
        self.source = source
        self._newlines = [match.start() for match in re.finditer(rb"\n", source)]

    def line_of(self, offset: int) -> int:
        return bisect_left(self._newlines, offset) + 1

    def locate(self, start: int, end: int) -> Locate:
        return Locate(offset=start, line=self.line_of(start), length=end - start)

    def node_locate(self, node: Node) -> Locate:
        return self.locate(node.start_byte, node.end_byte)

    # Tokens

    def tokens(self, root: Node) -> tuple[Token, ...]:
        tokens: list[Token] = []
        position = 0
        for leaf in _leaves(root):
            if leaf.start_byte > position:
                tokens.extend(self._split(position, leaf.start_byte, TokenKind.SPACE))
            if leaf.end_byte > leaf.start_byte:
                tokens.extend(
                    self._split(leaf.start_byte, leaf.end_byte, _token_kind(leaf))
                )
            position = max(position, leaf.end_byte)
        if position < len(self.source):
            tokens.extend(self._split(position, len(self.source), TokenKind.SPACE))
        return tuple(tokens)

    def _split(self, start: int, end: int, kind: TokenKind) -> Iterator[Token]:
        for match in _PIECES.finditer(self.source, start, end):
            is_newline = match.group().lstrip(b"\r").startswith(b"\n")
            yield Token(
                kind=TokenKind.NEWLINE if is_newline else kind,
                locate=self.locate(match.start(), match.end()),
            )

    # Descriptions

    def description(self, node: Node) -> Description:
        if node.type == "module_declaration":
            return self.module_declaration(node)
        return OpaqueDescription(
            kind=node.type,
            first=self.node_locate(_first_leaf(node)),
            last=self.node_locate(_last_leaf(node)),
        )

    def module_declaration(self, node: Node) -> Description:
        # The grammar may split the header into the generic ``module_header``
        # (keyword and name) followed by the ansi or nonansi port header.
        headers = [child for child in node.children if child.type.endswith("_header")]
        header_node = headers[-1] if headers else None
        scopes = headers or [node]
        keyword_node = _find_first_in(scopes, _KEYWORD_TYPES)
        if keyword_node is None:
            return self.description_fallback(node)
        keyword_leaf = _first_leaf(keyword_node)
        name_leaf = _identifier_leaf(_find_first_in(scopes, {"module_identifier"}))
        for scope in scopes:
            if name_leaf is not None:
                break
            name_leaf = _first_identifier_after(scope, keyword_leaf.end_byte)
        if name_leaf is None:
            return self.description_fallback(node)

        keyword_text = self.source[keyword_leaf.start_byte : keyword_leaf.end_byte]
        header = ModuleHeader(
            keyword=ModuleKeyword(
                locate=self.node_locate(keyword_leaf),
                macromodule=keyword_text == b"macromodule",
            ),
            name=self.identifier(name_leaf),
        )

        direct = [*node.children, *(c for header in headers for c in header.children)]
        if any("nonansi" in header.type for header in headers):
            nonansi = True
        elif any("_ansi_" in header.type for header in headers):
            nonansi = False
        else:
            nonansi = _find_first(node, {"list_of_ports"}) is not None

        extern = next((child for child in direct if child.type == "extern"), None)
        if extern is not None:
            ansi = not nonansi
            return ModuleDeclarationExtern(
                extern=self.node_locate(extern), header=header, ansi=ansi
            )

        endmodule = next(
            (child for child in node.children if child.type == "endmodule"), None
        )
        endmodule_locate = self.node_locate(endmodule or _last_leaf(node))
        if any(child.type == ".*" for child in direct):
            return ModuleDeclarationWildcard(header=header, endmodule=endmodule_locate)

        label = self.end_label(node, endmodule)
        items = tuple(self.body_items(node, header_node))
        declaration = ModuleDeclarationNonansi if nonansi else ModuleDeclarationAnsi
        return declaration(
            header=header, items=items, endmodule=endmodule_locate, label=label
        )

    def description_fallback(self, node: Node) -> OpaqueDescription:
        return OpaqueDescription(
            kind=node.type,
            first=self.node_locate(_first_leaf(node)),
            last=self.node_locate(_last_leaf(node)),
        )

    def end_label(self, node: Node, endmodule: Node | None) -> Identifier | None:
        if endmodule is None:
            return None
        after = [child for child in node.children if child.start_byte >= endmodule.end_byte]
        if not after or after[0].type != ":":
            return None
        leaf = _identifier_leaf(next((c for c in after[1:] if c.is_named), None))
        return self.identifier(leaf) if leaf is not None else None

    def body_items(self, node: Node, header_node: Node | None) -> Iterator[BodyItem]:
        started = False
        for child in node.children:
            if child.type == "endmodule":
                break
            if not started:
                if header_node is not None:
                    started = child == header_node
                else:
                    started = child.type == ";"
                continue
            if child.is_named:
                yield from self.body_item(child)

    def body_item(self, node: Node) -> Iterator[BodyItem]:
        if node.type == "comment" or _is_directive(node):
            return
        if node.type in _WRAPPER_TYPES and node.named_children:
            for child in node.named_children:
                yield from self.body_item(child)
            return
        if node.type == _ASSERTION_ITEM:
            checker = next(
                (c for c in node.named_children if c.type == "checker_instantiation"),
                None,
            )
            if checker is not None:
                yield from self.body_item(checker)
                return
        if node.type in _INSTANTIATION_TYPES:
            instantiation = self.instantiation(node)
            if instantiation is not None:
                yield instantiation
                return
        yield OpaqueItem(
            kind=_BODY_KINDS.get(node.type, ConstructKind.MODULE_ITEM),
            first=self.node_locate(_first_leaf(node)),
            last=self.node_locate(_last_leaf(node)),
        )

    def instantiation(self, node: Node) -> ModuleInstantiation | None:
        named = [child for child in node.named_children if child.type != "attribute_instance"]
        if not named:
            return None
        type_leaf = _identifier_leaf(named[0])
        # Pairs of (node holding the instance name, node holding its parentheses).
        owners = [(child, child) for child in named if child.type == "hierarchical_instance"]
        if not owners:
            # Checker-shaped: one ``name_of_instance`` with the port list
            # parentheses directly on the instantiation node.
            owners = [
                (child, node) for child in named[1:] if child.type == "name_of_instance"
            ][:1]
        instances: list[HierarchicalInstance] = []
        for scope, parens in owners:
            name_node = _find_first(scope, {"instance_identifier", "name_of_instance"})
            name_leaf = _identifier_leaf(name_node or scope)
            if name_leaf is None:
                return None
            close = next(
                (c for c in reversed(parens.children) if c.type == ")"), _last_leaf(parens)
            )
            instances.append(
                HierarchicalInstance(
                    name=self.identifier(name_leaf), close=self.node_locate(close)
                )
            )
        if type_leaf is None or not instances:
            return None
        terminator = next(
            (c for c in reversed(node.children) if c.type == ";"), _last_leaf(node)
        )
        return ModuleInstantiation(
            module_name=self.identifier(type_leaf),
            instances=tuple(instances),
            terminator=self.node_locate(terminator),
        )

    def identifier(self, leaf: Node) -> Identifier:
        return Identifier(
            locate=self.node_locate(leaf),
            escaped=leaf.type == "escaped_identifier",
        )


def _leaves(node: Node) -> Iterator[Node]:
    if node.child_count == 0:
        yield node
        return
    for child in node.children:
        yield from _leaves(child)


def _first_leaf(node: Node) -> Node:
    while node.child_count > 0:
        node = node.children[0]
    return node


def _last_leaf(node: Node) -> Node:
    while node.child_count > 0:
        node = node.children[-1]
    return node


def _find_first(node: Node | None, types: set[str] | frozenset[str]) -> Node | None:
    """Depth-first search for the first node whose type is in ``types``."""
    if node is None:
        return None
    if node.type in types:
        return node
    for child in node.children:
        found = _find_first(child, types)
        if found is not None:
            return found
    return None


def _find_first_in(nodes: list[Node], types: set[str] | frozenset[str]) -> Node | None:
    for node in nodes:
        found = _find_first(node, types)
        if found is not None:
            return found
    return None


def _is_directive(node: Node) -> bool:
    return node.type.endswith("compiler_directive") or node.type in _DIRECTIVE_TYPES


def _identifier_leaf(node: Node | None) -> Node | None:
    if node is None:
        return None
    found = _find_first(node, _IDENTIFIER_TYPES)
    if found is not None:
        return found
    return node if node.child_count == 0 and node.is_named else None


def _first_identifier_after(node: Node, offset: int) -> Node | None:
    for leaf in _leaves(node):
        if leaf.start_byte >= offset and leaf.type in _IDENTIFIER_TYPES:
            return leaf
    return None


def _token_kind(leaf: Node) -> TokenKind:
    if leaf.type == "comment":
        return TokenKind.COMMENT
    if leaf.type in _IDENTIFIER_TYPES:
        return TokenKind.IDENTIFIER
    if not leaf.is_named and leaf.type.replace("_", "").isalpha():
        return TokenKind.KEYWORD
    return TokenKind.SYMBOL


def build_syntax_tree(source: bytes, root: Node) -> SyntaxTree:
    """Convert a tree-sitter tree rooted at ``root`` into a ``SyntaxTree``."""
    converter = _Converter(source)
    descriptions = tuple(
        converter.description(child)
        for child in root.named_children
        if child.type != "comment" and not _is_directive(child)
    )
    return SyntaxTree(
        source=source,
        tokens=converter.tokens(root),
        source_text=SourceText(descriptions=descriptions),
    )


def parse_verilog(source: bytes) -> SyntaxTree:
    """Parse SystemVerilog source bytes into a ``SyntaxTree``."""
    parser = _get_parser()
    tree = parser.parse(source)
    return build_syntax_tree(source, tree.root_node)


def parse_verilog_file(file_path: Path) -> SyntaxTree:
    """Parse a SystemVerilog file. ``OSError`` propagates to the caller."""
    return parse_verilog(file_path.read_bytes())


__all__ = ["build_syntax_tree", "parse_verilog", "parse_verilog_file"]
