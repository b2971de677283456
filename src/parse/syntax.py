"""Concrete syntax tree contract consumed by the semantic layer.

The tree is immutable. Every token carries its 1-based line number and its
absolute byte offset; whitespace is kept as tokens so newlines can be
recovered. Node kinds form a closed set of variants: anything the semantic
layer does not model in detail is carried as an opaque node tagged with a
``ConstructKind`` so callers can still classify it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from collections.abc import Iterator


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    SYMBOL = "symbol"
    NEWLINE = "newline"
    SPACE = "space"
    COMMENT = "comment"


class ConstructKind(str, Enum):
    """Body-level constructs that are not instantiations."""

    PORT_DECLARATION = "port_declaration"
    MODULE_ITEM = "module_item"
    GENERATE_REGION = "generate_region"
    GATE_INSTANTIATION = "gate_instantiation"
    UDP_INSTANTIATION = "udp_instantiation"
    PARAMETER_DECLARATION = "parameter_declaration"
    SPECPARAM_DECLARATION = "specparam_declaration"
    SPECIFY_BLOCK = "specify_block"
    PROGRAM_DECLARATION = "program_declaration"
    MODULE_DECLARATION = "module_declaration"
    INTERFACE_DECLARATION = "interface_declaration"
    TIMEUNITS_DECLARATION = "timeunits_declaration"


@dataclass(frozen=True)
class Locate:
    """Where a token sits in the source: absolute byte offset and 1-based line."""

    offset: int
    line: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    locate: Locate


@dataclass(frozen=True)
class Identifier:
    """A simple or escaped identifier token."""

    locate: Locate
    escaped: bool = False


@dataclass(frozen=True)
class ModuleKeyword:
    """``module`` or ``macromodule``."""

    locate: Locate
    macromodule: bool = False


@dataclass(frozen=True)
class ModuleHeader:
    keyword: ModuleKeyword
    name: Identifier


@dataclass(frozen=True)
class HierarchicalInstance:
    """``name [dims] ( connections )`` inside an instantiation."""

    name: Identifier
    close: Locate


@dataclass(frozen=True)
class ModuleInstantiation:
    """``type [#(params)] inst1 (...), inst2 (...);``."""

    module_name: Identifier
    instances: tuple[HierarchicalInstance, ...]
    terminator: Locate


@dataclass(frozen=True)
class OpaqueItem:
    """A body item classified by kind only."""

    kind: ConstructKind
    first: Locate
    last: Locate


BodyItem = Union[ModuleInstantiation, OpaqueItem]


@dataclass(frozen=True)
class ModuleDeclarationNonansi:
    """Ports listed in the header, declared in the body."""

    header: ModuleHeader
    items: tuple[BodyItem, ...]
    endmodule: Locate
    label: Identifier | None = None


@dataclass(frozen=True)
class ModuleDeclarationAnsi:
    """Ports fully declared in the header."""

    header: ModuleHeader
    items: tuple[BodyItem, ...]
    endmodule: Locate
    label: Identifier | None = None


@dataclass(frozen=True)
class ModuleDeclarationWildcard:
    """``module m (.*);``"""

    header: ModuleHeader
    endmodule: Locate


@dataclass(frozen=True)
class ModuleDeclarationExtern:
    """``extern module m ...;`` - a prototype with no body."""

    extern: Locate
    header: ModuleHeader
    ansi: bool


@dataclass(frozen=True)
class OpaqueDescription:
    """Any other top-level description (package, interface, primitive, ...)."""

    kind: str
    first: Locate
    last: Locate


ModuleDeclaration = Union[
    ModuleDeclarationNonansi,
    ModuleDeclarationAnsi,
    ModuleDeclarationWildcard,
    ModuleDeclarationExtern,
]
Description = Union[ModuleDeclaration, OpaqueDescription]


@dataclass(frozen=True)
class SourceText:
    descriptions: tuple[Description, ...]


Spanned = Union[Locate, Token, Identifier, ModuleKeyword]


def _locate_of(node: Spanned) -> Locate:
    if isinstance(node, Locate):
        return node
    return node.locate


@dataclass(frozen=True)
class SyntaxTree:
    """A parsed file: raw bytes, the full token stream and the root node."""

    source: bytes
    tokens: tuple[Token, ...]
    source_text: SourceText

    def get_str(self, node: Spanned) -> str:
        locate = _locate_of(node)
        return self.source[locate.offset : locate.end].decode("utf-8")

    def get_str_trim(self, *nodes: Spanned) -> str:
        """Return the trimmed source text spanned by all given nodes."""
        if not nodes:
            return ""
        locates = [_locate_of(node) for node in nodes]
        begin = min(locate.offset for locate in locates)
        end = max(locate.end for locate in locates)
        return self.source[begin:end].decode("utf-8").strip()

    def newlines(self) -> Iterator[Token]:
        for token in self.tokens:
            if token.kind is TokenKind.NEWLINE:
                yield token


__all__ = [
    "BodyItem",
    "ConstructKind",
    "Description",
    "HierarchicalInstance",
    "Identifier",
    "Locate",
    "ModuleDeclaration",
    "ModuleDeclarationAnsi",
    "ModuleDeclarationExtern",
    "ModuleDeclarationNonansi",
    "ModuleDeclarationWildcard",
    "ModuleHeader",
    "ModuleInstantiation",
    "ModuleKeyword",
    "OpaqueDescription",
    "OpaqueItem",
    "SourceText",
    "Spanned",
    "SyntaxTree",
    "Token",
    "TokenKind",
]
