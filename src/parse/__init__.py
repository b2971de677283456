"""Syntax tree contract for SystemVerilog sources.

The tree-sitter adapter lives in ``parse.treesitter_verilog``.
"""

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

__all__ = [
    "ConstructKind",
    "HierarchicalInstance",
    "Identifier",
    "Locate",
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
    "SyntaxTree",
    "Token",
    "TokenKind",
]
