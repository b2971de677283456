"""Project-wide database of per-file indexes."""

from db.catalog import FileCatalog, FileId
from db.database import Database
from db.symbols import Declaration, GlobalSymbolTable

__all__ = [
    "Database",
    "Declaration",
    "FileCatalog",
    "FileId",
    "GlobalSymbolTable",
]
