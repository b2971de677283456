"""Index artifact records and writers."""

from artifacts.records import (
    DeclarationRecord,
    DefinitionRecord,
    ItemRecord,
    SpanRecord,
)
from artifacts.write import write_index_artifacts

__all__ = [
    "DeclarationRecord",
    "DefinitionRecord",
    "ItemRecord",
    "SpanRecord",
    "write_index_artifacts",
]
