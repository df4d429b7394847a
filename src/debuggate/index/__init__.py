from .types import SymbolKind, SymbolRecord, ContainerRecord
from .indexer import (
    DeclarationIndex,
    UnitTable,
    index_unit,
    base_type_name,
    EXTERNAL_TYPES,
)
from .lookup import MemberLookup, LookupResult
from . import operators

__all__ = [
    "SymbolKind",
    "SymbolRecord",
    "ContainerRecord",
    "DeclarationIndex",
    "UnitTable",
    "index_unit",
    "base_type_name",
    "EXTERNAL_TYPES",
    "MemberLookup",
    "LookupResult",
    "operators",
]
