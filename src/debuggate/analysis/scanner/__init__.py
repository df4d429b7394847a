from .context import ContextKind, ContextStack
from .types import AccessForm, ReferenceSite, StaticType, TypeKind
from .references import ReferenceScanner, ScanResult, is_gate

__all__ = [
    "ContextKind",
    "ContextStack",
    "AccessForm",
    "ReferenceSite",
    "StaticType",
    "TypeKind",
    "ReferenceScanner",
    "ScanResult",
    "is_gate",
]
