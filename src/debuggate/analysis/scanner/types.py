from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from debuggate.spec import SourceLocation

from .context import ContextKind


class TypeKind(str, Enum):
    INSTANCE = "instance"  # value whose static type is a declared container
    TYPE_LITERAL = "type"  # a type name used as a receiver: `Type.member`
    EXTERNAL = "external"  # declared outside the analyzed units (int, String, ...)
    UNKNOWN = "unknown"  # named type that could not be resolved
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class StaticType:
    kind: TypeKind
    name: str = "dynamic"
    container_id: Optional[int] = None


DYNAMIC = StaticType(TypeKind.DYNAMIC)
FUNCTION = StaticType(TypeKind.EXTERNAL, "Function")
BOOL = StaticType(TypeKind.EXTERNAL, "bool")


class AccessForm(str, Enum):
    READ = "read"
    WRITE = "write"
    CALL = "call"
    OPERATOR = "operator"


_FORM_VERBS = {
    AccessForm.READ: "is read",
    AccessForm.WRITE: "is written",
    AccessForm.CALL: "is called or torn off",
    AccessForm.OPERATOR: "is invoked as an operator",
}


@dataclass(frozen=True)
class ReferenceSite:
    location: SourceLocation
    symbol_id: int
    form: AccessForm
    compound: bool = False
    cascade: bool = False
    null_aware: bool = False
    contexts: Tuple[ContextKind, ...] = ()

    @property
    def is_gated(self) -> bool:
        return ContextKind.ASSERT_GATED in self.contexts

    def describe(self) -> str:
        parts = [_FORM_VERBS[self.form]]
        if self.compound:
            parts.append("by a compound assignment")
        if self.cascade:
            parts.append("in a cascade")
        if self.null_aware:
            parts.append("through a null-aware access")
        return " ".join(parts)
