from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from debuggate.spec import ContainerKind, SourceLocation


class SymbolKind(str, Enum):
    FIELD = "field"
    METHOD = "method"
    GETTER = "getter"
    SETTER = "setter"
    OPERATOR = "operator"
    STATIC_METHOD = "static-method"
    STATIC_FIELD = "static-field"
    TOP_LEVEL_FUNCTION = "top-level-function"
    TOP_LEVEL_VARIABLE = "top-level-variable"
    CLASS = "class"
    MIXIN = "mixin"
    EXTENSION = "extension"
    ENUM = "enum"
    ENUM_VALUE = "enum-value"

    @property
    def is_callable(self) -> bool:
        return self in (
            SymbolKind.METHOD,
            SymbolKind.OPERATOR,
            SymbolKind.STATIC_METHOD,
            SymbolKind.TOP_LEVEL_FUNCTION,
        )


TYPE_SYMBOL_KINDS = {
    ContainerKind.CLASS: SymbolKind.CLASS,
    ContainerKind.MIXIN: SymbolKind.MIXIN,
    ContainerKind.EXTENSION: SymbolKind.EXTENSION,
    ContainerKind.ENUM: SymbolKind.ENUM,
}


@dataclass(frozen=True)
class SymbolRecord:
    id: int
    qualified_name: str
    name: str
    kind: SymbolKind
    unit: str
    location: SourceLocation
    explicitly_marked: bool
    container_id: Optional[int] = None
    # Declared static type: field/variable type, or return type of callables.
    type_name: Optional[str] = None
    # Keys under which the symbol is found in its scope ("x" and "x=" for a field).
    lookup_keys: Tuple[str, ...] = ()
    # Synthesized enum accessors are blanketed by their enum's marker.
    synthesized: bool = False


@dataclass
class ContainerRecord:
    id: int
    name: str
    kind: ContainerKind
    unit: str
    location: SourceLocation
    explicitly_marked: bool
    symbol_id: int
    base: Optional[int] = None
    mixins: List[int] = field(default_factory=list)
    interfaces: List[int] = field(default_factory=list)
    extension_target: Optional[str] = None
    # lookup key -> symbol id, for members declared in this container only
    members: Dict[str, int] = field(default_factory=dict)
    static_members: Dict[str, int] = field(default_factory=dict)

    def supertypes(self) -> List[int]:
        """Direct supertypes in member lookup order: mixins last-first, base, interfaces."""
        ordered = list(reversed(self.mixins))
        if self.base is not None:
            ordered.append(self.base)
        ordered.extend(self.interfaces)
        return ordered

    def declared_symbols(self) -> List[int]:
        seen: Dict[int, None] = {}
        for symbol_id in list(self.members.values()) + list(
            self.static_members.values()
        ):
            seen.setdefault(symbol_id, None)
        return list(seen)
