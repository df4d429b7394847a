import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from debuggate.analysis.schema import Finding
from debuggate.needle import L
from debuggate.spec import (
    ContainerDecl,
    ContainerKind,
    FunctionDecl,
    MarkerPredicate,
    MemberDecl,
    MemberKind,
    SourceLocation,
    SourceUnit,
    VariableDecl,
)

from .operators import (
    OperatorArityError,
    UnknownOperatorError,
    declared_operator_key,
    operator_display,
)
from .types import TYPE_SYMBOL_KINDS, ContainerRecord, SymbolKind, SymbolRecord

log = logging.getLogger(__name__)

# Types that are never declared by analyzed units.
EXTERNAL_TYPES = frozenset(
    {
        "Object",
        "Null",
        "Never",
        "dynamic",
        "void",
        "bool",
        "num",
        "int",
        "double",
        "String",
        "Symbol",
        "Type",
        "Function",
        "Iterable",
        "List",
        "Set",
        "Map",
        "Future",
        "Stream",
        "Enum",
        "Record",
    }
)


def base_type_name(type_name: str) -> str:
    """`List<int>?` -> `List`."""
    name = type_name.strip()
    if name.endswith("?"):
        name = name[:-1]
    if "<" in name:
        name = name[: name.index("<")]
    return name.strip()


@dataclass
class SymbolDraft:
    name: str
    qualified_name: str
    kind: SymbolKind
    location: SourceLocation
    marked: bool
    keys: Tuple[str, ...]
    type_name: Optional[str] = None
    is_static: bool = False
    synthesized: bool = False


@dataclass
class ContainerDraft:
    decl: ContainerDecl
    location: SourceLocation
    marked: bool
    members: List[SymbolDraft] = field(default_factory=list)


@dataclass
class UnitTable:
    """Declarations of a single unit, indexed independently of every other unit."""

    unit: str
    containers: List[ContainerDraft] = field(default_factory=list)
    top_level: List[SymbolDraft] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.findings)


def _member_draft(
    container: ContainerDecl, member: MemberDecl, marked: bool, loc: SourceLocation
) -> SymbolDraft:
    name = member.name
    qualified = f"{container.name}.{name}"
    if member.kind == MemberKind.FIELD:
        kind = SymbolKind.STATIC_FIELD if member.is_static else SymbolKind.FIELD
        keys: Tuple[str, ...] = (name, f"{name}=")
    elif member.kind == MemberKind.GETTER:
        kind = SymbolKind.STATIC_FIELD if member.is_static else SymbolKind.GETTER
        keys = (name,)
    elif member.kind == MemberKind.SETTER:
        kind = SymbolKind.STATIC_FIELD if member.is_static else SymbolKind.SETTER
        keys = (f"{name}=",)
        qualified = f"{qualified}="
    elif member.kind == MemberKind.OPERATOR:
        key = declared_operator_key(name, len(member.params))
        kind = SymbolKind.OPERATOR
        keys = (key,)
        qualified = f"{container.name}.{operator_display(key)}"
    else:
        kind = SymbolKind.STATIC_METHOD if member.is_static else SymbolKind.METHOD
        keys = (name,)

    return SymbolDraft(
        name=name,
        qualified_name=qualified,
        kind=kind,
        location=loc,
        marked=marked,
        keys=keys,
        type_name=member.type,
        is_static=member.is_static,
    )


def index_unit(unit: SourceUnit, is_marked: MarkerPredicate) -> UnitTable:
    """Builds the declaration table of one unit. Safe to run in parallel."""
    table = UnitTable(unit=unit.path)
    root = SourceLocation(unit.path, 1, 0)

    for decl in unit.declarations:
        loc = decl.location or root
        if isinstance(decl, FunctionDecl):
            table.top_level.append(
                SymbolDraft(
                    name=decl.name,
                    qualified_name=decl.name,
                    kind=SymbolKind.TOP_LEVEL_FUNCTION,
                    location=loc,
                    marked=is_marked(decl),
                    keys=(decl.name,),
                    type_name=decl.type,
                )
            )
        elif isinstance(decl, VariableDecl):
            table.top_level.append(
                SymbolDraft(
                    name=decl.name,
                    qualified_name=decl.name,
                    kind=SymbolKind.TOP_LEVEL_VARIABLE,
                    location=loc,
                    marked=is_marked(decl),
                    keys=(decl.name, f"{decl.name}="),
                    type_name=decl.type,
                )
            )
        else:
            table.containers.append(_index_container(decl, loc, is_marked, table))

    return table


def _index_container(
    decl: ContainerDecl,
    loc: SourceLocation,
    is_marked: MarkerPredicate,
    table: UnitTable,
) -> ContainerDraft:
    draft = ContainerDraft(decl=decl, location=loc, marked=is_marked(decl))
    taken: Dict[Tuple[bool, str], str] = {}

    def add(member_draft: SymbolDraft) -> None:
        clashes = [k for k in member_draft.keys if (member_draft.is_static, k) in taken]
        if clashes:
            table.findings.append(
                Finding(
                    kind=L.finding.input_error.duplicate,
                    location=member_draft.location,
                    symbol=member_draft.qualified_name,
                )
            )
            return
        for k in member_draft.keys:
            taken[(member_draft.is_static, k)] = member_draft.qualified_name
        draft.members.append(member_draft)

    for member in decl.members:
        member_loc = member.location or loc
        try:
            add(_member_draft(decl, member, is_marked(member), member_loc))
        except OperatorArityError as e:
            table.findings.append(
                Finding(
                    kind=L.finding.input_error.operator_arity,
                    location=member_loc,
                    symbol=f"{decl.name}.operator {e.name}",
                    context={
                        "actual": e.actual,
                        "expected": " or ".join(str(n) for n in e.expected),
                    },
                )
            )
        except UnknownOperatorError as e:
            table.findings.append(
                Finding(
                    kind=L.finding.input_error.unknown_operator,
                    location=member_loc,
                    symbol=f"{decl.name}.operator {e.name}",
                )
            )

    if decl.kind == ContainerKind.ENUM:
        add(
            SymbolDraft(
                name="values",
                qualified_name=f"{decl.name}.values",
                kind=SymbolKind.STATIC_FIELD,
                location=loc,
                marked=False,
                keys=("values",),
                type_name="List",
                is_static=True,
                synthesized=True,
            )
        )
        for value in decl.enum_values:
            add(
                SymbolDraft(
                    name=value.name,
                    qualified_name=f"{decl.name}.{value.name}",
                    kind=SymbolKind.ENUM_VALUE,
                    location=value.location or loc,
                    marked=is_marked(value),
                    keys=(value.name,),
                    type_name=decl.name,
                    is_static=True,
                    synthesized=True,
                )
            )

    return draft


class DeclarationIndex:
    """
    Global arena of containers and symbols, addressed by integer ids.

    Built from per-unit tables after every unit has been indexed. Tables are
    merged in unit-path order, so ids do not depend on submission order.
    """

    def __init__(self, external_types: Iterable[str] = ()):
        self.external_types: Set[str] = set(EXTERNAL_TYPES) | set(external_types)
        self.symbols: List[SymbolRecord] = []
        self.containers: List[ContainerRecord] = []
        self.container_ids: Dict[str, int] = {}
        # name -> symbol id, for top-level functions and variables (with "x=" keys)
        self.top_level: Dict[str, int] = {}
        # target container id -> extension container ids
        self.extensions_by_target: Dict[int, List[int]] = {}
        # external target type name -> extension container ids
        self.extensions_by_external: Dict[str, List[int]] = {}
        self.failed_units: Set[str] = set()
        self.units: List[str] = []
        self.findings: List[Finding] = []

    @classmethod
    def build(
        cls, tables: Iterable[UnitTable], external_types: Iterable[str] = ()
    ) -> "DeclarationIndex":
        index = cls(external_types)
        ordered = sorted(tables, key=lambda t: t.unit)
        for table in ordered:
            index._add_table(table)
        for table in ordered:
            index._link_table(table)
        return index

    # --- Queries ---

    def container(self, container_id: int) -> ContainerRecord:
        return self.containers[container_id]

    def symbol(self, symbol_id: int) -> SymbolRecord:
        return self.symbols[symbol_id]

    def find_container(self, type_name: Optional[str]) -> Optional[ContainerRecord]:
        if not type_name:
            return None
        container_id = self.container_ids.get(base_type_name(type_name))
        if container_id is None:
            return None
        return self.containers[container_id]

    def is_external(self, type_name: str) -> bool:
        return base_type_name(type_name) in self.external_types

    def is_failed(self, unit: str) -> bool:
        return unit in self.failed_units

    # --- Construction ---

    def _new_symbol(
        self, draft: SymbolDraft, unit: str, container_id: Optional[int]
    ) -> SymbolRecord:
        record = SymbolRecord(
            id=len(self.symbols),
            qualified_name=draft.qualified_name,
            name=draft.name,
            kind=draft.kind,
            unit=unit,
            location=draft.location,
            explicitly_marked=draft.marked,
            container_id=container_id,
            type_name=draft.type_name,
            lookup_keys=draft.keys,
            synthesized=draft.synthesized,
        )
        self.symbols.append(record)
        return record

    def _duplicate(self, name: str, location: SourceLocation, unit: str) -> None:
        self.findings.append(
            Finding(kind=L.finding.input_error.duplicate, location=location, symbol=name)
        )
        self.failed_units.add(unit)

    def _add_table(self, table: UnitTable) -> None:
        self.units.append(table.unit)
        self.findings.extend(table.findings)
        if table.failed:
            self.failed_units.add(table.unit)

        for draft in table.top_level:
            if any(key in self.top_level for key in draft.keys) or (
                draft.name in self.container_ids
            ):
                self._duplicate(draft.qualified_name, draft.location, table.unit)
                continue
            record = self._new_symbol(draft, table.unit, None)
            for key in draft.keys:
                self.top_level[key] = record.id

        for container_draft in table.containers:
            decl = container_draft.decl
            if decl.name in self.container_ids or decl.name in self.top_level:
                self._duplicate(decl.name, container_draft.location, table.unit)
                continue

            container_id = len(self.containers)
            type_symbol = self._new_symbol(
                SymbolDraft(
                    name=decl.name,
                    qualified_name=decl.name,
                    kind=TYPE_SYMBOL_KINDS[decl.kind],
                    location=container_draft.location,
                    marked=container_draft.marked,
                    keys=(decl.name,),
                    type_name=decl.name,
                ),
                table.unit,
                None,
            )
            record = ContainerRecord(
                id=container_id,
                name=decl.name,
                kind=decl.kind,
                unit=table.unit,
                location=container_draft.location,
                explicitly_marked=container_draft.marked,
                symbol_id=type_symbol.id,
                extension_target=decl.extension_target,
            )
            self.containers.append(record)
            self.container_ids[decl.name] = container_id

            for member_draft in container_draft.members:
                member = self._new_symbol(member_draft, table.unit, container_id)
                target = (
                    record.static_members if member_draft.is_static else record.members
                )
                for key in member_draft.keys:
                    target[key] = member.id

    def _resolve_supertype(
        self, owner: ContainerRecord, type_name: str
    ) -> Optional[int]:
        container_id = self.container_ids.get(base_type_name(type_name))
        if container_id is not None:
            return container_id
        if self.is_external(type_name):
            return None
        self.findings.append(
            Finding(
                kind=L.finding.input_error.unknown_supertype,
                location=owner.location,
                symbol=owner.name,
                context={"supertype": type_name},
            )
        )
        self.failed_units.add(owner.unit)
        return None

    def _link_table(self, table: UnitTable) -> None:
        for container_draft in table.containers:
            decl = container_draft.decl
            container_id = self.container_ids.get(decl.name)
            if container_id is None:
                continue
            record = self.containers[container_id]
            if record.unit != table.unit:
                # Lost a duplicate-name race to another unit.
                continue

            if decl.superclass:
                record.base = self._resolve_supertype(record, decl.superclass)
            record.mixins = [
                cid
                for cid in (self._resolve_supertype(record, m) for m in decl.mixins)
                if cid is not None
            ]
            record.interfaces = [
                cid
                for cid in (self._resolve_supertype(record, i) for i in decl.interfaces)
                if cid is not None
            ]

            if record.kind == ContainerKind.EXTENSION and record.extension_target:
                target_id = self._resolve_supertype(record, record.extension_target)
                if target_id is not None:
                    self.extensions_by_target.setdefault(target_id, []).append(
                        container_id
                    )
                elif self.is_external(record.extension_target):
                    self.extensions_by_external.setdefault(
                        base_type_name(record.extension_target), []
                    ).append(container_id)

        log.debug(
            f"Linked {len(table.containers)} container(s) from {table.unit}"
        )
