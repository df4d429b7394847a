import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Set, Tuple

from debuggate.index import (
    ContainerRecord,
    DeclarationIndex,
    MemberLookup,
    SymbolKind,
    SymbolRecord,
)
from debuggate.needle import L
from debuggate.spec import ContainerKind
from debuggate.analysis.graph import (
    InheritanceGraphBuilder,
    detect_cycles,
    topological_order,
)
from debuggate.analysis.schema import Finding

log = logging.getLogger(__name__)

_STATIC_KINDS = {SymbolKind.STATIC_FIELD, SymbolKind.STATIC_METHOD, SymbolKind.ENUM_VALUE}


@dataclass(frozen=True)
class ResolvedIndex:
    """The declaration index plus the frozen result of propagation."""

    index: DeclarationIndex
    debug_only: FrozenSet[int]
    failed_units: FrozenSet[str]

    def is_debug_only(self, symbol_id: int) -> bool:
        return symbol_id in self.debug_only

    def lookup(self) -> MemberLookup:
        return MemberLookup(self.index, self.failed_units)


class PropagationResolver:
    def __init__(self, index: DeclarationIndex):
        self.index = index
        self.findings: List[Finding] = []

    def resolve(self) -> Tuple[ResolvedIndex, List[Finding]]:
        graph = InheritanceGraphBuilder().build(self.index)
        failed_units: Set[str] = set(self.index.failed_units)

        cyclic: Set[int] = set()
        for cycle in detect_cycles(graph):
            cyclic.update(cycle)
            names = [self.index.container(cid).name for cid in cycle]
            first = self.index.container(cycle[0])
            self.findings.append(
                Finding(
                    kind=L.finding.input_error.cycle,
                    location=first.location,
                    symbol=first.name,
                    context={"cycle": " -> ".join(names + [names[0]])},
                )
            )
            failed_units.update(self.index.container(cid).unit for cid in cycle)

        acyclic = graph.subgraph(n for n in graph.nodes if n not in cyclic)
        order = topological_order(acyclic) + sorted(
            cyclic, key=lambda cid: self.index.container(cid).name
        )

        lookup = MemberLookup(self.index, frozenset(failed_units))
        effective: Set[int] = set()

        for symbol in self.index.symbols:
            if symbol.container_id is None and symbol.explicitly_marked:
                effective.add(symbol.id)

        for container_id in order:
            container = self.index.container(container_id)
            check_overrides = (
                container_id not in cyclic
                and container.unit not in failed_units
                and container.kind != ContainerKind.EXTENSION
            )
            for symbol_id in container.declared_symbols():
                symbol = self.index.symbol(symbol_id)
                if self._own_status(container, symbol):
                    effective.add(symbol_id)
                if check_overrides and symbol.kind not in _STATIC_KINDS:
                    self._check_override(container, symbol, lookup, effective)

        log.debug(f"{len(effective)} symbol(s) are effectively debug-only")
        resolved = ResolvedIndex(
            index=self.index,
            debug_only=frozenset(effective),
            failed_units=frozenset(failed_units),
        )
        return resolved, self.findings

    def _own_status(self, container: ContainerRecord, symbol: SymbolRecord) -> bool:
        if symbol.explicitly_marked:
            return True
        if not container.explicitly_marked:
            return False
        # The container marker blankets declared instance members and the
        # synthesized enum accessors, but not ordinary static members.
        return symbol.kind not in _STATIC_KINDS or symbol.synthesized

    def _overridden(
        self, container: ContainerRecord, symbol: SymbolRecord, lookup: MemberLookup
    ) -> List[SymbolRecord]:
        """What each direct supertype resolves the member to, in lookup order."""
        found: Dict[int, SymbolRecord] = {}
        for sup in container.supertypes():
            for key in symbol.lookup_keys:
                result = lookup.instance_member(sup, key)
                if result.found:
                    found.setdefault(result.symbol_id, self.index.symbol(result.symbol_id))
                    break
        return list(found.values())

    def _check_override(
        self,
        container: ContainerRecord,
        symbol: SymbolRecord,
        lookup: MemberLookup,
        effective: Set[int],
    ) -> None:
        overridden = self._overridden(container, symbol, lookup)
        if not overridden:
            return

        debug_only = [o for o in overridden if o.id in effective]
        is_debug_only = symbol.id in effective

        if debug_only and not is_debug_only:
            kind = L.finding.unsafe_override.dropped
            overridden = debug_only
        elif is_debug_only and not debug_only:
            kind = L.finding.unsafe_override.introduced
        else:
            return

        self.findings.append(
            Finding(
                kind=kind,
                location=symbol.location,
                symbol=symbol.qualified_name,
                context={"overridden": overridden[0].qualified_name},
            )
        )
