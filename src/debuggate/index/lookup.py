from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Set

from .indexer import DeclarationIndex, base_type_name
from .types import ContainerRecord


@dataclass(frozen=True)
class LookupResult:
    symbol_id: Optional[int] = None
    # Set when the walk reached a container whose unit failed to index.
    failed_container: Optional[ContainerRecord] = None

    @property
    def found(self) -> bool:
        return self.symbol_id is not None


NOT_FOUND = LookupResult()


class MemberLookup:
    """Read-only member resolution over a completed DeclarationIndex."""

    def __init__(self, index: DeclarationIndex, failed_units: AbstractSet[str]):
        self.index = index
        self.failed_units = failed_units

    def is_failed(self, container: ContainerRecord) -> bool:
        return container.unit in self.failed_units

    def ancestors(self, container_id: int) -> List[int]:
        """The container and all its supertypes, in member lookup order."""
        ordered: List[int] = []
        seen: Set[int] = set()

        def walk(cid: int) -> None:
            if cid in seen:
                return
            seen.add(cid)
            ordered.append(cid)
            for sup in self.index.container(cid).supertypes():
                walk(sup)

        walk(container_id)
        return ordered

    def instance_member(self, container_id: int, key: str) -> LookupResult:
        """Resolves an instance member declared on or inherited by the container."""
        for cid in self.ancestors(container_id):
            container = self.index.container(cid)
            if self.is_failed(container):
                return LookupResult(failed_container=container)
            symbol_id = container.members.get(key)
            if symbol_id is not None:
                return LookupResult(symbol_id=symbol_id)
        return NOT_FOUND

    def static_member(self, container_id: int, key: str) -> LookupResult:
        container = self.index.container(container_id)
        if self.is_failed(container):
            return LookupResult(failed_container=container)
        symbol_id = container.static_members.get(key)
        if symbol_id is None:
            return NOT_FOUND
        return LookupResult(symbol_id=symbol_id)

    def _extension_member(self, extension_ids: List[int], key: str) -> LookupResult:
        for ext_id in sorted(extension_ids):
            extension = self.index.container(ext_id)
            symbol_id = extension.members.get(key)
            if symbol_id is None:
                continue
            if self.is_failed(extension):
                return LookupResult(failed_container=extension)
            return LookupResult(symbol_id=symbol_id)
        return NOT_FOUND

    def extension_member(self, container_id: int, key: str) -> LookupResult:
        """Extension members applicable to the container or any of its supertypes."""
        for cid in self.ancestors(container_id):
            result = self._extension_member(
                self.index.extensions_by_target.get(cid, []), key
            )
            if result.found or result.failed_container:
                return result
        return self.external_extension_member("Object", key)

    def external_extension_member(self, type_name: str, key: str) -> LookupResult:
        name = base_type_name(type_name)
        result = self._extension_member(
            self.index.extensions_by_external.get(name, []), key
        )
        if result.found or result.failed_container or name == "Object":
            return result
        return self._extension_member(
            self.index.extensions_by_external.get("Object", []), key
        )
