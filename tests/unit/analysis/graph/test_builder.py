import networkx as nx

from debuggate.analysis.graph import (
    InheritanceGraphBuilder,
    detect_cycles,
    topological_order,
)
from debuggate.index import DeclarationIndex, index_unit
from debuggate.spec import AnnotationMarker
from debuggate.test_utils import unit_from_yaml


def _index(source: str) -> DeclarationIndex:
    unit = unit_from_yaml(source)
    return DeclarationIndex.build([index_unit(unit, AnnotationMarker(["debugOnly"]))])


def _names(index, ids):
    return [index.container(i).name for i in ids]


def test_build_inheritance_graph_edges_point_to_subtypes():
    # Arrange
    index = _index(
        """
        declarations:
          - {kind: class, name: Base}
          - {kind: mixin, name: Mix}
          - {kind: class, name: Api}
          - {kind: class, name: Impl, extends: Base, with: Mix, implements: Api}
        """
    )

    # Act
    graph = InheritanceGraphBuilder().build(index)

    # Assert
    impl = index.find_container("Impl").id
    assert isinstance(graph, nx.DiGraph)
    assert graph.edges[index.find_container("Base").id, impl]["relation"] == "extends"
    assert graph.edges[index.find_container("Mix").id, impl]["relation"] == "with"
    assert graph.edges[index.find_container("Api").id, impl]["relation"] == "implements"
    assert _names(index, topological_order(graph))[-1] == "Impl"


def test_topological_order_is_deterministic():
    index = _index(
        """
        declarations:
          - {kind: class, name: Zed, extends: Alpha}
          - {kind: class, name: Beta}
          - {kind: class, name: Alpha}
        """
    )

    order = _names(index, topological_order(InheritanceGraphBuilder().build(index)))

    assert order == ["Alpha", "Beta", "Zed"]


def test_detect_cycles_rotates_to_smallest_name():
    index = _index(
        """
        declarations:
          - {kind: class, name: B, extends: C}
          - {kind: class, name: C, extends: A}
          - {kind: class, name: A, extends: B}
          - {kind: class, name: Self, extends: Self}
          - {kind: class, name: Free}
        """
    )

    cycles = detect_cycles(InheritanceGraphBuilder().build(index))

    # Edges point supertype -> subtype, so the cycle runs A -> C -> B.
    assert [_names(index, c) for c in cycles] == [["A", "C", "B"], ["Self"]]
