from typing import Hashable, List
import networkx as nx


def _name(graph: nx.DiGraph, node: Hashable) -> str:
    return graph.nodes[node].get("name", str(node))


def detect_cycles(graph: nx.DiGraph) -> List[List[Hashable]]:
    """Every elementary cycle, rotated to start at its smallest name and sorted."""
    cycles = []
    for cycle in nx.simple_cycles(graph):
        start = min(range(len(cycle)), key=lambda i: _name(graph, cycle[i]))
        cycles.append(cycle[start:] + cycle[:start])
    return sorted(cycles, key=lambda c: [_name(graph, n) for n in c])


def topological_order(graph: nx.DiGraph) -> List[Hashable]:
    """Deterministic topological order; ties are broken by node name."""
    return list(
        nx.lexicographical_topological_sort(graph, key=lambda n: _name(graph, n))
    )
