import networkx as nx

from debuggate.index import DeclarationIndex


class InheritanceGraphBuilder:
    def build(self, index: DeclarationIndex) -> nx.DiGraph:
        """
        Builds the supertype graph. Edges point from a supertype (or applied
        mixin) to the container that uses it, so a topological order visits
        base types first.
        """
        graph = nx.DiGraph()

        for container in index.containers:
            graph.add_node(container.id, name=container.name)

        for container in index.containers:
            if container.base is not None:
                graph.add_edge(container.base, container.id, relation="extends")
            for mixin_id in container.mixins:
                graph.add_edge(mixin_id, container.id, relation="with")
            for interface_id in container.interfaces:
                if not graph.has_edge(interface_id, container.id):
                    graph.add_edge(interface_id, container.id, relation="implements")

        return graph
