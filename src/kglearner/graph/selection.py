"""Selection controller - node ids armed for batch expansion."""

from kglearner.models import GraphNode, KnowledgeGraph


class SelectionController:
    """Tracks a set of selected node ids; pure state, no side effects.

    Ids are only ever added when they exist in the graph passed alongside,
    and `list` filters against the current graph so a replaced graph never
    yields stale nodes.
    """

    def __init__(self) -> None:
        self._ids: set[str] = set()

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._ids

    def toggle(self, node_id: str, graph: KnowledgeGraph | None) -> bool:
        """Add if absent, remove if present. Returns the new selected state.

        Unknown ids (or no graph) leave the selection unchanged.
        """
        if graph is None or not graph.has_node(node_id):
            return node_id in self._ids
        if node_id in self._ids:
            self._ids.discard(node_id)
            return False
        self._ids.add(node_id)
        return True

    def clear(self) -> None:
        self._ids.clear()

    def is_selected(self, node_id: str) -> bool:
        return node_id in self._ids

    def list(self, graph: KnowledgeGraph | None) -> list[GraphNode]:
        """Selected nodes in graph order, ignoring ids the graph no longer has."""
        if graph is None:
            return []
        return [node for node in graph.nodes if node.id in self._ids]

    def revalidate(self, graph: KnowledgeGraph | None) -> set[str]:
        """Drop ids absent from `graph`; returns the dropped ids."""
        valid = graph.node_ids() if graph is not None else set()
        dropped = self._ids - valid
        self._ids &= valid
        return dropped
