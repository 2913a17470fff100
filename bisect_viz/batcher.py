"""
Per-tick coalescing of visual field writes.

Several animation steps can be active in the same frame and touch the same
node (a swap moving it while a highlight recolors it). Steps write into an
UpdateBatcher instead of the canvas; at the end of the tick the batcher hands
the canvas one merged update per entity.
"""

from typing import Any, Dict, Tuple


class UpdateBatcher:
    """
    Collects node and edge field writes for one tick.

    Later writes to the same (id, field) overwrite earlier ones. A value of
    None is kept as-is and means "back to the canvas default".
    """

    def __init__(self):
        self._nodes: Dict[str, Dict[str, Any]] = {}
        self._edges: Dict[str, Dict[str, Any]] = {}

    def set_node(self, node_id: str, **fields: Any):
        self._nodes.setdefault(node_id, {}).update(fields)

    def set_edge(self, edge_id: str, **fields: Any):
        self._edges.setdefault(edge_id, {}).update(fields)

    def node_fields(self, node_id: str) -> Dict[str, Any]:
        """Pending fields for a node (copy)."""
        return dict(self._nodes.get(node_id, {}))

    def edge_fields(self, edge_id: str) -> Dict[str, Any]:
        return dict(self._edges.get(edge_id, {}))

    @property
    def pending(self) -> Tuple[int, int]:
        """(touched nodes, touched edges) since the last flush."""
        return len(self._nodes), len(self._edges)

    def flush(self, sink) -> int:
        """
        Send one update per touched entity to `sink`, then clear.

        Entities are flushed in first-touch order, nodes before edges.

        Returns:
            Number of updates issued
        """
        nodes, edges = self._nodes, self._edges
        self._nodes, self._edges = {}, {}
        for node_id, fields in nodes.items():
            sink.apply_node_update(node_id, fields)
        for edge_id, fields in edges.items():
            sink.apply_edge_update(edge_id, fields)
        return len(nodes) + len(edges)

    def clear(self):
        self._nodes.clear()
        self._edges.clear()
