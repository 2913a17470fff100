"""
Rendering-collaborator boundary.

GraphCanvas is what animation steps and the scheduler need from whatever
draws the graph: snapshots, positions, field updates, interaction options
and a "fit view" request. MemoryCanvas is a complete in-process
implementation that keeps all of that in dicts, so playback can run
headless and be rendered to images with `bisect_viz.render`.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .config import Palette
from .core import EdgeSpec, GraphSnapshot, NodeSpec


class GraphCanvas(Protocol):
    """Graph store + renderer, as seen by the animation core."""

    def get_node_snapshot(self) -> List[NodeSpec]:
        ...

    def get_edge_snapshot(self) -> List[EdgeSpec]:
        ...

    def get_position(self, node_id: str) -> Tuple[float, float]:
        ...

    def apply_node_update(self, node_id: str, fields: Dict[str, Any]):
        ...

    def apply_edge_update(self, edge_id: str, fields: Dict[str, Any]):
        ...

    def set_interaction_options(self, **options: Any):
        ...

    def fit_view(self):
        ...


NODE_FIELDS = ("x", "y", "label", "border", "background", "border_width")
EDGE_FIELDS = ("color", "width")


@dataclass
class NodeStyle:
    x: float = 0.0
    y: float = 0.0
    label: str = ""
    border: Optional[str] = None
    background: Optional[str] = None
    border_width: Optional[float] = None


@dataclass
class EdgeStyle:
    color: Optional[str] = None
    width: Optional[float] = None


@dataclass
class Viewport:
    """World-space rectangle the renderer should show."""
    min_x: float = -1.0
    min_y: float = -1.0
    max_x: float = 1.0
    max_y: float = 1.0


class MemoryCanvas:
    """
    In-memory GraphCanvas.

    Style fields set to None fall back to the palette defaults when read
    through `resolved_node` / `resolved_edge`. Every applied update is
    counted, which makes batching observable in tests.
    """

    def __init__(
        self,
        snapshot: GraphSnapshot,
        positions: Optional[Dict[str, Tuple[float, float]]] = None,
        palette: Optional[Palette] = None,
    ):
        self.snapshot = snapshot
        self.palette = palette or Palette()
        positions = positions or {}
        self.nodes: Dict[str, NodeStyle] = {}
        for spec in snapshot.nodes:
            x, y = positions.get(spec.id, (0.0, 0.0))
            self.nodes[spec.id] = NodeStyle(x=x, y=y, label=spec.label)
        self.edges: Dict[str, EdgeStyle] = {edge.id: EdgeStyle() for edge in snapshot.edges}
        self.interaction: Dict[str, Any] = {
            "physics": True,
            "drag_nodes": True,
            "drag_view": True,
            "zoom_view": True,
            "multiselect": True,
            "hover": True,
            "selectable": True,
        }
        self.viewport = Viewport()
        self.node_updates = 0
        self.edge_updates = 0
        self.fit_view()

    # GraphCanvas interface

    def get_node_snapshot(self) -> List[NodeSpec]:
        return list(self.snapshot.nodes)

    def get_edge_snapshot(self) -> List[EdgeSpec]:
        return list(self.snapshot.edges)

    def get_position(self, node_id: str) -> Tuple[float, float]:
        node = self.nodes[node_id]
        return (node.x, node.y)

    def apply_node_update(self, node_id: str, fields: Dict[str, Any]):
        node = self.nodes[node_id]
        for key, value in fields.items():
            if key not in NODE_FIELDS:
                raise KeyError(f"Unknown node field: {key}")
            setattr(node, key, value)
        self.node_updates += 1

    def apply_edge_update(self, edge_id: str, fields: Dict[str, Any]):
        edge = self.edges[edge_id]
        for key, value in fields.items():
            if key not in EDGE_FIELDS:
                raise KeyError(f"Unknown edge field: {key}")
            setattr(edge, key, value)
        self.edge_updates += 1

    def set_interaction_options(self, **options: Any):
        self.interaction.update(options)

    def fit_view(self, margin: float = 0.1):
        """Frame all nodes, with a relative margin."""
        if not self.nodes:
            self.viewport = Viewport()
            return
        xs = [node.x for node in self.nodes.values()]
        ys = [node.y for node in self.nodes.values()]
        width = max(max(xs) - min(xs), 1.0)
        height = max(max(ys) - min(ys), 1.0)
        self.viewport = Viewport(
            min_x=min(xs) - width * margin,
            min_y=min(ys) - height * margin,
            max_x=max(xs) + width * margin,
            max_y=max(ys) + height * margin,
        )

    # Read helpers for renderers

    def resolved_node(self, node_id: str) -> NodeStyle:
        node = self.nodes[node_id]
        return NodeStyle(
            x=node.x,
            y=node.y,
            label=node.label,
            border=node.border or self.palette.node_border,
            background=node.background or self.palette.node_background,
            border_width=node.border_width if node.border_width is not None else self.palette.node_border_width,
        )

    def resolved_edge(self, edge_id: str) -> EdgeStyle:
        edge = self.edges[edge_id]
        return EdgeStyle(
            color=edge.color or self.palette.edge_color,
            width=edge.width if edge.width is not None else self.palette.edge_width,
        )

    def positions(self) -> Dict[str, Tuple[float, float]]:
        return {node_id: (node.x, node.y) for node_id, node in self.nodes.items()}
