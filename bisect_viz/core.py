"""
Core data structures for bisection visualization.

Graph snapshots come in, bisection results go out. Everything here is
serializable to JSON and free of rendering dependencies.
"""

from typing import Dict, List, Tuple, Optional, Any, Iterable
from dataclasses import dataclass, field
import json
import logging

import numpy as np

from .errors import InvalidGraphInput


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeSpec:
    id: str
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label}


@dataclass(frozen=True)
class EdgeSpec:
    id: str
    source: str
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "from": self.source, "to": self.target}


@dataclass(frozen=True)
class GraphSnapshot:
    """
    Immutable picture of the user's graph for one algorithm run.

    Node and edge order is significant: the seed bisection assigns node i to
    partition i % 2.
    """

    nodes: Tuple[NodeSpec, ...] = ()
    edges: Tuple[EdgeSpec, ...] = ()

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GraphSnapshot":
        """
        Build a snapshot from `{"nodes": [...], "edges": [...]}`.

        Nodes may be given as objects with `id`/`label` or as bare ids. Edges
        may be objects with `from`/`to` (and optional `id`) or 2-item lists.
        Missing labels default to the id, missing edge ids to `e<index>`.
        """
        if not isinstance(d, dict):
            raise InvalidGraphInput("Graph JSON must be an object with 'nodes' and 'edges'")

        raw_nodes = d.get("nodes")
        raw_edges = d.get("edges")
        raw_nodes = [] if raw_nodes is None else raw_nodes
        raw_edges = [] if raw_edges is None else raw_edges
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise InvalidGraphInput("'nodes' and 'edges' must be lists")

        nodes = []
        for raw in raw_nodes:
            if isinstance(raw, dict):
                if "id" not in raw:
                    raise InvalidGraphInput(f"Node without id: {raw}")
                node_id = str(raw["id"])
                label = raw.get("label")
                nodes.append(NodeSpec(node_id, str(label) if label is not None else node_id))
            else:
                nodes.append(NodeSpec(str(raw), str(raw)))

        edges = []
        for i, raw in enumerate(raw_edges):
            if isinstance(raw, dict):
                try:
                    source, target = raw["from"], raw["to"]
                except KeyError:
                    raise InvalidGraphInput(f"Edge needs 'from' and 'to': {raw}")
                edge_id = str(raw.get("id", f"e{i}"))
            elif isinstance(raw, (list, tuple)) and len(raw) == 2:
                source, target = raw
                edge_id = f"e{i}"
            else:
                raise InvalidGraphInput(f"Unrecognized edge: {raw}")
            edges.append(EdgeSpec(edge_id, str(source), str(target)))

        return cls(nodes=tuple(nodes), edges=tuple(edges))

    @classmethod
    def from_pairs(
        cls,
        node_ids: Iterable[str],
        pairs: Iterable[Tuple[str, str]],
    ) -> "GraphSnapshot":
        """Convenience constructor: labels equal ids, edges numbered e0, e1, ..."""
        nodes = tuple(NodeSpec(str(n), str(n)) for n in node_ids)
        edges = tuple(EdgeSpec(f"e{i}", str(a), str(b)) for i, (a, b) in enumerate(pairs))
        return cls(nodes=nodes, edges=edges)


@dataclass
class KLNode:
    """
    Working record for one node during a Kernighan-Lin run.

    `cost_row` is a row view into the run's symmetric cost matrix.
    `edge_id_row[j]` holds the id of the edge to node j, or None.
    """

    index: int
    id: str
    label: str
    d_value: int
    cost_row: np.ndarray
    edge_id_row: List[Optional[str]]
    partition: int
    locked: bool = False

    def annotated_label(self) -> str:
        if self.locked:
            return self.label
        return f"{self.label} (dValue = {self.d_value})"


@dataclass(frozen=True)
class ExchangePair:
    """One committed swap and the gain it contributed."""
    a: int
    b: int
    gain: int


@dataclass
class BisectionResult:
    """
    Outcome of one bisection run.

    Attributes:
        partition: Node id -> 0 or 1
        cut_size: Number of edges whose endpoints differ in partition
        steps: Ordered animation steps narrating the run
        exchange_pairs: Committed swaps in commit order (indices into snapshot)
        cumulative_gains: Running sum of exchange gains
        best_prefix: Index k of the kept swap prefix, -1 if none was kept
    """

    partition: Dict[str, int] = field(default_factory=dict)
    cut_size: int = 0
    steps: List[Any] = field(default_factory=list)
    exchange_pairs: List[ExchangePair] = field(default_factory=list)
    cumulative_gains: List[int] = field(default_factory=list)
    best_prefix: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "partition": dict(self.partition),
            "cutSize": self.cut_size,
            "exchangePairs": [
                {"a": p.a, "b": p.b, "gain": p.gain} for p in self.exchange_pairs
            ],
            "cumulativeGains": list(self.cumulative_gains),
            "bestPrefix": self.best_prefix,
            "steps": len(self.steps),
        }


def count_cut_edges(edges: Iterable[Tuple[str, str]], partition: Dict[str, int]) -> int:
    """Count edges whose endpoints sit in different partitions."""
    return sum(1 for a, b in edges if partition[a] != partition[b])


def clean_edges(snapshot: GraphSnapshot) -> List[EdgeSpec]:
    """
    Validate a snapshot and return its usable edges.

    Duplicate node ids and edges to unknown nodes are errors. Self-loops and
    repeated edges (in either direction) are dropped with a warning.
    """
    seen_nodes = set()
    for node in snapshot.nodes:
        if node.id in seen_nodes:
            raise InvalidGraphInput(f"Duplicate node id: {node.id}")
        seen_nodes.add(node.id)

    kept = []
    seen_pairs = set()
    for edge in snapshot.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in seen_nodes:
                raise InvalidGraphInput(f"Edge {edge.id} references unknown node {endpoint}")
        if edge.source == edge.target:
            logger.warning("Ignoring self-loop %s on node %s", edge.id, edge.source)
            continue
        key = frozenset((edge.source, edge.target))
        if key in seen_pairs:
            logger.warning("Ignoring duplicate edge %s (%s-%s)", edge.id, edge.source, edge.target)
            continue
        seen_pairs.add(key)
        kept.append(edge)
    return kept


def snapshot_to_json(snapshot: GraphSnapshot) -> str:
    return json.dumps(snapshot.to_dict(), indent=2)


def snapshot_from_json(json_str: str) -> GraphSnapshot:
    """Deserialize a graph snapshot from a JSON string."""
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise InvalidGraphInput(f"Invalid graph JSON: {e}") from e
    return GraphSnapshot.from_dict(data)


def random_snapshot(
    num_nodes: int = 10,
    edge_prob: float = 0.3,
    rng_seed: Optional[int] = 42,
) -> GraphSnapshot:
    """
    Seeded Erdos-Renyi graph for demos.

    Node ids are "0".."n-1" with labels "N0".."Nn-1".
    """
    rng = np.random.default_rng(rng_seed)
    nodes = tuple(NodeSpec(str(i), f"N{i}") for i in range(num_nodes))
    edges = []
    for i in range(num_nodes):
        for j in range(i + 1, num_nodes):
            if rng.random() < edge_prob:
                edges.append(EdgeSpec(f"e{len(edges)}", str(i), str(j)))
    return GraphSnapshot(nodes=nodes, edges=tuple(edges))
