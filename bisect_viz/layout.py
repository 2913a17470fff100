"""
Layout algorithms for node positioning.

Two layouts:
- semicircle slots for a bisection (left arc for partition 0, right arc for
  partition 1), used as animation targets;
- a seeded force-directed scatter for the initial, pre-animation picture.

All functions are pure - no side effects, deterministic given same input.
"""

from typing import Dict, Hashable, List, Optional, Sequence, Tuple
import math

import numpy as np


CENTER_X = 0.0
CENTER_Y = 0.0
BASE_PARTITION_DISTANCE = 800.0
BASE_CIRCLE_RADIUS = 300.0
START_ANGLE = math.pi / 2


def nodes_in_partition(partition: int, total_nodes: int) -> int:
    """Seed partition sizes: ceil(n/2) on side 0, floor(n/2) on side 1."""
    if partition == 0:
        return (total_nodes + 1) // 2
    return total_nodes // 2


def _slot_angle(rank: int, partition: int, total_nodes: int) -> float:
    slots = nodes_in_partition(partition, total_nodes)
    if slots <= 1:
        # A lone node sits at the top of its arc
        return START_ANGLE
    sweep = math.pi * rank / (slots - 1)
    return START_ANGLE + sweep if partition == 0 else START_ANGLE - sweep


def _scale(total_nodes: int) -> float:
    return total_nodes / 10.0


def calculate_x(rank: int, partition: int, total_nodes: int) -> float:
    """
    X coordinate of slot `rank` on the arc of `partition`.

    Partition 0 sweeps the left semicircle (pi/2 to 3pi/2), partition 1 the
    right one (pi/2 down to -pi/2). Radius and arc separation grow linearly
    with the total node count.
    """
    angle = _slot_angle(rank, partition, total_nodes)
    scale = _scale(total_nodes)
    radius = BASE_CIRCLE_RADIUS * scale
    distance = BASE_PARTITION_DISTANCE * scale
    offset = -distance / 2 if partition == 0 else distance / 2
    return CENTER_X + offset + radius * math.cos(angle)


def calculate_y(rank: int, partition: int, total_nodes: int) -> float:
    """Y coordinate of slot `rank` on the arc of `partition`."""
    angle = _slot_angle(rank, partition, total_nodes)
    radius = BASE_CIRCLE_RADIUS * _scale(total_nodes)
    return CENTER_Y + radius * math.sin(angle)


def partition_position(rank: int, partition: int, total_nodes: int) -> Tuple[float, float]:
    return (
        calculate_x(rank, partition, total_nodes),
        calculate_y(rank, partition, total_nodes),
    )


def scatter_layout(
    node_ids: Sequence[Hashable],
    edges: Sequence[Tuple[Hashable, Hashable]],
    iterations: int = 60,
    spread: float = 400.0,
    temperature: float = 0.1,
    rng_seed: Optional[int] = None,
) -> Dict[Hashable, Tuple[float, float]]:
    """
    Seeded Fruchterman-Reingold layout.

    Works in the unit square [-1, 1]^2 and scales the result by `spread` so it
    lives in the same coordinate system as the semicircle slots.

    Args:
        node_ids: Node identifiers, in snapshot order
        edges: (source, target) pairs; unknown endpoints are ignored
        iterations: Number of relaxation rounds
        spread: Output half-width in canvas units
        temperature: Initial maximum displacement per round
        rng_seed: Random seed for reproducibility

    Returns:
        Dictionary mapping node id to (x, y)
    """
    n = len(node_ids)
    if n == 0:
        return {}

    rng = np.random.default_rng(rng_seed)
    index = {node: i for i, node in enumerate(node_ids)}
    pos = rng.random((n, 2)) * 2 - 1

    adjacency = np.zeros((n, n), dtype=bool)
    for src, tgt in edges:
        if src in index and tgt in index and src != tgt:
            adjacency[index[src], index[tgt]] = True
            adjacency[index[tgt], index[src]] = True

    k = math.sqrt(4.0 / n)
    temp = temperature
    for _ in range(iterations):
        delta = pos[:, None, :] - pos[None, :, :]
        dist = np.linalg.norm(delta, axis=-1)
        np.fill_diagonal(dist, 1.0)
        dist = np.maximum(dist, 1e-3)

        # Repulsion k^2/d between all pairs, attraction d^2/k along edges
        magnitude = (k * k) / dist - np.where(adjacency, dist * dist / k, 0.0)
        np.fill_diagonal(magnitude, 0.0)
        disp = np.sum(delta / dist[..., None] * magnitude[..., None], axis=1)

        length = np.linalg.norm(disp, axis=1)
        step = np.minimum(length, temp)
        moving = length > 0
        pos[moving] += disp[moving] / length[moving, None] * step[moving, None]
        pos = np.clip(pos, -1, 1)
        temp *= 0.95

    return {node_ids[i]: (float(pos[i, 0] * spread), float(pos[i, 1] * spread)) for i in range(n)}


def semicircle_layout(partition: Dict[Hashable, int], order: List[Hashable]) -> Dict[Hashable, Tuple[float, float]]:
    """
    Place every node of a finished bisection on its arc.

    Nodes are ranked within their side in `order` order. Useful to draw a
    final result without replaying the animation.
    """
    total = len(order)
    ranks = [0, 0]
    out = {}
    for node in order:
        side = partition[node]
        out[node] = partition_position(ranks[side], side, total)
        ranks[side] += 1
    return out
