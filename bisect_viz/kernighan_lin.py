"""
Kernighan-Lin bisection with a narrated animation script.

`run_kernighan_lin` computes a bisection of an unweighted, undirected graph
and, alongside it, the ordered list of AnimationSteps that replays every
decision: seed placement, each inspected swap candidate, committed swaps and
the final rollback of the unprofitable suffix.

The engine is pure. It never touches a canvas; the steps do that later,
when a StepScheduler plays them.
"""

from itertools import accumulate
from typing import Dict, List, Optional, Sequence, Tuple
import logging

import numpy as np

from .config import AnimationConfig, HighlightTiming, INSTANT
from .core import (
    BisectionResult,
    ExchangePair,
    GraphSnapshot,
    KLNode,
    clean_edges,
    count_cut_edges,
)
from .interpolation import time_factor_decay
from .layout import partition_position
from .steps import (
    AnimationStep,
    HighlightEdges,
    HighlightNodes,
    MoveNode,
    SetInteraction,
    SetLabels,
    StepAction,
    SwapPositions,
    Together,
    Wait,
)


logger = logging.getLogger(__name__)


PLAYBACK_INTERACTION = {
    "physics": False,
    "drag_nodes": False,
    "drag_view": True,
    "zoom_view": True,
    "multiselect": False,
    "hover": False,
    "selectable": False,
}

LOCKED_INTERACTION = dict(PLAYBACK_INTERACTION, drag_view=False, zoom_view=False)

SIDE_NAMES = ("A", "B")


class _Script:
    """Accumulates animation steps and knows the palette."""

    def __init__(self, config: AnimationConfig):
        self.config = config
        self.palette = config.palette
        self.steps: List[AnimationStep] = []

    def add(self, action: StepAction, description: str, delay: float = 0.0):
        self.steps.append(AnimationStep(action, description, delay))

    def set_last_delay(self, delay: float):
        if self.steps:
            self.steps[-1] = self.steps[-1].with_delay(delay)

    def nodes(
        self,
        node_ids: Sequence[str],
        colors: Tuple[str, str],
        width_multiplier: float,
        timing: HighlightTiming,
        persist: bool = False,
    ) -> HighlightNodes:
        border, background = colors
        return HighlightNodes(tuple(node_ids), border, background, width_multiplier, timing, persist)

    def candidate(self, node_ids: Sequence[str]) -> HighlightNodes:
        return self.nodes(
            node_ids,
            self.palette.candidate,
            self.config.node_highlight_width,
            self.config.candidate_timing,
            persist=True,
        )

    def reset(self, node_ids: Sequence[str]) -> HighlightNodes:
        return self.nodes(node_ids, self.palette.rejected, self.config.node_highlight_width, INSTANT)

    def labels(self, nodes: List[KLNode], annotated: bool = True) -> SetLabels:
        if annotated:
            return SetLabels({node.id: node.annotated_label() for node in nodes})
        return SetLabels({node.id: node.label for node in nodes})


def _build_nodes(snapshot: GraphSnapshot, edges) -> Tuple[List[KLNode], np.ndarray]:
    """Seed partition i % 2 and fill the cost matrix and d-values in O(n + m)."""
    n = len(snapshot.nodes)
    cost = np.zeros((n, n), dtype=np.int8)
    nodes = [
        KLNode(
            index=i,
            id=spec.id,
            label=spec.label,
            d_value=0,
            cost_row=cost[i],
            edge_id_row=[None] * n,
            partition=i % 2,
        )
        for i, spec in enumerate(snapshot.nodes)
    ]
    index_of = {node.id: node.index for node in nodes}

    for edge in edges:
        u, v = index_of[edge.source], index_of[edge.target]
        cost[u, v] = 1
        cost[v, u] = 1
        nodes[u].edge_id_row[v] = edge.id
        nodes[v].edge_id_row[u] = edge.id
        delta = 1 if nodes[u].partition != nodes[v].partition else -1
        nodes[u].d_value += delta
        nodes[v].d_value += delta

    return nodes, cost


def _narrate_edges(script: _Script, nodes: List[KLNode], node_a: KLNode, node_b: KLNode):
    """
    Color the edges that decide a candidate pair's gain.

    Green edges lead across the cut (they count for the swap), red ones stay
    inside a side (they count against it). The edge between the pair itself
    is left alone.
    """
    green: List[str] = []
    red: List[str] = []
    for j, other in enumerate(nodes):
        if j in (node_a.index, node_b.index):
            continue
        for node in (node_a, node_b):
            edge_id = node.edge_id_row[j]
            if edge_id is None:
                continue
            if other.partition == node.partition:
                red.append(edge_id)
            else:
                green.append(edge_id)

    config = script.config
    if green:
        script.add(
            HighlightEdges(tuple(green), script.palette.gain_edge, config.edge_highlight_width, config.edge_timing),
            "Highlight green edges",
        )
    if red:
        script.add(
            HighlightEdges(tuple(red), script.palette.loss_edge, config.edge_highlight_width, config.edge_timing),
            "Highlight red edges",
        )
    script.add(Wait(), "Guaranteed delay", config.inspect_delay)


def _search_pass(
    script: _Script,
    nodes: List[KLNode],
    free_a: List[int],
    free_b: List[int],
) -> Tuple[Optional[Tuple[int, int]], Optional[int]]:
    """
    Walk both sorted free lists looking for the best exchange of this pass.

    Both lists must already be sorted by descending d-value. The pointer on
    the side whose next d-value drops off less is advanced (A on ties). The
    walk stops once no later pair can beat the best gain.

    Returns:
        (best pair as node indices, its gain), or (None, None) if a list is empty
    """
    if not free_a or not free_b:
        return None, None

    config = script.config
    palette = script.palette

    def d(side: List[int], idx: int) -> int:
        return nodes[side[idx]].d_value

    head_a, head_b = nodes[free_a[0]], nodes[free_b[0]]
    script.add(
        script.candidate([head_a.id, head_b.id]),
        f"Highlight nodes {head_a.id} and {head_b.id}",
        config.highlight_delay,
    )

    idx_a = idx_b = 0
    max_gain: Optional[int] = None
    best: Optional[Tuple[int, int]] = None

    while (
        idx_a < len(free_a)
        and idx_b < len(free_b)
        and (max_gain is None or d(free_a, idx_a) + d(free_b, idx_b) > max_gain)
    ):
        node_a = nodes[free_a[idx_a]]
        node_b = nodes[free_b[idx_b]]
        gain = node_a.d_value + node_b.d_value - 2 * int(node_a.cost_row[node_b.index])

        previous = best
        improved = max_gain is None or gain > max_gain
        if improved:
            max_gain = gain
            best = (node_a.index, node_b.index)

        _narrate_edges(script, nodes, node_a, node_b)

        if improved:
            if previous is not None:
                script.add(
                    script.reset([nodes[previous[0]].id, nodes[previous[1]].id]),
                    "Unhighlight previous best swap nodes",
                )
            script.add(
                script.nodes(
                    [node_a.id, node_b.id],
                    palette.best_pair,
                    config.node_highlight_width,
                    config.candidate_timing,
                    persist=True,
                ),
                f"Highlight current best swap nodes {node_a.id} and {node_b.id}",
                config.highlight_delay,
            )

        has_next_a = idx_a + 1 < len(free_a)
        has_next_b = idx_b + 1 < len(free_b)
        drop_a = d(free_a, idx_a) - d(free_a, idx_a + 1) if has_next_a else None
        drop_b = d(free_b, idx_b) - d(free_b, idx_b + 1) if has_next_b else None

        if has_next_a and (not has_next_b or drop_a <= drop_b):
            idx_a += 1
            left, side, idx, in_best = node_a, free_a, idx_a, best[0] == node_a.index
        else:
            idx_b += 1
            left, side, idx, in_best = node_b, free_b, idx_b, best[1] == node_b.index

        if idx_a >= len(free_a) or idx_b >= len(free_b):
            continue
        if d(free_a, idx_a) + d(free_b, idx_b) <= max_gain:
            continue

        arriving = nodes[side[idx]]
        if in_best:
            release = script.nodes([left.id], palette.passed_best, 1, INSTANT, persist=True)
        else:
            release = script.nodes(
                [left.id],
                (palette.node_border, palette.node_background),
                1,
                config.release_timing,
            )
        script.add(
            Together((release, script.candidate([arriving.id]))),
            f"Unhighlight node {left.id} and highlight node {arriving.id}",
            config.highlight_delay,
        )

    return best, max_gain


def _commit(nodes: List[KLNode], free_a: List[int], free_b: List[int], a: int, b: int):
    """Lock and flip a pair, then update the d-values of the free nodes."""
    node_a, node_b = nodes[a], nodes[b]
    node_a.locked = True
    node_b.locked = True
    node_a.partition = 1
    node_b.partition = 0

    for node in nodes:
        if node.locked:
            continue
        sign = 2 if node.partition == 0 else -2
        node.d_value += sign * (int(node_a.cost_row[node.index]) - int(node_b.cost_row[node.index]))

    free_a.remove(a)
    free_b.remove(b)


def best_prefix_index(cumulative_gains: Sequence[int]) -> int:
    """
    Index of the first strict maximum of the cumulative gains above zero.

    Returns -1 when no prefix has a positive total, meaning every swap is
    undone.
    """
    best_index = -1
    best_total = 0
    for i, total in enumerate(cumulative_gains):
        if total > best_total:
            best_total = total
            best_index = i
    return best_index


def run_kernighan_lin(
    snapshot: GraphSnapshot,
    config: Optional[AnimationConfig] = None,
) -> BisectionResult:
    """
    Bisect a graph with one Kernighan-Lin improvement sweep.

    Args:
        snapshot: Nodes and edges; node order fixes the seed bisection
        config: Animation timings and colors (defaults if omitted)

    Returns:
        BisectionResult with partition map, cut size and animation steps

    Raises:
        InvalidGraphInput: Duplicate node ids or edges to unknown nodes
    """
    config = config or AnimationConfig()
    edges = clean_edges(snapshot)
    nodes, _ = _build_nodes(snapshot, edges)
    n = len(nodes)
    script = _Script(config)

    script.add(SetInteraction(PLAYBACK_INTERACTION), "Disable interaction and physics")

    # Seed placement on the two semicircles
    free_a: List[int] = []
    free_b: List[int] = []
    decay = time_factor_decay(config.intro_budget, config.intro_slot)
    slot = config.intro_slot
    for node in nodes:
        move_time = max(slot, 1.0)
        side = free_a if node.partition == 0 else free_b
        side.append(node.index)
        target = partition_position(len(side) - 1, node.partition, n)
        script.add(
            MoveNode(node.id, target, config.intro_move_scale * move_time),
            f"Move node {node.id} to partition {SIDE_NAMES[node.partition]}",
            move_time,
        )
        slot *= decay
    script.set_last_delay(config.intro_settle_delay)

    script.add(
        Together((SetInteraction(LOCKED_INTERACTION, fit_view=True), script.labels(nodes))),
        "Initial partitioning complete",
        config.intro_complete_delay,
    )

    # Improvement passes, one committed exchange each
    exchange_pairs: List[ExchangePair] = []
    decay = time_factor_decay(config.pass_budget, config.pass_slot)
    slot = config.pass_slot
    for pass_number in range(n // 2):
        free_a.sort(key=lambda i: -nodes[i].d_value)
        free_b.sort(key=lambda i: -nodes[i].d_value)

        best, gain = _search_pass(script, nodes, free_a, free_b)
        if best is None:
            logger.warning("Pass %d found no exchange candidate, stopping early", pass_number)
            break
        a, b = best

        leftovers = [nodes[i].id for i in free_a + free_b if i not in best]
        if leftovers:
            script.add(
                script.reset(leftovers),
                "Unhighlight all nodes except swapped ones",
                config.highlight_delay,
            )

        exchange_pairs.append(ExchangePair(a, b, gain))
        _commit(nodes, free_a, free_b, a, b)
        logger.debug("Pass %d: exchange %s <-> %s, gain %d", pass_number, nodes[a].id, nodes[b].id, gain)

        swap_time = max(slot, config.pass_slot_floor)
        script.add(script.labels(nodes), "dValues updated")
        script.add(
            Together((
                script.nodes([nodes[a].id, nodes[b].id], script.palette.locked, 1, INSTANT, persist=True),
                SwapPositions(nodes[a].id, nodes[b].id, swap_time * config.swap_duration_ratio),
            )),
            f"Swap nodes {nodes[a].id} and {nodes[b].id}",
            swap_time,
        )
        slot *= decay

    # Keep only the best prefix of exchanges
    cumulative = list(accumulate(pair.gain for pair in exchange_pairs))
    k = best_prefix_index(cumulative)

    decay = time_factor_decay(config.rollback_budget, config.rollback_slot)
    slot = config.rollback_slot
    for pair in reversed(exchange_pairs[k + 1:]):
        nodes[pair.a].partition = 0
        nodes[pair.b].partition = 1
        swap_time = max(slot, 1.0)
        script.add(
            SwapPositions(nodes[pair.a].id, nodes[pair.b].id, config.rollback_move_scale * swap_time),
            f"Swap nodes {nodes[pair.a].id} and {nodes[pair.b].id}",
            swap_time,
        )
        slot *= decay

    script.add(script.labels(nodes, annotated=False), "Remove dValue annotations")

    for node in nodes:
        node.locked = False
    script.add(
        script.nodes(
            [node.id for node in nodes],
            script.palette.unlocked,
            2,
            config.unlock_timing,
        ),
        "Unlock nodes",
    )
    script.set_last_delay(config.final_delay)

    partition: Dict[str, int] = {node.id: node.partition for node in nodes}
    cut_size = count_cut_edges(((e.source, e.target) for e in edges), partition)

    logger.info(
        "Kernighan-Lin: %d nodes, %d edges, cut %d, kept %d of %d exchanges",
        n, len(edges), cut_size, k + 1, len(exchange_pairs),
    )

    return BisectionResult(
        partition=partition,
        cut_size=cut_size,
        steps=script.steps,
        exchange_pairs=exchange_pairs,
        cumulative_gains=cumulative,
        best_prefix=k,
    )
