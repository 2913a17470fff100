"""
Animation step descriptors.

A step is an immutable description of one visual change (move a node, swap
two nodes, pulse a highlight, relabel, change interaction options) plus the
minimum simulated time to wait after starting it before the next step may
start. Steps hold no progress of their own: when the scheduler starts a step
it gets back an ActiveStep, which owns the elapsed time and whatever the
action captured at start (origin positions, finished sub-actions).

Actions never touch the canvas's visual fields directly. They write into the
context's UpdateBatcher, which is flushed once per tick.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .batcher import UpdateBatcher
from .config import HighlightTiming, Palette, Envelope
from .interpolation import (
    calc_interpolation_multiplier,
    ease_in_out_cubic,
    lerp_hex,
    lerp_point,
)


@dataclass
class StepContext:
    """What a running step may touch: the canvas and this tick's batcher."""
    canvas: Any
    batcher: UpdateBatcher
    palette: Palette = field(default_factory=Palette)

    def position(self, node_id: str) -> Tuple[float, float]:
        """Node position including writes not yet flushed this tick."""
        x, y = self.canvas.get_position(node_id)
        pending = self.batcher.node_fields(node_id)
        return (pending.get("x", x), pending.get("y", y))

    def node_ids(self) -> List[str]:
        return [node.id for node in self.canvas.get_node_snapshot()]

    def edge_ids(self) -> List[str]:
        return [edge.id for edge in self.canvas.get_edge_snapshot()]


class StepAction:
    """
    Base class for step variants.

    `begin` runs once when the step starts and returns the state the action
    needs later. `frame` runs every tick with the elapsed simulated time and
    returns True once the action is finished.
    """

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        return {}

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        return True


@dataclass(frozen=True)
class Wait(StepAction):
    """Does nothing; only its step's delay matters."""
    pass


@dataclass(frozen=True)
class SetInteraction(StepAction):
    """Change canvas interaction options and optionally refit the view."""
    options: Mapping[str, Any] = field(default_factory=dict)
    fit_view: bool = False

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        ctx.canvas.set_interaction_options(**self.options)
        if self.fit_view:
            ctx.canvas.fit_view()
        return {}


@dataclass(frozen=True)
class SetLabels(StepAction):
    labels: Mapping[str, str] = field(default_factory=dict)

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        for node_id, label in self.labels.items():
            ctx.batcher.set_node(node_id, label=label)
        return True


def _progress(elapsed: float, duration: float) -> float:
    if duration <= 0:
        return 1.0
    return min(elapsed / duration, 1.0)


@dataclass(frozen=True)
class MoveNode(StepAction):
    """Ease one node from wherever it is at start to `target`."""
    node_id: str
    target: Tuple[float, float]
    duration: float

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        return {"start": ctx.position(self.node_id)}

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        t = _progress(elapsed, self.duration)
        x, y = lerp_point(origin["start"], self.target, ease_in_out_cubic(t))
        ctx.batcher.set_node(self.node_id, x=x, y=y)
        return t >= 1.0


@dataclass(frozen=True)
class SwapPositions(StepAction):
    """Move two nodes into each other's start positions."""
    a: str
    b: str
    duration: float

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        return {
            "a": ctx.position(self.a),
            "b": ctx.position(self.b),
        }

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        t = _progress(elapsed, self.duration)
        eased = ease_in_out_cubic(t)
        ax, ay = lerp_point(origin["a"], origin["b"], eased)
        bx, by = lerp_point(origin["b"], origin["a"], eased)
        ctx.batcher.set_node(self.a, x=ax, y=ay)
        ctx.batcher.set_node(self.b, x=bx, y=by)
        return t >= 1.0


def _level(progress: float, envelope: Envelope, persist: bool) -> float:
    # A persistent highlight without a fade phase stays lit once it has risen
    if persist and envelope.fade <= 0 and progress >= envelope.highlight:
        return 1.0
    return calc_interpolation_multiplier(progress, envelope)


@dataclass(frozen=True)
class HighlightNodes(StepAction):
    """
    Pulse node border/background colors and border width.

    Color and width follow separate envelopes. When the pulse is over the
    nodes fall back to the canvas defaults, unless `persist` is set, in which
    case the final envelope values stay on the nodes. An empty `node_ids`
    means every node on the canvas.
    """
    node_ids: Tuple[str, ...]
    border: str
    background: str
    width_multiplier: float
    timing: HighlightTiming
    persist: bool = False

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        return {"ids": list(self.node_ids) or ctx.node_ids()}

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        finished = elapsed >= self.timing.total
        if finished and not self.persist:
            for node_id in origin["ids"]:
                ctx.batcher.set_node(node_id, border=None, background=None, border_width=None)
            return True

        palette = ctx.palette
        color_level = _level(elapsed, self.timing.color, self.persist)
        width_level = _level(elapsed, self.timing.width, self.persist)
        border = lerp_hex(palette.node_border, self.border, color_level)
        background = lerp_hex(palette.node_background, self.background, color_level)
        base = palette.node_border_width
        width = base + (self.width_multiplier * base - base) * width_level
        for node_id in origin["ids"]:
            ctx.batcher.set_node(node_id, border=border, background=background, border_width=width)
        return finished


@dataclass(frozen=True)
class HighlightEdges(StepAction):
    """Pulse edge color and width, then reset them. Empty ids means all edges."""
    edge_ids: Tuple[str, ...]
    color: str
    width_multiplier: float
    timing: HighlightTiming

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        return {"ids": list(self.edge_ids) or ctx.edge_ids()}

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        if elapsed >= self.timing.total:
            for edge_id in origin["ids"]:
                ctx.batcher.set_edge(edge_id, color=None, width=None)
            return True

        palette = ctx.palette
        color = lerp_hex(
            palette.edge_color,
            self.color,
            calc_interpolation_multiplier(elapsed, self.timing.color),
        )
        base = palette.edge_width
        width = base + (self.width_multiplier * base - base) * calc_interpolation_multiplier(
            elapsed, self.timing.width
        )
        for edge_id in origin["ids"]:
            ctx.batcher.set_edge(edge_id, color=color, width=width)
        return False


@dataclass(frozen=True)
class Together(StepAction):
    """Run several actions side by side; done when all of them are."""
    actions: Tuple[StepAction, ...]

    def begin(self, ctx: StepContext) -> Dict[str, Any]:
        return {
            "origins": [action.begin(ctx) for action in self.actions],
            "done": [False] * len(self.actions),
        }

    def frame(self, ctx: StepContext, elapsed: float, origin: Dict[str, Any]) -> bool:
        done = origin["done"]
        for i, action in enumerate(self.actions):
            if not done[i]:
                done[i] = action.frame(ctx, elapsed, origin["origins"][i])
        return all(done)


@dataclass(frozen=True)
class AnimationStep:
    """
    One entry of an animation script.

    Attributes:
        action: What to display
        description: Human-readable narration of the step
        min_delay_before_next: Simulated ms between this step's start and the
            next step's start (not its end, so animations may overlap)
    """
    action: StepAction
    description: str
    min_delay_before_next: float = 0.0

    def start(self, ctx: StepContext, at: float) -> "ActiveStep":
        """Begin the action at simulated time `at`."""
        return ActiveStep(step=self, context=ctx, started_at=at, origin=self.action.begin(ctx))

    def with_delay(self, delay: float) -> "AnimationStep":
        return replace(self, min_delay_before_next=delay)

    @property
    def kind(self) -> str:
        return type(self.action).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "description": self.description,
            "delay": self.min_delay_before_next,
        }


@dataclass
class ActiveStep:
    """Scheduler-owned progress of a started step."""
    step: AnimationStep
    context: StepContext
    started_at: float
    origin: Dict[str, Any] = field(default_factory=dict)
    elapsed: float = 0.0
    done: bool = False

    def update(self, now: float) -> bool:
        """Advance to simulated time `now`; returns True once finished."""
        if self.done:
            return True
        self.elapsed = max(0.0, now - self.started_at)
        self.done = bool(self.step.action.frame(self.context, self.elapsed, self.origin))
        return self.done


def total_delay(steps: List[AnimationStep]) -> float:
    """Simulated time at which the last step starts."""
    return sum(step.min_delay_before_next for step in steps[:-1])


def describe(steps: List[AnimationStep], limit: Optional[int] = None) -> List[str]:
    """One line per step: start time and description."""
    lines = []
    at = 0.0
    for step in steps[:limit]:
        lines.append(f"{at:9.1f} ms  [{step.kind}] {step.description}")
        at += step.min_delay_before_next
    return lines
