"""
Kernighan-Lin Bisection Visualizer

Bisects small undirected graphs with Kernighan-Lin and narrates every
decision as a list of animation steps, which a frame-driven scheduler
plays back with pause/resume and adjustable speed.
Follows GUI-optional, pipe-friendly architecture.
"""

from .errors import (
    BisectVizError,
    InvalidGraphInput,
    ConcurrentRunConflict,
)
from .config import (
    AnimationConfig,
    Envelope,
    HighlightTiming,
    Palette,
)
from .core import (
    NodeSpec,
    EdgeSpec,
    GraphSnapshot,
    ExchangePair,
    BisectionResult,
    count_cut_edges,
    snapshot_from_json,
    snapshot_to_json,
    random_snapshot,
)
from .interpolation import (
    calc_interpolation_multiplier,
    ease_in_out_cubic,
    time_factor_decay,
)
from .layout import (
    calculate_x,
    calculate_y,
    partition_position,
    scatter_layout,
)
from .steps import AnimationStep, ActiveStep, StepContext
from .kernighan_lin import run_kernighan_lin
from .batcher import UpdateBatcher
from .frames import ManualFrameDriver, RealtimeFrameDriver
from .scheduler import SchedulerState, StepScheduler, PlaybackController
from .canvas import GraphCanvas, MemoryCanvas
from .render import (
    render_frame,
    render_animation,
    record_playback,
)

__all__ = [
    "BisectVizError",
    "InvalidGraphInput",
    "ConcurrentRunConflict",
    "AnimationConfig",
    "Envelope",
    "HighlightTiming",
    "Palette",
    "NodeSpec",
    "EdgeSpec",
    "GraphSnapshot",
    "ExchangePair",
    "BisectionResult",
    "count_cut_edges",
    "snapshot_from_json",
    "snapshot_to_json",
    "random_snapshot",
    "calc_interpolation_multiplier",
    "ease_in_out_cubic",
    "time_factor_decay",
    "calculate_x",
    "calculate_y",
    "partition_position",
    "scatter_layout",
    "AnimationStep",
    "ActiveStep",
    "StepContext",
    "run_kernighan_lin",
    "UpdateBatcher",
    "ManualFrameDriver",
    "RealtimeFrameDriver",
    "SchedulerState",
    "StepScheduler",
    "PlaybackController",
    "GraphCanvas",
    "MemoryCanvas",
    "render_frame",
    "render_animation",
    "record_playback",
]
