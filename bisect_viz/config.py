"""
Animation configuration.

Colors, timing envelopes and time budgets used when narrating a
Kernighan-Lin run. Every field has a default, so `AnimationConfig()` is the
stock look. Configs round-trip through plain dicts for JSON files.
"""

from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict


# Playback speed bounds (multiplier on wall-clock time)
MIN_SPEED_FACTOR = 0.5
MAX_SPEED_FACTOR = 128.0


def _require_mapping(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Envelope:
    """
    Trapezoidal intensity envelope, all durations in milliseconds.

    Attributes:
        highlight: Rise time from 0 to 1
        hold: Time spent at 1
        fade: Fall time from 1 back to 0
    """
    highlight: float = 0.0
    hold: float = 0.0
    fade: float = 0.0

    @property
    def total(self) -> float:
        return self.highlight + self.hold + self.fade

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Envelope":
        d = _require_mapping(d, "envelope")
        return cls(
            highlight=float(d.get("highlight", 0.0)),
            hold=float(d.get("hold", 0.0)),
            fade=float(d.get("fade", 0.0)),
        )


@dataclass(frozen=True)
class HighlightTiming:
    """Separate envelopes for the color and the width channel."""
    color: Envelope = field(default_factory=Envelope)
    width: Envelope = field(default_factory=Envelope)

    @property
    def total(self) -> float:
        return max(self.color.total, self.width.total)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HighlightTiming":
        d = _require_mapping(d, "highlight timing")
        return cls(
            color=Envelope.from_dict(d.get("color", {})),
            width=Envelope.from_dict(d.get("width", {})),
        )


def _timing(color, width) -> HighlightTiming:
    return HighlightTiming(Envelope(*color), Envelope(*width))


INSTANT = _timing((0, 0, 0), (0, 0, 0))


@dataclass(frozen=True)
class Palette:
    """Default styling of the rendering surface plus highlight colors."""
    node_border: str = "#2B7CE9"
    node_background: str = "#97C2FC"
    node_border_width: float = 2.0
    edge_color: str = "#848484"
    edge_width: float = 2.0

    # (border, background) pairs
    candidate: tuple = ("#FFA500", "#FFFF40")
    best_pair: tuple = ("#800080", "#D8BFD8")
    rejected: tuple = ("#FF0000", "#FF8080")
    passed_best: tuple = ("#300030", "#886F88")
    locked: tuple = ("#999999", "#CCCCCC")
    unlocked: tuple = ("#2EFF57", "#90FF90")

    gain_edge: str = "#00FF00"
    loss_edge: str = "#FF0000"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Palette":
        d = _require_mapping(d, "palette")
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in d.items():
            if key in known:
                kwargs[key] = tuple(value) if isinstance(value, list) else value
        return cls(**kwargs)


@dataclass(frozen=True)
class AnimationConfig:
    """
    Timing and styling knobs for the Kernighan-Lin narration.

    Time budgets: each looped phase gets a total budget and a starting
    per-step slot time. Slot times shrink geometrically, see
    `interpolation.time_factor_decay`.
    """
    palette: Palette = field(default_factory=Palette)

    # Initial placement on the semicircles
    intro_budget: float = 10000.0
    intro_slot: float = 100.0
    intro_move_scale: float = 5.0
    intro_settle_delay: float = 500.0
    intro_complete_delay: float = 1000.0

    # Improvement passes
    pass_budget: float = 30000.0
    pass_slot: float = 2000.0
    pass_slot_floor: float = 2.0
    swap_duration_ratio: float = 2.0 / 3.0
    inspect_delay: float = 2000.0
    highlight_delay: float = 1000.0

    # Rollback of the unprofitable suffix
    rollback_budget: float = 10000.0
    rollback_slot: float = 150.0
    rollback_move_scale: float = 2.0

    final_delay: float = 5000.0

    # Highlight envelopes
    candidate_timing: HighlightTiming = _timing((1000, 0, 0), (350, 400, 250))
    edge_timing: HighlightTiming = _timing((600, 1000, 400), (500, 1000, 400))
    release_timing: HighlightTiming = _timing((1000, 0, 0), (1000, 0, 0))
    unlock_timing: HighlightTiming = _timing((600, 50, 600), (600, 50, 600))

    node_highlight_width: float = 5.0
    edge_highlight_width: float = 5.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnimationConfig":
        """Build a config from a (possibly partial) dict of overrides."""
        d = _require_mapping(d, "config")
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in d:
                continue
            value = d[f.name]
            if f.name == "palette":
                value = Palette.from_dict(value)
            elif f.name.endswith("_timing"):
                value = HighlightTiming.from_dict(value)
            else:
                value = float(value)
            kwargs[f.name] = value
        return cls(**kwargs)
