"""
Interpolation helpers for animations.

Pure math: highlight envelopes, easing, per-step time decay and color
interpolation. No state, no rendering dependencies.
"""

from typing import Tuple

from .config import Envelope


def calc_interpolation_multiplier(progress: float, envelope: Envelope) -> float:
    """
    Evaluate a trapezoidal envelope at a point in time.

    Rises linearly from 0 to 1 over `envelope.highlight`, holds 1 over
    `envelope.hold`, falls back to 0 over `envelope.fade`, and is 0 from
    then on.

    Args:
        progress: Milliseconds since the envelope started
        envelope: Phase durations

    Returns:
        Multiplier in [0, 1]
    """
    rise_end = envelope.highlight
    hold_end = rise_end + envelope.hold
    fade_end = hold_end + envelope.fade

    if progress < 0:
        return 0.0
    elif progress < rise_end:
        return progress / envelope.highlight
    elif progress < hold_end:
        return 1.0
    elif progress < fade_end:
        return 1.0 - (progress - hold_end) / envelope.fade
    else:
        return 0.0


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in/ease-out on [0, 1]."""
    if t < 0.5:
        return 4 * t * t * t
    u = t - 1
    return 1 + 4 * u * u * u


def time_factor_decay(max_total_time: float, per_step_time: float) -> float:
    """
    Per-step multiplicative decay for a looped animation.

    Starting from `per_step_time` and multiplying by the returned factor after
    each step keeps the summed duration of an unbounded number of steps near
    `max_total_time` (geometric series).
    """
    return 1.0 - min(per_step_time / max_total_time, 1.0)


def parse_hex_color(color: str) -> Tuple[int, int, int]:
    """Parse '#RRGGBB' into an RGB tuple."""
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Unsupported color: {color}")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


def to_hex_color(rgb: Tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def lerp_color(
    c1: Tuple[int, int, int],
    c2: Tuple[int, int, int],
    t: float,
) -> Tuple[int, int, int]:
    """Linear interpolation between two RGB colors (floored, like pixel math)."""
    t = max(0.0, min(1.0, t))
    return (
        int(c1[0] + (c2[0] - c1[0]) * t),
        int(c1[1] + (c2[1] - c1[1]) * t),
        int(c1[2] + (c2[2] - c1[2]) * t),
    )


def lerp_hex(c1: str, c2: str, t: float) -> str:
    """`lerp_color` for '#RRGGBB' strings."""
    return to_hex_color(lerp_color(parse_hex_color(c1), parse_hex_color(c2), t))


def lerp_point(
    p1: Tuple[float, float],
    p2: Tuple[float, float],
    t: float,
) -> Tuple[float, float]:
    return (p1[0] + (p2[0] - p1[0]) * t, p1[1] + (p2[1] - p1[1]) * t)
