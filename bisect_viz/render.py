"""
Rendering functions for bisection playback.

Uses PIL to draw a MemoryCanvas: edges with their current color/width,
nodes with their current border/background, optional labels and a status
line. No GUI dependencies.
"""

from typing import List, Optional, Tuple

from PIL import Image, ImageDraw

from .canvas import MemoryCanvas, Viewport
from .interpolation import parse_hex_color


def world_to_screen(
    x: float,
    y: float,
    viewport: Viewport,
    width: int,
    height: int,
    margin: int = 30,
) -> Tuple[int, int]:
    """
    Map canvas coordinates into the image, preserving aspect ratio.

    Canvas y grows downward, as in the browser canvas the layouts target.
    """
    span_x = max(viewport.max_x - viewport.min_x, 1e-9)
    span_y = max(viewport.max_y - viewport.min_y, 1e-9)
    scale = min((width - 2 * margin) / span_x, (height - 2 * margin) / span_y)
    offset_x = (width - span_x * scale) / 2
    offset_y = (height - span_y * scale) / 2
    return (
        int(offset_x + (x - viewport.min_x) * scale),
        int(offset_y + (y - viewport.min_y) * scale),
    )


def render_frame(
    canvas: MemoryCanvas,
    width: int = 800,
    height: int = 600,
    bg_color: Tuple[int, int, int] = (255, 255, 255),
    node_radius: int = 14,
    show_labels: bool = True,
    status: Optional[str] = None,
) -> Image.Image:
    """
    Render the current canvas state to an image.

    Args:
        canvas: MemoryCanvas to draw
        width: Image width in pixels
        height: Image height in pixels
        bg_color: Background color RGB
        node_radius: Node radius in pixels
        show_labels: Whether to draw node labels
        status: Optional text drawn in the bottom-left corner

    Returns:
        PIL Image object
    """
    img = Image.new("RGB", (width, height), bg_color)
    draw = ImageDraw.Draw(img)
    viewport = canvas.viewport

    # Edges first (under nodes)
    for edge in canvas.get_edge_snapshot():
        style = canvas.resolved_edge(edge.id)
        x1, y1 = world_to_screen(*canvas.get_position(edge.source), viewport, width, height)
        x2, y2 = world_to_screen(*canvas.get_position(edge.target), viewport, width, height)
        draw.line(
            [(x1, y1), (x2, y2)],
            fill=parse_hex_color(style.color),
            width=max(1, int(round(style.width))),
        )

    for node in canvas.get_node_snapshot():
        style = canvas.resolved_node(node.id)
        x, y = world_to_screen(style.x, style.y, viewport, width, height)
        draw.ellipse(
            [(x - node_radius, y - node_radius), (x + node_radius, y + node_radius)],
            fill=parse_hex_color(style.background),
            outline=parse_hex_color(style.border),
            width=max(1, int(round(style.border_width))),
        )
        if show_labels and style.label:
            draw.text(
                (x - 3 * len(style.label), y - node_radius - 14),
                style.label,
                fill=(40, 40, 40),
            )

    if status:
        draw.text((10, height - 20), status, fill=(90, 90, 90))

    return img


def record_playback(
    steps,
    canvas: MemoryCanvas,
    speed_factor: float = 1.0,
    fps: int = 20,
    capture_every: int = 1,
    max_frames: int = 100_000,
    **render_kwargs,
) -> List[Image.Image]:
    """
    Play an animation script offline and capture frames.

    Runs a StepScheduler on a ManualFrameDriver ticking at `fps`, rendering
    the canvas after every `capture_every`-th frame (0: never) and once at
    the end.
    """
    from .frames import ManualFrameDriver
    from .scheduler import SchedulerState, StepScheduler

    driver = ManualFrameDriver(frame_interval=1000.0 / fps)
    scheduler = StepScheduler(driver, speed_factor=speed_factor)
    completion = scheduler.run(steps, canvas)

    frames: List[Image.Image] = []
    current = {"text": ""}

    def on_step_start(index, step):
        current["text"] = f"{index + 1}/{len(steps)} {step.description}"

    def on_frame(frame_number: int):
        if capture_every and frame_number % capture_every == 0:
            frames.append(render_frame(canvas, status=current["text"], **render_kwargs))

    scheduler.on_step_start = on_step_start
    driver.run_until(lambda: scheduler.state is SchedulerState.IDLE, max_frames=max_frames, on_frame=on_frame)
    if not completion.done():
        raise RuntimeError(f"Playback did not finish within {max_frames} frames")

    frames.append(render_frame(canvas, status=current["text"], **render_kwargs))
    return frames


def render_animation(
    frames: List[Image.Image],
    output_path: str,
    fps: int = 20,
    loop: int = 0,
) -> str:
    """
    Save captured frames as an animated GIF.

    Args:
        frames: Rendered images, in order
        output_path: Output file path (should end in .gif)
        fps: Frames per second
        loop: Number of loops (0 = infinite)

    Returns:
        Output file path
    """
    if not frames:
        raise ValueError("No frames to render")

    frames[0].save(
        output_path,
        save_all=True,
        append_images=frames[1:],
        duration=int(1000 / fps),
        loop=loop,
    )
    return output_path
