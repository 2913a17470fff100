"""
Command-line interface for the bisection visualizer.

Follows pipe-friendly architecture:
- stdin JSON graph -> Kernighan-Lin -> stdout JSON result
- Optional --render for image/GIF output of the animated playback
- Optional --play for realtime playback narrated on stderr
"""

import argparse
import json
import logging
import sys

from .config import AnimationConfig, MAX_SPEED_FACTOR, MIN_SPEED_FACTOR
from .errors import BisectVizError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bisect-viz",
        description="Kernighan-Lin graph bisection with animated playback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Bisect a random demo graph and print the result JSON
  python -m bisect_viz --demo --nodes 12

  # Bisect a graph from a file and render the playback to a GIF
  python -m bisect_viz --input graph.json --render playback.gif --speed 8

  # Pipe a graph in, narrate the playback in real time
  cat graph.json | python -m bisect_viz --play --speed 4

Graph JSON:
  {"nodes": [{"id": "A", "label": "A"}, ...],
   "edges": [{"id": "e0", "from": "A", "to": "B"}, ...]}
""",
    )

    # Input sources
    input_group = parser.add_mutually_exclusive_group()
    input_group.add_argument(
        "--demo",
        action="store_true",
        help="Use a seeded random graph",
    )
    input_group.add_argument(
        "--input", "-i",
        type=str,
        metavar="FILE",
        help="Load graph JSON from file (or - for stdin)",
    )

    # Demo options
    parser.add_argument("--nodes", type=int, default=10, help="Demo graph size (default: 10)")
    parser.add_argument(
        "--edge-prob",
        type=float,
        default=0.3,
        help="Demo edge probability (default: 0.3)",
    )
    parser.add_argument(
        "--rng-seed",
        type=int,
        default=42,
        help="Random seed for demo graph and layout (default: 42)",
    )

    # Output options
    parser.add_argument(
        "--output", "-o",
        type=str,
        metavar="FILE",
        help="Write result JSON to file (default: stdout)",
    )
    parser.add_argument(
        "--steps",
        action="store_true",
        help="Include the narrated step list in the result JSON",
    )
    parser.add_argument(
        "--render", "-r",
        type=str,
        metavar="FILE",
        help="Render playback to GIF, or the final frame to PNG",
    )
    parser.add_argument(
        "--play",
        action="store_true",
        help="Play the animation in real time, narrating steps on stderr (no key controls)",
    )

    # Playback options
    parser.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help=f"Playback speed factor, {MIN_SPEED_FACTOR:g}..{MAX_SPEED_FACTOR:g} (default: 1)",
    )
    parser.add_argument("--fps", type=int, default=20, help="Frames per second (default: 20)")
    parser.add_argument(
        "--capture-every",
        type=int,
        default=1,
        help="Keep every Nth frame in the GIF (default: 1)",
    )
    parser.add_argument("--width", type=int, default=800, help="Image width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Image height (default: 600)")
    parser.add_argument("--no-labels", action="store_true", help="Hide node labels")
    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="JSON file with AnimationConfig overrides",
    )

    # Misc
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress informational output to stderr",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r") as f:
        return f.read()


def load_config(path) -> AnimationConfig:
    if not path:
        return AnimationConfig()
    try:
        return AnimationConfig.from_dict(json.loads(_read_text(path)))
    except (ValueError, TypeError) as e:
        raise BisectVizError(f"Invalid config file {path}: {e}") from e


def play_realtime(steps, canvas, speed: float, fps: int, log):
    """Play steps on the wall clock, echoing each step description. No key controls."""
    from .frames import RealtimeFrameDriver
    from .scheduler import SchedulerState, StepScheduler

    driver = RealtimeFrameDriver(fps=fps)
    scheduler = StepScheduler(driver, speed_factor=speed)
    scheduler.on_step_start = lambda index, step: log(f"[{index + 1}/{len(steps)}] {step.description}")
    completion = scheduler.run(steps, canvas)
    driver.run_until(lambda: scheduler.state is SchedulerState.IDLE)
    return completion.result()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    def log(msg: str):
        if not args.quiet:
            print(msg, file=sys.stderr)

    from .canvas import MemoryCanvas
    from .core import random_snapshot, snapshot_from_json
    from .kernighan_lin import run_kernighan_lin
    from .layout import scatter_layout

    try:
        config = load_config(args.config)

        snapshot = None
        if args.demo:
            snapshot = random_snapshot(args.nodes, args.edge_prob, args.rng_seed)
            log(f"Demo graph: {len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges")
        elif args.input:
            snapshot = snapshot_from_json(_read_text(args.input))
            log(f"Loaded graph with {len(snapshot.nodes)} nodes")
        elif not sys.stdin.isatty():
            text = sys.stdin.read()
            if text.strip():
                snapshot = snapshot_from_json(text)
                log(f"Loaded graph from stdin with {len(snapshot.nodes)} nodes")

        if snapshot is None:
            log("No input provided. Use --demo or --input, or pipe JSON to stdin.")
            parser.print_help(sys.stderr)
            return 1

        result = run_kernighan_lin(snapshot, config)
        log(f"Cut size: {result.cut_size}, steps: {len(result.steps)}")

        if args.render or args.play:
            speed = min(MAX_SPEED_FACTOR, max(MIN_SPEED_FACTOR, args.speed))
            positions = scatter_layout(
                snapshot.node_ids,
                [(e.source, e.target) for e in snapshot.edges],
                rng_seed=args.rng_seed,
            )
            canvas = MemoryCanvas(snapshot, positions, palette=config.palette)

            if args.play:
                play_realtime(result.steps, canvas, speed, args.fps, log)

            if args.render:
                from .render import record_playback, render_animation, render_frame

                render_kwargs = {
                    "width": args.width,
                    "height": args.height,
                    "show_labels": not args.no_labels,
                }
                if args.render.lower().endswith(".gif"):
                    if args.play:
                        canvas = MemoryCanvas(snapshot, positions, palette=config.palette)
                    log(f"Rendering playback to {args.render}...")
                    frames = record_playback(
                        result.steps,
                        canvas,
                        speed_factor=speed,
                        fps=args.fps,
                        capture_every=max(1, args.capture_every),
                        **render_kwargs,
                    )
                    render_animation(frames, args.render, fps=args.fps)
                else:
                    if not args.play:
                        record_playback(
                            result.steps,
                            canvas,
                            speed_factor=MAX_SPEED_FACTOR,
                            fps=args.fps,
                            capture_every=0,
                            **render_kwargs,
                        )
                    render_frame(canvas, status=f"cut size {result.cut_size}", **render_kwargs).save(args.render)
                log(f"Saved: {args.render}")

    except BisectVizError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    payload = result.to_dict()
    if args.steps:
        payload["animation"] = [step.to_dict() for step in result.steps]
    json_output = json.dumps(payload, indent=2)

    if args.output:
        with open(args.output, "w") as f:
            f.write(json_output)
        log(f"Result saved to {args.output}")
    else:
        print(json_output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
