"""
Canvas, rendering and CLI tests.

Run with: pytest tests/test_render_cli.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

import pytest
from PIL import Image

from bisect_viz.canvas import MemoryCanvas
from bisect_viz.cli import build_parser, load_config, main
from bisect_viz.config import AnimationConfig, Palette
from bisect_viz.core import GraphSnapshot, snapshot_to_json
from bisect_viz.errors import BisectVizError
from bisect_viz.kernighan_lin import run_kernighan_lin
from bisect_viz.render import record_playback, render_animation, render_frame, world_to_screen


# ============================================================
# Helper Functions
# ============================================================

def four_cycle():
    return GraphSnapshot.from_pairs(
        ["A", "B", "C", "D"],
        [("A", "B"), ("B", "C"), ("C", "D"), ("D", "A")],
    )


def fast_config():
    """Short timings so offline playback needs few frames."""
    return AnimationConfig(
        intro_budget=1000.0,
        intro_slot=10.0,
        pass_budget=1000.0,
        pass_slot=100.0,
        rollback_budget=1000.0,
        rollback_slot=10.0,
        inspect_delay=50.0,
        highlight_delay=50.0,
        final_delay=10.0,
    )


# ============================================================
# TEST 1: MemoryCanvas
# ============================================================

class TestMemoryCanvas:
    """In-memory rendering collaborator."""

    def test_defaults_resolve_to_palette(self):
        palette = Palette()
        canvas = MemoryCanvas(four_cycle(), palette=palette)
        node = canvas.resolved_node("A")
        assert node.border == palette.node_border
        assert node.border_width == palette.node_border_width
        assert canvas.resolved_edge("e0").color == palette.edge_color

    def test_unknown_field_rejected(self):
        canvas = MemoryCanvas(four_cycle())
        with pytest.raises(KeyError):
            canvas.apply_node_update("A", {"radius": 3})
        with pytest.raises(KeyError):
            canvas.apply_edge_update("e0", {"dashes": True})

    def test_fit_view_covers_nodes(self):
        positions = {"A": (-100.0, 0.0), "B": (100.0, 50.0), "C": (0.0, -50.0), "D": (0.0, 0.0)}
        canvas = MemoryCanvas(four_cycle(), positions)
        view = canvas.viewport
        for x, y in positions.values():
            assert view.min_x < x < view.max_x
            assert view.min_y < y < view.max_y

    def test_snapshots(self):
        canvas = MemoryCanvas(four_cycle())
        assert [n.id for n in canvas.get_node_snapshot()] == ["A", "B", "C", "D"]
        assert len(canvas.get_edge_snapshot()) == 4


# ============================================================
# TEST 2: Rendering
# ============================================================

class TestRendering:
    """PIL frames and GIF output."""

    def test_world_to_screen_corners(self):
        canvas = MemoryCanvas(four_cycle(), {"A": (0.0, 0.0), "B": (10.0, 10.0), "C": (0.0, 10.0), "D": (10.0, 0.0)})
        view = canvas.viewport
        x0, y0 = world_to_screen(view.min_x, view.min_y, view, 200, 200, margin=0)
        x1, y1 = world_to_screen(view.max_x, view.max_y, view, 200, 200, margin=0)
        assert (x0, y0) == (0, 0)
        assert abs(x1 - 200) <= 1 and abs(y1 - 200) <= 1

    def test_render_frame_size(self):
        canvas = MemoryCanvas(four_cycle(), {"A": (0.0, 0.0), "B": (50.0, 0.0), "C": (50.0, 50.0), "D": (0.0, 50.0)})
        img = render_frame(canvas, width=320, height=240, status="hello")
        assert isinstance(img, Image.Image)
        assert img.size == (320, 240)

    def test_render_draws_something(self):
        canvas = MemoryCanvas(four_cycle(), {"A": (0.0, 0.0), "B": (50.0, 0.0), "C": (50.0, 50.0), "D": (0.0, 50.0)})
        img = render_frame(canvas, width=200, height=200, show_labels=False)
        colors = img.getcolors(maxcolors=200 * 200)
        assert len(colors) > 1, "Frame is blank"

    def test_record_playback(self):
        snapshot = four_cycle()
        result = run_kernighan_lin(snapshot, fast_config())
        canvas = MemoryCanvas(snapshot)
        frames = record_playback(result.steps, canvas, speed_factor=4.0, fps=20, capture_every=2, width=160, height=120)

        assert len(frames) >= 2
        assert all(frame.size == (160, 120) for frame in frames)

    def test_record_final_frame_only(self):
        snapshot = four_cycle()
        result = run_kernighan_lin(snapshot, fast_config())
        frames = record_playback(result.steps, MemoryCanvas(snapshot), speed_factor=8.0, capture_every=0, width=80, height=60)
        assert len(frames) == 1

    def test_render_animation(self, tmp_path):
        frames = [Image.new("RGB", (40, 30), (i * 40, 0, 0)) for i in range(4)]
        out = render_animation(frames, str(tmp_path / "anim.gif"), fps=10)
        with Image.open(out) as gif:
            assert gif.size == (40, 30)
            assert getattr(gif, "n_frames", 1) == 4

    def test_render_animation_requires_frames(self, tmp_path):
        with pytest.raises(ValueError):
            render_animation([], str(tmp_path / "empty.gif"))


# ============================================================
# TEST 3: Configuration
# ============================================================

class TestConfig:
    """AnimationConfig dict round trip and partial overrides."""

    def test_round_trip(self):
        config = AnimationConfig()
        assert AnimationConfig.from_dict(config.to_dict()) == config

    def test_partial_override(self):
        config = AnimationConfig.from_dict({
            "final_delay": 42,
            "palette": {"gain_edge": "#00AA00"},
            "edge_timing": {"color": {"highlight": 10}},
        })
        assert config.final_delay == 42.0
        assert config.palette.gain_edge == "#00AA00"
        assert config.palette.loss_edge == Palette().loss_edge
        assert config.edge_timing.color.highlight == 10.0
        assert config.edge_timing.width.total == 0.0

    def test_load_config_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"inspect_delay": 5}))
        assert load_config(str(path)).inspect_delay == 5.0
        assert load_config(None) == AnimationConfig()

    def test_load_config_invalid(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops")
        with pytest.raises(BisectVizError):
            load_config(str(path))

    @pytest.mark.parametrize("overrides", [
        {"palette": 3},
        {"edge_timing": ["color"]},
        {"candidate_timing": {"width": 5}},
    ])
    def test_non_object_sections_rejected(self, tmp_path, overrides):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(overrides))
        with pytest.raises(BisectVizError):
            load_config(str(path))


# ============================================================
# TEST 4: Command line
# ============================================================

class TestCLI:
    """End-to-end runs of `main`."""

    def test_parser_defaults(self):
        args = build_parser().parse_args(["--demo"])
        assert args.nodes == 10
        assert args.speed == 1.0
        assert args.render is None

    def test_demo_to_file(self, tmp_path):
        out = tmp_path / "result.json"
        code = main(["--demo", "--nodes", "8", "--output", str(out), "--quiet"])
        assert code == 0

        data = json.loads(out.read_text())
        assert set(data["partition"]) == {str(i) for i in range(8)}
        assert isinstance(data["cutSize"], int)
        assert len(data["exchangePairs"]) == 4

    def test_input_file_with_steps(self, tmp_path, capsys):
        graph = tmp_path / "graph.json"
        graph.write_text(snapshot_to_json(four_cycle()))
        code = main(["--input", str(graph), "--steps", "--quiet"])
        assert code == 0

        data = json.loads(capsys.readouterr().out)
        assert data["cutSize"] == 2
        assert data["partition"] == {"A": 1, "B": 0, "C": 0, "D": 1}
        assert data["animation"][0]["description"] == "Disable interaction and physics"
        assert data["animation"][-1]["description"] == "Unlock nodes"

    def test_invalid_input(self, tmp_path, capsys):
        graph = tmp_path / "graph.json"
        graph.write_text('{"nodes": ["a"], "edges": [["a", "b"]]}')
        assert main(["--input", str(graph), "--quiet"]) == 1
        assert "error:" in capsys.readouterr().err

    def test_malformed_graph_shape(self, tmp_path, capsys):
        graph = tmp_path / "graph.json"
        graph.write_text('{"nodes": 7, "edges": []}')
        assert main(["--input", str(graph), "--quiet"]) == 1
        assert "must be lists" in capsys.readouterr().err

    def test_malformed_config(self, tmp_path, capsys):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"palette": 3}))
        assert main(["--demo", "--config", str(config), "--quiet"]) == 1
        assert "error:" in capsys.readouterr().err

    def test_render_png(self, tmp_path):
        graph = tmp_path / "graph.json"
        graph.write_text(snapshot_to_json(four_cycle()))
        config = tmp_path / "config.json"
        config.write_text(json.dumps(fast_config().to_dict()))
        out = tmp_path / "final.png"

        code = main([
            "--input", str(graph),
            "--config", str(config),
            "--render", str(out),
            "--width", "120",
            "--height", "90",
            "--output", str(tmp_path / "result.json"),
            "--quiet",
        ])
        assert code == 0
        with Image.open(out) as img:
            assert img.size == (120, 90)
