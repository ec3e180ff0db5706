"""Tests for the base generator.

Validates the per-layer sequence, outline containment for each shape,
half-speed first infill rows, and both filament-change transitions.
"""

from __future__ import annotations

import math
from typing import Any

import pytest

from gcode_art.configs.loader import BaseShape, GenerationConfig, build_config
from gcode_art.gcode.generator import GCodeGenerator
from gcode_art.job_ir.instructions import MachineDirective, Print, Travel
from gcode_art.toolpath.base import (
    BASE_LINE_WIDTH,
    NUM_WALLS,
    WALL_SPACING,
    BaseGenerator,
    effective_margin,
)
from gcode_art.toolpath.motion import MotionEncoder


def _config(**overrides: Any) -> GenerationConfig:
    raw = {
        "pattern": "zigzag",
        "print_width": 20,
        "print_height": 12,
        "base_enabled": True,
        "base_layers": 2,
        "base_margin": 1.0,
        "base_speed": 30,
    }
    raw.update(overrides)
    return build_config(raw)


def _run(cfg: GenerationConfig) -> tuple[MotionEncoder, float, list[str]]:
    enc = MotionEncoder(cfg.material)
    margin = BaseGenerator(enc, cfg.area, cfg.material, cfg.base, cfg.change).generate()
    lines = GCodeGenerator().generate(enc.instructions).splitlines()
    return enc, margin, lines


# ---------------------------------------------------------------------------
# Layer sequence
# ---------------------------------------------------------------------------


class TestLayerSequence:
    def test_layer_headers(self) -> None:
        _, _, lines = _run(_config())
        assert "G1 Z0.200 F1000 ; Base layer 1/2" in lines
        assert "G1 Z0.400 F1000 ; Base layer 2/2" in lines

    def test_retract_lift_prime_close_per_layer(self) -> None:
        _, _, lines = _run(_config())
        assert lines.count("G1 E-0.8 F3000") == 2
        assert lines.count("G1 E0.9 F3000") == 2
        assert "G0 Z0.600 F6000" in lines
        assert "G0 Z0.700 F6000" in lines
        assert "G0 Z0.800 F6000" in lines
        assert "G0 Z0.900 F6000" in lines

    def test_order_within_layer(self) -> None:
        _, _, lines = _run(_config(base_layers=1))
        header = lines.index("G1 Z0.200 F1000 ; Base layer 1/1")
        retract = lines.index("G1 E-0.8 F3000")
        lift = lines.index("G0 Z0.600 F6000")
        prime = lines.index("G1 E0.9 F3000")
        close = lines.index("G0 Z0.700 F6000")
        assert header < retract < lift < prime < close
        # Z drops back to layer height right before the prime.
        assert lines[prime - 1] == "G1 Z0.200 F1000"

    def test_safe_z_before_base(self) -> None:
        _, _, lines = _run(_config())
        assert lines[0] == "G0 Z5.200 F6000"

    def test_returns_effective_margin(self) -> None:
        cfg = _config(base_margin=1.5)
        _, margin, _ = _run(cfg)
        assert margin == pytest.approx(NUM_WALLS * WALL_SPACING + 1.5)
        assert margin == pytest.approx(effective_margin(cfg.base))


# ---------------------------------------------------------------------------
# Geometry per shape
# ---------------------------------------------------------------------------


class TestShapes:
    def test_rectangle_inside_area(self) -> None:
        cfg = _config()
        enc, _, _ = _run(cfg)
        a = cfg.area
        prints = [i for i in enc.instructions if isinstance(i, Print)]
        assert prints
        for p in prints:
            assert a.offset_x - 1e-9 <= p.x <= a.offset_x + a.width + 1e-9
            assert a.offset_y - 1e-9 <= p.y <= a.offset_y + a.height + 1e-9

    def test_rect_wall_starts_at_corner(self) -> None:
        cfg = _config()
        _, _, lines = _run(cfg)
        x0, y0 = cfg.area.offset_x, cfg.area.offset_y
        assert f"G0 X{x0:.3f} Y{y0:.3f} F6000" in lines

    def test_square_for_hilbert(self) -> None:
        cfg = _config(pattern="hilbert")
        assert cfg.base.shape is BaseShape.SQUARE
        enc, _, _ = _run(cfg)
        ox, oy = cfg.area.square_origin
        d = cfg.area.square_dim
        for p in (i for i in enc.instructions if isinstance(i, Print)):
            assert ox - 1e-9 <= p.x <= ox + d + 1e-9
            assert oy - 1e-9 <= p.y <= oy + d + 1e-9

    def test_circle_for_spiral(self) -> None:
        cfg = _config(pattern="spiral")
        assert cfg.base.shape is BaseShape.CIRCLE
        enc, _, lines = _run(cfg)
        cx, cy = cfg.area.center
        r = cfg.area.square_dim / 2.0
        for p in (i for i in enc.instructions if isinstance(i, Print)):
            assert math.hypot(p.x - cx, p.y - cy) <= r + 1e-9
        assert f"G0 X{cx + r:.3f} Y{cy:.3f} F6000" in lines

    def test_circle_wall_point_count(self) -> None:
        cfg = _config(pattern="spiral", base_layers=1)
        enc, _, _ = _run(cfg)
        r = cfg.area.square_dim / 2.0
        instrs = enc.instructions
        start = next(
            i for i, ins in enumerate(instrs)
            if isinstance(ins, Travel) and ins.x == pytest.approx(cfg.area.center[0] + r)
        )
        wall = []
        for ins in instrs[start + 1:]:
            if not isinstance(ins, Print):
                break
            wall.append(ins)
        assert len(wall) == max(60, math.ceil(2 * math.pi * r / 0.5))

    def test_wall_extrusion_uses_base_width(self) -> None:
        cfg = _config()
        enc, _, _ = _run(cfg)
        instrs = enc.instructions
        i = next(k for k, ins in enumerate(instrs) if isinstance(ins, Print))
        prev, cur = instrs[i - 1], instrs[i]
        length = math.hypot(cur.x - prev.x, cur.y - prev.y)
        assert cur.extrusion == pytest.approx(enc.extrusion_for(length, BASE_LINE_WIDTH), rel=1e-9)

    def test_no_zero_length_prints(self) -> None:
        enc, _, _ = _run(_config(pattern="squareSpiral"))
        assert all(i.extrusion > 0 for i in enc.instructions if isinstance(i, Print))

    def test_first_infill_rows_half_speed(self) -> None:
        cfg = _config()
        enc, _, _ = _run(cfg)
        speeds = {i.speed for i in enc.instructions if isinstance(i, Print)}
        assert speeds == {30.0, 15.0}


# ---------------------------------------------------------------------------
# Filament change
# ---------------------------------------------------------------------------


class TestTransition:
    def test_manual(self) -> None:
        _, _, lines = _run(_config(change_mode="manual"))
        t = lines.index("; --- TRANSITION TO ARTWORK ---")
        assert lines[t + 1:] == [
            "G91",
            "G1 E-5 F3000",
            "G1 Z10 F1000",
            "G90",
            "G0 X125.000 Y125.000 F6000 ; Park at bed center for filament change",
            "M600",
        ]

    def test_manual_park_centre_origin(self) -> None:
        _, _, lines = _run(_config(origin_at_center=True))
        assert "G0 X0.000 Y0.000 F6000 ; Park at bed center for filament change" in lines

    def test_slot(self) -> None:
        _, _, lines = _run(_config(change_mode="ams", base_slot="T2", drawing_slot="T3"))
        assert lines[:3] == [
            "T2 ; Select Base Filament Slot",
            "M400 ; Wait for load",
            "G0 Z5.200 F6000",
        ]
        t = lines.index("; --- TRANSITION TO ARTWORK ---")
        assert lines[t + 1:] == ["M400", "G91", "G1 Z5 F3000", "G90", "T3", "M400"]
        assert "M600" not in lines

    def test_total_matches_prints(self) -> None:
        enc, _, _ = _run(_config())
        assert enc.total_extruded == pytest.approx(
            sum(i.extrusion for i in enc.instructions if isinstance(i, Print))
        )
        assert not any(
            isinstance(i, MachineDirective) and i.code.startswith("G92") for i in enc.instructions
        )
