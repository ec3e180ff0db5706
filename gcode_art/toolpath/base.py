"""Base generator -- structural pad printed under the artwork.

Per layer the generator runs a fixed sequence::

    Walls -> Retract + Lift -> Infill -> Layer-close lift

Walls are ``NUM_WALLS`` concentric contours ``WALL_SPACING`` apart,
traced at ``BASE_LINE_WIDTH``.  Infill is a boustrophedon scan at
``BASE_OVERLAP`` row pitch inside the innermost wall; rows in the first
10 % of the fill height run at half the base speed for adhesion.

The outline follows the pattern (``BaseShape``): a disc of diameter
``min(width, height)`` for spirals, the centred square for the square
spiral and the space-filling curve, the whole print area otherwise.

After the last layer the filament-change transition is emitted and the
effective inward margin is returned for clipping the artwork.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from gcode_art.configs.loader import (
    BaseConfig,
    BaseShape,
    ChangeMode,
    FilamentChangePlan,
    MaterialModel,
    PrintArea,
)
from gcode_art.job_ir.instructions import extrude, z_move
from gcode_art.toolpath.motion import MotionEncoder

logger = logging.getLogger(__name__)

BASE_OVERLAP = 0.45
WALL_SPACING = 0.42
NUM_WALLS = 3
BASE_LINE_WIDTH = 0.5
WALL_RES_MM = 0.5
MIN_CIRCLE_POINTS = 60

RETRACT_MM = 0.8
PRIME_MM = 0.9
INFILL_LIFT_MM = 0.4
LAYER_CLOSE_LIFT_MM = 0.5
SLOW_FILL_FRACTION = 0.1

# Feeds below are G-code F words (mm/min).
Z_FEED = 1000
RETRACT_FEED = 3000
RAPID_FEED = 6000

_SHAPE_LABELS = {
    BaseShape.CIRCLE: "Circular",
    BaseShape.SQUARE: "Square",
    BaseShape.RECTANGLE: "Rectangular",
}


def effective_margin(base: BaseConfig) -> float:
    """Inward margin between the base outline and the artwork."""
    return NUM_WALLS * WALL_SPACING + base.margin


class BaseGenerator:
    """Emit base layers and the filament-change transition.

    Parameters
    ----------
    encoder : MotionEncoder
        Shared run encoder.
    area : PrintArea
        Artwork area; the base outline is derived from it.
    material : MaterialModel
        Layer height and Z offset.
    base : BaseConfig
        Layer count, margin, speed (mm/s) and shape.
    change : FilamentChangePlan
        Manual pause or slot selection.
    """

    def __init__(
        self,
        encoder: MotionEncoder,
        area: PrintArea,
        material: MaterialModel,
        base: BaseConfig,
        change: FilamentChangePlan,
    ) -> None:
        self._enc = encoder
        self._area = area
        self._material = material
        self._base = base
        self._change = change

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self) -> float:
        """Emit the full base plus transition.

        Returns
        -------
        float
            Effective inward margin for the artwork clip region.
        """
        enc = self._enc
        cfg = self._base

        if self._change.mode is ChangeMode.SLOT:
            enc.directive(self._change.base_slot, comment="Select Base Filament Slot")
            enc.directive("M400", comment="Wait for load")
        enc.append(z_move(self._material.safe_z, RAPID_FEED, rapid=True))

        enc.comment(f"--- {_SHAPE_LABELS[cfg.shape]} Base (Adaptive) ---")
        logger.info(
            "Base: %s, %d layers, margin %.2f mm", cfg.shape.value, cfg.layers, cfg.margin
        )

        for layer in range(cfg.layers):
            z = self._material.z_offset + layer * self._material.layer_height
            enc.append(z_move(z, Z_FEED, comment=f"Base layer {layer + 1}/{cfg.layers}"))

            if cfg.shape is BaseShape.CIRCLE:
                self._circle_walls()
            else:
                self._rect_walls()

            enc.append(extrude(-RETRACT_MM, RETRACT_FEED))
            enc.append(z_move(z + INFILL_LIFT_MM, RAPID_FEED, rapid=True))

            if cfg.shape is BaseShape.CIRCLE:
                self._circle_infill(z)
            else:
                self._rect_infill(z)

            enc.append(z_move(z + LAYER_CLOSE_LIFT_MM, RAPID_FEED, rapid=True))

        self.transition()
        return effective_margin(cfg)

    def transition(self) -> None:
        """Switch from base material to drawing material."""
        enc = self._enc
        enc.comment("--- TRANSITION TO ARTWORK ---")

        if self._change.mode is ChangeMode.SLOT:
            enc.directive("M400")
            enc.directive("G91")
            enc.directive("G1 Z5 F3000")
            enc.directive("G90")
            enc.directive(self._change.drawing_slot)
            enc.directive("M400")
            return

        park_x, park_y = self._area.park_point
        enc.directive("G91")
        enc.append(extrude(-5, RETRACT_FEED))
        enc.directive("G1 Z10 F1000")
        enc.directive("G90")
        enc.travel_to(park_x, park_y, comment="Park at bed center for filament change")
        enc.directive("M600")

    # ------------------------------------------------------------------
    # Outline geometry
    # ------------------------------------------------------------------

    def _outline_rect(self) -> tuple[float, float, float, float]:
        a = self._area
        if self._base.shape is BaseShape.SQUARE:
            ox, oy = a.square_origin
            d = a.square_dim
            return (ox, oy, ox + d, oy + d)
        return (a.offset_x, a.offset_y, a.offset_x + a.width, a.offset_y + a.height)

    def _segment(self, x: float, y: float, speed: float | None = None) -> None:
        self._enc.emit(
            self._enc.position,
            (x, y),
            BASE_LINE_WIDTH,
            self._base.speed if speed is None else speed,
            skip_short=True,
        )

    # ------------------------------------------------------------------
    # Walls
    # ------------------------------------------------------------------

    def _circle_walls(self) -> None:
        cx, cy = self._area.center
        radius = self._area.square_dim / 2.0

        for w in range(NUM_WALLS):
            r = radius - w * WALL_SPACING
            n = max(MIN_CIRCLE_POINTS, math.ceil(2.0 * math.pi * r / WALL_RES_MM))
            d_angle = 2.0 * math.pi / n

            self._enc.travel_to(cx + r, cy)
            for i in range(1, n + 1):
                angle = i * d_angle
                self._segment(cx + r * math.cos(angle), cy + r * math.sin(angle))

    def _rect_walls(self) -> None:
        bx0, by0, bx1, by1 = self._outline_rect()

        for w in range(NUM_WALLS):
            inset = w * WALL_SPACING
            x0, y0 = bx0 + inset, by0 + inset
            x1, y1 = bx1 - inset, by1 - inset

            self._enc.travel_to(x0, y0)

            bottom = max(2, int((x1 - x0) // WALL_RES_MM))
            right = max(2, int((y1 - y0) // WALL_RES_MM))

            for i in range(1, bottom + 1):
                self._segment(x0 + (x1 - x0) * i / bottom, y0)
            for i in range(1, right + 1):
                self._segment(x1, y0 + (y1 - y0) * i / right)
            for i in range(1, bottom + 1):
                self._segment(x1 - (x1 - x0) * i / bottom, y1)
            # Stop one sub-segment short of the start corner.
            for i in range(1, right):
                self._segment(x0, y1 - (y1 - y0) * i / right)

    # ------------------------------------------------------------------
    # Infill
    # ------------------------------------------------------------------

    def _enter_infill(self, x: float, y: float, z: float) -> None:
        enc = self._enc
        enc.travel_to(x, y)
        enc.append(z_move(z, Z_FEED))
        enc.append(extrude(PRIME_MM, RETRACT_FEED))

    def _circle_infill(self, z: float) -> None:
        cx, cy = self._area.center
        fill_r = self._area.square_dim / 2.0 - NUM_WALLS * WALL_SPACING
        slow_until = -fill_r + 2.0 * fill_r * SLOW_FILL_FRACTION
        half = self._base.speed * 0.5

        self._enter_infill(cx, cy - fill_r, z)

        going_right = True
        for y_rel in np.arange(-fill_r, fill_r + 1e-9, BASE_OVERLAP):
            x_lim = math.sqrt(max(0.0, fill_r * fill_r - y_rel * y_rel))
            y = cy + float(y_rel)
            speed = half if y_rel < slow_until else None

            left, right = cx - x_lim, cx + x_lim
            if going_right:
                self._segment(left, y, speed)
                self._segment(right, y, speed)
            else:
                self._segment(right, y, speed)
                self._segment(left, y, speed)
            going_right = not going_right

    def _rect_infill(self, z: float) -> None:
        bx0, by0, bx1, by1 = self._outline_rect()
        inner = NUM_WALLS * WALL_SPACING
        fx0, fy0 = bx0 + inner, by0 + inner
        fx1, fy1 = bx1 - inner, by1 - inner
        slow_height = (fy1 - fy0) * SLOW_FILL_FRACTION
        half = self._base.speed * 0.5

        self._enter_infill(fx0, fy0, z)

        going_right = True
        for y in np.arange(fy0, fy1 + 1e-9, BASE_OVERLAP):
            y = float(y)
            speed = half if y - fy0 < slow_height else None
            if going_right:
                self._segment(fx0, y, speed)
                self._segment(fx1, y, speed)
            else:
                self._segment(fx1, y, speed)
                self._segment(fx0, y, speed)
            going_right = not going_right
