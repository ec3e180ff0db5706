"""Clip regions for the artwork pattern.

When a base is printed the artwork must stay inside the base's innermost
wall.  Each region answers ``contains(x, y)`` with a closed (inclusive)
test; points exactly on the boundary are inside.

``inner_boundary`` builds the region for a base shape from the print
area and the effective inward margin returned by the base generator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from gcode_art.configs.loader import BaseShape, PrintArea


@dataclass(frozen=True)
class NoClip:
    """Everything is inside (no base configured)."""

    def contains(self, x: float, y: float) -> bool:
        return True


@dataclass(frozen=True)
class CircleClip:
    """Closed disc."""

    cx: float
    cy: float
    radius: float

    def contains(self, x: float, y: float) -> bool:
        return math.hypot(x - self.cx, y - self.cy) <= self.radius


@dataclass(frozen=True)
class RectClip:
    """Closed axis-aligned rectangle ``(xmin, ymin, xmax, ymax)``."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def contains(self, x: float, y: float) -> bool:
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax


ClipRegion = Union[NoClip, CircleClip, RectClip]


def inner_boundary(area: PrintArea, shape: BaseShape, margin: float) -> ClipRegion:
    """Region inside the base walls, inset by *margin* mm.

    Parameters
    ----------
    area : PrintArea
        Print area the base covers.
    shape : BaseShape
        Base outline.
    margin : float
        Effective inward margin (walls plus configured margin).

    Returns
    -------
    ClipRegion
        Closed region the artwork may print inside.  A margin larger
        than the base yields an empty (inverted) region.
    """
    if shape is BaseShape.CIRCLE:
        cx, cy = area.center
        return CircleClip(cx, cy, area.square_dim / 2.0 - margin)

    if shape is BaseShape.SQUARE:
        ox, oy = area.square_origin
        d = area.square_dim
        return RectClip(ox + margin, oy + margin, ox + d - margin, oy + d - margin)

    return RectClip(
        area.offset_x + margin,
        area.offset_y + margin,
        area.offset_x + area.width - margin,
        area.offset_y + area.height - margin,
    )

