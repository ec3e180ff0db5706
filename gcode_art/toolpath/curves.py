"""Curve generators -- the five pattern families.

Each pattern is a small dataclass carrying only the geometry it needs.
Iterating it yields ``PathPoint`` objects in traversal order; iteration
is lazy, finite and **restartable** (every ``iter()`` starts over).  The
pattern's ``start`` point is not re-emitted by iteration: the caller
positions the head there first.

``PathPoint.connect`` marks a point reached by a repositioning move
between scan lines or laps; the orchestrator emits those as travels.

Families
--------
``HilbertCurve``
    Space-filling curve over a 2^o x 2^o grid; consecutive cells are
    always grid neighbours.
``ArchimedeanSpiral``
    r = spacing * theta / 2pi with roughly constant arc step.
``SquareSpiral``
    Shrinking square laps inset by ``spacing``.
``Zigzag``
    Horizontal boustrophedon scan lines.
``DiagonalZigzag``
    Iso-sum diagonals (x + y = const) joined by printed connectors.

Spiral and square spiral are capped at ``MAX_LOOP_ITERATIONS``; reaching
the cap ends the pattern early and sets ``capped``; the caller reports it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Union

TWO_PI = 2.0 * math.pi
MAX_LOOP_ITERATIONS = 100_000
SEGMENT_RES_MM = 0.5
"""Sub-segment length used to subdivide straight pattern edges."""


@dataclass(frozen=True, slots=True)
class PathPoint:
    """Pattern vertex in machine mm."""

    x: float
    y: float
    connect: bool = False


def hilbert_d2xy(order: int, d: int) -> tuple[int, int]:
    """Map a linear index to a Hilbert-curve grid cell.

    Parameters
    ----------
    order : int
        Curve order; the grid is ``2**order`` cells on a side.
    d : int
        Index in ``[0, 4**order)``.

    Returns
    -------
    tuple[int, int]
        Integer cell ``(x, y)``.

    Notes
    -----
    Standard quadrant recurrence: for each scale ``s`` (1, 2, 4, ...)
    take two bits of the index, reflect and/or transpose the partial
    result depending on the quadrant, then offset by ``s``.
    """
    n = 1 << order
    if not 0 <= d < n * n:
        raise ValueError(f"Index {d} outside [0, {n * n}) for order {order}")

    x = y = 0
    t = d
    s = 1
    while s < n:
        rx = 1 & (t >> 1)
        ry = 1 & (t ^ rx)
        if ry == 0:
            if rx == 1:
                x = s - 1 - x
                y = s - 1 - y
            x, y = y, x
        x += s * rx
        y += s * ry
        t >>= 2
        s *= 2
    return x, y


def _subdivide(
    x0: float, y0: float, x1: float, y1: float, length: float,
) -> Iterator[PathPoint]:
    """Points along a segment, excluding the start, at ~SEGMENT_RES_MM."""
    n = max(2, int(length // SEGMENT_RES_MM))
    for k in range(1, n + 1):
        t = k / n
        yield PathPoint(x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)


# ---------------------------------------------------------------------------
# Space-filling curve
# ---------------------------------------------------------------------------


@dataclass
class HilbertCurve:
    """Hilbert curve scaled onto a square region.

    Parameters
    ----------
    order : int
        Curve order (3..8 in practice).
    origin : tuple[float, float]
        Lower-left corner of the square (mm).
    size : float
        Side of the square (mm).
    """

    order: int
    origin: tuple[float, float]
    size: float

    @property
    def step(self) -> float:
        return self.size / (1 << self.order)

    def _point(self, d: int) -> PathPoint:
        cx, cy = hilbert_d2xy(self.order, d)
        return PathPoint(self.origin[0] + cx * self.step, self.origin[1] + cy * self.step)

    @property
    def start(self) -> tuple[float, float]:
        p = self._point(0)
        return (p.x, p.y)

    def __iter__(self) -> Iterator[PathPoint]:
        total = 1 << (2 * self.order)
        for d in range(1, total):
            yield self._point(d)


# ---------------------------------------------------------------------------
# Spirals
# ---------------------------------------------------------------------------


@dataclass
class ArchimedeanSpiral:
    """Outward spiral around ``center`` until ``max_radius``.

    The angular step is ``SEGMENT_RES_MM / max(0.5, r)`` so the arc
    length per step stays near constant.
    """

    center: tuple[float, float]
    spacing: float
    max_radius: float
    max_iterations: int = MAX_LOOP_ITERATIONS
    capped: bool = field(default=False, init=False)

    @property
    def start(self) -> tuple[float, float]:
        return self.center

    def __iter__(self) -> Iterator[PathPoint]:
        self.capped = False
        cx, cy = self.center
        radius = 0.0
        angle = 0.0
        iterations = 0

        while radius < self.max_radius:
            if iterations >= self.max_iterations:
                self.capped = True
                return
            iterations += 1

            angle += SEGMENT_RES_MM / max(0.5, radius)
            radius = (self.spacing / TWO_PI) * angle
            if radius > self.max_radius:
                break
            yield PathPoint(cx + radius * math.cos(angle), cy + radius * math.sin(angle))


@dataclass
class SquareSpiral:
    """Inward square laps starting at the outer lower-left corner."""

    origin: tuple[float, float]
    size: float
    spacing: float
    max_iterations: int = MAX_LOOP_ITERATIONS
    capped: bool = field(default=False, init=False)

    @property
    def start(self) -> tuple[float, float]:
        return self.origin

    def __iter__(self) -> Iterator[PathPoint]:
        self.capped = False
        size = self.size
        ox, oy = self.origin
        s = self.spacing
        iterations = 0

        while size > s * 1.5:
            if iterations >= self.max_iterations:
                self.capped = True
                break
            iterations += 1

            x0, y0 = ox, oy
            x1, y1 = ox + size, oy + size
            yield from _subdivide(x0, y0, x1, y0, size)
            yield from _subdivide(x1, y0, x1, y1, size)
            yield from _subdivide(x1, y1, x0, y1, size)
            # Left edge stops one spacing short so the next lap starts inside.
            yield from _subdivide(x0, y1, x0, y1 - (size - s), size - s)

            yield PathPoint(ox + s, oy + s, connect=True)

            size -= 2.0 * s
            ox += s
            oy += s

        if size > 0:
            yield PathPoint(ox + size / 2.0, oy + size / 2.0)


# ---------------------------------------------------------------------------
# Scan patterns
# ---------------------------------------------------------------------------


@dataclass
class Zigzag:
    """Horizontal scan lines ``spacing`` apart, alternating direction."""

    origin: tuple[float, float]
    width: float
    height: float
    spacing: float

    @property
    def start(self) -> tuple[float, float]:
        return self.origin

    def __iter__(self) -> Iterator[PathPoint]:
        ox, oy = self.origin
        lines = int(self.height // self.spacing)
        for i in range(lines):
            y = oy + i * self.spacing
            if i % 2 == 0:
                xs, xe = ox, ox + self.width
            else:
                xs, xe = ox + self.width, ox
            if i > 0:
                yield PathPoint(xs, y, connect=True)
            yield from _subdivide(xs, y, xe, y, self.width)


@dataclass
class DiagonalZigzag:
    """Diagonal scan (lines of constant x + y) over a rectangle.

    Lines are ``spacing * sqrt(2)`` apart along each axis, which puts
    them ``spacing`` apart perpendicular to the line.  The head never
    travels between lines: each new line start is reached by a short
    printed connector so brightness sampling stays continuous.
    """

    origin: tuple[float, float]
    width: float
    height: float
    spacing: float

    @property
    def start(self) -> tuple[float, float]:
        return self.origin

    def _endpoints(self, total: float) -> tuple[float, float, float, float]:
        w, h = self.width, self.height
        p1x = 0.0 if total <= h else total - h
        p1y = total if total <= h else h
        p2x = total if total <= w else w
        p2y = 0.0 if total <= w else total - w
        return (
            min(max(p1x, 0.0), w),
            min(max(p1y, 0.0), h),
            min(max(p2x, 0.0), w),
            min(max(p2y, 0.0), h),
        )

    def __iter__(self) -> Iterator[PathPoint]:
        ox, oy = self.origin
        axis_step = self.spacing * math.sqrt(2.0)
        count = int((self.width + self.height) // axis_step)
        first = True

        for i in range(count + 1):
            p1x, p1y, p2x, p2y = self._endpoints(i * axis_step)
            if i % 2 == 0:
                sx, sy, ex, ey = p1x, p1y, p2x, p2y
            else:
                sx, sy, ex, ey = p2x, p2y, p1x, p1y

            length = math.hypot(ex - sx, ey - sy)
            if length < 0.01:
                continue

            yield PathPoint(ox + sx, oy + sy, connect=first)
            first = False
            yield from _subdivide(ox + sx, oy + sy, ox + ex, oy + ey, length)


Pattern = Union[HilbertCurve, ArchimedeanSpiral, SquareSpiral, Zigzag, DiagonalZigzag]
