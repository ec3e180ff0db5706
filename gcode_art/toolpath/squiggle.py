"""Squiggle modulator -- sinusoidal perpendicular perturbation.

A straight artwork segment from ``start`` to ``end`` is split into
``N = max(2, floor(length / 0.1))`` sub-segments.  Each intermediate
point is pushed sideways by::

    sin(distance_along_segment * frequency * 2pi) * amplitude * darkness

along the unit normal ``(-dy, dx) / |d|``.  The final point lands on
``end`` unperturbed.  Segments in light regions (darkness < 0.1), or
with a negligible amplitude, pass straight through to the encoder.

Darkness is sampled once per input segment unless the run enables
``squiggle_resample``, in which case every sub-point is re-sampled.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from gcode_art.configs.loader import PathParameters
from gcode_art.toolpath.curves import TWO_PI
from gcode_art.toolpath.geometry import ClipRegion, NoClip
from gcode_art.toolpath.motion import MIN_SEGMENT_MM, MotionEncoder, Point

logger = logging.getLogger(__name__)

SQUIGGLE_MIN_DARKNESS = 0.1
SQUIGGLE_STEP_MM = 0.1


class SquiggleModulator:
    """Route artwork segments through the encoder, perturbing dark ones.

    Parameters
    ----------
    encoder : MotionEncoder
        Shared run encoder.
    params : PathParameters
        Width/speed mapping plus squiggle amplitude and frequency.
    clip : ClipRegion | None
        Sub-points falling outside are emitted as travels.
    darkness_at : callable | None
        ``(x, y) -> darkness``; required when ``params.squiggle_resample``.
    """

    def __init__(
        self,
        encoder: MotionEncoder,
        params: PathParameters,
        clip: ClipRegion | None = None,
        darkness_at: Callable[[float, float], float] | None = None,
    ) -> None:
        if params.squiggle_resample and darkness_at is None:
            raise ValueError("squiggle_resample needs a darkness_at callable")
        self._enc = encoder
        self._params = params
        self._clip = clip or NoClip()
        self._darkness_at = darkness_at

    def apply(self, start: Point, end: Point, darkness: float) -> None:
        """Emit the segment ``start -> end`` sampled at *darkness*."""
        p = self._params
        width = p.width_for(darkness)
        speed = p.speed_for(darkness)

        length = math.hypot(end[0] - start[0], end[1] - start[1])
        if (
            not p.use_squiggle
            or darkness < SQUIGGLE_MIN_DARKNESS
            or length < MIN_SEGMENT_MM
        ):
            self._enc.emit(start, end, width, speed)
            return

        n = max(2, int(length // SQUIGGLE_STEP_MM))
        nx = -(end[1] - start[1]) / length
        ny = (end[0] - start[0]) / length
        freq = p.squiggle_frequency * TWO_PI

        prev = start
        for i in range(1, n + 1):
            t = i / n
            px = start[0] + (end[0] - start[0]) * t
            py = start[1] + (end[1] - start[1]) * t

            d = darkness
            if p.squiggle_resample:
                d = self._darkness_at(px, py)
                width = p.width_for(d)
                speed = p.speed_for(d)

            if i < n:
                offset = math.sin(t * length * freq) * p.squiggle_amplitude * d
                px += nx * offset
                py += ny * offset

            point = (px, py)
            self._enc.emit(prev, point, width, speed, is_travel=not self._clip.contains(px, py))
            prev = point
