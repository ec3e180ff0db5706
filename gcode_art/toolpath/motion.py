"""Motion encoder -- the single place extrusion is computed.

Every higher-level component (base, squiggle, orchestrator) hands its
segments to ``MotionEncoder.emit``; nothing else converts distance into
filament length.  The encoder also owns the run's append-only
instruction list and the running extrusion total.

Extrusion model::

    E = segment_length * line_width * layer_height / filament_area
"""

from __future__ import annotations

import logging
import math

from gcode_art.configs.loader import MaterialModel
from gcode_art.job_ir.instructions import (
    TRAVEL_FEED_MM_S,
    Comment,
    Instruction,
    MachineDirective,
    Print,
    Travel,
)

logger = logging.getLogger(__name__)

MIN_SEGMENT_MM = 0.01
"""Segments shorter than this never extrude."""

Point = tuple[float, float]


class MotionEncoder:
    """Convert segments into ``Travel`` / ``Print`` instructions.

    Parameters
    ----------
    material : MaterialModel
        Filament diameter and layer height used for the extrusion model.
    """

    def __init__(self, material: MaterialModel) -> None:
        self._material = material
        self._area = material.filament_area
        self._instructions: list[Instruction] = []
        self._total = 0.0
        self.position: Point | None = None

    @property
    def instructions(self) -> list[Instruction]:
        return self._instructions

    @property
    def total_extruded(self) -> float:
        """Accumulated filament length (mm) over all ``Print`` moves."""
        return self._total

    def extrusion_for(self, length: float, width: float) -> float:
        return length * width * self._material.layer_height / self._area

    def emit(
        self,
        start: Point,
        end: Point,
        width: float,
        speed: float,
        is_travel: bool = False,
        skip_short: bool = False,
    ) -> Instruction | None:
        """Encode the move from *start* to *end*.

        Parameters
        ----------
        start, end : tuple[float, float]
            Segment endpoints in machine mm.
        width : float
            Target line width (mm).
        speed : float
            Print feed in mm/s (ignored for travels).
        is_travel : bool
            Force a non-extruding move.
        skip_short : bool
            Drop segments under ``MIN_SEGMENT_MM`` instead of travelling.

        Returns
        -------
        Instruction | None
            The appended instruction, or ``None`` when skipped.
        """
        length = math.hypot(end[0] - start[0], end[1] - start[1])

        if length < MIN_SEGMENT_MM and skip_short and not is_travel:
            return None

        if is_travel or length < MIN_SEGMENT_MM:
            instr: Instruction = Travel(end[0], end[1])
        else:
            e = self.extrusion_for(length, width)
            self._total += e
            instr = Print(end[0], end[1], e, speed)

        self._instructions.append(instr)
        self.position = end
        return instr

    def travel_to(
        self,
        x: float,
        y: float,
        z: float | None = None,
        comment: str | None = None,
    ) -> Travel:
        """Rapid move, optionally with a simultaneous Z target."""
        instr = Travel(x, y, z=z, feed=TRAVEL_FEED_MM_S, comment=comment)
        self._instructions.append(instr)
        self.position = (x, y)
        return instr

    def directive(self, code: str, comment: str | None = None) -> MachineDirective:
        instr = MachineDirective(code, comment=comment)
        self._instructions.append(instr)
        return instr

    def append(self, instr: MachineDirective | Comment) -> None:
        self._instructions.append(instr)

    def comment(self, text: str) -> Comment:
        instr = Comment(text)
        self._instructions.append(instr)
        return instr
