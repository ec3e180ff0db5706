"""G-code formatter -- toolpath instructions to G-code text.

Each instruction becomes exactly one line.  The artwork block is plain
line-oriented text joined with ``\\n`` and no trailing newline, ready to
be spliced into a template.

Feed rate convention:
    Python stores feed rates in **mm/s**.  This module converts to the
    G-code ``F`` parameter (mm/min) at the generation boundary::

        F_value = round(feed_mm_s * 60)

Number formats:
    positions 3 decimals, extrusion 5 decimals, feed integer.
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Iterable

from gcode_art.job_ir.instructions import (
    Comment,
    Instruction,
    MachineDirective,
    Print,
    Travel,
)

logger = logging.getLogger(__name__)


class GCodeError(Exception):
    """Raised when an instruction cannot be rendered."""

    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _f(feed_mm_s: float) -> str:
    """Convert mm/s feed rate to G-code ``F`` parameter (mm/min)."""
    return f"F{feed_mm_s * 60.0:.0f}"


def _with_comment(code: str, comment: str | None) -> str:
    return f"{code} ; {comment}" if comment else code


def format_instruction(instr: Instruction) -> str:
    """Render one instruction as a single G-code line.

    Raises
    ------
    GCodeError
        If *instr* is not a known instruction variant.
    """
    if isinstance(instr, Print):
        return f"G1 X{instr.x:.3f} Y{instr.y:.3f} E{instr.extrusion:.5f} {_f(instr.speed)}"
    if isinstance(instr, Travel):
        z = f" Z{instr.z:.3f}" if instr.z is not None else ""
        return _with_comment(f"G0 X{instr.x:.3f} Y{instr.y:.3f}{z} {_f(instr.feed)}", instr.comment)
    if isinstance(instr, MachineDirective):
        return _with_comment(instr.code, instr.comment)
    if isinstance(instr, Comment):
        return f"; {instr.text}"
    raise GCodeError(f"Unsupported instruction: {type(instr).__name__}")


class GCodeGenerator:
    """Render an instruction sequence as G-code text."""

    def generate(self, instructions: Iterable[Instruction]) -> str:
        """Render the full artwork block.

        Parameters
        ----------
        instructions : Iterable[Instruction]
            Ordered output of a generation run.

        Returns
        -------
        str
            Lines joined with ``\\n`` (no trailing newline).
        """
        buf = StringIO()
        count = 0
        for instr in instructions:
            if count:
                buf.write("\n")
            buf.write(format_instruction(instr))
            count += 1
        logger.debug("Rendered %d G-code lines", count)
        return buf.getvalue()
