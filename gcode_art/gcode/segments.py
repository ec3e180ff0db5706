"""Preview segments -- G-code text back to 3D line segments.

The 3D viewer draws one line per positional change.  This parser walks
``G0`` / ``G1`` lines tracking X/Y/Z and tags each segment with whether it
extrudes and whether it belongs to the base (everything before the
artwork start comment or the first pause directive).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

POSITION_EPS = 0.001

# Accepts numbers like X.5 (leading decimal point).
_WORD = re.compile(r"([XYZE])\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))", re.IGNORECASE)
_MOTION = re.compile(r"^G[01](?!\d)", re.IGNORECASE)
_PAUSE = re.compile(r"^(M0|M600)(?!\d)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Segment:
    """One straight move in machine mm."""

    start: tuple[float, float, float]
    end: tuple[float, float, float]
    extrude: bool
    is_base: bool


def parse_words(line: str) -> dict[str, float]:
    """Parse X, Y, Z, E words from a G-code line (comment already stripped)."""
    return {m.group(1).upper(): float(m.group(2)) for m in _WORD.finditer(line)}


def parse_segments(gcode: str) -> list[Segment]:
    """Convert G-code text into preview segments.

    Parameters
    ----------
    gcode : str
        Artwork block or merged program.

    Returns
    -------
    list[Segment]
        Segments in program order.  Moves that change no axis by more
        than ``POSITION_EPS`` are skipped.
    """
    segments: list[Segment] = []
    x = y = z = 0.0
    in_base = True

    for raw in gcode.splitlines():
        line = raw.strip()
        if not line or line.startswith(";"):
            if "STARTING ARTWORK DRAWING" in line:
                in_base = False
            continue

        code = line.split(";", 1)[0].strip()
        if _PAUSE.match(code):
            in_base = False
            continue
        if not _MOTION.match(code):
            continue

        words = parse_words(code[2:])
        nx = words.get("X", x)
        ny = words.get("Y", y)
        nz = words.get("Z", z)
        extrude = code[:2].upper() == "G1" and words.get("E", 0.0) > 0

        if abs(nx - x) < POSITION_EPS and abs(ny - y) < POSITION_EPS and abs(nz - z) < POSITION_EPS:
            continue

        segments.append(Segment((x, y, z), (nx, ny, nz), extrude, in_base))
        x, y, z = nx, ny, nz

    logger.debug("Parsed %d preview segments", len(segments))
    return segments
