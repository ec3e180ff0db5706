"""Toolpath instructions -- the vocabulary between path synthesis and G-code.

Every instruction is an immutable, slotted dataclass.  A generation run
produces an ordered, append-only sequence of them; the sequence is the
sole output artifact of the run and is rebuilt from scratch every time.

Variants
--------
``Travel``
    Non-extruding repositioning at the rapid feed.
``Print``
    Linear move that extrudes ``extrusion`` mm of filament.
``Comment``
    Annotation line.
``MachineDirective``
    Raw machine code (Z moves, retracts, pauses, slot selection).

Units: millimetres, absolute machine coordinates, feeds in **mm/s**
(converted to ``F`` mm/min only by the formatter).
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import Iterable

TRAVEL_FEED_MM_S = 100.0
"""Rapid feed for every travel move (``F6000``)."""


@dataclass(frozen=True, slots=True)
class Instruction(ABC):
    """Base class for all toolpath instructions."""

    pass


@dataclass(frozen=True, slots=True)
class Travel(Instruction):
    """Rapid move, no extrusion.

    Parameters
    ----------
    x, y : float
        Target position in machine mm.
    z : float | None
        Optional simultaneous Z target.
    feed : float
        Feed in mm/s.
    comment : str | None
        Trailing comment.
    """

    x: float
    y: float
    z: float | None = None
    feed: float = TRAVEL_FEED_MM_S
    comment: str | None = None


@dataclass(frozen=True, slots=True)
class Print(Instruction):
    """Extruding linear move.

    Parameters
    ----------
    x, y : float
        End-point in machine mm.
    extrusion : float
        Filament length pushed during the move (mm, relative).
    speed : float
        Feed in mm/s.
    """

    x: float
    y: float
    extrusion: float
    speed: float


@dataclass(frozen=True, slots=True)
class Comment(Instruction):
    """Comment line (rendered with a leading ``;``)."""

    text: str


@dataclass(frozen=True, slots=True)
class MachineDirective(Instruction):
    """Verbatim machine code such as ``M600`` or ``G1 Z0.400 F1000``."""

    code: str
    comment: str | None = None

    def __post_init__(self) -> None:
        if not self.code or "\n" in self.code:
            raise ValueError(
                f"MachineDirective code must be a single non-empty line, got {self.code!r}"
            )


# ---------------------------------------------------------------------------
# Directive helpers
# ---------------------------------------------------------------------------


def z_move(z: float, feed_mm_min: int, rapid: bool = False, comment: str | None = None) -> MachineDirective:
    """``G0/G1 Z<z> F<feed>``.  Feed given directly in mm/min."""
    code = "G0" if rapid else "G1"
    return MachineDirective(f"{code} Z{z:.3f} F{feed_mm_min}", comment=comment)


def extrude(amount: float, feed_mm_min: int) -> MachineDirective:
    """Stationary extrusion (negative retracts)."""
    return MachineDirective(f"G1 E{amount:g} F{feed_mm_min}")


def total_extrusion(instructions: Iterable[Instruction]) -> float:
    """Sum of ``Print.extrusion`` over a sequence."""
    return sum(i.extrusion for i in instructions if isinstance(i, Print))
