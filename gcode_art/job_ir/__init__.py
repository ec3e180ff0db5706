"""
Toolpath Intermediate Representation module.

Defines the instruction variants as immutable dataclasses.  This
vocabulary is the contract between path synthesis and G-code formatting.

All coordinates are absolute machine millimetres.
"""

from gcode_art.job_ir.instructions import (
    TRAVEL_FEED_MM_S,
    Comment,
    Instruction,
    MachineDirective,
    Print,
    Travel,
)

__all__ = [
    "TRAVEL_FEED_MM_S",
    "Comment",
    "Instruction",
    "MachineDirective",
    "Print",
    "Travel",
]
