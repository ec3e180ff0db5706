"""G-code text: formatting, template merging, preview segment parsing."""

from gcode_art.gcode.generator import GCodeError, GCodeGenerator, format_instruction
from gcode_art.gcode.segments import Segment, parse_segments
from gcode_art.gcode.template import (
    END_MARKER,
    START_MARKER,
    change_directive_block,
    merge_with_template,
)

__all__ = [
    "END_MARKER",
    "START_MARKER",
    "GCodeError",
    "GCodeGenerator",
    "Segment",
    "change_directive_block",
    "format_instruction",
    "merge_with_template",
    "parse_segments",
]
