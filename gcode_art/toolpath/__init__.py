"""Toolpath synthesis: patterns, brightness, extrusion, base, orchestration."""

from gcode_art.toolpath.brightness import BrightnessField, BrightnessSampler, ViewTransform
from gcode_art.toolpath.orchestrator import (
    GenerationBusyError,
    GenerationError,
    PrintStats,
    ToolpathOrchestrator,
    ToolpathResult,
    build_pattern,
)
from gcode_art.toolpath.session import ArtSession, GenerationResult

__all__ = [
    "ArtSession",
    "BrightnessField",
    "BrightnessSampler",
    "GenerationBusyError",
    "GenerationError",
    "GenerationResult",
    "PrintStats",
    "ToolpathOrchestrator",
    "ToolpathResult",
    "ViewTransform",
    "build_pattern",
]
