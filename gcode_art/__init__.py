"""
G-code Art Package.

Turns a raster image into an FDM toolpath: a space-filling or scanning
pattern traced over a rectangular print area, with line width and feed
modulated by local image darkness, an optional structural base underneath,
and the result spliced into a machine-specific G-code template.

Subpackages:
    configs: Run parameter loading and validation
    job_ir: Toolpath instruction vocabulary
    toolpath: Pattern generators, brightness sampling, base, orchestration
    gcode: Text formatting, template merging, preview segment parsing
    utils: Logging, filesystem and schema helpers
"""

__version__ = "1.0.0"

__all__ = ["configs", "job_ir", "toolpath", "gcode", "utils"]
