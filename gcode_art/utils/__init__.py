"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Logging setup and context fields (logging_config)
    - Atomic I/O, YAML, image and template reading (fs)
    - Parameter schema validation (validators)

No module in utils/ may import from upper layers (configs, toolpath, gcode).
"""

from . import fs
from . import logging_config
from . import validators

from .logging_config import pop_context, push_context, setup_logging

__all__ = [
    "fs",
    "logging_config",
    "validators",
    "setup_logging",
    "push_context",
    "pop_context",
]
