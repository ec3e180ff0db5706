"""Parameter schema validation for generation runs.

Provides a pydantic schema for the raw parameter set a form or job file
hands over, with **lenient** coercion:
    - Numeric fields: NaN, infinities, blanks and junk fall back to a
      documented default; everything else is clamped into range
    - Pattern / change-mode strings: unknown values fall back to defaults
    - Booleans: accepts the usual string spellings

Nothing in this module raises for malformed numbers.  Cross-field
consistency (min < max pairs, spacing > 0) is checked by
``gcode_art.configs.loader`` which reports ``ConfigError`` before any
generation work starts.

Units:
    - Geometry: millimeters (mm)
    - Speed: mm/s

Usage:
    from gcode_art.utils import validators
    params = validators.JobParametersV1.model_validate(raw_dict)
"""

import math
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def safe_float(value: Any, default: float, lo: float = -math.inf, hi: float = math.inf) -> float:
    """Parse *value* as float, defaulting on garbage and clamping to [lo, hi].

    Examples
    --------
    >>> safe_float("0.4", 0.6, 0.1, 10)
    0.4
    >>> safe_float("nan", 0.6, 0.1, 10)
    0.6
    >>> safe_float(50, 0.6, 0.1, 10)
    10
    """
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed):
        return default
    return max(lo, min(hi, parsed))


def safe_int(value: Any, default: int, lo: int = -(2**31), hi: int = 2**31 - 1) -> int:
    """Parse *value* as int (truncating floats), defaulting on garbage."""
    if isinstance(value, bool):
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed):
        return default
    return max(lo, min(hi, int(parsed)))


def safe_bool(value: Any, default: bool = False) -> bool:
    """Interpret checkbox-style values."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on", "checked"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    return default


# (default, min, max)
FLOAT_FIELDS: Dict[str, Tuple[float, float, float]] = {
    "filament_diameter": (1.75, 0.1, 5.0),
    "layer_height": (0.2, 0.05, 1.0),
    "z_offset": (0.2, 0.0, 50.0),
    "bed_width": (250.0, 50.0, 1000.0),
    "bed_height": (250.0, 50.0, 1000.0),
    "print_width": (100.0, 1.0, 1000.0),
    "print_height": (100.0, 1.0, 1000.0),
    "line_spacing": (0.6, 0.1, 10.0),
    "min_line_width": (0.2, 0.05, 2.0),
    "max_line_width": (0.8, 0.05, 3.0),
    "min_speed": (10.0, 1.0, 200.0),
    "max_speed": (100.0, 1.0, 300.0),
    "gamma": (1.5, 0.5, 3.0),
    "squiggle_amplitude": (0.0, 0.0, 5.0),
    "squiggle_frequency": (1.0, 0.1, 20.0),
    "base_margin": (2.0, 0.0, 100.0),
    "base_speed": (30.0, 10.0, 150.0),
    "text_threshold": (0.4, 0.05, 0.95),
}

INT_FIELDS: Dict[str, Tuple[int, int, int]] = {
    "curve_order": (6, 3, 8),
    "base_layers": (2, 1, 20),
}

PATTERN_ALIASES = {
    "zigzag": "zigzag",
    "diagonal": "diagonal",
    "spiral": "spiral",
    "squarespiral": "squareSpiral",
    "square_spiral": "squareSpiral",
    "hilbert": "hilbert",
}

CHANGE_MODE_ALIASES = {
    "manual": "manual",
    "pause": "manual",
    "ams": "ams",
    "slot": "ams",
}


class JobParametersV1(BaseModel):
    """Raw generation parameters (job.yaml / form schema).

    Every field has a default so an empty mapping is a valid job.
    Speeds are mm/s.
    """

    model_config = ConfigDict(extra="ignore")

    pattern: str = "spiral"

    filament_diameter: float = 1.75
    layer_height: float = 0.2
    z_offset: float = 0.2

    bed_width: float = 250.0
    bed_height: float = 250.0
    origin_at_center: bool = False
    print_width: float = 100.0
    print_height: float = 100.0

    line_spacing: float = 0.6
    min_line_width: float = 0.2
    max_line_width: float = 0.8
    min_speed: float = 10.0
    max_speed: float = 100.0
    gamma: float = 1.5
    squiggle_amplitude: float = 0.0
    squiggle_frequency: float = 1.0
    squiggle_resample: bool = False
    curve_order: int = 6
    mirror_image: bool = False

    text_mode: bool = False
    text_threshold: float = 0.4

    base_enabled: bool = False
    base_layers: int = 2
    base_margin: float = 2.0
    base_speed: float = 30.0

    change_mode: str = "manual"
    base_slot: str = "T0"
    drawing_slot: str = "T1"

    @field_validator(*FLOAT_FIELDS.keys(), mode="before")
    @classmethod
    def coerce_float(cls, v: Any, info) -> float:
        default, lo, hi = FLOAT_FIELDS[info.field_name]
        return safe_float(v, default, lo, hi)

    @field_validator(*INT_FIELDS.keys(), mode="before")
    @classmethod
    def coerce_int(cls, v: Any, info) -> int:
        default, lo, hi = INT_FIELDS[info.field_name]
        return safe_int(v, default, lo, hi)

    @field_validator(
        "origin_at_center", "mirror_image", "text_mode", "base_enabled",
        "squiggle_resample", mode="before",
    )
    @classmethod
    def coerce_bool(cls, v: Any) -> bool:
        return safe_bool(v)

    @field_validator("pattern", mode="before")
    @classmethod
    def normalize_pattern(cls, v: Any) -> str:
        return PATTERN_ALIASES.get(str(v).strip().lower(), "spiral")

    @field_validator("change_mode", mode="before")
    @classmethod
    def normalize_change_mode(cls, v: Any) -> str:
        return CHANGE_MODE_ALIASES.get(str(v).strip().lower(), "manual")

    @field_validator("base_slot", "drawing_slot", mode="before")
    @classmethod
    def normalize_slot(cls, v: Any, info) -> str:
        text = "" if v is None else str(v).strip()
        if not text:
            return "T0" if info.field_name == "base_slot" else "T1"
        return text

    @model_validator(mode="after")
    def clamp_print_area_to_bed(self) -> "JobParametersV1":
        """The print area can never exceed the bed."""
        self.print_width = min(self.print_width, self.bed_width)
        self.print_height = min(self.print_height, self.bed_height)
        return self
