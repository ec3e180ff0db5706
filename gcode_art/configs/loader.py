"""Configuration loader for generation runs.

Loads a ``job.yaml`` parameter file (or an in-memory mapping handed over
by a form) into typed, frozen dataclasses.  Raw values first pass through
``gcode_art.utils.validators.JobParametersV1`` which defaults/clamps
malformed numbers; cross-field consistency is checked here and reported
as ``ConfigError`` before any generation work starts.

Feed rates are stored in **mm/s** throughout Python.  Conversion to the
G-code ``F`` parameter (mm/min) happens only in the G-code formatter.

Usage::

    from gcode_art.configs.loader import load_config
    cfg = load_config()                    # default job shipped here
    cfg = load_config("/path/to/job.yaml") # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from gcode_art.utils.fs import load_yaml
from gcode_art.utils.validators import JobParametersV1

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when run inputs fail validation."""

    pass


class ImageLoadError(ConfigError):
    """Raised when the source image is missing, too large or undecodable."""

    pass


class TemplateLoadError(ConfigError):
    """Raised when the G-code template cannot be read."""

    pass


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PatternKind(str, Enum):
    """Toolpath pattern family."""

    ZIGZAG = "zigzag"
    DIAGONAL = "diagonal"
    SPIRAL = "spiral"
    SQUARE_SPIRAL = "squareSpiral"
    HILBERT = "hilbert"


class BaseShape(Enum):
    """Outline of the structural base printed under the artwork."""

    CIRCLE = "circle"
    SQUARE = "square"
    RECTANGLE = "rectangle"

    @classmethod
    def for_pattern(cls, kind: PatternKind) -> "BaseShape":
        """Circle under spirals, square under square spirals and the
        space-filling curve, rectangle under the scan patterns."""
        if kind is PatternKind.SPIRAL:
            return cls.CIRCLE
        if kind in (PatternKind.SQUARE_SPIRAL, PatternKind.HILBERT):
            return cls.SQUARE
        return cls.RECTANGLE


class ChangeMode(str, Enum):
    """How the machine switches from base material to drawing material."""

    MANUAL = "manual"
    SLOT = "ams"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrintArea:
    """Rectangular artwork region on the bed (mm).

    ``offset_x`` / ``offset_y`` are the machine coordinates of the
    area's lower-left corner.  With ``origin_at_center`` the machine origin
    is the bed centre, so offsets are negative.
    """

    width: float
    height: float
    offset_x: float
    offset_y: float
    bed_width: float
    bed_height: float
    origin_at_center: bool = False

    @classmethod
    def from_bed(
        cls,
        width: float,
        height: float,
        bed_width: float,
        bed_height: float,
        origin_at_center: bool = False,
    ) -> "PrintArea":
        """Centre a *width* x *height* area on the bed."""
        if origin_at_center:
            offset_x = -width / 2.0
            offset_y = -height / 2.0
        else:
            offset_x = (bed_width - width) / 2.0
            offset_y = (bed_height - height) / 2.0
        return cls(
            width=width,
            height=height,
            offset_x=offset_x,
            offset_y=offset_y,
            bed_width=bed_width,
            bed_height=bed_height,
            origin_at_center=origin_at_center,
        )

    @property
    def center(self) -> tuple[float, float]:
        return (self.offset_x + self.width / 2.0, self.offset_y + self.height / 2.0)

    @property
    def square_dim(self) -> float:
        """Side of the largest square that fits the area."""
        return min(self.width, self.height)

    @property
    def square_origin(self) -> tuple[float, float]:
        """Lower-left corner of the centred square sub-region."""
        d = self.square_dim
        return (
            self.offset_x + (self.width - d) / 2.0,
            self.offset_y + (self.height - d) / 2.0,
        )

    @property
    def park_point(self) -> tuple[float, float]:
        """Bed centre in machine coordinates."""
        if self.origin_at_center:
            return (0.0, 0.0)
        return (self.bed_width / 2.0, self.bed_height / 2.0)

    def to_uv(self, x: float, y: float) -> tuple[float, float]:
        """Machine mm -> normalized print coordinates (v points up)."""
        return ((x - self.offset_x) / self.width, (y - self.offset_y) / self.height)


@dataclass(frozen=True)
class PathParameters:
    """Pattern and brightness-mapping parameters.  Speeds in mm/s."""

    pattern: PatternKind
    spacing: float
    min_width: float
    max_width: float
    min_speed: float
    max_speed: float
    gamma: float = 1.5
    squiggle_amplitude: float = 0.0
    squiggle_frequency: float = 1.0
    squiggle_resample: bool = False
    curve_order: int = 6
    mirror: bool = False
    text_mode: bool = False
    text_threshold: float = 0.4

    @property
    def use_squiggle(self) -> bool:
        return self.squiggle_amplitude > 0.01

    def width_for(self, darkness: float) -> float:
        """Darker -> wider line."""
        return self.min_width + darkness * (self.max_width - self.min_width)

    def speed_for(self, darkness: float) -> float:
        """Darker -> slower feed."""
        return self.max_speed - darkness * (self.max_speed - self.min_speed)


@dataclass(frozen=True)
class MaterialModel:
    """Filament and layer geometry (mm)."""

    filament_diameter: float
    layer_height: float
    z_offset: float

    @property
    def filament_area(self) -> float:
        """Filament cross-section in mm^2."""
        return math.pi * (self.filament_diameter / 2.0) ** 2

    @property
    def safe_z(self) -> float:
        """Travel height used before and after the artwork."""
        return self.z_offset + 5.0


@dataclass(frozen=True)
class BaseConfig:
    """Structural base settings.  ``speed`` in mm/s."""

    enabled: bool
    layers: int
    margin: float
    speed: float
    shape: BaseShape


@dataclass(frozen=True)
class FilamentChangePlan:
    """Directives used at the base -> artwork transition."""

    mode: ChangeMode = ChangeMode.MANUAL
    base_slot: str = "T0"
    drawing_slot: str = "T1"


@dataclass(frozen=True)
class GenerationConfig:
    """Complete, validated input for one generation run."""

    area: PrintArea
    path: PathParameters
    material: MaterialModel
    base: BaseConfig
    change: FilamentChangePlan


# ---------------------------------------------------------------------------
# Aspect helpers
# ---------------------------------------------------------------------------


def height_for_width(width: float, image_ratio: float) -> float:
    """Print height keeping the image's width/height ratio."""
    if image_ratio <= 0:
        raise ConfigError(f"Image ratio must be > 0, got {image_ratio}")
    return width / image_ratio


def width_for_height(height: float, image_ratio: float) -> float:
    """Print width keeping the image's width/height ratio."""
    if image_ratio <= 0:
        raise ConfigError(f"Image ratio must be > 0, got {image_ratio}")
    return height * image_ratio


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: GenerationConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    p = cfg.path
    if p.spacing <= 0:
        raise ConfigError(f"Line spacing must be greater than 0, got {p.spacing}")
    if p.min_width >= p.max_width:
        raise ConfigError(
            f"Min line width ({p.min_width}) must be less than "
            f"max line width ({p.max_width})"
        )
    if p.min_speed >= p.max_speed:
        raise ConfigError(
            f"Min speed ({p.min_speed}) must be less than max speed ({p.max_speed})"
        )

    a = cfg.area
    if a.width <= 0 or a.height <= 0:
        raise ConfigError(f"Print area must be positive, got {a.width} x {a.height}")
    if a.width > a.bed_width or a.height > a.bed_height:
        raise ConfigError(
            f"Print area {a.width:.1f} x {a.height:.1f} exceeds bed "
            f"{a.bed_width:.1f} x {a.bed_height:.1f}"
        )

    if cfg.base.enabled and cfg.base.layers < 1:
        raise ConfigError(f"Base layer count must be >= 1, got {cfg.base.layers}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_config(raw: dict[str, Any] | None = None) -> GenerationConfig:
    """Build a validated config from a raw parameter mapping.

    Parameters
    ----------
    raw : dict | None
        Parameter mapping (``job.yaml`` keys).  Missing keys take their
        defaults; malformed numbers are defaulted and clamped.

    Returns
    -------
    GenerationConfig
        Frozen, validated configuration.

    Raises
    ------
    ConfigError
        If a cross-field invariant fails.
    """
    params = JobParametersV1.model_validate(raw or {})
    pattern = PatternKind(params.pattern)

    config = GenerationConfig(
        area=PrintArea.from_bed(
            width=params.print_width,
            height=params.print_height,
            bed_width=params.bed_width,
            bed_height=params.bed_height,
            origin_at_center=params.origin_at_center,
        ),
        path=PathParameters(
            pattern=pattern,
            spacing=params.line_spacing,
            min_width=params.min_line_width,
            max_width=params.max_line_width,
            min_speed=params.min_speed,
            max_speed=params.max_speed,
            gamma=params.gamma,
            squiggle_amplitude=params.squiggle_amplitude,
            squiggle_frequency=params.squiggle_frequency,
            squiggle_resample=params.squiggle_resample,
            curve_order=params.curve_order,
            mirror=params.mirror_image,
            text_mode=params.text_mode,
            text_threshold=params.text_threshold,
        ),
        material=MaterialModel(
            filament_diameter=params.filament_diameter,
            layer_height=params.layer_height,
            z_offset=params.z_offset,
        ),
        base=BaseConfig(
            enabled=params.base_enabled,
            layers=params.base_layers,
            margin=params.base_margin,
            speed=params.base_speed,
            shape=BaseShape.for_pattern(pattern),
        ),
        change=FilamentChangePlan(
            mode=ChangeMode(params.change_mode),
            base_slot=params.base_slot,
            drawing_slot=params.drawing_slot,
        ),
    )

    _validate_config(config)
    return config


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> GenerationConfig:
    """Load and validate a job file.

    Parameters
    ----------
    path : str | Path | None
        Path to a job YAML.  ``None`` loads the ``job.yaml`` shipped
        alongside this module.
    overrides : dict | None
        Keys replacing file values before validation (CLI flags).

    Returns
    -------
    GenerationConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the file is empty, not valid YAML, not a mapping, or fails
        validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "job.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading job parameters from %s", path)

    try:
        data = load_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration file {path} must contain a mapping, got {type(data).__name__}"
        )

    if overrides:
        data = {**data, **overrides}

    config = build_config(data)
    logger.info(
        "Job loaded: pattern=%s area=%.1fx%.1f mm base=%s",
        config.path.pattern.value,
        config.area.width,
        config.area.height,
        "on" if config.base.enabled else "off",
    )
    return config
