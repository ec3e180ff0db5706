"""Toolpath orchestrator -- one generation run, image + config -> instructions.

Run sequence::

    preamble
    [base layers + filament-change transition]     (BaseGenerator)
    artwork start (Z approach, prime)
    pattern loop: clip test -> brightness -> text/width/speed -> squiggle
    block end (safe Z, extrusion total)

Pattern dispatch happens once, in ``build_pattern``.  Everything the run
mutates (encoder, running total, previous point) lives in the objects
created by ``ToolpathOrchestrator.run`` and is discarded afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gcode_art.configs.loader import (
    ChangeMode,
    ConfigError,
    GenerationConfig,
    PatternKind,
)
from gcode_art.job_ir.instructions import Instruction, extrude, z_move
from gcode_art.toolpath.base import BaseGenerator
from gcode_art.toolpath.brightness import BrightnessSampler
from gcode_art.toolpath.curves import (
    ArchimedeanSpiral,
    DiagonalZigzag,
    HilbertCurve,
    PathPoint,
    Pattern,
    SquareSpiral,
    Zigzag,
)
from gcode_art.toolpath.geometry import ClipRegion, NoClip, inner_boundary
from gcode_art.toolpath.motion import MotionEncoder
from gcode_art.toolpath.squiggle import SquiggleModulator

logger = logging.getLogger(__name__)

ARTWORK_START_MARKER = "--- STARTING ARTWORK DRAWING ---"
APPROACH_HEIGHT_MM = 2.0


class GenerationError(Exception):
    """Raised when a generation run fails; no partial output is produced."""

    pass


class GenerationBusyError(GenerationError):
    """Raised when a run is requested while another is in flight."""

    pass


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrintStats:
    """Summary numbers for one run.  Speeds in mm/s."""

    total_extruded_mm: float
    print_width: float
    print_height: float
    min_speed: float
    max_speed: float
    base_layers: int = 0
    base_margin: float = 0.0
    instruction_count: int = 0

    @property
    def filament_m(self) -> float:
        return self.total_extruded_mm / 1000.0

    def summary(self) -> str:
        lines = [
            f"Filament: {self.filament_m:.2f} m ({self.total_extruded_mm:.1f} mm)",
            f"Print size: {self.print_width:.1f} x {self.print_height:.1f} mm",
            f"Speed range: {self.min_speed:.0f}-{self.max_speed:.0f} mm/s",
        ]
        if self.base_layers:
            lines.append(f"Base: {self.base_layers} layers, margin {self.base_margin:.2f} mm")
        lines.append(f"Instructions: {self.instruction_count}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ToolpathResult:
    """Immutable output of one run."""

    instructions: tuple[Instruction, ...]
    stats: PrintStats
    warnings: tuple[str, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Pattern dispatch
# ---------------------------------------------------------------------------


def build_pattern(config: GenerationConfig, margin: float | None = None) -> Pattern:
    """Construct the curve generator for ``config.path.pattern``.

    Parameters
    ----------
    config : GenerationConfig
        Run configuration.
    margin : float | None
        Effective base margin, or ``None`` when no base is printed.
        Only the spiral uses it (its maximum radius stops at the clip).
    """
    area = config.area
    p = config.path
    kind = p.pattern

    if kind is PatternKind.SPIRAL:
        max_radius = area.square_dim / 2.0
        if margin is not None:
            max_radius -= margin
        return ArchimedeanSpiral(area.center, p.spacing, max_radius)
    if kind is PatternKind.SQUARE_SPIRAL:
        return SquareSpiral(area.square_origin, area.square_dim, p.spacing)
    if kind is PatternKind.HILBERT:
        return HilbertCurve(p.curve_order, area.square_origin, area.square_dim)
    if kind is PatternKind.DIAGONAL:
        return DiagonalZigzag((area.offset_x, area.offset_y), area.width, area.height, p.spacing)
    if kind is PatternKind.ZIGZAG:
        return Zigzag((area.offset_x, area.offset_y), area.width, area.height, p.spacing)
    raise ConfigError(f"Unknown pattern kind: {kind!r}")


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ToolpathOrchestrator:
    """Drive one pattern through the brightness model into instructions.

    Parameters
    ----------
    config : GenerationConfig
        Validated run configuration.
    sampler : BrightnessSampler
        Darkness lookup built from the image and view snapshot.
    """

    def __init__(self, config: GenerationConfig, sampler: BrightnessSampler) -> None:
        self._cfg = config
        self._sampler = sampler

    def darkness_at(self, x: float, y: float) -> float:
        u, v = self._cfg.area.to_uv(x, y)
        return self._sampler.sample(u, v)

    def run(self) -> ToolpathResult:
        """Generate the artwork instruction block.

        Raises
        ------
        ConfigError
            Propagated unchanged from configuration checks.
        GenerationError
            Wrapping any unexpected failure during the run.
        """
        try:
            return self._run()
        except (ConfigError, GenerationError):
            raise
        except Exception as exc:
            raise GenerationError(f"Toolpath generation failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self) -> ToolpathResult:
        cfg = self._cfg
        enc = MotionEncoder(cfg.material)
        warnings: list[str] = []

        enc.comment("--- G-Code Art Generator ---")
        enc.directive("G90", comment="Absolute Coordinates (XYZE)")
        enc.directive("M83", comment="Relative Extrusion")

        clip: ClipRegion = NoClip()
        margin: float | None = None
        if cfg.base.enabled:
            margin = BaseGenerator(enc, cfg.area, cfg.material, cfg.base, cfg.change).generate()
            clip = inner_boundary(cfg.area, cfg.base.shape, margin)

        pattern = build_pattern(cfg, margin)
        logger.info(
            "Generating %s pattern over %.1fx%.1f mm",
            cfg.path.pattern.value, cfg.area.width, cfg.area.height,
        )

        self._start_artwork(enc, pattern.start)

        squiggle = SquiggleModulator(
            enc,
            cfg.path,
            clip=clip,
            darkness_at=self.darkness_at if cfg.path.squiggle_resample else None,
        )
        for point in pattern:
            self._visit(enc, squiggle, clip, point)

        if getattr(pattern, "capped", False):
            msg = (
                f"{cfg.path.pattern.value} pattern stopped at the iteration cap; "
                "output is partial"
            )
            logger.warning(msg)
            warnings.append(msg)

        enc.append(z_move(cfg.material.safe_z, 3000, rapid=True))
        enc.comment(f"Total Extruded: E{enc.total_extruded:.2f}")
        enc.comment("--- End of Central G-Code Block ---")

        stats = PrintStats(
            total_extruded_mm=enc.total_extruded,
            print_width=cfg.area.width,
            print_height=cfg.area.height,
            min_speed=cfg.path.min_speed,
            max_speed=cfg.path.max_speed,
            base_layers=cfg.base.layers if cfg.base.enabled else 0,
            base_margin=margin or 0.0,
            instruction_count=len(enc.instructions),
        )
        logger.info(
            "Generated %d instructions, %.2f m filament",
            stats.instruction_count, stats.filament_m,
        )
        return ToolpathResult(tuple(enc.instructions), stats, tuple(warnings))

    def _start_artwork(self, enc: MotionEncoder, start: tuple[float, float]) -> None:
        cfg = self._cfg
        sx, sy = start

        if cfg.base.enabled:
            draw_z = cfg.material.z_offset + cfg.base.layers * cfg.material.layer_height
            enc.comment(ARTWORK_START_MARKER)
            enc.travel_to(sx, sy, z=draw_z + APPROACH_HEIGHT_MM)
            enc.append(z_move(draw_z, 1000))
            enc.append(extrude(0.5, 600))
            enc.directive("G4 P200")
            enc.directive("G92 E0")
            return

        if cfg.change.mode is ChangeMode.SLOT:
            enc.directive(cfg.change.drawing_slot)
        enc.append(z_move(cfg.material.safe_z, 3000, rapid=True))
        enc.travel_to(sx, sy)
        enc.append(z_move(cfg.material.z_offset, 1000))

    def _visit(
        self,
        enc: MotionEncoder,
        squiggle: SquiggleModulator,
        clip: ClipRegion,
        point: PathPoint,
    ) -> None:
        p = self._cfg.path
        prev = enc.position
        target = (point.x, point.y)

        if not clip.contains(point.x, point.y):
            enc.emit(prev, target, 0.0, 0.0, is_travel=True)
            return

        darkness = self.darkness_at(point.x, point.y)

        if p.text_mode and not point.connect:
            if darkness < p.text_threshold:
                enc.emit(prev, target, 0.0, 0.0, is_travel=True)
            else:
                enc.emit(prev, target, p.max_width, p.min_speed)
            return

        if point.connect:
            enc.emit(prev, target, 0.0, 0.0, is_travel=True)
            return

        squiggle.apply(prev, target, darkness)
