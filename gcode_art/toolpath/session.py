"""Art session -- long-lived host state around generation runs.

The session owns what outlives a single run:

    - the decoded ``BrightnessField`` (cached by image ``(width, height)``)
    - the ``ViewTransform`` the pan/zoom collaborator updates
    - the loaded template text (read-only once loaded)

Each ``generate`` call snapshots the view, builds a fresh sampler and
orchestrator, renders and merges, and returns an immutable
``GenerationResult``.  Only one run may be in flight per session; a
second request raises ``GenerationBusyError`` instead of queueing.

``generate_async`` runs the same work in a worker thread so an event
loop (UI, web handler) stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from gcode_art.configs.loader import (
    ConfigError,
    GenerationConfig,
    ImageLoadError,
    TemplateLoadError,
)
from gcode_art.gcode.generator import GCodeGenerator
from gcode_art.gcode.template import merge_with_template
from gcode_art.job_ir.instructions import Instruction
from gcode_art.toolpath.brightness import BrightnessField, BrightnessSampler, ViewTransform
from gcode_art.toolpath.orchestrator import (
    GenerationBusyError,
    PrintStats,
    ToolpathOrchestrator,
)
from gcode_art.utils.fs import (
    MAX_IMAGE_BYTES,
    MAX_TEMPLATE_BYTES,
    FileLimitError,
    load_image_rgba,
    read_text_limited,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Everything one run produced."""

    instructions: tuple[Instruction, ...]
    artwork_gcode: str
    gcode: str
    stats: PrintStats
    warnings: tuple[str, ...] = field(default_factory=tuple)


class ArtSession:
    """Host-side state shared across generation runs."""

    def __init__(self) -> None:
        self._rgba: np.ndarray | None = None
        self._field_cache: dict[tuple[int, int], BrightnessField] = {}
        self._template: str | None = None
        self._lock = threading.Lock()
        self.view = ViewTransform()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_image(self, rgba: np.ndarray) -> None:
        """Replace the source image (an (H, W, 3|4) uint8 grid)."""
        arr = np.asarray(rgba)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ImageLoadError(f"Expected (H, W, 3|4) pixel grid, got shape {arr.shape}")
        self._rgba = arr
        self._field_cache.clear()
        self.view = ViewTransform()

    def load_image(self, path: str | Path) -> None:
        """Decode an image file and make it the source image.

        Raises
        ------
        ImageLoadError
            If the file is missing, over 10 MiB or undecodable.
        """
        try:
            rgba = load_image_rgba(path, MAX_IMAGE_BYTES)
        except (FileNotFoundError, FileLimitError) as e:
            raise ImageLoadError(str(e)) from e
        logger.info("Loaded image %s (%dx%d)", path, rgba.shape[1], rgba.shape[0])
        self.set_image(rgba)

    @property
    def has_image(self) -> bool:
        return self._rgba is not None

    @property
    def image_ratio(self) -> float:
        """Source width / height."""
        return self.brightness_field().aspect_ratio

    def brightness_field(self) -> BrightnessField:
        """Decoded luminance for the current image, built once per size."""
        if self._rgba is None:
            raise ConfigError("No source image loaded")
        key = (self._rgba.shape[1], self._rgba.shape[0])
        cached = self._field_cache.get(key)
        if cached is not None:
            logger.debug("Brightness cache hit for %dx%d", *key)
            return cached
        logger.debug("Brightness cache miss for %dx%d", *key)
        field_ = BrightnessField(self._rgba)
        self._field_cache[key] = field_
        return field_

    def set_template(self, text: str | None) -> None:
        self._template = text

    def load_template(self, path: str | Path) -> None:
        """Read a G-code template (at most 5 MiB).

        Raises
        ------
        TemplateLoadError
            If the file is missing or too large.
        """
        try:
            text = read_text_limited(path, MAX_TEMPLATE_BYTES)
        except (FileNotFoundError, FileLimitError) as e:
            raise TemplateLoadError(str(e)) from e
        logger.info("Loaded template %s (%d chars)", path, len(text))
        self._template = text

    @property
    def template(self) -> str | None:
        return self._template

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def generate(self, config: GenerationConfig) -> GenerationResult:
        """Run one generation synchronously.

        Raises
        ------
        GenerationBusyError
            If another run is in flight on this session.
        ConfigError
            If no image is loaded.
        GenerationError
            On any unexpected failure during the run.
        """
        if not self._lock.acquire(blocking=False):
            raise GenerationBusyError("A generation run is already in progress")
        try:
            return self._generate(config)
        finally:
            self._lock.release()

    async def generate_async(self, config: GenerationConfig) -> GenerationResult:
        """``generate`` in a worker thread."""
        return await asyncio.to_thread(self.generate, config)

    def _generate(self, config: GenerationConfig) -> GenerationResult:
        field_ = self.brightness_field()
        sampler = BrightnessSampler(
            field_,
            view=self.view,
            gamma=config.path.gamma,
            mirror=config.path.mirror,
        )

        result = ToolpathOrchestrator(config, sampler).run()
        artwork = GCodeGenerator().generate(result.instructions)
        merged = merge_with_template(artwork, self._template, config.change.mode)

        return GenerationResult(
            instructions=result.instructions,
            artwork_gcode=artwork,
            gcode=merged,
            stats=result.stats,
            warnings=result.warnings,
        )
