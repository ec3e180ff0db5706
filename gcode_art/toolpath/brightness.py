"""Brightness sampling: print-space coordinate -> darkness in [0, 1].

``BrightnessField`` is the immutable luminance grid decoded once from the
source image at full resolution.  ``ViewTransform`` is the pan/zoom
state the interactive host owns; the sampler only reads it.

Sampling pipeline (``BrightnessSampler.sample(u, v)``):
    1. optional horizontal mirror: ``u -> 1 - u``
    2. ``v`` (print space, +Y up) -> image rows (+Y down)
    3. view transform: ``u_src = u / zoom + offset_x`` (same for v),
       clamped to [0, 1]
    4. bilinear interpolation of the four neighbouring pixels' mean RGB
    5. gamma: ``lum ** (1 / gamma)``
    6. darkness = ``1 - lum``

Darker source pixels therefore give values closer to 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

ZOOM_MIN = 1.0
ZOOM_MAX = 10.0
ZOOM_FACTOR = 1.1


class BrightnessField:
    """Read-only luminance grid in [0, 1].

    Parameters
    ----------
    rgba : np.ndarray
        (H, W, 4) or (H, W, 3) uint8 pixels, row 0 at the image top.

    Notes
    -----
    Luminance is the plain mean of R, G and B (alpha ignored).
    """

    def __init__(self, rgba: np.ndarray) -> None:
        arr = np.asarray(rgba)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) pixel grid, got shape {arr.shape}")
        if arr.shape[0] < 1 or arr.shape[1] < 1:
            raise ValueError("Pixel grid is empty")

        lum = arr[..., :3].astype(np.float64).mean(axis=2) / 255.0
        lum.setflags(write=False)
        self._lum = lum

    @classmethod
    def from_luminance(cls, lum: np.ndarray) -> "BrightnessField":
        """Build directly from a (H, W) grid already in [0, 1]."""
        grey = np.clip(np.asarray(lum, dtype=np.float64), 0.0, 1.0) * 255.0
        return cls(np.repeat(grey[..., None], 3, axis=2))

    @property
    def width(self) -> int:
        return self._lum.shape[1]

    @property
    def height(self) -> int:
        return self._lum.shape[0]

    @property
    def shape(self) -> tuple[int, int]:
        """``(width, height)`` -- the key used for decode caching."""
        return (self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def luminance(self) -> np.ndarray:
        return self._lum

    def bilinear(self, u: float, v: float) -> float:
        """Interpolated luminance at source coordinates (v points down)."""
        w, h = self.width, self.height
        xf = u * (w - 1)
        yf = v * (h - 1)
        x0 = int(xf)
        y0 = int(yf)
        x1 = min(x0 + 1, w - 1)
        y1 = min(y0 + 1, h - 1)
        tx = xf - x0
        ty = yf - y0

        lum = self._lum
        return float(
            lum[y0, x0] * (1 - tx) * (1 - ty)
            + lum[y0, x1] * tx * (1 - ty)
            + lum[y1, x0] * (1 - tx) * ty
            + lum[y1, x1] * tx * ty
        )


@dataclass(frozen=True)
class ViewTransform:
    """Pan/zoom of the source image inside the print area.

    ``offset_x`` / ``offset_y`` are the normalized source coordinates of
    the visible window's top-left corner.  Valid states keep
    ``ZOOM_MIN <= zoom <= ZOOM_MAX`` and offsets in ``[0, 1 - 1/zoom]``.
    """

    zoom: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def clamped(self) -> "ViewTransform":
        zoom = min(ZOOM_MAX, max(ZOOM_MIN, self.zoom))
        max_offset = 1.0 - 1.0 / zoom
        return ViewTransform(
            zoom=zoom,
            offset_x=min(max_offset, max(0.0, self.offset_x)),
            offset_y=min(max_offset, max(0.0, self.offset_y)),
        )

    def panned(self, du: float, dv_down: float) -> "ViewTransform":
        """Drag the image by a print-space UV delta (v measured downward)."""
        return ViewTransform(
            zoom=self.zoom,
            offset_x=self.offset_x - du / self.zoom,
            offset_y=self.offset_y - dv_down / self.zoom,
        ).clamped()

    def zoomed_about(self, u: float, v_up: float, factor: float) -> "ViewTransform":
        """Zoom by *factor* keeping the source point under ``(u, v_up)`` fixed."""
        u = min(1.0, max(0.0, u))
        v_down = 1.0 - min(1.0, max(0.0, v_up))
        u_src = u / self.zoom + self.offset_x
        v_src = v_down / self.zoom + self.offset_y

        zoom = min(ZOOM_MAX, max(ZOOM_MIN, self.zoom * factor))
        return ViewTransform(
            zoom=zoom,
            offset_x=u_src - u / zoom,
            offset_y=v_src - v_down / zoom,
        ).clamped()

    def to_source(self, u: float, v_down: float) -> tuple[float, float]:
        u_src = u / self.zoom + self.offset_x
        v_src = v_down / self.zoom + self.offset_y
        return (min(1.0, max(0.0, u_src)), min(1.0, max(0.0, v_src)))


class BrightnessSampler:
    """Deterministic darkness lookup for one generation run.

    Parameters
    ----------
    field : BrightnessField
        Source luminance.
    view : ViewTransform
        Pan/zoom snapshot taken at run start.
    gamma : float
        Gamma exponent (> 0); luminance is raised to ``1 / gamma``.
    mirror : bool
        Flip the image horizontally before sampling.
    """

    def __init__(
        self,
        field: BrightnessField,
        view: ViewTransform | None = None,
        gamma: float = 1.5,
        mirror: bool = False,
    ) -> None:
        if gamma <= 0:
            raise ValueError(f"gamma must be > 0, got {gamma}")
        self._field = field
        self._view = (view or ViewTransform()).clamped()
        self._inv_gamma = 1.0 / gamma
        self._mirror = mirror

    def sample(self, u_print: float, v_print: float) -> float:
        """Darkness at normalized print coordinates (v points up)."""
        if self._mirror:
            u_print = 1.0 - u_print
        u_src, v_src = self._view.to_source(u_print, 1.0 - v_print)
        lum = self._field.bilinear(u_src, v_src)
        return 1.0 - lum ** self._inv_gamma

    __call__ = sample
