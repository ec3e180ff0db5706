"""Filesystem helpers: atomic writes, YAML, images and templates.

Provides:
    - Atomic writes: tmp file -> fsync -> rename (a half-written G-code
      file never reaches the printer's upload folder)
    - YAML loading for job files
    - Image decoding to an RGBA byte grid (Pillow)
    - Size-limited template reading

All paths use pathlib.Path.

Usage:
    from gcode_art.utils import fs
    rgba = fs.load_image_rgba("portrait.png")
    fs.atomic_write_text(gcode, "out/art.gcode")
"""

import os
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
import yaml
from PIL import Image, UnidentifiedImageError

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_TEMPLATE_BYTES = 5 * 1024 * 1024


class FileLimitError(ValueError):
    """Raised when an input file exceeds its size limit or cannot be decoded."""

    pass


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if missing and return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: Union[str, Path], data: bytes, tmp_suffix: str = ".tmp") -> None:
    """Write bytes to *path* atomically (tmp -> fsync -> rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Payload
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or rename fails; the temporary file is removed.
    """
    path = Path(path)
    ensure_dir(path.parent)
    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(text: str, path: Union[str, Path], encoding: str = "utf-8") -> None:
    """Write text atomically (see :func:`atomic_write_bytes`)."""
    atomic_write_bytes(path, text.encode(encoding))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML file with ``safe_load``.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    yaml.YAMLError
        If parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def load_image_rgba(path: Union[str, Path], max_bytes: int = MAX_IMAGE_BYTES) -> np.ndarray:
    """Decode an image file into an RGBA byte grid.

    Parameters
    ----------
    path : Union[str, Path]
        Image file (any format Pillow reads)
    max_bytes : int
        Reject files larger than this, default 10 MiB

    Returns
    -------
    np.ndarray
        (H, W, 4) uint8, row 0 is the top of the image

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    FileLimitError
        If the file is too large or not a decodable image
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    size = path.stat().st_size
    if size > max_bytes:
        raise FileLimitError(
            f"Image {path} is {size / 1e6:.1f} MB, limit is {max_bytes / 1e6:.1f} MB"
        )

    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise FileLimitError(f"Cannot decode image {path}: {e}") from e


def read_text_limited(path: Union[str, Path], max_bytes: int = MAX_TEMPLATE_BYTES) -> str:
    """Read a text file, refusing files above *max_bytes*.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    FileLimitError
        If the file is too large
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Text file not found: {path}")

    size = path.stat().st_size
    if size > max_bytes:
        raise FileLimitError(
            f"File {path} is {size / 1e6:.1f} MB, limit is {max_bytes / 1e6:.1f} MB"
        )
    return path.read_text(encoding="utf-8", errors="replace")
