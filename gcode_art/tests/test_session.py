"""Tests for the art session: inputs, brightness caching, busy guard, merge."""

from __future__ import annotations

import asyncio
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from gcode_art.configs.loader import (
    ConfigError,
    GenerationConfig,
    ImageLoadError,
    TemplateLoadError,
    build_config,
)
from gcode_art.toolpath import session as session_module
from gcode_art.toolpath.brightness import ViewTransform
from gcode_art.toolpath.orchestrator import GenerationBusyError
from gcode_art.toolpath.session import ArtSession, GenerationResult

TEMPLATE = "G28\n;START_ART\n;END_ART\nM84"


@pytest.fixture()
def config() -> GenerationConfig:
    return build_config(
        {"pattern": "zigzag", "print_width": 12, "print_height": 8, "line_spacing": 1.0,
         "change_mode": "ams"}
    )


@pytest.fixture()
def session() -> ArtSession:
    s = ArtSession()
    s.set_image(np.full((10, 20, 3), 40, dtype=np.uint8))
    return s


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class TestInputs:
    def test_image_ratio(self, session: ArtSession) -> None:
        assert session.has_image
        assert session.image_ratio == pytest.approx(2.0)

    def test_bad_shape_rejected(self) -> None:
        with pytest.raises(ImageLoadError):
            ArtSession().set_image(np.zeros((4, 4), dtype=np.uint8))

    def test_load_png(self, tmp_path: Path) -> None:
        p = tmp_path / "img.png"
        Image.new("RGB", (6, 3), (255, 0, 0)).save(p)
        s = ArtSession()
        s.load_image(p)
        field = s.brightness_field()
        assert (field.width, field.height) == (6, 3)
        assert field.luminance[0, 0] == pytest.approx(1.0 / 3.0)

    def test_missing_image(self, tmp_path: Path) -> None:
        with pytest.raises(ImageLoadError, match="not found"):
            ArtSession().load_image(tmp_path / "nope.png")

    def test_undecodable_image(self, tmp_path: Path) -> None:
        p = tmp_path / "img.png"
        p.write_bytes(b"not an image")
        with pytest.raises(ImageLoadError):
            ArtSession().load_image(p)

    def test_oversized_image(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        p = tmp_path / "img.png"
        Image.new("RGB", (8, 8)).save(p)
        monkeypatch.setattr(session_module, "MAX_IMAGE_BYTES", 10)
        with pytest.raises(ImageLoadError, match="limit"):
            ArtSession().load_image(p)

    def test_load_template(self, tmp_path: Path) -> None:
        p = tmp_path / "t.gcode"
        p.write_text(TEMPLATE)
        s = ArtSession()
        s.load_template(p)
        assert s.template == TEMPLATE

    def test_missing_template(self, tmp_path: Path) -> None:
        with pytest.raises(TemplateLoadError):
            ArtSession().load_template(tmp_path / "nope.gcode")

    def test_oversized_template(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        p = tmp_path / "t.gcode"
        p.write_text(TEMPLATE)
        monkeypatch.setattr(session_module, "MAX_TEMPLATE_BYTES", 4)
        with pytest.raises(TemplateLoadError, match="limit"):
            ArtSession().load_template(p)


# ---------------------------------------------------------------------------
# Brightness cache
# ---------------------------------------------------------------------------


class TestBrightnessCache:
    def test_reused_for_same_image(self, session: ArtSession) -> None:
        assert session.brightness_field() is session.brightness_field()

    def test_new_image_rebuilds(self, session: ArtSession) -> None:
        first = session.brightness_field()
        session.set_image(np.full((10, 20, 3), 200, dtype=np.uint8))
        second = session.brightness_field()
        assert second is not first
        assert second.luminance[0, 0] == pytest.approx(200 / 255)

    def test_new_image_resets_view(self, session: ArtSession) -> None:
        session.view = ViewTransform(zoom=2.0, offset_x=0.1, offset_y=0.1)
        session.set_image(np.zeros((4, 4, 4), dtype=np.uint8))
        assert session.view == ViewTransform()

    def test_no_image(self) -> None:
        with pytest.raises(ConfigError, match="No source image"):
            ArtSession().brightness_field()


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_without_template(self, session: ArtSession, config: GenerationConfig) -> None:
        result = session.generate(config)
        assert isinstance(result, GenerationResult)
        assert result.gcode == result.artwork_gcode
        assert result.artwork_gcode.endswith("; --- End of Central G-Code Block ---")
        assert result.stats.total_extruded_mm > 0

    def test_with_template(self, session: ArtSession, config: GenerationConfig) -> None:
        session.set_template(TEMPLATE)
        result = session.generate(config)
        assert result.gcode == (
            "G28\n;START_ART\n"
            "\n; --- START ARTWORK ---\n"
            + result.artwork_gcode
            + "\n; --- END ARTWORK ---\n"
            ";END_ART\nM84"
        )

    def test_manual_mode_adds_pause(self, session: ArtSession) -> None:
        cfg = build_config({"pattern": "zigzag", "print_width": 12, "print_height": 8})
        session.set_template(TEMPLATE)
        result = session.generate(cfg)
        assert "\n; --- MANUAL PAUSE ---\nM600\n" in result.gcode

    def test_view_changes_output(self, config: GenerationConfig) -> None:
        ramp = np.tile(np.linspace(0, 255, 32).astype(np.uint8), (32, 1))
        s = ArtSession()
        s.set_image(np.stack([ramp, ramp, ramp], axis=2))
        plain = s.generate(config)
        s.view = ViewTransform(zoom=4.0, offset_x=0.6, offset_y=0.0)
        zoomed = s.generate(config)
        assert plain.artwork_gcode != zoomed.artwork_gcode

    def test_busy(self, session: ArtSession, config: GenerationConfig) -> None:
        session._lock.acquire()
        try:
            assert session.busy
            with pytest.raises(GenerationBusyError):
                session.generate(config)
        finally:
            session._lock.release()
        assert not session.busy
        session.generate(config)

    def test_no_image(self, config: GenerationConfig) -> None:
        with pytest.raises(ConfigError):
            ArtSession().generate(config)

    def test_async(self, session: ArtSession, config: GenerationConfig) -> None:
        result = asyncio.run(session.generate_async(config))
        assert result.artwork_gcode == session.generate(config).artwork_gcode
