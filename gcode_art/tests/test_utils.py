"""Tests for filesystem and logging helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from gcode_art.utils import fs
from gcode_art.utils.logging_config import (
    ContextFormatter,
    pop_context,
    push_context,
    setup_logging,
)


class TestFs:
    def test_atomic_write_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "out.gcode"
        fs.atomic_write_text("G28\n", target)
        assert target.read_text() == "G28\n"
        assert not target.with_suffix(".gcode.tmp").exists()

    def test_atomic_write_replaces(self, tmp_path: Path) -> None:
        target = tmp_path / "out.gcode"
        target.write_text("old")
        fs.atomic_write_text("new", target)
        assert target.read_text() == "new"

    def test_load_image_rgba(self, tmp_path: Path) -> None:
        p = tmp_path / "img.png"
        Image.new("L", (5, 2), 128).save(p)
        rgba = fs.load_image_rgba(p)
        assert rgba.shape == (2, 5, 4)
        assert rgba.dtype == np.uint8
        assert (rgba[..., 3] == 255).all()

    def test_read_text_limited(self, tmp_path: Path) -> None:
        p = tmp_path / "t.gcode"
        p.write_text("x" * 20)
        assert fs.read_text_limited(p, max_bytes=20) == "x" * 20
        with pytest.raises(fs.FileLimitError):
            fs.read_text_limited(p, max_bytes=19)

    def test_load_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            fs.load_yaml(tmp_path / "nope.yaml")


class TestLogging:
    @staticmethod
    def _record(msg: str) -> logging.LogRecord:
        return logging.LogRecord("gcode_art.test", logging.INFO, __file__, 1, msg, None, None)

    def test_human_format_with_context(self) -> None:
        push_context(app="generate_art", run=2)
        try:
            line = ContextFormatter("human", use_color=False).format(self._record("Spiral done"))
        finally:
            pop_context()
        assert "| INFO     |" in line
        assert "app=generate_art run=2 |" in line
        assert line.endswith("Spiral done")

    def test_json_format(self) -> None:
        push_context(pattern="hilbert")
        try:
            payload = json.loads(ContextFormatter("json").format(self._record("hello")))
        finally:
            pop_context(["pattern"])
        assert payload["msg"] == "hello"
        assert payload["lvl"] == "INFO"
        assert payload["pattern"] == "hilbert"

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            ContextFormatter("xml")

    def test_setup_writes_json_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "run.jsonl"
        handlers = setup_logging("DEBUG", str(log_file), json_file=True, color=False)
        try:
            logging.getLogger("gcode_art.test").info("written")
            for handler in handlers:
                handler.flush()
            record = json.loads(log_file.read_text().splitlines()[-1])
            assert record["msg"] == "written"
            assert record["logger"] == "gcode_art.test"
        finally:
            setup_logging("WARNING")

    def test_setup_replaces_own_handlers(self) -> None:
        root = logging.getLogger()
        before = len(root.handlers)
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(root.handlers) <= before + 1

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            setup_logging("LOUD")
