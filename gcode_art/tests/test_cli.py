"""End-to-end tests for the generate_art command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from gcode_art.scripts.generate_art import build_parser, main

JOB = """\
pattern: zigzag
print_width: 12
print_height: 8
line_spacing: 1.0
change_mode: ams
"""


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    Image.new("RGB", (16, 8), (90, 90, 90)).save(tmp_path / "art.png")
    (tmp_path / "job.yaml").write_text(JOB)
    return tmp_path


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args(["img.png"])
        assert args.image == "img.png"
        assert args.pattern is None
        assert args.keep_aspect is False
        assert args.log_level == "INFO"

    def test_rejects_unknown_pattern(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["img.png", "--pattern", "wobble"])


class TestMain:
    def test_writes_default_output(self, workdir: Path, capsys: pytest.CaptureFixture) -> None:
        code = main([str(workdir / "art.png"), "-c", str(workdir / "job.yaml")])
        assert code == 0
        text = (workdir / "art.gcode").read_text()
        assert text.endswith("; --- End of Central G-Code Block ---")
        out = capsys.readouterr().out
        assert "Filament:" in out
        assert "G-code written to" in out

    def test_template_and_output(self, workdir: Path) -> None:
        template = workdir / "printer.gcode"
        template.write_text("G28\n;START_ART\n;END_ART\nM84\n")
        out = workdir / "out" / "result.gcode"
        code = main([
            str(workdir / "art.png"), "-c", str(workdir / "job.yaml"),
            "-t", str(template), "-o", str(out),
        ])
        assert code == 0
        text = out.read_text()
        assert text.startswith("G28\n;START_ART\n\n; --- START ARTWORK ---\n")
        assert text.endswith(";END_ART\nM84\n")

    def test_pattern_override(self, workdir: Path) -> None:
        out = workdir / "spiral.gcode"
        code = main([
            str(workdir / "art.png"), "-c", str(workdir / "job.yaml"),
            "-p", "spiral", "-o", str(out),
        ])
        assert code == 0
        assert out.read_text()

    def test_keep_aspect(self, workdir: Path, capsys: pytest.CaptureFixture) -> None:
        code = main([
            str(workdir / "art.png"), "-c", str(workdir / "job.yaml"), "--keep-aspect",
        ])
        assert code == 0
        # 16x8 image at 12 mm wide -> 6 mm tall
        assert "12.0 x 6.0" in capsys.readouterr().out

    def test_missing_image(self, workdir: Path, capsys: pytest.CaptureFixture) -> None:
        code = main([str(workdir / "missing.png"), "-c", str(workdir / "job.yaml")])
        assert code == 1
        assert capsys.readouterr().out.startswith("Error:")

    def test_missing_config(self, workdir: Path) -> None:
        assert main([str(workdir / "art.png"), "-c", str(workdir / "nope.yaml")]) == 1

    def test_invalid_config(self, workdir: Path) -> None:
        (workdir / "bad.yaml").write_text("min_speed: 150\nmax_speed: 100\n")
        assert main([str(workdir / "art.png"), "-c", str(workdir / "bad.yaml")]) == 1

    def test_malformed_config(self, workdir: Path, capsys: pytest.CaptureFixture) -> None:
        (workdir / "broken.yaml").write_text("pattern: [unclosed\n")
        code = main([str(workdir / "art.png"), "-c", str(workdir / "broken.yaml")])
        assert code == 1
        assert capsys.readouterr().out.startswith("Error: Invalid YAML")
        assert not (workdir / "art.gcode").exists()

    def test_log_file(self, workdir: Path) -> None:
        log_file = workdir / "run.jsonl"
        code = main([
            str(workdir / "art.png"), "-c", str(workdir / "job.yaml"),
            "--log-file", str(log_file),
        ])
        assert code == 0
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert any(r.get("pattern") == "zigzag" for r in records)
        assert all(r["image"] == "art.png" for r in records)
