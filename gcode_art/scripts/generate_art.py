#!/usr/bin/env python3
"""
Generate Art Script.

Turn an image into an FDM art G-code program.

Usage:
    python -m gcode_art.scripts.generate_art portrait.png
    python -m gcode_art.scripts.generate_art portrait.png --pattern hilbert
    python -m gcode_art.scripts.generate_art portrait.png \\
        --config job.yaml --template printer.gcode --output art.gcode

Available patterns:
    zigzag, diagonal, spiral, squareSpiral, hilbert
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from gcode_art.configs.loader import (
    ConfigError,
    PatternKind,
    height_for_width,
    load_config,
)
from gcode_art.toolpath.orchestrator import GenerationError
from gcode_art.toolpath.session import ArtSession
from gcode_art.utils.fs import atomic_write_text
from gcode_art.utils.logging_config import push_context, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate G-code art from an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Available patterns: {', '.join(k.value for k in PatternKind)}",
    )
    parser.add_argument("image", type=str, help="Source image (PNG, JPEG, ...)")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Job parameter file (YAML); defaults to the bundled job.yaml",
    )
    parser.add_argument(
        "--template",
        "-t",
        type=str,
        help="Printer G-code template containing ;START_ART / ;END_ART",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file (default: <image>.gcode)",
    )
    parser.add_argument(
        "--pattern",
        "-p",
        type=str,
        choices=[k.value for k in PatternKind],
        help="Pattern override",
    )
    parser.add_argument(
        "--keep-aspect",
        action="store_true",
        help="Derive print height from print width and the image aspect ratio",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write the log to this file (JSON lines)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log verbosity",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        json_file=True,
        color=False,
        context={"image": Path(args.image).name},
    )

    overrides: dict[str, Any] = {}
    if args.pattern:
        overrides["pattern"] = args.pattern

    session = ArtSession()
    try:
        session.load_image(args.image)
        if args.template:
            session.load_template(args.template)

        config = load_config(args.config, overrides)
        if args.keep_aspect:
            overrides["print_height"] = height_for_width(config.area.width, session.image_ratio)
            config = load_config(args.config, overrides)

        push_context(pattern=config.path.pattern.value)
        result = session.generate(config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1
    except (ConfigError, GenerationError) as e:
        print(f"Error: {e}")
        return 1

    output = Path(args.output) if args.output else Path(args.image).with_suffix(".gcode")
    atomic_write_text(result.gcode, output)

    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(result.stats.summary())
    print(f"G-code written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
