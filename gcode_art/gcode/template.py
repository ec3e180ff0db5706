"""Template merger -- splice the artwork block into a machine template.

The template is a complete G-code program for the target printer with two
marker lines::

    ;START_ART
    ...   (placeholder, replaced)
    ;END_ART

Markers are matched case-insensitively by substring; when a marker occurs
more than once the last occurrence wins.  The merged program is::

    header (through the start-marker line, newline-terminated)
    + change directive block
    + "\\n; --- START ARTWORK ---\\n" + artwork + "\\n; --- END ARTWORK ---\\n"
    + footer (from the end-marker line onward)

Fallbacks:
    - no template: the artwork block alone
    - no start marker: template + "\\n" + artwork, with a warning
    - no end marker (or one before the start): footer is everything after
      the start marker, so no template line is dropped or duplicated
"""

from __future__ import annotations

import logging
import re

from gcode_art.configs.loader import ChangeMode

logger = logging.getLogger(__name__)

START_MARKER = ";START_ART"
END_MARKER = ";END_ART"

_LINE_SPLIT = re.compile(r"\r?\n")


def change_directive_block(mode: ChangeMode) -> str:
    """Directives inserted before the artwork (manual mode pauses)."""
    if mode is ChangeMode.MANUAL:
        return "\n; --- MANUAL PAUSE ---\nM600\n"
    return ""


def find_markers(lines: list[str]) -> tuple[int, int]:
    """Indices of the last start and end marker lines (``-1`` if absent)."""
    start = end = -1
    for i, line in enumerate(lines):
        upper = line.upper()
        if START_MARKER in upper:
            start = i
        if END_MARKER in upper:
            end = i
    return start, end


def merge_with_template(
    artwork: str,
    template: str | None,
    mode: ChangeMode = ChangeMode.MANUAL,
) -> str:
    """Merge *artwork* into *template*.

    Parameters
    ----------
    artwork : str
        Rendered artwork block.
    template : str | None
        Template text, or ``None`` when no template is loaded.
    mode : ChangeMode
        Selects the change directive block.

    Returns
    -------
    str
        Merged G-code program.
    """
    if template is None:
        return artwork

    lines = _LINE_SPLIT.split(template)
    start, end = find_markers(lines)

    if start == -1:
        logger.warning("Marker %s not found in template; appending artwork", START_MARKER)
        return template + "\n" + artwork

    header = "\n".join(lines[: start + 1]) + "\n"
    if end > start:
        footer = "\n".join(lines[end:])
    else:
        if end != -1:
            logger.warning("%s precedes %s; treating it as absent", END_MARKER, START_MARKER)
        footer = "\n".join(lines[start + 1:])

    return (
        header
        + change_directive_block(mode)
        + "\n; --- START ARTWORK ---\n"
        + artwork
        + "\n; --- END ARTWORK ---\n"
        + footer
    )
