"""Logging setup shared by the CLI and host applications.

Every module logs through ``logging.getLogger(__name__)``; this module
only decides where records go and how they look:

    - a console handler on stderr (level colours when it is a TTY)
    - an optional file handler, human-readable or JSON lines
    - contextual fields (image, pattern, run) prefixed to every record

Record layout:
    Human: 2026-10-19T13:45:12.345Z | INFO     | pattern=hilbert | Generated 8123 instructions
    JSON:  {"t": "2026-10-19T13:45:12.345+00:00", "lvl": "INFO", "pattern": "hilbert", ...}

Context lives in a ``contextvars.ContextVar`` so a run executing in a
worker thread (``ArtSession.generate_async``) keeps the fields that were
pushed by its caller.  Calling ``setup_logging`` again swaps the handlers
it installed rather than stacking new ones.
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "gcode_art_log_context", default={}
)

_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class ContextFormatter(logging.Formatter):
    """Render records with the current context fields.

    Parameters
    ----------
    mode : str
        ``"human"`` or ``"json"``
    use_color : bool
        Colour the level name; ignored unless stderr is a TTY
    """

    def __init__(self, mode: str = "human", use_color: bool = False):
        super().__init__()
        if mode not in ("human", "json"):
            raise ValueError(f"Unknown log format: {mode}")
        self.mode = mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        fields = _context.get()

        if self.mode == "json":
            payload: Dict[str, Any] = {
                "t": ts.isoformat(timespec="milliseconds"),
                "lvl": record.levelname,
                "logger": record.name,
            }
            payload.update(fields)
            payload["msg"] = record.getMessage()
            if record.exc_info:
                payload["exc"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        level = f"{record.levelname:<8}"
        if self.use_color:
            level = _LEVEL_COLORS.get(record.levelname, "") + level + _RESET

        prefix = ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"
        parts = [prefix, level]
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())

        text = " | ".join(parts)
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json_file: bool = False,
    color: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING" or "ERROR"
    log_file : str, optional
        Also write records to this file (parent directories are created)
    json_file : bool
        Write the file handler as JSON lines, default False
    color : bool
        Colour console level names, default True
    quiet_libs : list[str], optional
        Loggers held at WARNING, default ``["PIL"]``
    context : dict, optional
        Fields pushed onto the log context

    Returns
    -------
    list[logging.Handler]
        Handlers installed on the root logger
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ContextFormatter("human", use_color=color))
    _installed.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(ContextFormatter("json" if json_file else "human"))
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    for name in quiet_libs or ["PIL"]:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(True)

    if context:
        push_context(**context)
    return list(_installed)


def push_context(**fields: Any) -> None:
    """Attach *fields* to every subsequent record in this context.

    Examples
    --------
    >>> push_context(image="portrait.png", pattern="hilbert")
    """
    _context.set({**_context.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the named fields, or all of them when *keys* is None."""
    if keys is None:
        _context.set({})
        return
    _context.set({k: v for k, v in _context.get().items() if k not in keys})
