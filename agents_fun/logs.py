"""Logging setup — console and file sinks on the root logger.

Every module logs through ``logging.getLogger(__name__)``; the sinks are
plain handlers chosen here, so a record reaches the terminal and
``logs.txt`` from one call.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def console_sink(stream: TextIO | None = None) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def file_sink(path: Path | str) -> logging.Handler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    sinks: list[logging.Handler] | None = None,
) -> list[logging.Handler]:
    """Install sinks on the root logger, replacing any we installed before.

    ``sinks`` overrides the default console (+ file when ``log_file`` is set).
    Returns the installed handlers.
    """
    if sinks is None:
        sinks = [console_sink()]
        if log_file:
            sinks.append(file_sink(log_file))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_agents_fun_sink", False):
            root.removeHandler(handler)
            handler.close()

    for handler in sinks:
        handler._agents_fun_sink = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return sinks
