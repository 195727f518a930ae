"""Logging for vibelint runs.

Everything logs under the ``vibelint`` logger. Console output goes to stderr
so ``vibelint analyze --json`` keeps stdout machine-readable. In verbose mode
each console line names the component that emitted it (``checks.coupling``,
``engine``, ...), which is usually enough to tell which check degraded.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "vibelint"

_CONSOLE_FORMAT = "[vibelint] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[vibelint] %(levelname)s %(component)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(component)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``vibelint.<name>``, or the root vibelint logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


class ComponentFormatter(logging.Formatter):
    """Exposes the logger name without the ``vibelint.`` prefix as ``component``."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = f"{ROOT_LOGGER}."
        record.component = record.name[len(prefix):] if record.name.startswith(prefix) else record.name
        return super().format(record)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install console (and optionally file) handlers on the vibelint logger.

    Safe to call repeatedly; previous handlers are closed and replaced.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ComponentFormatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # Worker threads run the checks, so the file records which one logged.
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(ComponentFormatter(_FILE_FORMAT))
        logger.addHandler(sink)
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["ROOT_LOGGER", "ComponentFormatter", "configure_logging", "get_logger"]
