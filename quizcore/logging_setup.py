"""Console logging for the quiz host and the session worker thread."""
from __future__ import annotations

import logging

from quizcore import config

# Countdown ticks and auto-saves log from the tick worker, so the thread
# name is part of every line.
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def resolve_level(level: int | str | None) -> int:
    """Accept a logging level number or name; unknown names fall back to INFO."""
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_console_logging(level: int | str | None = None) -> None:
    """Install one console handler on the root logger.

    ``level`` defaults to ``QUIZ_LOG_LEVEL``. Calling again only changes the
    level so a reloaded host does not print every line twice.
    """
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
