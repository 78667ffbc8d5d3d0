from __future__ import annotations

import logging
import os


def _level_from_env(default: int) -> int:
    raw = os.environ.get("DRILL_LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def setup_console_logging(level: int = logging.INFO) -> None:
    """
    Call once at process start. Prints logs to the console.
    DRILL_LOG_LEVEL overrides the level (e.g. DEBUG).
    """
    level = _level_from_env(level)
    root = logging.getLogger()
    if root.handlers:
        # already configured (uvicorn, pytest)
        root.setLevel(level)
        return

    root.setLevel(level)
    h = logging.StreamHandler()
    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    h.setFormatter(fmt)
    root.addHandler(h)

    # SQL echo is only useful when explicitly asked for
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
