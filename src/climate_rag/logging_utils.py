"""
Logging setup for entry points.

Library modules only create `logging.getLogger(__name__)` loggers; the
CLI calls setup_logging() once to attach a handler to the root logger.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Chatty third-party loggers kept at WARNING unless explicitly debugging them
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


def setup_logging(level: str | int | None = None) -> None:
    """Configure the root logger (level from CLIMATE_RAG_LOG_LEVEL, default WARNING)."""
    level = level or os.environ.get("CLIMATE_RAG_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
