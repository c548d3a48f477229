from __future__ import annotations

import logging

from .config import get_log_level


def setup_logging() -> None:
    """Configure root logging for the CLI. No-op when handlers already exist."""
    level = getattr(logging, get_log_level(), logging.INFO)

    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(stream_handler)
