from __future__ import annotations

import os

DEFAULT_MAX_MEMORY = 10 * 1024 * 1024       # 10 MiB


def get_max_memory() -> int:
    """Bytes of a multipart file part kept in memory before it spills to disk."""
    # runtime reads PAYLOAD_BINDING_MAX_MEMORY first.
    return int(os.getenv("PAYLOAD_BINDING_MAX_MEMORY", str(DEFAULT_MAX_MEMORY)))


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
