"""Runtime settings read from the environment."""
from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


LOG_LEVEL = os.getenv("CLICKDOWN_LOG_LEVEL", "WARNING").upper()

# Longest raw payload fragment echoed into a diagnostic.
EXCERPT_LIMIT = max(_env_int("CLICKDOWN_EXCERPT_LIMIT", 200), 1)

DATE_FORMAT = os.getenv("CLICKDOWN_DATE_FORMAT", "%b %d, %Y %H:%M")
